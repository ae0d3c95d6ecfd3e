"""Message queueing and fan-out utilities for the rendezvous relay."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .connections import Connection
from .constants import K_MESSAGE, T_ERROR, T_ROOM_ERROR
from .envelope import make_envelope

if TYPE_CHECKING:
    from .service import RelayService

Outgoing = list[tuple[Connection, dict[str, Any]]]


class MessageHelper:
    """
    Helper methods for queueing messages.

    Handles:
    - Direct replies to one connection
    - Fan-out to the members of a room
    - Error and room-error emission

    Nothing here writes to a transport. Handlers fill an outgoing list and
    the service flushes it once the state change is complete.
    """

    def __init__(self, relay: RelayService) -> None:
        self.relay = relay
        self.log = relay.log

    def queue_env(self, outgoing: Outgoing, conn_id: str, env: dict[str, Any]) -> bool:
        """Queue an envelope for one connection if its transport is open."""
        conn = self.relay.connections.get(conn_id)
        if conn is None or not conn.is_open:
            return False
        outgoing.append((conn, env))
        return True

    def send_to_room(
        self,
        outgoing: Outgoing,
        room_name: str,
        env: dict[str, Any],
        *,
        exclude: str | None = None,
    ) -> int:
        """Queue an envelope to every member of a room except ``exclude``.

        Members without an open transport are skipped. Returns the number of
        recipients queued.
        """
        sent = 0
        for member in self.relay.rooms.members(room_name):
            if member.conn_id == exclude:
                continue
            if self.queue_env(outgoing, member.conn_id, env):
                sent += 1
        return sent

    def emit_error(self, outgoing: Outgoing, conn_id: str, text: str) -> None:
        self.relay.stats_manager.inc("errors_sent")
        self.queue_env(outgoing, conn_id, make_envelope(T_ERROR, **{K_MESSAGE: text}))

    def emit_room_error(self, outgoing: Outgoing, conn_id: str, text: str) -> None:
        self.relay.stats_manager.inc("errors_sent")
        self.queue_env(
            outgoing, conn_id, make_envelope(T_ROOM_ERROR, **{K_MESSAGE: text})
        )
