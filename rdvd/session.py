from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .constants import K_USER, K_USER_ID, K_USERS, T_USER_LEFT
from .envelope import make_envelope
from .messages import Outgoing

if TYPE_CHECKING:
    from .service import RelayService


class SessionManager:
    """
    Manages connection lifecycle for the relay.

    This class is responsible for:
    - Registering a transport when its connection opens
    - Leaving the connection's room when it closes
    - Notifying the remaining peer with ``user-left``
    - Dropping the connection record
    """

    def __init__(self, relay: RelayService) -> None:
        self.relay = relay
        self.log = logging.getLogger("rdvd.session")

    def on_connection_open(self, transport: Any) -> str:
        conn_id = self.relay.connections.register(transport)
        self.log.info("Connection opened conn=%s", conn_id)
        return conn_id

    def on_connection_closed(
        self, conn_id: str, outgoing: Outgoing
    ) -> tuple[str | None, str | None]:
        """
        Handle connection closure and cleanup.

        Returns:
            (room_name, user_name) the connection was bound to, for logging.
        Calling it again for the same connection is a no-op.
        """
        if conn_id not in self.relay.connections:
            return None, None

        user = self.relay.users.get(conn_id)
        user_name = user.name if user is not None else None

        left = self.relay.rooms.leave(conn_id)
        room_name = None
        if left is not None:
            room_name, remaining = left
            if remaining:
                notification = make_envelope(
                    T_USER_LEFT,
                    **{
                        K_USER_ID: conn_id,
                        K_USER: user_name,
                        K_USERS: [m.to_wire() for m in remaining],
                    },
                )
                self.relay.message_helper.send_to_room(
                    outgoing, room_name, notification, exclude=conn_id
                )

        self.relay.connections.remove(conn_id)
        self.relay.stats_manager.inc("disconnects")

        self.log.info(
            "Connection closed conn=%s user=%r room=%r", conn_id, user_name, room_name
        )
        return room_name, user_name

    def clear_all(self) -> list[Any]:
        """
        Clear all connections, users and rooms; return transports for teardown.
        """
        conns = self.relay.connections.clear_all()
        self.relay.users.clear_all()
        self.relay.rooms.clear_all()
        return [c.transport for c in conns]

    def get_stats(self) -> dict[str, Any]:
        """Get connection statistics for monitoring."""
        total = len(self.relay.connections)
        bound = len(self.relay.users)
        return {
            "total": total,
            "bound": bound,
            "unbound": total - bound,
        }
