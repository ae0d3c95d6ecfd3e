from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, assert_never

from .codec import decode
from .constants import (
    ERR_INVALID_FORMAT,
    ERR_INVALID_ROOM_NAME,
    ERR_NOT_A_MEMBER,
    K_ANSWER,
    K_CANDIDATE,
    K_ENABLED,
    K_EXISTS,
    K_FROM,
    K_OFFER,
    K_ROOM,
    K_TYPE,
    K_USER,
    K_USER_ID,
    K_USERS,
    T_ANSWER,
    T_ICE_CANDIDATE,
    T_OFFER,
    T_ROOM_CREATED,
    T_ROOM_INFO,
    T_ROOM_JOINED,
    T_USER_AUDIO_TOGGLE,
    T_USER_JOINED,
    T_USER_VIDEO_TOGGLE,
)
from .envelope import InboundKind, inbound_kind, make_envelope, validate_envelope
from .messages import Outgoing
from .rooms import RoomError

if TYPE_CHECKING:
    from .service import RelayService


class MessageRouter:
    """
    Handles message routing and dispatching for the relay.

    This class is responsible for:
    - Decoding and validating incoming frames
    - Dispatching messages by kind (create/join, relay, toggles, info)
    - Forwarding negotiation payloads to the other member of a room
    - Replying with errors for malformed input and refused room operations

    Routing never awaits. Replies and fan-out are appended to ``outgoing``
    and written by the service afterwards.
    """

    def __init__(self, relay: RelayService) -> None:
        self.relay = relay
        self.log = logging.getLogger("rdvd.router")

    def route_frame(self, conn_id: str, data: str | bytes, outgoing: Outgoing) -> None:
        """Main entry point for routing one inbound frame."""
        if conn_id not in self.relay.connections:
            return

        stats = self.relay.stats_manager
        stats.inc("frames_in")
        stats.inc("bytes_in", len(data))

        try:
            env, wire = decode(data)
            validate_envelope(env)
        except Exception as e:
            stats.inc("frames_bad")
            self.log.debug("Bad frame conn=%s bytes=%s err=%s", conn_id, len(data), e)
            self.relay.message_helper.emit_error(outgoing, conn_id, ERR_INVALID_FORMAT)
            return

        self.relay.connections.set_wire(conn_id, wire)

        kind = inbound_kind(env)
        if kind is None:
            stats.inc("frames_unknown")
            t = env.get(K_TYPE) if isinstance(env, dict) else type(env).__name__
            self.log.warning("Unknown message type conn=%s type=%r", conn_id, t)
            return

        if self.log.isEnabledFor(logging.DEBUG):
            self.log.debug(
                "RX conn=%s type=%s room=%r bytes=%s wire=%s",
                conn_id,
                kind.value,
                env.get(K_ROOM),
                len(data),
                wire,
            )

        self.dispatch(conn_id, kind, env, outgoing)

    def dispatch(
        self, conn_id: str, kind: InboundKind, env: dict[str, Any], outgoing: Outgoing
    ) -> None:
        if kind is InboundKind.CREATE_ROOM:
            self._handle_create_room(conn_id, env, outgoing)
        elif kind is InboundKind.JOIN_ROOM:
            self._handle_join_room(conn_id, env, outgoing)
        elif kind is InboundKind.OFFER:
            self._relay(
                conn_id, env, outgoing,
                make_envelope(T_OFFER, **{K_OFFER: env.get(K_OFFER), K_FROM: conn_id}),
            )
        elif kind is InboundKind.ANSWER:
            self._relay(
                conn_id, env, outgoing,
                make_envelope(T_ANSWER, **{K_ANSWER: env.get(K_ANSWER), K_FROM: conn_id}),
            )
        elif kind is InboundKind.ICE_CANDIDATE:
            self._relay(
                conn_id, env, outgoing,
                make_envelope(
                    T_ICE_CANDIDATE,
                    **{K_CANDIDATE: env.get(K_CANDIDATE), K_FROM: conn_id},
                ),
            )
        elif kind is InboundKind.TOGGLE_VIDEO:
            self._relay(
                conn_id, env, outgoing,
                make_envelope(
                    T_USER_VIDEO_TOGGLE,
                    **{K_USER_ID: conn_id, K_ENABLED: env.get(K_ENABLED)},
                ),
            )
        elif kind is InboundKind.TOGGLE_AUDIO:
            self._relay(
                conn_id, env, outgoing,
                make_envelope(
                    T_USER_AUDIO_TOGGLE,
                    **{K_USER_ID: conn_id, K_ENABLED: env.get(K_ENABLED)},
                ),
            )
        elif kind is InboundKind.GET_ROOM_INFO:
            self._handle_get_room_info(conn_id, env, outgoing)
        else:
            assert_never(kind)

    def _room_and_user(
        self, conn_id: str, env: dict[str, Any], outgoing: Outgoing
    ) -> tuple[str, Any] | None:
        # Display names are free-form and passed through as sent, even absent.
        room_name = env.get(K_ROOM)
        if not isinstance(room_name, str):
            self.relay.message_helper.emit_room_error(outgoing, conn_id, ERR_INVALID_ROOM_NAME)
            return None
        return room_name, env.get(K_USER)

    def _handle_create_room(
        self, conn_id: str, env: dict[str, Any], outgoing: Outgoing
    ) -> None:
        """Handle create-room: the sender becomes the room's first member."""
        parsed = self._room_and_user(conn_id, env, outgoing)
        if parsed is None:
            return
        room_name, user_name = parsed

        try:
            self.relay.rooms.create_room(room_name, conn_id, user_name)
        except RoomError as e:
            self.log.info("Create refused conn=%s room=%r: %s", conn_id, room_name, e.message)
            self.relay.message_helper.emit_room_error(outgoing, conn_id, e.message)
            return

        self.relay.stats_manager.inc("rooms_created")
        self.relay.message_helper.queue_env(
            outgoing,
            conn_id,
            make_envelope(T_ROOM_CREATED, **{K_ROOM: room_name, K_USER: user_name}),
        )

    def _handle_join_room(
        self, conn_id: str, env: dict[str, Any], outgoing: Outgoing
    ) -> None:
        """Handle join-room: announce the joiner, then confirm to them."""
        parsed = self._room_and_user(conn_id, env, outgoing)
        if parsed is None:
            return
        room_name, user_name = parsed

        try:
            room = self.relay.rooms.join_room(room_name, conn_id, user_name)
        except RoomError as e:
            self.log.info("Join refused conn=%s room=%r: %s", conn_id, room_name, e.message)
            self.relay.message_helper.emit_room_error(outgoing, conn_id, e.message)
            return

        self.relay.stats_manager.inc("joins")
        users = room.users_wire()
        self.relay.message_helper.send_to_room(
            outgoing,
            room_name,
            make_envelope(
                T_USER_JOINED, **{K_USER_ID: conn_id, K_USER: user_name, K_USERS: users}
            ),
            exclude=conn_id,
        )
        self.relay.message_helper.queue_env(
            outgoing,
            conn_id,
            make_envelope(
                T_ROOM_JOINED, **{K_ROOM: room_name, K_USER: user_name, K_USERS: users}
            ),
        )

    def _relay(
        self,
        conn_id: str,
        env: dict[str, Any],
        outgoing: Outgoing,
        forward: dict[str, Any],
    ) -> None:
        """Forward ``forward`` to the other members of the addressed room.

        The addressed room is taken from the sender's envelope as-is unless
        ``require_membership`` is enabled.
        """
        room_name = env.get(K_ROOM)
        if not isinstance(room_name, str):
            self.log.debug("Relay without room conn=%s type=%s", conn_id, forward[K_TYPE])
            return

        if self.relay.config.require_membership and not self.relay.rooms.is_member(
            room_name, conn_id
        ):
            self.relay.message_helper.emit_room_error(outgoing, conn_id, ERR_NOT_A_MEMBER)
            return

        n = self.relay.message_helper.send_to_room(
            outgoing, room_name, forward, exclude=conn_id
        )
        self.relay.stats_manager.inc("relayed", n)

        if self.log.isEnabledFor(logging.DEBUG):
            self.log.debug(
                "Forwarded type=%s conn=%s room=%r recipients=%s",
                forward[K_TYPE],
                conn_id,
                room_name,
                n,
            )

    def _handle_get_room_info(
        self, conn_id: str, env: dict[str, Any], outgoing: Outgoing
    ) -> None:
        room_name = env.get(K_ROOM)
        if isinstance(room_name, str):
            info = self.relay.rooms.get_info(room_name)
        else:
            info = {K_EXISTS: False}
        self.relay.message_helper.queue_env(
            outgoing, conn_id, make_envelope(T_ROOM_INFO, **info)
        )
