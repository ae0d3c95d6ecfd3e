"""Room management for the rendezvous relay.

This module handles all room-related functionality including:
- Room creation under caller-supplied names
- Membership tracking with the two-peer capacity limit
- Teardown of rooms the moment their last member leaves
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .constants import (
    ERR_ALREADY_IN_ROOM,
    ERR_ROOM_EXISTS,
    ERR_ROOM_FULL,
    ERR_ROOM_NOT_FOUND,
    K_EXISTS,
    K_MAX_MEMBERS,
    K_MEMBER_COUNT,
    M_ID,
    M_NAME,
    MAX_ROOM_MEMBERS,
)
from .users import UserDirectory


class RoomError(Exception):
    """A room operation was refused; ``message`` is sent back to the client."""

    message = "Room error"

    def __init__(self, room: str | None = None) -> None:
        super().__init__(self.message)
        self.room = room


class RoomExists(RoomError):
    message = ERR_ROOM_EXISTS


class RoomNotFound(RoomError):
    message = ERR_ROOM_NOT_FOUND


class RoomFull(RoomError):
    message = ERR_ROOM_FULL


class AlreadyInRoom(RoomError):
    message = ERR_ALREADY_IN_ROOM


@dataclass
class Member:
    conn_id: str
    name: Any

    def to_wire(self) -> dict[str, Any]:
        return {M_ID: self.conn_id, M_NAME: self.name}


@dataclass
class Room:
    name: str
    creator: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    members: list[Member] = field(default_factory=list)

    def member_ids(self) -> list[str]:
        return [m.conn_id for m in self.members]

    def users_wire(self) -> list[dict[str, Any]]:
        return [m.to_wire() for m in self.members]


class RoomRegistry:
    """Manages room membership and enforces uniqueness and capacity."""

    def __init__(self, users: UserDirectory) -> None:
        self.users = users
        self.log = logging.getLogger("rdvd.rooms")
        self.rooms: dict[str, Room] = {}

    def clear_all(self) -> None:
        """Clear all room state. Called during relay shutdown."""
        self.rooms.clear()

    def get(self, room_name: str) -> Room | None:
        return self.rooms.get(room_name)

    def members(self, room_name: str) -> list[Member]:
        """Get a copy of the current member list of a room."""
        room = self.rooms.get(room_name)
        return list(room.members) if room is not None else []

    def _ensure_unbound(self, conn_id: str) -> None:
        current = self.users.room_of(conn_id)
        if current is not None:
            raise AlreadyInRoom(current)

    def create_room(self, room_name: str, creator_id: str, creator_name: Any) -> Room:
        if room_name in self.rooms:
            raise RoomExists(room_name)
        self._ensure_unbound(creator_id)

        room = Room(
            name=room_name,
            creator=creator_id,
            members=[Member(creator_id, creator_name)],
        )
        self.rooms[room_name] = room
        self.users.set(creator_id, creator_name, room_name)

        self.log.info("Room created room=%r by=%r conn=%s", room_name, creator_name, creator_id)
        return room

    def join_room(self, room_name: str, conn_id: str, user_name: Any) -> Room:
        room = self.rooms.get(room_name)
        if room is None:
            raise RoomNotFound(room_name)
        if len(room.members) >= MAX_ROOM_MEMBERS:
            raise RoomFull(room_name)
        self._ensure_unbound(conn_id)

        room.members.append(Member(conn_id, user_name))
        self.users.set(conn_id, user_name, room_name)

        self.log.info("Room joined room=%r user=%r conn=%s", room_name, user_name, conn_id)
        return room

    def leave(self, conn_id: str) -> tuple[str, list[Member]] | None:
        """
        Remove a connection from its room, deleting the room if it empties.

        Returns (room_name, remaining_members) or None when the connection
        had no room. The user's directory entry is always dropped.
        """
        user = self.users.remove(conn_id)
        if user is None or user.room is None:
            return None

        room_name = user.room
        room = self.rooms.get(room_name)
        if room is None:
            return None

        room.members = [m for m in room.members if m.conn_id != conn_id]
        remaining = list(room.members)
        if not remaining:
            self.rooms.pop(room_name, None)
            self.log.info("Room deleted room=%r", room_name)

        return room_name, remaining

    def get_info(self, room_name: str) -> dict[str, Any]:
        room = self.rooms.get(room_name)
        if room is None:
            return {K_EXISTS: False}
        return {
            K_EXISTS: True,
            K_MEMBER_COUNT: len(room.members),
            K_MAX_MEMBERS: MAX_ROOM_MEMBERS,
        }

    def is_member(self, room_name: str, conn_id: str) -> bool:
        room = self.rooms.get(room_name)
        return room is not None and conn_id in room.member_ids()

    def get_stats(self) -> dict[str, Any]:
        """Get room statistics for relay stats."""
        rooms_total = len(self.rooms)
        memberships = sum(len(r.members) for r in self.rooms.values())
        waiting = sum(1 for r in self.rooms.values() if len(r.members) < MAX_ROOM_MEMBERS)
        return {
            "rooms_total": rooms_total,
            "memberships": memberships,
            "rooms_waiting": waiting,
        }

    def __contains__(self, room_name: object) -> bool:
        return room_name in self.rooms

    def __len__(self) -> int:
        return len(self.rooms)
