from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class User:
    name: Any
    room: str | None = None


class UserDirectory:
    """Connection id -> participant profile (display name, current room)."""

    def __init__(self) -> None:
        self._users: dict[str, User] = {}

    def set(self, conn_id: str, name: Any, room: str | None) -> User:
        user = User(name=name, room=room)
        self._users[conn_id] = user
        return user

    def get(self, conn_id: str) -> User | None:
        return self._users.get(conn_id)

    def room_of(self, conn_id: str) -> str | None:
        user = self._users.get(conn_id)
        return user.room if user is not None else None

    def remove(self, conn_id: str) -> User | None:
        return self._users.pop(conn_id, None)

    def clear_all(self) -> None:
        self._users.clear()

    def __len__(self) -> int:
        return len(self._users)
