"""Connection tracking for the rendezvous relay.

Maps opaque connection identifiers to their transport handle. The transport
is owned by the serving layer; this registry only keeps a reference to it.
"""

from __future__ import annotations

import itertools
import logging
import secrets
from dataclasses import dataclass
from typing import Any

from .constants import WIRE_JSON


@dataclass
class Connection:
    conn_id: str
    transport: Any
    wire: str = WIRE_JSON

    @property
    def is_open(self) -> bool:
        return bool(getattr(self.transport, "is_open", False))


class ConnectionRegistry:
    """Owns connection identifiers and their transport handles."""

    def __init__(self) -> None:
        self.log = logging.getLogger("rdvd.connections")
        self._connections: dict[str, Connection] = {}
        self._counter = itertools.count(1)

    def _new_id(self) -> str:
        return f"{next(self._counter):x}-{secrets.token_hex(8)}"

    def register(self, transport: Any) -> str:
        conn_id = self._new_id()
        if conn_id in self._connections:
            raise RuntimeError(f"connection id collision: {conn_id}")
        self._connections[conn_id] = Connection(conn_id=conn_id, transport=transport)
        return conn_id

    def get(self, conn_id: str) -> Connection | None:
        return self._connections.get(conn_id)

    def lookup(self, conn_id: str) -> Any | None:
        conn = self._connections.get(conn_id)
        return conn.transport if conn is not None else None

    def set_wire(self, conn_id: str, wire: str) -> None:
        conn = self._connections.get(conn_id)
        if conn is not None and conn.wire != wire:
            self.log.debug("Wire format conn=%s %s -> %s", conn_id, conn.wire, wire)
            conn.wire = wire

    def remove(self, conn_id: str) -> None:
        self._connections.pop(conn_id, None)

    def clear_all(self) -> list[Connection]:
        conns = list(self._connections.values())
        self._connections.clear()
        return conns

    def __contains__(self, conn_id: object) -> bool:
        return conn_id in self._connections

    def __len__(self) -> int:
        return len(self._connections)
