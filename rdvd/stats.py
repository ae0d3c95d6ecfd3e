"""Statistics tracking and reporting for the rendezvous relay."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .service import RelayService


class StatsManager:
    """
    Manages relay statistics collection and reporting.

    Tracks counters for:
    - Frames and bytes in/out
    - Malformed frames and unknown message types
    - Errors sent
    - Rooms created and joined
    - Relayed negotiation messages
    - Disconnects and send failures
    """

    def __init__(self, relay: RelayService) -> None:
        self.relay = relay
        self.log = relay.log

        self.started_wall_time: float | None = None
        self.started_monotonic: float | None = None

        self._counters: dict[str, int] = {
            "frames_in": 0,
            "bytes_in": 0,
            "frames_out": 0,
            "bytes_out": 0,
            "frames_bad": 0,
            "frames_unknown": 0,
            "errors_sent": 0,
            "rooms_created": 0,
            "joins": 0,
            "relayed": 0,
            "disconnects": 0,
            "send_failures": 0,
        }

    def set_start_time(self) -> None:
        """Set the start time for uptime calculations."""
        self.started_wall_time = time.time()
        self.started_monotonic = time.monotonic()

    def inc(self, key: str, delta: int = 1) -> None:
        """Increment a counter by the given delta."""
        self._counters[key] = int(self._counters.get(key, 0)) + int(delta)

    def get(self, key: str) -> int:
        return int(self._counters.get(key, 0))

    def snapshot(self) -> dict[str, int]:
        return dict(self._counters)

    def uptime_s(self) -> float:
        started_mono = self.started_monotonic
        return (time.monotonic() - started_mono) if started_mono is not None else 0.0

    def format_stats(self) -> str:
        """Format current statistics as a human-readable string."""
        from . import __version__

        session_stats = self.relay.session_manager.get_stats()
        room_stats = self.relay.rooms.get_stats()
        c = self.snapshot()

        lines: list[str] = []
        lines.append(f"rdvd {__version__} stats")
        lines.append(f"uptime_s={self.uptime_s():.1f}")
        lines.append(
            f"connections_total={session_stats['total']} "
            f"connections_bound={session_stats['bound']} "
            f"connections_unbound={session_stats['unbound']}"
        )
        lines.append(
            f"rooms={room_stats['rooms_total']} "
            f"memberships={room_stats['memberships']} "
            f"rooms_waiting={room_stats['rooms_waiting']}"
        )
        lines.append(
            "io: frames_in={} frames_out={} bytes_in={} bytes_out={} frames_bad={} frames_unknown={}".format(
                c.get("frames_in", 0),
                c.get("frames_out", 0),
                c.get("bytes_in", 0),
                c.get("bytes_out", 0),
                c.get("frames_bad", 0),
                c.get("frames_unknown", 0),
            )
        )
        lines.append(
            "events: rooms_created={} joins={} relayed={} disconnects={} errors_sent={} send_failures={}".format(
                c.get("rooms_created", 0),
                c.get("joins", 0),
                c.get("relayed", 0),
                c.get("disconnects", 0),
                c.get("errors_sent", 0),
                c.get("send_failures", 0),
            )
        )

        return "\n".join(lines)
