from __future__ import annotations

import enum
from typing import Any

from .constants import (
    K_TYPE,
    T_ANSWER,
    T_CREATE_ROOM,
    T_GET_ROOM_INFO,
    T_ICE_CANDIDATE,
    T_JOIN_ROOM,
    T_OFFER,
    T_TOGGLE_AUDIO,
    T_TOGGLE_VIDEO,
)


class MalformedEnvelope(ValueError):
    pass


class InboundKind(str, enum.Enum):
    CREATE_ROOM = T_CREATE_ROOM
    JOIN_ROOM = T_JOIN_ROOM
    OFFER = T_OFFER
    ANSWER = T_ANSWER
    ICE_CANDIDATE = T_ICE_CANDIDATE
    TOGGLE_VIDEO = T_TOGGLE_VIDEO
    TOGGLE_AUDIO = T_TOGGLE_AUDIO
    GET_ROOM_INFO = T_GET_ROOM_INFO


def make_envelope(msg_type: str, **fields: Any) -> dict[str, Any]:
    env: dict[str, Any] = {K_TYPE: str(msg_type)}
    env.update(fields)
    return env


def validate_envelope(env: Any) -> None:
    """Reject decoded frames that cannot be read as an envelope at all.

    Only ``null`` is rejected. Any other value, including a map without a
    usable ``type``, is left for ``inbound_kind`` to classify as unknown.
    """
    if env is None:
        raise MalformedEnvelope("envelope must not be null")


def inbound_kind(env: Any) -> InboundKind | None:
    """Map a decoded envelope to its kind, or None for an unknown type."""
    if not isinstance(env, dict):
        return None
    t = env.get(K_TYPE)
    if not isinstance(t, str):
        return None
    try:
        return InboundKind(t)
    except ValueError:
        return None
