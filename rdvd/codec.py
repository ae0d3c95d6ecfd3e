from __future__ import annotations

import json

import cbor2

from .constants import WIRE_CBOR, WIRE_JSON


def _reject_constant(name: str):
    # Browsers' JSON.parse has no NaN/Infinity; refuse them on the way in.
    raise ValueError(f"non-standard JSON constant {name}")


def is_cbor_map(b: bytes) -> bool:
    # CBOR major type 5 (map) occupies initial bytes 0xa0..0xbf.
    return bool(b) and 0xA0 <= b[0] <= 0xBF


def encode(obj, wire: str = WIRE_JSON) -> str | bytes:
    if wire == WIRE_CBOR:
        return cbor2.dumps(obj)
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def decode(data: str | bytes) -> tuple[object, str]:
    """Decode one inbound frame, returning the object and the wire it used.

    Text frames and binary frames holding UTF-8 text are JSON. Binary frames
    starting with a CBOR map header are CBOR.
    """
    if isinstance(data, (bytes, bytearray)):
        b = bytes(data)
        if is_cbor_map(b):
            return cbor2.loads(b), WIRE_CBOR
        data = b.decode("utf-8")
    return json.loads(data, parse_constant=_reject_constant), WIRE_JSON
