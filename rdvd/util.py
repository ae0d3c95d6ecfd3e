from __future__ import annotations

import os


def expand_path(p: str) -> str:
    return os.path.expanduser(os.path.expandvars(p))


def normalize_ws_path(value) -> str:
    """Return a route path with exactly one leading slash."""
    s = str(value or "").strip()
    if not s:
        return "/"
    return "/" + s.lstrip("/")
