from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from dataclasses import asdict, dataclass, replace
from typing import Any


@dataclass(frozen=True)
class RelayRuntimeConfig:
    config_path: str | None = None
    host: str = "0.0.0.0"
    port: int = 3001
    ws_path: str = "/"
    health_path: str = "/health"
    cors_origin: str | None = "http://localhost:5173"
    require_membership: bool = False
    max_frame_bytes: int = 64 * 1024  # 64 KiB default
    heartbeat_s: float = 0.0
    log_level: str = "INFO"
    log_console: bool = True
    log_file: str | None = None
    log_format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    log_datefmt: str | None = None


def load_toml(path: str) -> dict:
    with open(path, "rb") as f:
        return tomllib.load(f)


def apply_config_data(cfg: RelayRuntimeConfig, data: Any) -> RelayRuntimeConfig:
    """Merge a parsed TOML document into ``cfg``.

    Top-level keys and the ``[relay]`` table map directly onto config fields;
    the ``[logging]`` table maps ``level``/``console``/``file``/``format``/
    ``datefmt`` onto the ``log_*`` fields. Unknown keys are ignored.
    """
    if not isinstance(data, dict):
        return cfg

    relay = data.get("relay")
    if isinstance(relay, dict):
        data = {**data, **relay}

    log_table = data.get("logging")
    if isinstance(log_table, dict):
        mapped: dict[str, object] = {}
        for key in ("level", "console", "file", "format", "datefmt"):
            if key in log_table:
                mapped[f"log_{key}"] = log_table.get(key)
        data = {**data, **mapped}

    allowed = set(asdict(cfg).keys())
    # This identifies where the config came from; do not let the file override it.
    allowed.discard("config_path")
    updates = {k: v for k, v in data.items() if k in allowed}

    if "port" in updates:
        updates["port"] = int(updates["port"])
    if "max_frame_bytes" in updates:
        updates["max_frame_bytes"] = int(updates["max_frame_bytes"])
    if "heartbeat_s" in updates:
        updates["heartbeat_s"] = float(updates["heartbeat_s"])
    for key in ("cors_origin", "log_file", "log_datefmt"):
        if key in updates and updates[key] == "":
            updates[key] = None
    return replace(cfg, **updates) if updates else cfg


def apply_environment(
    cfg: RelayRuntimeConfig, environ: Mapping[str, str] | None = None
) -> RelayRuntimeConfig:
    """Apply ``PORT``, ``CORS_ORIGIN``, ``LOG_LEVEL`` and ``LOG_FILE``."""
    env = os.environ if environ is None else environ

    port = env.get("PORT")
    if port:
        cfg = replace(cfg, port=int(port))
    if "CORS_ORIGIN" in env:
        cfg = replace(cfg, cors_origin=env["CORS_ORIGIN"] or None)
    if env.get("LOG_LEVEL"):
        cfg = replace(cfg, log_level=env["LOG_LEVEL"])
    if "LOG_FILE" in env:
        cfg = replace(cfg, log_file=env["LOG_FILE"] or None)
    return cfg
