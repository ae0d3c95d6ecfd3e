from __future__ import annotations

import os
from pathlib import Path


def default_rdvd_dir() -> Path:
    override = os.environ.get("RDVD_HOME")
    if override:
        return Path(override)
    return Path.home() / ".rdvd"


def default_config_path() -> Path:
    return default_rdvd_dir() / "rdvd.toml"
