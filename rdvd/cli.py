from __future__ import annotations

import argparse
import os
import sys
from dataclasses import replace

from . import __version__
from .config import RelayRuntimeConfig, apply_config_data, apply_environment, load_toml
from .logging_config import configure_logging
from .paths import default_config_path
from .service import RelayService
from .util import expand_path


def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="rdvd",
        description="Rendezvous and signaling relay for peer-to-peer session negotiation",
    )
    p.add_argument("--version", action="version", version=f"rdvd {__version__}")

    p.add_argument(
        "--config",
        default=str(default_config_path()),
        help="Path to rdvd TOML config (missing file is ignored)",
    )
    p.add_argument("--host", default=None, help="Bind address")
    p.add_argument("--port", type=int, default=None, help="Listen port (default 3001, or $PORT)")
    p.add_argument("--ws-path", default=None, help="WebSocket endpoint path")
    p.add_argument(
        "--cors-origin",
        default=None,
        help="Single allowed cross-origin (empty disables CORS headers)",
    )
    p.add_argument(
        "--require-membership",
        action="store_true",
        help="Only relay negotiation messages from members of the addressed room",
    )

    p.add_argument(
        "--log-level",
        default=None,
        help="Logging level override (DEBUG, INFO, WARNING, ERROR). Default comes from config.",
    )
    p.add_argument(
        "--log-file",
        default=None,
        help="Log file path override (empty disables file logging). Default comes from config.",
    )

    return p


def build_config(args: argparse.Namespace, environ=None) -> RelayRuntimeConfig:
    config_path = expand_path(str(args.config)) if args.config else None

    cfg = RelayRuntimeConfig(config_path=config_path)
    if config_path and os.path.exists(config_path):
        cfg = apply_config_data(cfg, load_toml(config_path))

    cfg = apply_environment(cfg, environ)

    if args.host is not None:
        cfg = replace(cfg, host=str(args.host))
    if args.port is not None:
        cfg = replace(cfg, port=int(args.port))
    if args.ws_path is not None:
        cfg = replace(cfg, ws_path=str(args.ws_path))
    if args.cors_origin is not None:
        cfg = replace(cfg, cors_origin=str(args.cors_origin) or None)
    if args.require_membership:
        cfg = replace(cfg, require_membership=True)

    if args.log_level is not None:
        cfg = replace(cfg, log_level=str(args.log_level))
    if args.log_file is not None:
        cfg = replace(cfg, log_file=str(args.log_file) if str(args.log_file) else None)

    return cfg


def main(argv: list[str] | None = None) -> None:
    args = _build_arg_parser().parse_args(sys.argv[1:] if argv is None else argv)

    cfg = build_config(args)

    configure_logging(cfg, override_level=args.log_level, override_file=args.log_file)

    svc = RelayService(cfg)
    svc.run_forever()


if __name__ == "__main__":
    main()
