from __future__ import annotations

import argparse
import logging
import sys

import yaml

from . import __version__
from .exceptions import ConfigError
from .settings import Settings, configure_logging

logger = logging.getLogger("emitter.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="emitter",
        description="Show the effective emitter settings",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-c", "--config", help="Path to a YAML settings file")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity (-v, -vv)")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = Settings.from_sources(file_path=args.config)
    except ConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    configure_logging(settings, args.verbose)
    logger.info("Resolved settings from %s", args.config or "defaults/environment")

    sys.stdout.write(yaml.safe_dump({"emitter": settings.as_dict()}, sort_keys=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
