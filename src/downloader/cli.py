"""Download all salary statements from Agenda LGO into a local directory."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from common.agenda_lgo import AgendaLgoError
from common.credentials import DEFAULT_AUTH_FILE, CredentialsError

from .handler import (
    COLLISION_POLICIES,
    DEFAULT_OUT_DIR,
    DEFAULT_TIMEOUT,
    ENV_AUTH_FILE,
    ENV_OUT_DIR,
    ENV_TIMEOUT,
    ConfigError,
    run_once,
)


LOGGER = logging.getLogger("downloader")


def _getenv(name: str, default: Optional[str] = None) -> Optional[str]:
    val = os.environ.get(name)
    return val if val not in (None, "") else default


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    # httpx logs full request URLs at INFO, which include the session token
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _positive_float(value: str) -> float:
    try:
        f = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None
    if f <= 0:
        raise argparse.ArgumentTypeError("must be > 0")
    return f


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "-a",
        "--auth",
        type=Path,
        default=Path(_getenv(ENV_AUTH_FILE, DEFAULT_AUTH_FILE)),
        help=f"Path to the authentication file (env {ENV_AUTH_FILE}).",
    )
    parser.add_argument(
        "-o",
        "--out",
        type=Path,
        default=Path(_getenv(ENV_OUT_DIR, DEFAULT_OUT_DIR)),
        help=f"Directory where the files are stored, must exist (env {ENV_OUT_DIR}).",
    )
    parser.add_argument(
        "--timeout",
        type=_positive_float,
        default=_getenv(ENV_TIMEOUT, str(DEFAULT_TIMEOUT)),
        help=f"Request timeout in seconds (env {ENV_TIMEOUT}).",
    )
    parser.add_argument(
        "--on-collision",
        choices=COLLISION_POLICIES,
        default="overwrite",
        help="What to do when two documents share year and month.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging output.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)
    try:
        result = run_once(
            auth_file=args.auth,
            out_dir=args.out,
            timeout=args.timeout,
            on_collision=args.on_collision,
        )
    except (AgendaLgoError, CredentialsError, ConfigError) as exc:
        LOGGER.error("%s", exc)
        return 1
    LOGGER.info("Saved %s of %s document(s) to %s", result["saved"], result["listed"], args.out)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
