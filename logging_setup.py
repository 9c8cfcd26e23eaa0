from __future__ import annotations

import logging
import os
from typing import Any, Optional


def _parse_level(s: Optional[str]) -> Optional[int]:
    if not s:
        return None
    v = str(s).strip().upper()
    if not v:
        return None
    mapping = {
        "CRITICAL": logging.CRITICAL,
        "ERROR": logging.ERROR,
        "WARNING": logging.WARNING,
        "WARN": logging.WARNING,
        "INFO": logging.INFO,
        "DEBUG": logging.DEBUG,
    }
    return mapping.get(v)


def setup_logging(args: Any = None, *, name: str = "tapfall") -> int:
    """Configure python logging once and return the effective level.

    Priority (highest first):
    - env TAPFALL_LOG_LEVEL
    - CLI flags: --quiet / --debug (if present on args)
    - default: INFO
    """
    env_level = _parse_level(os.environ.get("TAPFALL_LOG_LEVEL"))

    quiet = bool(getattr(args, "quiet", False)) if args is not None else False
    debug = bool(getattr(args, "debug", False)) if args is not None else False

    level = logging.INFO
    if quiet:
        level = logging.WARNING
    if debug:
        level = logging.DEBUG
    if env_level is not None:
        level = int(env_level)

    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level)
        return level

    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%H:%M:%S",
    )
    logging.getLogger(name).debug(
        "logging initialized (level=%s, quiet=%s, debug=%s)",
        logging.getLevelName(level),
        quiet,
        debug,
    )
    return level
