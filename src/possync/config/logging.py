"""Logging setup for possync entry points."""

from __future__ import annotations

import logging
import os

from .errors import ConfigurationError

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _level_from_environment() -> int:
    raw = os.getenv("POSSYNC_LOG_LEVEL")
    if raw is None or not raw.strip():
        return logging.INFO
    level = logging.getLevelNamesMapping().get(raw.strip().upper())
    if level is None:
        raise ConfigurationError(
            f"Unknown log level in POSSYNC_LOG_LEVEL: {raw}", source="POSSYNC_LOG_LEVEL"
        )
    return level


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Initialise the root logger for CLI and cron usage.

    ``level`` falls back to ``POSSYNC_LOG_LEVEL`` and then INFO. Sweeps log one
    line per transition at INFO, so DEBUG is only useful when chasing payload
    comparisons. Pass ``force=True`` to reconfigure during tests.
    """

    logging.basicConfig(
        level=level if level is not None else _level_from_environment(),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        force=force,
    )
