"""Logging setup for actool."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(
    level: str = "WARNING", *, log_path: Optional[Path] = None, log_network: bool = False
) -> None:
    """Route actool diagnostics to stderr and, optionally, a log file.

    Operator-facing output is printed by the dispatcher and is not affected.

    Parameters
    ----------
    level:
        Level name from `[logging] level` or `--log-level`; unknown names fall back to WARNING.
    log_path:
        Extra file that also receives every record, e.g. to keep a trail of timer
        arm, cancel and fire events while actool runs detached.
    log_network:
        Let aiohttp request logging through so gateway calls can be traced.
    """

    logging.captureWarnings(True)

    for handler in list(logging.getLogger().handlers):
        logging.getLogger().removeHandler(handler)

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format=LOG_FORMAT,
    )

    if log_path:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.getLogger().addHandler(file_handler)

    if not log_network:
        logging.getLogger("aiohttp.access").setLevel(logging.WARNING)
        logging.getLogger("aiohttp.client").setLevel(logging.WARNING)
