"""
Logging setup.
"""

from __future__ import annotations

import logging
import os
from typing import Sequence

# Third-party loggers that are chatty at INFO
QUIET_LOGGERS = ("ultralytics", "asyncio")


def setup_logging(log_path: str, log_level: str, quiet: Sequence[str] = QUIET_LOGGERS) -> None:
    """Log to log_path and stderr. Loggers in quiet only report warnings unless DEBUG."""
    log_dir = os.path.dirname(log_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.FileHandler(log_path),
            logging.StreamHandler(),
        ],
    )
    quiet_level = logging.DEBUG if log_level == "DEBUG" else logging.WARNING
    for name in quiet:
        logging.getLogger(name).setLevel(quiet_level)
