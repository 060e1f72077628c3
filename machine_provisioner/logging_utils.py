from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from .lib.env import PATHS

DEFAULT_LOG_PATH = PATHS.log_default


def configure_logging(
    log_path: str = DEFAULT_LOG_PATH,
    level: int = logging.INFO,
    console_level: Optional[int] = logging.WARNING,
) -> str:
    """Configure logging.

    Every command run and every decision goes to the log file. The terminal
    belongs to the operator-facing report, so the console handler only shows
    warnings and errors unless asked otherwise (``console_level=None`` turns
    it off).

    If ``log_path`` cannot be opened (e.g. /var/log on a read-only live
    medium) the log falls back to the working directory.

    Returns the actual file path being used.
    """

    logger = logging.getLogger()
    logger.setLevel(level)

    # Avoid duplicate handlers if configure_logging() is called multiple times.
    if getattr(logger, "_machine_provisioner_configured", False):
        return getattr(logger, "_machine_provisioner_log_path", log_path)

    handlers: list[logging.Handler] = []

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    try:
        Path(os.path.dirname(log_path) or ".").mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        chosen_path = log_path
    except OSError:
        chosen_path = str(Path.cwd() / Path(log_path).name)
        file_handler = logging.FileHandler(chosen_path)
    file_handler.setFormatter(fmt)
    handlers.append(file_handler)

    if console_level is not None:
        console = logging.StreamHandler()
        console.setLevel(console_level)
        console.setFormatter(fmt)
        handlers.append(console)

    for h in handlers:
        logger.addHandler(h)

    setattr(logger, "_machine_provisioner_configured", True)
    setattr(logger, "_machine_provisioner_log_path", chosen_path)

    logging.getLogger(__name__).info(
        "Logging initialized (requested=%s, actual=%s)", log_path, chosen_path
    )
    return chosen_path
