"""Logging setup for the banking portal."""

import logging
import sys
from pathlib import Path
from typing import Optional

LOGGER_NAME = "agbank"

_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logger(
    name: str = LOGGER_NAME,
    level: int | str = logging.INFO,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Attach handlers to the portal logger once; later calls return it unchanged.

    Args:
        name: Logger name.
        level: Level as int or name ("DEBUG", "info"). Unknown names mean INFO.
        log_file: Optional file to mirror stderr output into.
    """
    log = logging.getLogger(name)
    if log.handlers:
        return log

    log.setLevel(_resolve_level(level))
    fmt = logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    h = logging.StreamHandler(sys.stderr)
    h.setFormatter(fmt)
    log.addHandler(h)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setFormatter(fmt)
        log.addHandler(fh)

    # requests logs every connection at DEBUG through urllib3
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    return log


def setup_from_config() -> logging.Logger:
    """Configure the portal logger from AGBANK_LOG_LEVEL / AGBANK_LOG_FILE."""
    from agbank.utils.config import log_file, log_level

    return setup_logger(LOGGER_NAME, level=log_level(), log_file=log_file())


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """Return the portal logger (or a child such as "agbank.api")."""
    return logging.getLogger(name)
