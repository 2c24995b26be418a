import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional, Union

from . import settings

# Chatty dependency loggers kept at WARNING so upload logs stay readable.
QUIET_LOGGERS = ("urllib3", "requests")


def _resolve_level(level: Union[int, str, None]) -> int:
    if level is None:
        level = settings.LOG_LEVEL
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logger(
    name: Optional[str] = None, log_level: Union[int, str, None] = None
) -> logging.Logger:
    """
    Attaches a plain console handler and a rotating file handler
    (LOG_DIR/stockpulse.log) to the named logger.

    Only the CLI calls this. Library modules just use logging.getLogger(__name__)
    and inherit whatever is configured here. Calling it twice is a no-op apart
    from updating the level.
    """
    level = _resolve_level(log_level)
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Own handlers only; hasHandlers() would also see the root logger's.
    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    settings.LOG_DIR.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        settings.LOG_DIR / "stockpulse.log",
        maxBytes=5 * 1024 * 1024,  # 5 MB
        backupCount=3,
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    logger.addHandler(file_handler)

    for noisy in QUIET_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger
