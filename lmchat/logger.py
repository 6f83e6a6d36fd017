"""Logging for lmchat: a rotating file under ~/.lmchat/logs plus stderr.

The terminal belongs to the chat while a session runs, so the stderr
handler only lets warnings through unless ``verbose`` is set.  The file
always records turn-level INFO lines.
"""

from __future__ import annotations

import logging
import traceback
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Union

__all__ = ["setup_logger", "log_exception"]

LOG_DIR = Path("~/.lmchat/logs").expanduser()
DEFAULT_LOG_FILE = LOG_DIR / "chat.log"

_STDERR_FORMAT = "[%(levelname).1s] %(name)s: %(message)s"
_FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_MAX_BYTES = 5 * 1024 * 1024
_BACKUPS = 3

# Chatty at INFO; only their warnings are interesting here.
_QUIET_LOGGERS = ("litellm", "LiteLLM", "httpx", "httpcore", "openai")


def setup_logger(
    name: str,
    verbose: bool = False,
    log_file: Union[str, Path, bool, None] = None,
) -> logging.Logger:
    """(Re)configure the ``name`` logger and return it.

    ``log_file`` is a path, ``None``/``True`` for the default file, or
    ``False``/``""`` for no file at all.
    """
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = False

    stderr_level = logging.INFO if verbose else logging.WARNING
    stream = logging.StreamHandler()
    stream.setLevel(stderr_level)
    stream.setFormatter(logging.Formatter(_STDERR_FORMAT))
    logger.addHandler(stream)
    logger.setLevel(stderr_level)

    path = _resolve_log_path(log_file)
    if path is not None:
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            path, maxBytes=_MAX_BYTES, backupCount=_BACKUPS, encoding="utf-8"
        )
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_DATE_FORMAT))
        logger.addHandler(file_handler)
        logger.setLevel(logging.INFO)

    for noisy in _QUIET_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)
    return logger


def log_exception(logger: logging.Logger, error: BaseException, context: str = "") -> None:
    """Log ``error`` with its full traceback at ERROR level."""
    tb = "".join(traceback.format_exception(type(error), error, error.__traceback__))
    logger.error("%s\n%s", context or type(error).__name__, tb.rstrip())


def _resolve_log_path(log_file: Union[str, Path, bool, None]) -> Path | None:
    if log_file is False or log_file == "":
        return None
    if log_file is None or log_file is True:
        return DEFAULT_LOG_FILE
    return Path(log_file).expanduser()
