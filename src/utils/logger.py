# src/utils/logger.py
from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path
from typing import Optional


class _Color:
    RESET = "\033[0m"
    DIM = "\033[2m"
    BOLD = "\033[1m"
    GRAY = "\033[90m"
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    MAGENTA = "\033[95m"
    CYAN = "\033[96m"


_LEVEL_TO_COLOR = {
    logging.DEBUG: _Color.CYAN,
    logging.INFO: _Color.GREEN,
    logging.WARNING: _Color.YELLOW,
    logging.ERROR: _Color.RED,
    logging.CRITICAL: _Color.MAGENTA,
}


class _ConsoleFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        record.asctime = self.formatTime(record, self.datefmt)
        color = _LEVEL_TO_COLOR.get(record.levelno, _Color.RESET)
        base = f"{_Color.DIM}{record.asctime}{_Color.RESET} {color}{record.levelname:<8}{_Color.RESET} {_Color.BOLD}{record.name}{_Color.RESET}: {record.getMessage()}"
        if record.exc_info:
            base += f"\n{_Color.GRAY}{self.formatException(record.exc_info)}{_Color.RESET}"
        return base


def _resolve_level(level: Optional[str | int]) -> int:
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    # read at call time so a LOG_LEVEL from .env is honoured
    return getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)


def _make_console_handler(level: int) -> logging.Handler:
    # stdout carries command output, so logs stay on stderr
    h = logging.StreamHandler()
    h.setLevel(level)
    fmt = _ConsoleFormatter(
        "%(asctime)s %(levelname)s %(name)s: %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
    )
    h.setFormatter(fmt)
    return h


def _make_file_handler(level: int, log_file: Path) -> logging.Handler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    h = logging.handlers.RotatingFileHandler(
        log_file, maxBytes=5_000_000, backupCount=5, encoding="utf-8"
    )
    h.setLevel(level)
    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s %(name)s [%(module)s:%(lineno)d]: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    h.setFormatter(fmt)
    return h


def owned_handlers(logger: logging.Logger) -> list[logging.Handler]:
    """Handlers added by get_logger, ignoring any attached by other tooling."""
    return [
        h
        for h in (getattr(logger, "_console_handler", None), getattr(logger, "_file_handler", None))
        if h is not None
    ]


def get_logger(
    name: Optional[str] = None,
    level: Optional[str | int] = None,
    log_file: Optional[str | Path] = None,
) -> logging.Logger:
    """
    Get a configured logger. Idempotent: calling multiple times won't add duplicate handlers,
    but a later call with an explicit level or log file updates the existing logger.
    """
    logger = logging.getLogger(name if name else "cca_bids")
    lvl = _resolve_level(level)

    if not getattr(logger, "_console_handler", None):
        logger.setLevel(lvl)
        ch = _make_console_handler(lvl)
        logger.addHandler(ch)
        logger.propagate = False
        logger._console_handler = ch  # type: ignore[attr-defined]
    elif level is not None:
        logger.setLevel(lvl)
        for h in owned_handlers(logger):
            h.setLevel(lvl)

    if log_file is not None and not getattr(logger, "_file_handler", None):
        fh = _make_file_handler(lvl, Path(log_file))
        logger.addHandler(fh)
        logger._file_handler = fh  # type: ignore[attr-defined]

    return logger
