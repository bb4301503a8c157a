# -*- coding: utf-8 -*-
"""
Project-wide logging helpers.

Writes ./log/aptos_ai_agent_log_<date>.log next to stdout (APTOS_AGENT_LOG_DIR moves
it, APTOS_AGENT_LOG_LEVEL sets the level). The HTTP clients under the node and model
calls log every request at INFO; they are held at WARNING so cycle logs stay readable.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional, Union

ROOT_DIR = Path(__file__).resolve().parents[2]
LOG_DIR = Path(os.getenv("APTOS_AGENT_LOG_DIR", ROOT_DIR / "log"))
LOG_FILE_BASE = LOG_DIR / "aptos_ai_agent_log"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
NOISY_LOGGERS = ("httpx", "httpcore", "openai")

_configured: bool = False
_current_log_file: Optional[Path] = None


def resolve_level(value: Union[str, int, None], default: int = logging.INFO) -> int:
    """Accept 'debug', 'WARNING', '10' or an int; anything unknown falls back to default."""
    if value is None or value == "":
        return default
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if text.isdigit():
        return int(text)
    level = logging.getLevelName(text.upper())
    return level if isinstance(level, int) else default


def _dated_log_file() -> Path:
    return LOG_FILE_BASE.with_name(f"{LOG_FILE_BASE.name}_{datetime.now().strftime('%Y%m%d')}.log")


def setup_logging(level: Optional[int] = None) -> Path:
    """Configure the root logger once: dated file plus stdout."""

    global _configured, _current_log_file
    if _configured:
        return _current_log_file or _dated_log_file()

    if level is None:
        level = resolve_level(os.getenv("APTOS_AGENT_LOG_LEVEL"))

    LOG_DIR.mkdir(parents=True, exist_ok=True)
    current_file = _dated_log_file()
    # backupCount=0 keeps every rotated day on disk
    file_handler = TimedRotatingFileHandler(current_file, when="midnight", backupCount=0, encoding="utf-8")
    file_handler.suffix = "%Y%m%d"

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=[logging.StreamHandler(), file_handler])
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    _configured = True
    _current_log_file = current_file
    return current_file


def get_logger(name: Optional[str] = None) -> logging.Logger:
    setup_logging()
    return logging.getLogger(name)


__all__ = ["get_logger", "resolve_level", "setup_logging"]
