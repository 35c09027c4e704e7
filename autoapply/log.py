"""Logging setup shared by every module: ``log = get_logger(__name__)``.

Console output goes to stderr so command output on stdout stays clean. A
daily file under ``logs/`` (or ``AUTOAPPLY_LOG_DIR``) records everything at
DEBUG; setting ``AUTOAPPLY_LOG_DIR`` to an empty string turns the file off.
"""
from __future__ import annotations

import logging
import os
import sys
from datetime import date
from pathlib import Path

_DEFAULT_LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
_FORMATTER = logging.Formatter(
    "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
# chatty HTTP and imaging libraries only surface warnings
_QUIET = ("urllib3", "httpx", "httpcore", "openai", "PIL")
_ready = False


def get_logger(name: str) -> logging.Logger:
    global _ready
    if not _ready:
        _setup(logging.getLevelName(os.environ.get("LOG_LEVEL", "INFO").upper()))
        _ready = True
    return logging.getLogger(name)


def _setup(level: int | str) -> None:
    if not isinstance(level, int):
        level = logging.INFO
    root = logging.getLogger()
    root.setLevel(level)
    for name in _QUIET:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    if root.handlers:
        return
    for handler in _handlers(level):
        handler.setFormatter(_FORMATTER)
        root.addHandler(handler)


def _handlers(level: int) -> list[logging.Handler]:
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    handlers: list[logging.Handler] = [console]

    log_dir = os.environ.get("AUTOAPPLY_LOG_DIR", str(_DEFAULT_LOG_DIR))
    if not log_dir:
        return handlers
    try:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(Path(log_dir) / f"autoapply_{date.today():%Y-%m-%d}.log", encoding="utf-8")
    except OSError as exc:
        console.handle(logging.makeLogRecord({"msg": f"File logging disabled: {exc}", "levelno": logging.WARNING, "levelname": "WARNING"}))
        return handlers
    fh.setLevel(logging.DEBUG)
    handlers.append(fh)
    return handlers
