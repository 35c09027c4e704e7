"""Tests for logging handler setup."""
from __future__ import annotations

import logging
import sys

from autoapply.log import _handlers


def test_console_goes_to_stderr_and_file_to_log_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("AUTOAPPLY_LOG_DIR", str(tmp_path / "logs"))
    console, fh = _handlers(logging.INFO)
    try:
        assert console.stream is sys.stderr
        assert console.level == logging.INFO
        assert fh.level == logging.DEBUG
        assert fh.baseFilename.startswith(str(tmp_path / "logs" / "autoapply_"))
    finally:
        fh.close()


def test_empty_log_dir_disables_file(monkeypatch):
    monkeypatch.setenv("AUTOAPPLY_LOG_DIR", "")
    handlers = _handlers(logging.WARNING)
    assert len(handlers) == 1
    assert not isinstance(handlers[0], logging.FileHandler)
