"""Tests for logging setup."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from weaverbird.config.schema import LoggingConfig
from weaverbird.logging import (
    TRACE,
    VERBOSE,
    get_logger,
    reset_logging,
    resolve_level,
    setup_logging,
)


@pytest.fixture(autouse=True)
def clean_logging(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("WEAVERBIRD_LOG", raising=False)
    reset_logging()
    yield
    reset_logging()


class TestResolveLevel:
    def test_default_info(self) -> None:
        assert resolve_level(None) == logging.INFO

    def test_verbose_wins(self) -> None:
        assert resolve_level(LoggingConfig(level="ERROR", verbose=3)) == VERBOSE
        assert resolve_level(LoggingConfig(verbose=9)) == TRACE

    def test_level_name(self) -> None:
        assert resolve_level(LoggingConfig(level="debug")) == logging.DEBUG
        assert resolve_level(LoggingConfig(level="nonsense")) == logging.INFO


class TestSetupLogging:
    def test_file_handler(self, tmp_path: Path) -> None:
        log_file = tmp_path / "weaverbird.log"
        setup_logging(LoggingConfig(level="INFO", file=str(log_file)))

        get_logger("polling").info("Codegen response: %s", {"codeGenerationStatus": "ready"})
        for handler in get_logger().handlers:
            handler.flush()

        text = log_file.read_text(encoding="utf-8")
        assert "info: Codegen response" in text

    def test_second_call_is_noop(self, tmp_path: Path) -> None:
        setup_logging(LoggingConfig(file=str(tmp_path / "one.log")))
        setup_logging(LoggingConfig(file=str(tmp_path / "two.log")))

        assert len(get_logger().handlers) == 1
        assert not (tmp_path / "two.log").exists()

    def test_child_logger_name(self) -> None:
        assert get_logger("session").name == "weaverbird.session"
        assert get_logger().name == "weaverbird"
