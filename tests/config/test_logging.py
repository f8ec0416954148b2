"""Tests for the stderr logging pipeline."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator

import pytest
import structlog

from kanbanctl.config.logging import configure_logging


@pytest.fixture(autouse=True)
def _saved_logging() -> Iterator[None]:
    root = logging.getLogger()
    saved = (root.handlers[:], root.level, logging.getLogger("kanbanctl").level)
    yield
    root.handlers[:] = saved[0]
    root.setLevel(saved[1])
    logging.getLogger("kanbanctl").setLevel(saved[2])
    structlog.reset_defaults()


def _last_json_line(capsys: pytest.CaptureFixture[str]) -> dict:
    return json.loads(capsys.readouterr().err.strip().splitlines()[-1])


class TestLevels:
    def test_verbose_opens_package_debug_only(self) -> None:
        configure_logging(verbose=True)
        assert logging.getLogger("kanbanctl").level == logging.DEBUG
        assert logging.getLogger().level == logging.WARNING

    def test_default_is_warning(self) -> None:
        configure_logging()
        assert logging.getLogger("kanbanctl").level == logging.WARNING

    @pytest.mark.parametrize("name", ["httpx", "httpcore"])
    def test_http_libraries_stay_quiet(self, name: str) -> None:
        configure_logging(verbose=True)
        assert logging.getLogger(name).level == logging.WARNING

    def test_single_root_handler(self) -> None:
        configure_logging()
        configure_logging(log_json=True)
        assert len(logging.getLogger().handlers) == 1


class TestJsonLines:
    def test_structlog_event(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        structlog.get_logger("kanbanctl.test").warning("persist.fallback", op="create")
        payload = _last_json_line(capsys)
        assert payload["event"] == "persist.fallback"
        assert payload["op"] == "create"
        assert payload["level"] == "warning"
        assert payload["timestamp"].endswith("Z")

    def test_stdlib_record(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(log_json=True)
        logging.getLogger("kanbanctl.services.tasks").warning("Default board %r not usable", "X")
        assert _last_json_line(capsys)["event"] == "Default board 'X' not usable"

    def test_nothing_on_stdout(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(log_json=True)
        structlog.get_logger("kanbanctl.test").warning("persist.fallback")
        assert capsys.readouterr().out == ""
