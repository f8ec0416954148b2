"""Shared pytest fixtures and test helpers for kanbanctl tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import httpx
import pytest
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from kanbanctl.config.settings import KanbanSettings
from kanbanctl.infrastructure.database.engine import init_database
from kanbanctl.infrastructure.workspace import Workspace

# Nothing listens here, so the health probe fails fast and writes go direct.
OFFLINE_CONFIG = """\
[server]
url = "http://127.0.0.1:9"
health_timeout = 0.05
"""

type Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def db_engine(tmp_path: Path) -> Iterator[Engine]:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def workspace(tmp_path: Path) -> Iterator[Workspace]:
    """Workspace on a temp directory that always writes directly to SQLite."""
    settings = KanbanSettings.from_cli(root=tmp_path, direct=True)
    ws = Workspace(settings)
    try:
        yield ws
    finally:
        ws.close()


@pytest.fixture
def server_workspace(tmp_path: Path) -> Iterator[Callable[[Handler], Workspace]]:
    """Factory for workspaces whose board server is an ``httpx.MockTransport``.

    The handler sees every request, including the health probe.
    """
    opened: list[Workspace] = []

    def make(handler: Handler) -> Workspace:
        settings = KanbanSettings.from_cli(root=tmp_path)
        ws = Workspace(settings, api_transport=httpx.MockTransport(handler))
        opened.append(ws)
        return ws

    try:
        yield make
    finally:
        for ws in opened:
            ws.close()


@pytest.fixture
def _isolated_workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp directory holding an offline-server config.

    Use via ``@pytest.mark.usefixtures("_isolated_workspace")`` on command
    test classes.
    """
    (tmp_path / "kanbanctl.toml").write_text(OFFLINE_CONFIG, encoding="utf-8")
    monkeypatch.delenv("KANBANCTL_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)


# ---------------------------------------------------------------------------
# Shared test helpers (used across service test modules)
# ---------------------------------------------------------------------------


def add_board(workspace: Workspace, name: str, prefix: str, **kwargs: Any) -> dict[str, Any]:
    """Create a board via BoardService, asserting success."""
    from kanbanctl.services.boards import BoardService

    result = BoardService(workspace).create(name, prefix, **kwargs)
    assert result.ok, result.error
    return result.data


def add_task(workspace: Workspace, title: str, **kwargs: Any) -> dict[str, Any]:
    """Create a task via TaskService, asserting success."""
    from kanbanctl.services.tasks import TaskService

    result = TaskService(workspace).add(title, **kwargs)
    assert result.ok, result.error
    return result.data


def health_ok(request: httpx.Request) -> httpx.Response | None:
    """Answer the health probe; None for any other request."""
    if request.url.path == "/api/health":
        return httpx.Response(200, json={"code": 200, "message": "API is healthy."})
    return None
