"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, kanbanctl.toml only contains
overrides. A fresh workspace needs no config file at all.
"""

from __future__ import annotations

from pydantic import BaseModel


class ServerConfig(BaseModel):
    """[server] section: the companion service used for real-time writes."""

    model_config = {"frozen": True}

    url: str = "http://localhost:8090"
    health_timeout: float = 0.5
    request_timeout: float = 5.0


class PositionConfig(BaseModel):
    """[position] section.

    ``scope_by_board`` limits ordering to tasks of the same board. Off by
    default: a column name is one ordering scope across every board.
    """

    model_config = {"frozen": True}

    default_gap: float = 1000.0
    min_gap: float = 0.001
    scope_by_board: bool = False


class DefaultsConfig(BaseModel):
    """[defaults] section."""

    model_config = {"frozen": True}

    board: str = ""
    agent: str = "agent"
    author: str = ""

