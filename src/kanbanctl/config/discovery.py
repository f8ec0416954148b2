"""Locating and reading ``kanbanctl.toml``.

The file is looked up the way git finds ``.git/``: the start directory,
then each parent in turn. ``KANBANCTL_CONFIG`` or ``--config`` name a file
directly. The directory holding the file becomes the workspace root.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

import click

CONFIG_FILENAME = "kanbanctl.toml"
CONFIG_ENV_VAR = "KANBANCTL_CONFIG"


def find_config(start: Path | None = None) -> Path | None:
    """Nearest ``kanbanctl.toml`` at or above *start* (default: cwd).

    ``KANBANCTL_CONFIG`` takes precedence; if it names a missing file there
    is no config at all.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        named = Path(env_path)
        return named if named.is_file() else None

    origin = (start or Path.cwd()).resolve()
    for directory in (origin, *origin.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def locate_config(config_path: str | None, start: Path | None = None) -> Path | None:
    """The config file in effect: the ``--config`` file if given, else discovery."""
    if config_path:
        named = Path(config_path)
        return named if named.is_file() else None
    return find_config(start)


def read_toml(path: Path) -> dict[str, Any]:
    """Parse *path*.

    Raises:
        click.ClickException: The file is not valid TOML.
    """
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise click.ClickException(msg) from exc
