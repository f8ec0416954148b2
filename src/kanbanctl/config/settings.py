"""The settings object handed to the workspace and every service.

Values are layered, first match wins: keyword arguments (the global CLI
flags), ``KANBANCTL_*`` environment variables with ``__`` between section
and key, the sections of ``kanbanctl.toml``, and finally the defaults on
the section models. Commands never read flags on their own.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from kanbanctl.config.discovery import locate_config, read_toml
from kanbanctl.config.models import DefaultsConfig, PositionConfig, ServerConfig

# Parsed kanbanctl.toml for the settings object under construction.
_file_data: ContextVar[Mapping[str, Any]] = ContextVar("kanbanctl_file_data", default={})


@contextmanager
def _loaded_file(data: Mapping[str, Any]) -> Iterator[None]:
    token = _file_data.set(data)
    try:
        yield
    finally:
        _file_data.reset(token)


class TomlSectionsSource(PydanticBaseSettingsSource):
    """Sections of ``kanbanctl.toml``.

    Top-level keys that are not a known section are ignored, so the file
    cannot switch on flags like ``json_output``.
    """

    SECTIONS = ("server", "position", "defaults")

    def __init__(self, settings_cls: type[BaseSettings], data: Mapping[str, Any]) -> None:
        super().__init__(settings_cls)
        self._sections = {name: data[name] for name in self.SECTIONS if name in data}

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        present = field_name in self._sections
        return self._sections.get(field_name), field_name, present

    def __call__(self) -> dict[str, Any]:
        return dict(self._sections)


class KanbanSettings(BaseSettings):
    """Settings for one kanbanctl invocation.

    Attributes:
        root: Workspace directory: where ``kanbanctl.toml`` lives, else the cwd.
        config_path: The TOML file that was read, if any.
        direct: Write to local storage without probing the board server.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "KANBANCTL_",
        "env_nested_delimiter": "__",
    }

    root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    direct: bool = False

    server: ServerConfig = Field(default_factory=ServerConfig)
    position: PositionConfig = Field(default_factory=PositionConfig)
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            TomlSectionsSource(settings_cls, _file_data.get()),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        root: Path | None = None,
        **cli_flags: Any,
    ) -> KanbanSettings:
        """Build settings for a command line run.

        *config_path* is ``--config``; without it the file is discovered
        from *root* (or the cwd) upwards. Unless *root* is given the
        workspace is the directory holding the file.

        Raises:
            click.ClickException: The config file is not valid TOML.
        """
        toml_path = locate_config(config_path, root)
        data = read_toml(toml_path) if toml_path else {}
        if root is None:
            root = toml_path.parent if toml_path else Path.cwd()

        with _loaded_file(data):
            return cls(root=root, config_path=toml_path, **cli_flags)
