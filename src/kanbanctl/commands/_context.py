"""AppContext: the object every command receives through ``@click.pass_obj``.

The root group builds it once per run. It configures logging and
telemetry, opens the workspace on demand, and turns each ServiceResult
into output plus an exit status.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

import click

from kanbanctl.config.logging import configure_logging
from kanbanctl.output.formatters import OutputMode, OutputSettings, format_result
from kanbanctl.services.telemetry import set_telemetry

if TYPE_CHECKING:
    from kanbanctl.config.settings import KanbanSettings
    from kanbanctl.infrastructure.workspace import Workspace
    from kanbanctl.services.result import ServiceResult

EXIT_GENERAL = 1
EXIT_USAGE = 2
EXIT_NOT_FOUND = 3
EXIT_AMBIGUOUS = 4
EXIT_VALIDATION = 5

_EXIT_CODES: dict[str, int] = {
    "NOT_FOUND": EXIT_NOT_FOUND,
    "AMBIGUOUS": EXIT_AMBIGUOUS,
    "VALIDATION_FAILED": EXIT_VALIDATION,
}


def exit_code_for(result: ServiceResult) -> int:
    """The process exit status for a result (0 on success)."""
    if result.ok:
        return 0
    code = result.error.code if result.error else ""
    return _EXIT_CODES.get(code, EXIT_GENERAL)


class AppContext:
    """Settings, lazily opened workspace, and result output for one run.

    The workspace is opened on first use so ``--help`` and ``--version``
    never touch the database.
    """

    def __init__(self, settings: KanbanSettings) -> None:
        self.settings = settings
        self.output = OutputSettings(
            json_output=settings.json_output,
            quiet=settings.quiet,
            verbose=settings.verbose,
        )
        self._workspace: Workspace | None = None
        configure_logging(verbose=settings.verbose, log_json=settings.log_json)
        set_telemetry(settings.verbose)

    @property
    def workspace(self) -> Workspace:
        """The workspace (created lazily on first access)."""
        if self._workspace is None:
            from kanbanctl.infrastructure.workspace import Workspace

            self._workspace = Workspace(self.settings)
        return self._workspace

    def emit(self, result: ServiceResult) -> None:
        """Print *result*; a failure goes to stderr and ends the process.

        Warnings of a successful result become ``WARNING:`` lines on stderr,
        except in JSON mode where they are already part of the payload.
        """
        text = format_result(result, settings=self.output)
        if not result.ok:
            click.echo(text, err=True)
            raise SystemExit(exit_code_for(result))

        click.echo(text)
        if self.output.mode is not OutputMode.JSON:
            for warning in result.warnings:
                click.echo(f"WARNING: {warning}", err=True)

    def usage_error(self, message: str) -> NoReturn:
        """Report bad arguments detected before any service runs."""
        click.echo(f"Error: {message}", err=True)
        raise SystemExit(EXIT_USAGE)
