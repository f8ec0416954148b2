"""Pick the output mode for a ServiceResult and produce its text.

``--json`` prints the whole result model for scripts and agents,
``--quiet`` prints identifiers only, and everything else goes through the
Rich renderers.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kanbanctl.services.result import ServiceResult


class OutputMode(StrEnum):
    JSON = "json"
    QUIET = "quiet"
    RICH = "rich"


@dataclass(frozen=True)
class OutputSettings:
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False

    @property
    def mode(self) -> OutputMode:
        """JSON beats quiet; quiet beats Rich."""
        if self.json_output:
            return OutputMode.JSON
        if self.quiet:
            return OutputMode.QUIET
        return OutputMode.RICH


def format_result(result: ServiceResult, *, settings: OutputSettings | None = None) -> str:
    settings = settings or OutputSettings()
    mode = settings.mode
    if mode is OutputMode.JSON:
        return result.model_dump_json(indent=2)

    from kanbanctl.output.renderers import render_quiet, render_result

    if mode is OutputMode.QUIET:
        return render_quiet(result)
    return render_result(result, verbose=settings.verbose)
