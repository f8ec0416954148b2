"""Command: workspace integrity report."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from kanbanctl.commands._base import KanbanCommand

if TYPE_CHECKING:
    from kanbanctl.commands._context import AppContext


@click.command(
    cls=KanbanCommand,
    examples="""\
  kanbanctl check
  kanbanctl check --errors-only
  kanbanctl --json check | jq '.data.issues[].message'""",
)
@click.option(
    "--min-severity",
    type=click.Choice(["warning", "error"]),
    default="warning",
    help="Hide issues below this severity.",
)
@click.option("--errors-only", is_flag=True, help="Same as --min-severity error.")
@click.pass_obj
def check(app: AppContext, min_severity: str, errors_only: bool) -> None:
    """Report blocking cycles, dangling blockers, crowded columns, and stale counters.

    Read-only. Crowded columns are fixed with ``kanbanctl position rebalance``.
    """
    from kanbanctl.services.check import CheckService

    threshold = "error" if errors_only else min_severity
    app.emit(CheckService(app.workspace).check(min_severity=threshold))
