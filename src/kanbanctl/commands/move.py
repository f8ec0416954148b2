"""Command: move a task between columns or within one."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from kanbanctl.commands._base import KanbanCommand, agent_option
from kanbanctl.domain.types import Column

if TYPE_CHECKING:
    from kanbanctl.commands._context import AppContext


@click.command(
    cls=KanbanCommand,
    examples="""\
  kanbanctl move WEB-12 in_progress
  kanbanctl move WEB-12 todo --position 0
  kanbanctl move WEB-12 --after WEB-7
  kanbanctl move WEB-12 review --before WEB-3""",
)
@click.argument("ref")
@click.argument("column", required=False, type=click.Choice([c.value for c in Column]))
@click.option(
    "--position",
    type=int,
    default=None,
    help="Index in the column: 0 for top, -1 for bottom.",
)
@click.option("--after", default=None, help="Place directly below this task.")
@click.option("--before", default=None, help="Place directly above this task.")
@agent_option("Agent performing the move.")
@click.pass_obj
def move(
    app: AppContext,
    ref: str,
    column: str | None,
    position: int | None,
    after: str | None,
    before: str | None,
    agent: str,
) -> None:
    """Move a task to COLUMN and/or a new position."""
    from kanbanctl.services.tasks import TaskService

    if after and before:
        app.usage_error("--after and --before cannot be combined")
    if column is None and not (after or before) and position is None:
        app.usage_error("give a column, --position, --after, or --before")

    index = -1 if position is None else position
    app.emit(
        TaskService(app.workspace).move(
            ref, column, position=index, after=after, before=before, agent=agent
        )
    )
