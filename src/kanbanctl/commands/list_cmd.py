"""Command: list tasks in position order."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from kanbanctl.commands._base import KanbanCommand
from kanbanctl.domain.types import Column, Priority, TaskType

if TYPE_CHECKING:
    from kanbanctl.commands._context import AppContext


@click.command(
    "list",
    cls=KanbanCommand,
    examples="""\
  kanbanctl list
  kanbanctl list --column in_progress
  kanbanctl list --board WEB --priority urgent
  kanbanctl list --label docs --limit 5
  kanbanctl -q list --column todo""",
)
@click.option("--column", type=click.Choice([c.value for c in Column]), default=None)
@click.option("-b", "--board", default=None, help="Board prefix, name, or id.")
@click.option("-p", "--priority", type=click.Choice([p.value for p in Priority]), default=None)
@click.option(
    "-t", "--type", "task_type", type=click.Choice([t.value for t in TaskType]), default=None
)
@click.option("-l", "--label", default=None, help="Only tasks carrying this label.")
@click.option("--limit", type=click.IntRange(min=1), default=None, help="Max results.")
@click.pass_obj
def list_cmd(
    app: AppContext,
    column: str | None,
    board: str | None,
    priority: str | None,
    task_type: str | None,
    label: str | None,
    limit: int | None,
) -> None:
    """List tasks, top of each column first."""
    from kanbanctl.services.tasks import TaskService

    app.emit(
        TaskService(app.workspace).list_tasks(
            column=column,
            board=board,
            priority=priority,
            task_type=task_type,
            label=label,
            limit=limit,
        )
    )
