"""Command: show one task with its blockers and comments."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from kanbanctl.commands._base import KanbanCommand

if TYPE_CHECKING:
    from kanbanctl.commands._context import AppContext


@click.command(
    cls=KanbanCommand,
    examples="""\
  kanbanctl show WEB-12
  kanbanctl show abc123
  kanbanctl show "login redirect"
  kanbanctl --json show WEB-12""",
)
@click.argument("ref")
@click.pass_obj
def show(app: AppContext, ref: str) -> None:
    """Show a task by id, id prefix, display id, or title."""
    from kanbanctl.services.tasks import TaskService

    app.emit(TaskService(app.workspace).show(ref))
