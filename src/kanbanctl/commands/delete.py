"""Command: hard-delete a task."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from kanbanctl.commands._base import KanbanCommand, confirm_destructive

if TYPE_CHECKING:
    from kanbanctl.commands._context import AppContext


@click.command(
    cls=KanbanCommand,
    examples="""\
  kanbanctl delete WEB-12
  kanbanctl delete abc123 --yes""",
)
@click.argument("ref")
@click.option("-y", "--yes", is_flag=True, help="Skip the confirmation prompt.")
@click.pass_obj
def delete(app: AppContext, ref: str, yes: bool) -> None:
    """Delete a task. Tasks it was blocking keep a dangling reference."""
    from kanbanctl.services.tasks import TaskService

    confirm_destructive(app, f"Delete task '{ref}'?", yes=yes)

    app.emit(TaskService(app.workspace).delete(ref))
