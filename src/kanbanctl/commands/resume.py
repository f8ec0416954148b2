"""Command: put a task waiting on human input back into progress."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from kanbanctl.commands._base import KanbanCommand, agent_option

if TYPE_CHECKING:
    from kanbanctl.commands._context import AppContext


@click.command(
    cls=KanbanCommand,
    examples="""\
  kanbanctl resume WEB-12
  kanbanctl resume WEB-12 --agent planner
  kanbanctl --json resume OAuth""",
)
@click.argument("ref")
@agent_option("Agent picking the task back up.")
@click.pass_obj
def resume(app: AppContext, ref: str, agent: str) -> None:
    """Move a task from need_input to the bottom of in_progress.

    Only tasks parked with ``kanbanctl block`` can be resumed; answer the
    question with ``kanbanctl comment`` first.
    """
    from kanbanctl.services.tasks import TaskService

    app.emit(TaskService(app.workspace).resume(ref, agent=agent))
