"""Command: update task fields, labels, and blocking links."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from kanbanctl.commands._base import KanbanCommand, agent_option
from kanbanctl.domain.types import Priority, TaskType

if TYPE_CHECKING:
    from kanbanctl.commands._context import AppContext


@click.command(
    cls=KanbanCommand,
    examples="""\
  kanbanctl update WEB-12 --title "Fix login redirect loop"
  kanbanctl update WEB-12 --priority urgent --add-label hotfix
  kanbanctl update WEB-12 --blocked-by WEB-7 --blocked-by WEB-9
  kanbanctl update WEB-12 --unblock WEB-7
  kanbanctl update WEB-12 --parent ""      # clear the parent""",
)
@click.argument("ref")
@click.option("--title", default=None, help="New title.")
@click.option("-d", "--description", default=None, help="New description (empty clears it).")
@click.option(
    "-t", "--type", "task_type", type=click.Choice([t.value for t in TaskType]), default=None
)
@click.option("-p", "--priority", type=click.Choice([p.value for p in Priority]), default=None)
@click.option("--add-label", "add_labels", multiple=True, help="Add a label (repeatable).")
@click.option("--remove-label", "remove_labels", multiple=True, help="Remove a label (repeatable).")
@click.option(
    "--blocked-by", "add_blocked_by", multiple=True, help="Add a blocking task (repeatable)."
)
@click.option(
    "--unblock", "remove_blocked_by", multiple=True, help="Remove a blocking task (repeatable)."
)
@click.option("--parent", default=None, help="Parent task reference (empty clears it).")
@agent_option("Agent performing the update.")
@click.pass_obj
def update(
    app: AppContext,
    ref: str,
    title: str | None,
    description: str | None,
    task_type: str | None,
    priority: str | None,
    add_labels: tuple[str, ...],
    remove_labels: tuple[str, ...],
    add_blocked_by: tuple[str, ...],
    remove_blocked_by: tuple[str, ...],
    parent: str | None,
    agent: str,
) -> None:
    """Update a task's fields. Blocking changes are checked for cycles."""
    from kanbanctl.services.tasks import TaskService

    app.emit(
        TaskService(app.workspace).update(
            ref,
            title=title,
            description=description,
            task_type=task_type,
            priority=priority,
            add_labels=add_labels,
            remove_labels=remove_labels,
            add_blocked_by=add_blocked_by,
            remove_blocked_by=remove_blocked_by,
            parent=parent,
            agent=agent,
        )
    )
