"""Command: add a comment to a task."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from kanbanctl.commands._base import KanbanCommand, agent_option, read_text

if TYPE_CHECKING:
    from kanbanctl.commands._context import AppContext


@click.command(
    cls=KanbanCommand,
    examples="""\
  kanbanctl comment WEB-12 "Deployed to staging, @alice please verify"
  kanbanctl comment WEB-12 --agent reviewer "Tests pass"
  git log -1 | kanbanctl comment WEB-12 --stdin""",
)
@click.argument("ref")
@click.argument("text", required=False)
@click.option("--stdin", "from_stdin", is_flag=True, help="Read the comment from stdin.")
@click.option("--author", default=None, help="Author name (default: config or $USER).")
@agent_option("Comment as this agent.")
@click.pass_obj
def comment(
    app: AppContext,
    ref: str,
    text: str | None,
    from_stdin: bool,
    author: str | None,
    agent: str,
) -> None:
    """Add TEXT as a comment; @name mentions are recorded."""
    from kanbanctl.services.tasks import TaskService

    body = read_text(app, text, from_stdin=from_stdin, name="text")
    app.emit(TaskService(app.workspace).comment(ref, body, author=author, agent=agent))
