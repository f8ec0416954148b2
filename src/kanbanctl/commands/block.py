"""Command: park a task in need_input with a question for a human."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from kanbanctl.commands._base import KanbanCommand, agent_option, read_text

if TYPE_CHECKING:
    from kanbanctl.commands._context import AppContext


@click.command(
    cls=KanbanCommand,
    examples="""\
  kanbanctl block WEB-12 "Which OAuth provider should we use?"
  kanbanctl block WEB-12 --agent planner "Is the API frozen?"
  echo "Long question..." | kanbanctl block WEB-12 --stdin""",
)
@click.argument("ref")
@click.argument("question", required=False)
@click.option("--stdin", "from_stdin", is_flag=True, help="Read the question from stdin.")
@agent_option("Agent asking the question.")
@click.pass_obj
def block(
    app: AppContext, ref: str, question: str | None, from_stdin: bool, agent: str
) -> None:
    """Move a task to need_input and record QUESTION as a comment."""
    from kanbanctl.services.tasks import TaskService

    text = read_text(app, question, from_stdin=from_stdin, name="question")
    app.emit(TaskService(app.workspace).block(ref, text, agent=agent))
