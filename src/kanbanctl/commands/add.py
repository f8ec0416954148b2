"""Command: create tasks, one at a time or in batches."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

from kanbanctl.commands._base import KanbanCommand, agent_option
from kanbanctl.domain.types import Column, Priority, TaskType

if TYPE_CHECKING:
    from kanbanctl.commands._context import AppContext


def _created_by(agent: str) -> str:
    """Agents first; otherwise a TTY means a person is typing."""
    if agent:
        return "agent"
    return "user" if sys.stdin.isatty() else "cli"


def parse_batch(raw: str) -> list[dict[str, Any]]:
    """Parse batch input: a JSON array of task objects, or one object per line.

    Raises:
        click.BadParameter: Input is neither form, or an item is not an object.
    """
    text = raw.strip()
    if not text:
        return []
    if text.startswith("["):
        try:
            items = json.loads(text)
        except json.JSONDecodeError as exc:
            msg = f"invalid JSON array: {exc}"
            raise click.BadParameter(msg) from exc
    else:
        items = []
        for lineno, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                items.append(json.loads(line))
            except json.JSONDecodeError as exc:
                msg = f"invalid JSON on line {lineno}: {exc}"
                raise click.BadParameter(msg) from exc

    for index, item in enumerate(items, start=1):
        if not isinstance(item, dict):
            msg = f"task {index} must be a JSON object"
            raise click.BadParameter(msg)
    return items


@click.command(
    cls=KanbanCommand,
    examples="""\
  kanbanctl add "Fix login redirect" --type bug --priority high
  kanbanctl add "Write docs" --column todo --label docs --label onboarding
  kanbanctl add "Subtask" --parent WEB-12 --board WEB
  kanbanctl add --file tasks.json
  cat tasks.jsonl | kanbanctl add --stdin --agent planner""",
)
@click.argument("title", required=False)
@click.option("-d", "--description", default="", help="Task description.")
@click.option(
    "-t",
    "--type",
    "task_type",
    type=click.Choice([t.value for t in TaskType]),
    default=TaskType.FEATURE.value,
    help="Task type.",
)
@click.option(
    "-p",
    "--priority",
    type=click.Choice([p.value for p in Priority]),
    default=Priority.MEDIUM.value,
    help="Task priority.",
)
@click.option(
    "--column",
    type=click.Choice([c.value for c in Column]),
    default=Column.BACKLOG.value,
    help="Initial column.",
)
@click.option("-l", "--label", "labels", multiple=True, help="Label (repeatable).")
@click.option("--id", "task_id", default=None, help="Caller-assigned 15-character id.")
@click.option("-b", "--board", default=None, help="Board prefix, name, or id.")
@click.option("--parent", default=None, help="Parent task reference.")
@agent_option("Name of the agent creating the task.")
@click.option("--stdin", "from_stdin", is_flag=True, help="Read a batch of tasks from stdin.")
@click.option(
    "--file",
    "batch_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Read a batch of tasks from a JSON or JSON-lines file.",
)
@click.pass_obj
def add(
    app: AppContext,
    title: str | None,
    description: str,
    task_type: str,
    priority: str,
    column: str,
    labels: tuple[str, ...],
    task_id: str | None,
    board: str | None,
    parent: str | None,
    agent: str,
    from_stdin: bool,
    batch_file: Path | None,
) -> None:
    """Create a task at the bottom of its column."""
    from kanbanctl.services.tasks import TaskService

    if from_stdin or batch_file is not None:
        if title:
            app.usage_error("a title cannot be combined with --stdin or --file")
        if batch_file is not None:
            raw = batch_file.read_text(encoding="utf-8")
        else:
            raw = sys.stdin.read()
        try:
            items = parse_batch(raw)
        except click.BadParameter as exc:
            app.usage_error(exc.message)
        app.emit(TaskService(app.workspace).add_batch(items, agent=agent, board=board))
        return

    if not title:
        app.usage_error("title is required")

    app.emit(
        TaskService(app.workspace).add(
            title,
            description=description,
            task_type=task_type,
            priority=priority,
            column=column,
            labels=labels,
            task_id=task_id,
            created_by=_created_by(agent),
            agent=agent,
            board=board,
            parent=parent,
        )
    )
