"""Command group: board management."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from kanbanctl.commands._base import KanbanGroup, confirm_destructive
from kanbanctl.domain.types import Column

if TYPE_CHECKING:
    from kanbanctl.commands._context import AppContext

_BOARD_EXAMPLES = """\
  kanbanctl board add "Website" WEB
  kanbanctl board list
  kanbanctl board show WEB
  kanbanctl board delete WEB --keep-tasks"""


@click.group(cls=KanbanGroup, examples=_BOARD_EXAMPLES)
@click.pass_obj
def board(app: AppContext) -> None:
    """Create, inspect, and delete boards."""


@board.command(
    "add",
    examples="""\
  kanbanctl board add "Website" WEB
  kanbanctl board add "Ops" ops --column todo --column in_progress --column done
  kanbanctl board add "Mobile" MOB --color blue""",
)
@click.argument("name")
@click.argument("prefix")
@click.option(
    "--column",
    "columns",
    multiple=True,
    type=click.Choice([c.value for c in Column]),
    help="Column shown on the board (repeatable; default: all but need_input).",
)
@click.option("--color", default="", help="Display color.")
@click.pass_obj
def board_add(
    app: AppContext, name: str, prefix: str, columns: tuple[str, ...], color: str
) -> None:
    """Create a board named NAME whose tasks display as PREFIX-<seq>."""
    from kanbanctl.services.boards import BoardService

    app.emit(BoardService(app.workspace).create(name, prefix, columns=columns, color=color))


@board.command(
    "list",
    examples="""\
  kanbanctl board list
  kanbanctl --json board list""",
)
@click.pass_obj
def board_list(app: AppContext) -> None:
    """List boards with their task counts."""
    from kanbanctl.services.boards import BoardService

    app.emit(BoardService(app.workspace).list_boards())


@board.command(
    "show",
    examples="""\
  kanbanctl board show WEB
  kanbanctl board show Website""",
)
@click.argument("ref")
@click.pass_obj
def board_show(app: AppContext, ref: str) -> None:
    """Show a board with per-column task counts."""
    from kanbanctl.services.boards import BoardService

    app.emit(BoardService(app.workspace).show(ref))


@board.command(
    "delete",
    examples="""\
  kanbanctl board delete WEB
  kanbanctl board delete WEB --keep-tasks
  kanbanctl board delete WEB --yes""",
)
@click.argument("ref")
@click.option("--keep-tasks", is_flag=True, help="Keep the tasks, without a board.")
@click.option("-y", "--yes", is_flag=True, help="Skip the confirmation prompt.")
@click.pass_obj
def board_delete(app: AppContext, ref: str, keep_tasks: bool, yes: bool) -> None:
    """Delete a board and, unless --keep-tasks, all of its tasks."""
    from kanbanctl.services.boards import BoardService

    if not keep_tasks:
        confirm_destructive(app, f"Delete board '{ref}' and all of its tasks?", yes=yes)

    app.emit(BoardService(app.workspace).delete(ref, delete_tasks=not keep_tasks))
