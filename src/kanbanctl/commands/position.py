"""Command group: position maintenance."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from kanbanctl.commands._base import KanbanGroup
from kanbanctl.domain.types import Column

if TYPE_CHECKING:
    from kanbanctl.commands._context import AppContext


@click.group(
    cls=KanbanGroup,
    examples="""\
  kanbanctl position rebalance todo
  kanbanctl position rebalance in_progress --board WEB""",
)
@click.pass_obj
def position(app: AppContext) -> None:
    """Maintain task ordering values."""


@position.command(
    examples="""\
  kanbanctl check                       # reports columns that need it
  kanbanctl position rebalance todo"""
)
@click.argument("column", type=click.Choice([c.value for c in Column]))
@click.option("-b", "--board", default=None, help="Only this board's tasks.")
@click.pass_obj
def rebalance(app: AppContext, column: str, board: str | None) -> None:
    """Respace COLUMN's positions evenly, keeping their order."""
    from kanbanctl.services.position import PositionService

    app.emit(PositionService(app.workspace).rebalance(column, board=board))
