"""Subcommand modules for kanbanctl.

Provides register_commands() which uses deferred imports to keep
``kanbanctl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root CLI group."""
    # --- Groups ---
    from kanbanctl.commands.board import board
    from kanbanctl.commands.position import position

    cli.add_command(board)
    cli.add_command(position)

    # --- Standalone commands ---
    from kanbanctl.commands.add import add
    from kanbanctl.commands.block import block
    from kanbanctl.commands.check import check
    from kanbanctl.commands.comment import comment
    from kanbanctl.commands.delete import delete
    from kanbanctl.commands.list_cmd import list_cmd
    from kanbanctl.commands.move import move
    from kanbanctl.commands.resume import resume
    from kanbanctl.commands.show import show
    from kanbanctl.commands.update import update

    cli.add_command(add)
    cli.add_command(list_cmd)
    cli.add_command(show)
    cli.add_command(move)
    cli.add_command(update)
    cli.add_command(delete)
    cli.add_command(block)
    cli.add_command(resume)
    cli.add_command(comment)
    cli.add_command(check)
