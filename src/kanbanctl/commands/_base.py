"""Click building blocks shared by kanbanctl commands.

KanbanCommand and KanbanGroup take an ``examples`` string that ``--examples``
prints, so ``--help`` stays short. ``agent_option``, ``read_text`` and
``confirm_destructive`` hold what several task commands share.
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

import click

if TYPE_CHECKING:
    from kanbanctl.commands._context import AppContext

_F = TypeVar("_F", bound=Callable[..., Any])


class _ExamplesMixin:
    """Adds an eager ``--examples`` flag when the command has examples."""

    examples: str | None
    params: list[click.Parameter]

    def _register_examples(self, examples: str | None) -> None:
        self.examples = examples
        if not examples:
            return
        self.params.append(
            click.Option(
                ["--examples"],
                is_flag=True,
                expose_value=False,
                is_eager=True,
                callback=self._print_examples,
                help="Show usage examples.",
            )
        )

    def _print_examples(self, ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value or not self.examples:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(self.examples)
        ctx.exit(0)


class KanbanCommand(_ExamplesMixin, click.Command):
    """Command with an optional ``--examples`` flag."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._register_examples(examples)


class KanbanGroup(_ExamplesMixin, click.Group):
    """Group with an optional ``--examples`` flag.

    Subcommands default to :class:`KanbanCommand`, so ``@group.command``
    accepts ``examples=`` without ``cls=``.
    """

    command_class = KanbanCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._register_examples(examples)


def agent_option(help_text: str) -> Callable[[_F], _F]:
    """The ``--agent NAME`` option; empty means a person or script is acting."""
    return click.option("--agent", default="", help=help_text)


def read_text(
    app: AppContext,
    value: str | None,
    *,
    from_stdin: bool,
    name: str,
) -> str:
    """Return *value*, or stdin when ``--stdin`` was given.

    Exits with a usage error when both or neither are supplied.
    """
    if from_stdin:
        if value:
            app.usage_error(f"a {name} argument cannot be combined with --stdin")
        return sys.stdin.read()
    if value is None:
        app.usage_error(f"{name} is required (argument or --stdin)")
    return value


def confirm_destructive(app: AppContext, prompt: str, *, yes: bool) -> None:
    """Ask before deleting, but only when a person is at the terminal.

    ``--yes`` and JSON mode skip the prompt.
    """
    if yes or app.output.json_output or not sys.stdin.isatty():
        return
    click.confirm(prompt, abort=True)
