"""Root CLI group for kanbanctl: global flags, settings, command registration."""

from __future__ import annotations

import click

from kanbanctl import __version__
from kanbanctl.commands import register_commands
from kanbanctl.commands._base import KanbanGroup
from kanbanctl.commands._context import AppContext
from kanbanctl.config.settings import KanbanSettings

_WORKFLOW = """\
  kanbanctl board add "Website" WEB
  kanbanctl add "Fix login redirect" --board WEB --type bug
  kanbanctl move WEB-1 in_progress
  kanbanctl block WEB-1 "Which OAuth provider?" --agent planner
  kanbanctl --json list --column need_input
  kanbanctl resume WEB-1 --agent planner"""


@click.group(
    cls=KanbanGroup,
    examples=_WORKFLOW,
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.version_option(version=__version__, prog_name="kanbanctl")
@click.option("--json", "json_output", is_flag=True, help="Print the ServiceResult as JSON.")
@click.option("-q", "--quiet", is_flag=True, help="Print ids only.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logs, timings, and history.")
@click.option("--log-json", is_flag=True, help="Write logs to stderr as JSON lines.")
@click.option(
    "--direct",
    is_flag=True,
    help="Write to the local database without probing the board server.",
)
@click.option("-c", "--config", "config_path", default=None, help="Use this kanbanctl.toml.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    direct: bool,
    config_path: str | None,
) -> None:
    """kanbanctl: kanban tasks for humans and agents.

    Task references accept a full id, an id prefix, a display id such as
    WEB-12, or part of the title.
    """
    flags = {
        "json_output": json_output,
        "quiet": quiet,
        "verbose": verbose,
        "log_json": log_json,
        "direct": direct,
    }
    ctx.obj = AppContext(KanbanSettings.from_cli(config_path=config_path, **flags))
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
