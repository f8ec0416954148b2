"""Rich Console factory and theme for kanbanctl output.

Consoles render into a StringIO buffer so renderers keep a plain
``-> str`` contract. Rich drops color codes by itself when output is not
a terminal (tests, pipes).
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

KANBAN_THEME = Theme(
    {
        "kb.ok": "bold green",
        "kb.error": "bold red",
        "kb.warning": "bold yellow",
        "kb.op": "bold cyan",
        "kb.key": "dim",
        "kb.id": "bold blue",
        "kb.title": "bold",
        "kb.column.backlog": "dim",
        "kb.column.todo": "white",
        "kb.column.in_progress": "cyan",
        "kb.column.need_input": "bold magenta",
        "kb.column.review": "yellow",
        "kb.column.done": "green",
        "kb.priority.urgent": "bold red",
        "kb.priority.high": "yellow",
        "kb.priority.low": "dim",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=KANBAN_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


_COLUMN_STYLES: dict[str, str] = {
    name: f"kb.column.{name}"
    for name in ("backlog", "todo", "in_progress", "need_input", "review", "done")
}
_PRIORITY_STYLES: dict[str, str] = {name: f"kb.priority.{name}" for name in ("urgent", "high", "low")}


def style_for_column(column: str) -> str:
    """Return the Rich style name for a column."""
    return _COLUMN_STYLES.get(column, "")


def style_for_priority(priority: str) -> str:
    return _PRIORITY_STYLES.get(priority, "")
