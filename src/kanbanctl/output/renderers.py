"""Human-readable output for each service operation.

A renderer is registered per ``ServiceResult.op`` with :func:`_renders`
and draws onto a StringIO-backed Rich console; ops without a renderer
get a plain key/value dump. Titles, questions, and comments are user
text and always pass through ``Text`` or ``escape``, so brackets in them
are printed literally.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from rich.markup import escape
from rich.padding import Padding
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.tree import Tree

from kanbanctl.output.console import (
    create_console,
    get_output,
    style_for_column,
    style_for_priority,
)

if TYPE_CHECKING:
    from rich.console import Console

    from kanbanctl.services.result import ServiceResult

Renderer = Callable[["ServiceResult", "Console", bool], None]

_RENDERERS: dict[str, Renderer] = {}

# Keys tried, in order, when --quiet prints one identifier per record.
_QUIET_KEYS = ("display_id", "prefix", "id")


def _renders(*ops: str) -> Callable[[Renderer], Renderer]:
    def register(func: Renderer) -> Renderer:
        for op in ops:
            _RENDERERS[op] = func
        return func

    return register


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Rich text for *result*; verbose adds positions, history, and meta."""
    console = create_console()
    if not result.ok:
        _render_error(result, console, verbose)
    else:
        _RENDERERS.get(result.op, _render_generic)(result, console, verbose)
        if verbose and result.meta:
            _render_meta(console, result.meta)
    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """One identifier per line, for ``--quiet`` and shell pipelines."""
    if not result.ok:
        message = result.error.message if result.error else "unknown error"
        return f"ERROR: {result.op}: {message}"

    records = result.data.get("items") or result.data.get("tasks")
    if isinstance(records, list):
        return "\n".join(filter(None, map(_identifier, records)))
    return _identifier(result.data) or f"OK: {result.op}"


def _identifier(record: Any) -> str:
    if not isinstance(record, dict):
        return ""
    return next((str(record[key]) for key in _QUIET_KEYS if record.get(key)), "")


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."


def _tag(value: Any) -> str:
    return f"\\[{escape(str(value))}]"


def _field(console: Console, key: str, value: Any) -> None:
    if key == "id" or key.endswith("_id"):
        style = "kb.id"
    elif key == "title":
        style = "kb.title"
    else:
        style = ""
    console.print(Text(f"  {key}: ", style="kb.key"), Text(str(value), style=style), sep="")


def _column_text(column: str) -> Text:
    return Text(column, style=style_for_column(column))


def _span_label(span: dict[str, Any]) -> str:
    duration = float(span.get("duration_ms", 0.0))
    style = "bold red" if duration > 1000 else "yellow" if duration > 100 else "dim"
    label = f"[{style}]{duration:>8.2f}ms[/{style}]  {escape(str(span.get('name', '?')))}"
    notes = span.get("annotations") or {}
    if notes:
        label += "  (" + ", ".join(f"{k}={escape(str(v))}" for k, v in notes.items()) + ")"
    return label


def _span_tree(span: dict[str, Any], tree: Tree | None = None) -> Tree:
    node = Tree(_span_label(span)) if tree is None else tree.add(_span_label(span))
    for child in span.get("children", []):
        _span_tree(child, node)
    return node


def _render_meta(console: Console, meta: dict[str, Any]) -> None:
    console.print()
    console.print(Text("  meta:", style="dim"))
    for key, value in meta.items():
        if key != "telemetry":
            console.print(f"    {key}: {escape(str(value))}")
    if "telemetry" in meta:
        console.print(Padding(_span_tree(meta["telemetry"]), (0, 0, 0, 4)))


def _render_error(result: ServiceResult, console: Console, verbose: bool) -> None:
    err = result.error
    console.print(
        Text("ERROR", style="kb.error"),
        Text(f"  {result.op}: ", style="kb.op"),
        Text(err.message if err else "unknown error"),
        sep="",
    )
    if err is None:
        return

    if err.candidates:
        console.print("\nMatching items:")
        for candidate in err.candidates:
            console.print(f"  {_tag(candidate.get('id', ''))} {escape(str(candidate.get('title', '')))}")
        console.print("\nUse a longer id prefix or the display id to pick one.")

    extra = {k: v for k, v in err.detail.items() if k != "candidates"}
    if verbose and extra:
        console.print(Text("  detail:", style="dim"))
        for key, value in extra.items():
            console.print(f"    {key}: {escape(str(value))}")


def _task_table(items: list[dict[str, Any]], *, verbose: bool) -> Table:
    table = Table(pad_edge=False)
    table.add_column("ID", style="kb.id", no_wrap=True)
    table.add_column("Title", style="kb.title")
    table.add_column("Column")
    table.add_column("Priority")
    table.add_column("Blocked")
    if verbose:
        table.add_column("Position", style="dim", justify="right")

    for item in items:
        priority = str(item.get("priority", ""))
        blockers = len(item.get("blocked_by") or [])
        cells: list[Any] = [
            str(item.get("display_id", "")),
            Text(str(item.get("title", ""))),
            _column_text(str(item.get("column", ""))),
            Text(priority, style=style_for_priority(priority)),
            str(blockers) if blockers else "",
        ]
        if verbose:
            cells.append(f"{float(item.get('position', 0.0)):.6g}")
        table.add_row(*cells)
    return table


@_renders("add")
def _render_add(result: ServiceResult, console: Console, verbose: bool) -> None:
    d = result.data
    label = "Existing" if d.get("existing") else "Created"
    console.print(f"[kb.ok]{label}:[/kb.ok] {escape(str(d.get('title', '')))} {_tag(d.get('display_id'))}")


@_renders("add_batch")
def _render_add_batch(result: ServiceResult, console: Console, verbose: bool) -> None:
    d = result.data
    for task in d.get("tasks", []):
        label = "Existing" if task.get("existing") else "Created"
        console.print(f"{label}: {escape(str(task.get('title', '')))} {_tag(task.get('display_id'))}")
    errors = d.get("errors", [])
    if errors:
        console.print("\n[kb.error]Errors:[/kb.error]")
        for message in errors:
            console.print(f"  {escape(str(message))}")
    summary = f"\nCreated {d.get('created', 0)} tasks"
    if errors:
        summary += f", {len(errors)} failed"
    console.print(summary)


@_renders("move")
def _render_move(result: ServiceResult, console: Console, verbose: bool) -> None:
    d = result.data
    source, target = str(d.get("from_column", "")), str(d.get("column", ""))
    ident = _tag(d.get("display_id"))
    if source != target:
        console.print(
            Text.from_markup(f"[kb.ok]Moved[/kb.ok] task {ident} from "),
            _column_text(source),
            Text(" to "),
            _column_text(target),
            sep="",
        )
    else:
        console.print(
            Text.from_markup(f"[kb.ok]Repositioned[/kb.ok] task {ident} in "),
            _column_text(target),
            sep="",
        )
    if verbose:
        _field(console, "position", d.get("position"))


@_renders("update")
def _render_update(result: ServiceResult, console: Console, verbose: bool) -> None:
    d = result.data
    console.print(f"[kb.ok]Updated:[/kb.ok] {escape(str(d.get('title', '')))} {_tag(d.get('display_id'))}")
    changed = d.get("changed") or []
    if changed:
        _field(console, "changed", ", ".join(changed))
    if "blocked_by" in changed:
        _field(console, "blocked_by", ", ".join(b[:8] for b in d.get("blocked_by", [])) or "-")


@_renders("delete")
def _render_delete(result: ServiceResult, console: Console, verbose: bool) -> None:
    d = result.data
    console.print(f"[kb.ok]Deleted:[/kb.ok] {escape(str(d.get('title', '')))} {_tag(d.get('display_id'))}")


@_renders("block")
def _render_block(result: ServiceResult, console: Console, verbose: bool) -> None:
    d = result.data
    console.print(
        f"[kb.ok]Task {escape(str(d.get('display_id')))} blocked.[/kb.ok] Awaiting human input."
    )
    console.print(Text(f"Question: {_truncate(str(d.get('question', '')), 100)}"))


@_renders("resume")
def _render_resume(result: ServiceResult, console: Console, verbose: bool) -> None:
    d = result.data
    console.print(
        Text.from_markup(f"[kb.ok]Resumed[/kb.ok] task {_tag(d.get('display_id'))}, now "),
        _column_text(str(d.get("column", ""))),
        sep="",
    )


@_renders("comment")
def _render_comment(result: ServiceResult, console: Console, verbose: bool) -> None:
    d = result.data
    console.print(f"[kb.ok]Comment added to {escape(str(d.get('display_id')))}[/kb.ok]")
    mentions = d.get("mentions") or []
    if mentions:
        console.print(Text(f"Mentions: {', '.join(mentions)}"))


@_renders("show")
def _render_show(result: ServiceResult, console: Console, verbose: bool) -> None:
    d = result.data
    lines: list[str] = [
        f"[kb.key]id:[/kb.key] {d.get('id')}",
        f"[kb.key]column:[/kb.key] [{style_for_column(str(d.get('column'))) or 'default'}]"
        f"{d.get('column')}[/]",
        f"[kb.key]type:[/kb.key] {d.get('type')}",
        f"[kb.key]priority:[/kb.key] {d.get('priority')}",
        f"[kb.key]position:[/kb.key] {d.get('position')}",
        f"[kb.key]created:[/kb.key] {d.get('created')} by {d.get('created_by')}",
    ]
    if d.get("labels"):
        lines.append(f"[kb.key]labels:[/kb.key] {escape(', '.join(d['labels']))}")
    if d.get("parent"):
        lines.append(f"[kb.key]parent:[/kb.key] {str(d['parent'])[:8]}")
    for blocker in d.get("blockers", []):
        title = blocker.get("title")
        state = f"{escape(str(title))} ({blocker.get('column')})" if title else "deleted"
        lines.append(f"[kb.key]blocked by:[/kb.key] {_tag(blocker.get('short_id'))} {state}")
    indirect = [t for t in d.get("waiting_on", []) if t not in d.get("blocked_by", [])]
    if indirect:
        lines.append(f"[kb.key]also waits on:[/kb.key] {', '.join(t[:8] for t in indirect)}")
    if d.get("description"):
        lines.append("")
        lines.append(escape(str(d["description"]).strip()))

    title = f"{escape(str(d.get('display_id', '?')))}  {escape(str(d.get('title', '')))}"
    console.print(Panel("\n".join(lines), title=title, border_style="dim", expand=False))

    comments = d.get("comments") or []
    if comments:
        console.print(f"\nComments ({len(comments)}):")
        for c in comments:
            author = c.get("author_id") or c.get("author_type")
            console.print(f"  [kb.key]{escape(str(c.get('created')))} {escape(str(author))}:[/kb.key]")
            console.print(Text(f"    {c.get('content', '')}"))

    if verbose:
        history = d.get("history", {}).get("entries", [])
        console.print(f"\nHistory ({len(history)}):")
        for entry in history:
            console.print(f"  {entry.get('timestamp')} {entry.get('action')} {entry.get('actor')}")


@_renders("list")
def _render_list(result: ServiceResult, console: Console, verbose: bool) -> None:
    items = result.data.get("items", [])
    if not items:
        console.print("No tasks found.")
        return
    console.print(_task_table(items, verbose=verbose))
    console.print(f"\n{result.data.get('count', len(items))} tasks")


# ── Board renderers ───────────────────────────────────────────────────


@_renders("board_create")
def _render_board_create(result: ServiceResult, console: Console, verbose: bool) -> None:
    d = result.data
    console.print(f"[kb.ok]Created board[/kb.ok] {escape(str(d.get('name')))} ({d.get('prefix')})")
    _field(console, "columns", ", ".join(d.get("columns", [])))


@_renders("board_list")
def _render_board_list(result: ServiceResult, console: Console, verbose: bool) -> None:
    items = result.data.get("items", [])
    if not items:
        console.print("No boards found.")
        return
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Prefix", style="kb.id", no_wrap=True)
    table.add_column("Name", style="kb.title")
    table.add_column("Tasks", justify="right")
    if verbose:
        table.add_column("Next seq", style="dim", justify="right")
    for item in items:
        row = [str(item.get("prefix")), Text(str(item.get("name"))), str(item.get("task_count", 0))]
        if verbose:
            row.append(str(item.get("next_seq")))
        table.add_row(*row)
    console.print(table)


@_renders("board_show")
def _render_board_show(result: ServiceResult, console: Console, verbose: bool) -> None:
    d = result.data
    counts = d.get("columns_count", {})
    lines = [f"[kb.key]id:[/kb.key] {d.get('id')}", f"[kb.key]tasks:[/kb.key] {d.get('task_count', 0)}"]
    for column in d.get("columns", []):
        lines.append(f"  [{style_for_column(column) or 'default'}]{column}[/]: {counts.get(column, 0)}")
    title = f"{d.get('prefix')}  {escape(str(d.get('name')))}"
    console.print(Panel("\n".join(lines), title=title, border_style="dim", expand=False))


@_renders("board_delete")
def _render_board_delete(result: ServiceResult, console: Console, verbose: bool) -> None:
    d = result.data
    if "tasks_deleted" in d:
        tail = f"and {d['tasks_deleted']} task(s)"
    else:
        tail = f"({d.get('tasks_orphaned', 0)} task(s) kept without a board)"
    console.print(f"[kb.ok]Deleted board[/kb.ok] '{escape(str(d.get('board')))}' {tail}")


# ── Maintenance renderers ─────────────────────────────────────────────


@_renders("rebalance")
def _render_rebalance(result: ServiceResult, console: Console, verbose: bool) -> None:
    d = result.data
    console.print(
        f"[kb.ok]Rebalanced[/kb.ok] {d.get('column')}: "
        f"{d.get('changed', 0)} of {d.get('count', 0)} tasks repositioned"
    )


@_renders("check")
def _render_check(result: ServiceResult, console: Console, verbose: bool) -> None:
    """Issues grouped by category, then an error/warning tally."""
    issues = result.data.get("issues", [])
    if not issues:
        console.print("[kb.ok]OK[/kb.ok]  No issues found.")
        return

    severity_styles = {"error": "kb.error", "warning": "kb.warning"}
    by_category: dict[str, list[dict[str, Any]]] = {}
    for issue in issues:
        by_category.setdefault(str(issue.get("category", "unknown")), []).append(issue)

    for cat, cat_issues in by_category.items():
        console.print(f"\n[bold]{cat}[/bold]")
        for issue in cat_issues:
            sev = str(issue.get("severity", "warning"))
            style = severity_styles.get(sev, "")
            label = f"[{style}]{sev}[/{style}]" if style else sev
            console.print(f"  {label}: {escape(str(issue.get('message', '')))}")

    errors = sum(1 for i in issues if i.get("severity") == "error")
    console.print(f"\n{errors} errors, {len(issues) - errors} warnings")


def _render_generic(result: ServiceResult, console: Console, verbose: bool) -> None:
    console.print(Text("OK", style="kb.ok"), Text(f"  {result.op}", style="kb.op"), sep="")
    for key, value in result.data.items():
        shown = json.dumps(value, separators=(",", ":")) if isinstance(value, (dict, list)) else value
        _field(console, key, shown)

