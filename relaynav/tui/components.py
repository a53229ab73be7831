"""Reusable rich renderables for the navigator and the CLI."""
from __future__ import annotations

from typing import TYPE_CHECKING

from rich import box
from rich.console import Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .state import InputMode, View

if TYPE_CHECKING:
    from rich.console import Console

    from ..settings import ColorTheme
    from .navigator import Navigator


# Rows taken by the panel border, breadcrumbs and the error line
CHROME_ROWS = 6

NORMAL_HINTS = [
    ("Select", "<Enter>"),
    ("Down", "<J | Down>"),
    ("Up", "<K | Up>"),
    ("Top", "<gg>"),
    ("Bottom", "<G>"),
    ("Back", "<H>"),
    ("Search", "</ | I>"),
    ("Disconnect", "<D>"),
    ("Quit", "<Q | Esc>"),
]


def visible_range(cursor: int, total: int, max_visible: int) -> tuple[int, int]:
    """Return the `[start, end)` slice that keeps `cursor` on screen."""
    if total == 0 or max_visible <= 0:
        return 0, 0
    cursor = max(0, min(cursor, total - 1))
    start = 0
    if cursor >= max_visible:
        start = cursor - max_visible + 1
    return start, min(start + max_visible, total)


# ═══════════════════════════════════════════════════════════════════════════════
# NAVIGATOR FRAME
# ═══════════════════════════════════════════════════════════════════════════════

def render_title(nav: Navigator, theme: ColorTheme) -> Text:
    if nav.connected:
        return Text("Connected", style=f"bold {theme.connected}")
    return Text("Disconnected", style=f"bold {theme.disconnected}")


def render_instructions(nav: Navigator, theme: ColorTheme) -> Text:
    if nav.mode is InputMode.SEARCH:
        text = Text(f" Search: {nav.search.query} | ", style=theme.search_mode)
        text.append("<Esc>", style=theme.search_mode)
        text.append(" exit search ", style=f"bold {theme.search_mode}")
        text.append("<Backspace>", style=theme.search_mode)
        text.append(" delete ", style=f"bold {theme.search_mode}")
        text.append("<Enter>", style=theme.search_mode)
        text.append(" commit ", style=f"bold {theme.search_mode}")
        return text

    text = Text(f" {nav.mode} | ", style=f"bold {theme.normal_mode}")
    for label, keys in NORMAL_HINTS:
        text.append(f" {label} ", style=f"bold {theme.normal_mode}")
        text.append(keys, style=theme.normal_mode)
    return text


def render_list_body(nav: Navigator, theme: ColorTheme, max_rows: int) -> list[Text]:
    ctx = nav.active_list()
    if ctx is None or not ctx.items:
        hint = "No matches" if nav.search.query else "Nothing to show"
        return [Text(hint, style="dim", justify="center")]

    start, end = visible_range(ctx.index, len(ctx.items), max_rows)
    rows: list[Text] = []
    for i in range(start, end):
        item = ctx.items[i]
        if i == ctx.index:
            rows.append(Text(f"❯ {item}", style=f"bold italic {theme.items_selected}", justify="center"))
        else:
            rows.append(Text(item, style=theme.items, justify="center"))
    return rows


def render_connection_body(nav: Navigator, theme: ColorTheme) -> list[Text]:
    if not nav.outcome.output_lines:
        return [Text("No output", style="dim", justify="center")]
    return [
        Text(line, style=theme.connection_output, justify="center")
        for line in nav.outcome.output_lines
    ]


def render_navigator(nav: Navigator, theme: ColorTheme, height: int = 24) -> Panel:
    """Build one full frame for the current navigator state."""
    rows = [Text(nav.breadcrumbs(), style="dim", justify="center"), Text("")]

    if nav.view is View.CONNECTION:
        rows.extend(render_connection_body(nav, theme))
    else:
        rows.extend(render_list_body(nav, theme, max(1, height - CHROME_ROWS)))

    if nav.error:
        rows.append(Text(""))
        rows.append(Text(f"✗ {nav.error}", style="bold red", justify="center"))

    return Panel(
        Group(*rows),
        title=render_title(nav, theme),
        subtitle=render_instructions(nav, theme),
        box=box.HEAVY,
        style=f"on {theme.background}",
        height=height,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# CLI OUTPUT
# ═══════════════════════════════════════════════════════════════════════════════

def render_error(
    console: Console,
    title: str,
    cause: str,
    action: str | None = None,
) -> None:
    """Render a friendly error panel with 3-part structure.

    Args:
        console: Rich Console for output
        title: Error title
        cause: What caused the error
        action: Suggested action to resolve
    """
    content = f"[bold red]✗ {escape(title)}[/bold red]\n\n"
    content += f"[yellow]Cause:[/yellow] {escape(cause)}\n"

    if action:
        content += f"\n[dim]→ {escape(action)}[/dim]"

    console.print(Panel.fit(content, border_style="red", title="Error"))
    console.print()


def render_result_panel(
    console: Console,
    message: str,
    lines: list[str] | None = None,
    is_error: bool = False,
) -> None:
    """Render a success/failure outcome panel with the backend's output lines."""
    if is_error:
        icon = "✗"
        style = "red"
    else:
        icon = "✓"
        style = "green"

    content = f"[bold {style}]{icon} {escape(message)}[/bold {style}]"

    if lines:
        content += "\n\n"
        content += "\n".join(f"  [dim]{escape(line)}[/dim]" for line in lines)

    console.print(Panel.fit(content, title="Result" if not is_error else "Error"))
    console.print()


def render_locations_table(console: Console, entries: list[str], title: str) -> None:
    """Render location entries as a two-column name/code table."""
    table = Table(title=f"[bold]{title}[/bold]")
    table.add_column("Location", style="bold")
    table.add_column("Code", style="cyan")

    for entry in entries:
        name, _, rest = entry.partition("(")
        code = rest.split(")", 1)[0]
        table.add_row(name.strip(), code.strip())

    console.print(table)
    console.print()
