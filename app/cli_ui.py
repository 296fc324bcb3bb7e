# cli_ui.py
from datetime import datetime

from rich import box
from rich.align import Align
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from app.result_view import ViewState, table_rows

_console = Console()


def date_tag() -> str:
    return datetime.now().strftime("[%Y-%m-%d %H:%M:%S]")


def print_startup_ui(model: str, api_url: str, view_type: str, *, app_name: str = "AI Database Query") -> None:
    now = datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S %Z")

    title = Text.assemble(("🤖 ", "bold cyan"), (app_name, "bold cyan"))

    table = Table.grid(padding=(0, 1))
    table.add_column(justify="right", style="bold magenta", width=10)
    table.add_column(style="white")
    table.add_row("Model", f"[bold green]{model}[/bold green]")
    table.add_row("API URL", f"[bold blue]{api_url}[/bold blue]")
    table.add_row("View", f"[bold]{view_type}[/bold]")
    table.add_row("Time", f"[dim]{now}[/dim]")

    help_lines = Text.assemble(
        ("• ", "bold"),
        ("Type a question and press Enter\n", ""),
        ("• ", "bold"),
        ("/table", "bold yellow"),
        (" or ", ""),
        ("/chart", "bold yellow"),
        (" to switch the view\n", ""),
        ("• ", "bold"),
        ("Type ", ""),
        ("exit", "bold red"),
        (" or ", ""),
        ("quit", "bold red"),
        (" to stop", ""),
    )

    panel = Panel(
        Group(Align.center(title), Text(""), table, Text(""), help_lines),
        box=box.ROUNDED,
        border_style="cyan",
        padding=(1, 2),
        width=96,
    )
    _console.print(panel)


def build_result_table(view: ViewState) -> Table:
    table = Table(box=box.SIMPLE_HEAVY, show_lines=False)
    for column in view.result.columns or []:
        table.add_column(Text(column), overflow="fold")
    for row in table_rows(view.result):
        table.add_row(*(Text(cell) for cell in row))
    return table


def print_view(view: ViewState, chart_path: str | None = None) -> None:
    if view.kind == "unparsable":
        _console.print(view.message, style="red", markup=False)
        _console.print(view.raw_output, markup=False, highlight=False)
    elif view.kind == "error":
        _console.print(view.message, style="red", markup=False)
    elif view.kind == "no_data":
        _console.print(view.message)
    elif view.kind == "table":
        _console.print(build_result_table(view))
    elif view.kind == "chart":
        _console.print(f"Chart saved to: {chart_path}")
