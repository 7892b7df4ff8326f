"""Rich console helpers for the command line."""

from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..errors import HonorerError

_console: Optional[Console] = None


def get_console() -> Console:
    """Get or create the shared console."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def print_error(message: str, title: str = "Error"):
    """Print rich markup in a red panel."""
    get_console().print(Panel(
        f"[red]{message}[/red]",
        title=f"[bold red]{title}[/bold red]",
        border_style="red",
    ))


def print_exception(error: BaseException, title: str = "Error", verbose: bool = False):
    """Print an exception, with code and suggestions for honorer errors."""
    if isinstance(error, HonorerError):
        print_error(error.format_for_cli(verbose=verbose), title=title)
    else:
        print_error(escape(str(error)), title=title)


def create_table(title: str, columns: List[str]) -> Table:
    table = Table(title=title, show_header=True, header_style="bold magenta")
    for column in columns:
        table.add_column(column)
    return table
