"""
Operator-facing output and prompts

rich renders results and errors, prompt_toolkit reads the reboot
confirmation. Progress lines go through the "pitor" logger instead.
"""
from typing import Optional, Sequence

from prompt_toolkit import prompt
from rich.console import Console
from rich.markup import escape
from rich.table import Table


console = Console()
err_console = Console(stderr=True)


# ============================================================
# Input
# ============================================================
def prompt_enter(message: str) -> None:
    """Block until ENTER

    Raises:
        KeyboardInterrupt / EOFError: Ctrl-C / Ctrl-D at the prompt
    """
    prompt(f"{message} ")


# ============================================================
# Output
# ============================================================
def print_info(message: str) -> None:
    console.print(f"[cyan]ℹ[/cyan] {escape(message)}")


def print_success(message: str) -> None:
    console.print(f"[green]✓[/green] {escape(message)}")


def print_warning(message: str) -> None:
    err_console.print(f"[yellow]⚠[/yellow] {escape(message)}")


def print_error(message: str) -> None:
    err_console.print(f"[red]✗[/red] {escape(message)}", highlight=False)


def print_table(
    title: str,
    columns: Sequence[str],
    rows: Sequence[Sequence[str]],
    caption: Optional[str] = None,
) -> None:
    """Cell text is printed literally, never parsed as rich markup"""
    table = Table(title=escape(title), caption=caption, show_header=True, header_style="bold magenta")
    for col in columns:
        table.add_column(col)
    for row in rows:
        table.add_row(*(escape(cell) for cell in row))
    console.print(table)
