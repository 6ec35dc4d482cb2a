"""Terminal output for the vibing-storage command line.

Command handlers print tables and status lines through one shared rich
Console; log records go to loguru instead (see core.logging).
"""

from rich.console import Console

_console: Console | None = None


def get_console() -> Console:
    """Return the shared Console, creating it on first use."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def safe_print(message: str, style: str | None = None) -> None:
    """Print a CLI status line, optionally styled (e.g. "bold red")."""
    console = get_console()
    if style:
        console.print(message, style=style)
    else:
        console.print(message)
