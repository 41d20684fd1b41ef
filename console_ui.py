#!/usr/bin/env python3
"""
Console UI Module using Rich

Provides styled status output, an activity spinner, and a line prompt for
the rmdir command. Regular output goes to stdout; warnings and errors go to
stderr so they stay visible when stdout is redirected.
"""

from typing import Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.prompt import Prompt


class ConsoleUI:
    """Console handler using Rich for the rmdir CLI"""

    def __init__(self, force_terminal: Optional[bool] = None):
        """Initialize stdout and stderr consoles with optional terminal forcing"""
        self.console = Console(force_terminal=force_terminal, highlight=False, emoji=False, soft_wrap=True)
        self.err_console = Console(
            stderr=True, force_terminal=force_terminal, highlight=False, emoji=False, soft_wrap=True
        )

    # Basic styled output methods; messages are printed verbatim (no markup)
    def print_success(self, message: str):
        """Print success message in green"""
        self.console.print(message, style="green", markup=False)

    def print_error(self, message: str):
        """Print error message in red to stderr"""
        self.err_console.print(message, style="red bold", markup=False)

    def print_warning(self, message: str):
        """Print warning message in yellow to stderr"""
        self.err_console.print(message, style="yellow", markup=False)

    def print_info(self, message: str):
        """Print info message in cyan"""
        self.console.print(message, style="cyan", markup=False)

    def print_plain(self, message: str):
        """Print message without styling"""
        self.console.print(message, markup=False)

    def print_usage(self, text: str, error: bool = False):
        """Print preformatted usage text, to stderr when reporting an error"""
        console = self.err_console if error else self.console
        console.print(text.rstrip("\n"), markup=False)

    def print_header(self, title: str, subtitle: Optional[str] = None):
        """Print a header with optional subtitle"""
        if subtitle:
            header_text = f"[bold]{escape(title)}[/bold]\n[dim]{escape(subtitle)}[/dim]"
        else:
            header_text = f"[bold]{escape(title)}[/bold]"

        panel = Panel(header_text, box=box.ROUNDED, padding=(0, 1), expand=False)
        self.console.print(panel)

    def create_activity_progress(self):
        """Create a Rich progress context manager for activity-only display (no counts)"""
        return Progress(
            SpinnerColumn(),
            TextColumn("{task.description}"),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
        )

    # Interactive prompts
    def ask_line(self, question: str) -> str:
        """Ask for a single line of input; the question is plain text"""
        return Prompt.ask(escape(question), console=self.console)
