"""
Rich-based user prompts and run reporting
"""
from typing import Optional
from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt
from rich.table import Table

from ...core.interfaces import PromptProvider
from ...core.logging import get_stdout_console, get_stderr_console
from ...domain.tunnel.models import TunnelResult


class RichPromptProvider(PromptProvider):
    """Rich-based prompt provider; messages go to stdout, failures to stderr"""

    def __init__(self, console: Optional[Console] = None, err_console: Optional[Console] = None):
        self.console = console or get_stdout_console()
        self.err_console = err_console or get_stderr_console()

    def prompt(self, message: str, default: Optional[str] = None, password: bool = False) -> str:
        """Prompt user for input"""
        if default is not None:
            formatted_message = f"{message} (default: {default})"
        else:
            formatted_message = message

        return Prompt.ask(formatted_message, password=password, default=default, console=self.console)

    def info(self, message: str) -> None:
        self.console.print(f"[cyan]ℹ[/cyan] {escape(message)}")

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {escape(message)}")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠[/yellow] {escape(message)}")

    def failure(self, error: BaseException) -> None:
        """One line naming the error kind, e.g. 'TimeoutExhausted: Gave up on validation ...'"""
        self.err_console.print(f"[red]{type(error).__name__}:[/red] {escape(str(error))}")

    def report(self, result: TunnelResult) -> None:
        """Print the outcome of a successful run"""
        self.success(f"Tunnel to {result.target.destination} validated on localhost:{result.local_port}")

        table = Table(show_header=False, box=None, padding=(0, 2))
        table.add_column(style="dim")
        table.add_column()
        table.add_row("creation attempts", str(result.creation_attempts))
        table.add_row("validation attempts", str(result.validation_attempts))
        if result.architecture:
            table.add_row("architecture", escape(result.architecture))
        if result.key_path:
            table.add_row("public key", escape(str(result.key_path)))
        self.console.print(table)

        if result.key_transferred:
            self.success("SSH key deployment completed successfully")
        else:
            self.info("SSH key transfer skipped")
