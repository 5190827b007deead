import json
import logging
from datetime import datetime
from typing import Any, Optional, Sequence

from rich.box import HEAVY, ROUNDED, SIMPLE
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from nanocache.domain.interfaces.user_interface import UserInterface

logger = logging.getLogger(__name__)

class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Optional[Console] = None):
        """Initializes the rich Console."""
        self.console = console or Console()

    def display_output(self, output: Any, **kwargs: Any) -> None:
        """Displays a cached value, pretty-printing it as JSON when possible.

        Args:
            output: The decoded payload.
            **kwargs: Additional arguments including:
                - title: Panel title (default: "Value")
        """
        title = kwargs.get("title", "Value")
        try:
            rendered = Syntax(json.dumps(output, indent=2, ensure_ascii=False, sort_keys=True), "json")
        except (TypeError, ValueError):
            # Not JSON-compatible (e.g. pickled objects)
            logger.debug(f"Value for '{title}' is not JSON serializable, showing repr")
            rendered = Text(repr(output))
        self.console.print(Panel(rendered, title=f"[bold white]{title}[/bold white]", box=ROUNDED, padding=(0, 1)))

    def display_records(self, rows: Sequence[tuple], now: float, **kwargs: Any) -> None:
        """Displays records as a table with age and expiry status.

        Args:
            rows: (key, CacheRecord) pairs.
            now: Reference time in seconds.
            **kwargs: Additional arguments including:
                - title: Table title (default: "Cache records")
        """
        title = kwargs.get("title", "Cache records")
        table = Table(title=title, box=ROUNDED, border_style="cyan")
        table.add_column("Key", style="bold")
        table.add_column("Written")
        table.add_column("TTL (s)", justify="right")
        table.add_column("Age (s)", justify="right")
        table.add_column("Locked", justify="center")
        table.add_column("Status")

        for key, record in rows:
            age = int(now) - record.timestamp
            expired = age >= record.ttl
            written = datetime.fromtimestamp(record.timestamp).strftime("%Y-%m-%d %H:%M:%S")
            status = "[red]expired[/red]" if expired else "[green]fresh[/green]"
            table.add_row(key, written, str(record.ttl), str(age), "yes" if record.locked else "no", status)

        logger.debug(f"Displaying {len(rows)} record(s)")
        self.console.print(table)

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message in a distinct style."""
        panel = Panel(
            Text(error_message, style="white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message."""
        panel = Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message."""
        logger.warning(f"Display warning: {warning_message}")
        panel = Panel(
            Text(warning_message, style="white"),
            title="[bold yellow]Warning[/bold yellow]",
            border_style="yellow",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)
