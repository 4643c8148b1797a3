import json
import logging
from typing import Optional, Any, Dict, List

from rich.console import Console
from rich.panel import Panel
from rich.box import HEAVY, SIMPLE, ROUNDED
from rich.text import Text
from rich.table import Table

from dramagate.domain.interfaces.user_interface import UserInterface
from dramagate.domain.models.catalog import CatalogEntry, Episode

logger = logging.getLogger(__name__)

# Long introductions would make the catalog table unreadable
MAX_INTRO_CHARS = 80


class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Optional[Console] = None):
        """Initializes the rich Console."""
        self._console = console or Console()

    @property
    def console(self) -> Console:
        """Get the Rich console instance for direct operations."""
        return self._console

    def display_catalog(self, entries: List[CatalogEntry], title: str, **kwargs: Any) -> None:
        """Renders catalog entries as a table, or as JSON when `as_json=True`."""
        if kwargs.get("as_json"):
            self.console.print_json(json.dumps([e.to_dict() for e in entries], ensure_ascii=False))
            return

        table = Table(title=title, box=ROUNDED, show_lines=False)
        table.add_column("ID", style="cyan", no_wrap=True)
        table.add_column("Title", style="bold white")
        table.add_column("Eps", justify="right")
        table.add_column("Plays", justify="right", style="dim")
        table.add_column("Tags", style="magenta")
        table.add_column("Introduction", style="dim")
        for entry in entries:
            intro = entry.introduction or ""
            if len(intro) > MAX_INTRO_CHARS:
                intro = intro[:MAX_INTRO_CHARS - 1] + "…"
            table.add_row(
                entry.id,
                entry.name,
                str(entry.chapter_count) if entry.chapter_count is not None else "-",
                entry.play_count or "-",
                ", ".join(entry.tags),
                intro,
            )
        self.console.print(table)

    def display_episodes(self, title_id: str, episodes: List[Episode], **kwargs: Any) -> None:
        """Renders episodes with their stream URLs, or as JSON when `as_json=True`."""
        if kwargs.get("as_json"):
            payload = {"titleId": title_id, "episodes": [e.to_dict() for e in episodes]}
            self.console.print_json(json.dumps(payload, ensure_ascii=False))
            return

        table = Table(title=f"Episodes of {title_id} ({len(episodes)})", box=ROUNDED)
        table.add_column("#", justify="right", style="cyan", no_wrap=True)
        table.add_column("Title", style="bold white")
        table.add_column("Stream URL", style="dim", overflow="fold")
        for episode in episodes:
            table.add_row(str(episode.number), episode.title, episode.stream_url)
        self.console.print(table)

    def display_health(self, report: Dict[str, Any], **kwargs: Any) -> None:
        age = report.get("credential_age_seconds")
        lines = [
            f"Status: {report.get('status')}",
            f"Checked at: {report.get('timestamp')}",
            f"Credential cached: {'yes' if report.get('credential_cached') else 'no'}",
        ]
        if age is not None:
            lines.append(f"Credential age: {age:.1f}s")
        panel = Panel(
            Text("\n".join(lines), style="white"),
            title="[bold green]Health[/bold green]",
            border_style="green",
            box=SIMPLE,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message in a distinct style.

        Args:
            error_message: The error message to display.
            **kwargs: `title` overrides the panel title.
        """
        title = kwargs.get("title", "Error")
        panel = Panel(
            Text(error_message, style="white"),
            title=f"[bold red]{title}[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        panel = Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        logger.warning(f"Display warning: {warning_message}")
        panel = Panel(
            Text(warning_message, style="white"),
            title="[bold yellow]Warning[/bold yellow]",
            border_style="yellow",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)
