"""Console UI for terminal output using Rich."""

import json
from typing import Any

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from researchflow.models.paper import Paper, Version
from researchflow.models.source import Source


class ConsoleUI:
    """Rich-based console UI for papers, drafts, sources and AI results."""

    def __init__(self, console: Console | None = None):
        """Initialize console."""
        self._console = console or Console()

    @property
    def console(self) -> Console:
        return self._console

    def info(self, message: str) -> None:
        """Print an info message."""
        self._console.print(message)

    def success(self, message: str) -> None:
        """Print a success message in green."""
        self._console.print(f"[green]{message}[/green]")

    def warning(self, message: str) -> None:
        """Print a warning message in yellow."""
        self._console.print(f"[yellow]Warning:[/yellow] {message}")

    def error(self, message: str) -> None:
        """Print an error message in red."""
        self._console.print(f"[red]Error:[/red] {message}")

    def display_papers(self, papers: list[Paper]) -> None:
        """Display the dashboard list in a table."""
        table = Table(title="Papers")
        table.add_column("ID", justify="right")
        table.add_column("Title", overflow="fold")
        table.add_column("Topic", overflow="fold")
        table.add_column("Type")
        table.add_column("Progress", justify="right")
        table.add_column("Words", justify="right")
        table.add_column("Due", width=10)
        table.add_column("Modified", width=10)

        for paper in papers:
            table.add_row(
                paper.id,
                paper.title,
                paper.topic,
                paper.type,
                f"{paper.progress}%",
                str(paper.word_count),
                paper.due_date or "-",
                paper.last_modified,
            )

        self._console.print(table)
        if not papers:
            self._console.print("No papers found.")

    def display_section(self, title: str, text: str) -> None:
        """Render a section draft as markdown."""
        body = Markdown(text) if text.strip() else "[dim]Nothing written yet.[/dim]"
        self._console.print(Panel(body, title=title))

    def display_versions(self, versions: list[Version]) -> None:
        table = Table(title="Versions (newest first)")
        table.add_column("ID")
        table.add_column("Saved at", width=25)
        table.add_column("Preview", overflow="fold")
        for version in versions:
            table.add_row(version.id, version.timestamp, version.preview)
        self._console.print(table)
        if not versions:
            self._console.print("No versions yet.")

    def display_sources(self, sources: list[Source], formatted: dict[str, str]) -> None:
        """Display sources with their formatted citation.

        Args:
            sources: Sources to list
            formatted: Source id -> formatted citation
        """
        table = Table(title="Sources")
        table.add_column("ID", justify="right")
        table.add_column("Key")
        table.add_column("Type")
        table.add_column("Citation", overflow="fold")
        for source in sources:
            table.add_row(source.id, source.citation_key, source.type, formatted.get(source.id, ""))
        self._console.print(table)
        if not sources:
            self._console.print("No sources found.")

    def display_draft(self, draft: dict[str, Any]) -> None:
        """Show a DOI-prefilled source draft."""
        table = Table(title="Source draft", show_header=False)
        table.add_column("Field", style="bold")
        table.add_column("Value", overflow="fold")
        for key, value in draft.items():
            table.add_row(key, str(value) if value else "-")
        self._console.print(table)

    def display_ai_result(self, task: str, data: dict[str, Any]) -> None:
        """Show an analytical AI result, one list item per line where possible."""
        feedback = data.get("feedback")
        if isinstance(feedback, dict):
            for heading in ("strengths", "weaknesses", "suggestions"):
                self._console.print(f"[bold]{heading.title()}[/bold]")
                for item in feedback.get(heading) or []:
                    self._console.print(f"  • {item}")
            return

        for key in ("suggestions", "gaps"):
            if isinstance(data.get(key), list):
                for item in data[key]:
                    self._console.print(f"  • {item}")
                return

        if isinstance(data.get("citations"), list):
            for c in data["citations"]:
                authors = ", ".join(c.get("authors") or [])
                self._console.print(f"  • {authors} ({c.get('year')}). {c.get('title')}. https://doi.org/{c.get('doi')}")
                if c.get("relevance"):
                    self._console.print(f"    [dim]{c['relevance']}[/dim]")
            return

        for key in ("summary", "synthesis", "outline", "result"):
            if isinstance(data.get(key), str):
                self._console.print(Panel(Markdown(data[key]), title=task))
                return

        self._console.print_json(json.dumps(data))
