"""Command-line interface handlers."""

import argparse
import logging
import sys
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

import httpx
from rich.progress import Progress, SpinnerColumn, TextColumn

from researchflow.config import Settings
from researchflow.console import ConsoleUI
from researchflow.database.drafts import DraftStore
from researchflow.database.repository import PaperRepository
from researchflow.database.store import SQLiteKeyValueStore
from researchflow.errors import ResearchFlowError
from researchflow.models.source import SOURCE_TYPES
from researchflow.services.ai_tasks import TASKS
from researchflow.services.citation_service import CitationManager
from researchflow.services.dispatcher import AIDispatcher
from researchflow.services.sections import get_section, section_word_total
from researchflow.services.session import Session
from researchflow.services.workspace import PaperWorkspace

logger = logging.getLogger(__name__)

SOURCE_FIELDS = ("publisher", "journal", "volume", "pages", "url", "doi", "notes")


class ResearchFlowCLI:
    """CLI application for ResearchFlow."""

    def __init__(self, settings: Optional[Settings] = None, http: Optional[httpx.Client] = None):
        """Initialize CLI with settings.

        Args:
            settings: Application settings (loads from .metadata if not provided)
            http: Client for the running server (one per command if not provided)
        """
        self.settings = settings or Settings.load()
        self._http = http
        self.ui = ConsoleUI()
        self.store = SQLiteKeyValueStore(self.settings.db_path)
        self.repo = PaperRepository(self.store, seed_samples=self.settings.seed_samples)
        self.drafts = DraftStore(self.store)
        self.session = Session(self.store)

    @contextmanager
    def _server(self) -> Iterator[httpx.Client]:
        """Client bound to the running server; closed afterwards unless injected."""
        if self._http is not None:
            yield self._http
            return
        with httpx.Client(base_url=self.settings.server_url, timeout=self.settings.ai_timeout) as http:
            yield http

    def _citations(
        self,
        paper_id: str,
        resolve: Optional[Callable[[str], dict[str, Any]]] = None,
    ) -> CitationManager:
        self.repo.get(paper_id)
        return CitationManager(
            self.store,
            paper_id,
            resolve=resolve,
            seed_samples=self.settings.seed_samples,
        )

    @staticmethod
    def _resolve_via_server(http: httpx.Client, doi: str) -> dict[str, Any]:
        """POST the DOI to the resolver route.

        Raises:
            httpx.HTTPError: On network errors or a non-2xx status
        """
        response = http.post("/api/citations/resolve", json={"doi": doi})
        response.raise_for_status()
        return response.json()["metadata"]

    # ── Papers ────────────────────────────────────────────────────────

    def cmd_papers(self, search: str = "") -> None:
        """List papers, optionally filtered by title/topic."""
        self.ui.display_papers(self.repo.search(search))

    def cmd_new(self, title: str, topic: str, paper_type: str, due: Optional[str] = None) -> None:
        """Create a paper."""
        paper = self.repo.create(title=title, topic=topic, type=paper_type, due_date=due)
        self.ui.success(f"Created paper {paper.id}: {paper.title}")

    # ── Sections ──────────────────────────────────────────────────────

    def cmd_show(self, paper_id: str, section_id: str) -> None:
        """Print a section draft."""
        section = get_section(section_id)
        self.repo.get(paper_id)
        self.ui.display_section(section.title, self.drafts.load(paper_id, section.id))

    def cmd_save(self, paper_id: str, section_id: str, text: str) -> None:
        """Save a section draft and refresh the paper's word count."""
        section = get_section(section_id)
        self.repo.get(paper_id)
        version = self.drafts.save(paper_id, section.id, text)
        paper = self.repo.record_save(paper_id, section_word_total(self.drafts, paper_id))
        words = paper.word_count if paper else 0
        if version:
            self.ui.success(f"Saved {section.title} (version {version.id}, {words} words in paper)")
        else:
            self.ui.success(f"Saved {section.title} ({words} words in paper)")

    def cmd_versions(self, paper_id: str, section_id: str) -> None:
        section = get_section(section_id)
        self.ui.display_versions(self.drafts.list_versions(paper_id, section.id))

    def cmd_restore(self, paper_id: str, section_id: str, version_id: str) -> None:
        """Roll a section back to a snapshot."""
        section = get_section(section_id)
        self.drafts.restore(paper_id, section.id, version_id)
        self.repo.record_save(paper_id, section_word_total(self.drafts, paper_id))
        self.ui.success(f"Restored {section.title} to version {version_id}")

    # ── Sources ───────────────────────────────────────────────────────

    def cmd_sources(self, paper_id: str, search: str = "", source_type: str = "all", style: str = "apa") -> None:
        manager = self._citations(paper_id)
        sources = manager.search(search, source_type)
        self.ui.display_sources(sources, {s.id: manager.format(s, style) for s in sources})

    def cmd_add_source(self, paper_id: str, draft: dict) -> None:
        """Add a source to a paper."""
        source = self._citations(paper_id).add(draft)
        self.ui.success(f"Added source {source.id} ({source.citation_key})")

    def cmd_remove_source(self, paper_id: str, source_id: str) -> None:
        self._citations(paper_id).remove(source_id)
        self.ui.success(f"Removed source {source_id}")

    def cmd_cite(
        self,
        paper_id: str,
        source_id: Optional[str] = None,
        style: str = "apa",
        inline: bool = False,
        add_reference: bool = False,
    ) -> None:
        """Format one source, or print the whole bibliography.

        With ``add_reference`` the entry is also appended to the
        references section.
        """
        manager = self._citations(paper_id)
        if source_id is None:
            for entry in manager.bibliography(style):
                self.ui.info(entry)
            return

        source = manager.get(source_id)
        if inline:
            self.ui.info(manager.inline_citation(source, style))
        else:
            self.ui.info(manager.format(source, style))

        if add_reference:
            with self._server() as http:
                workspace = self._workspace(paper_id, "references", manager, http)
                try:
                    workspace.add_reference(source, style)
                finally:
                    workspace.close()
            self.ui.success("Added to References")

    def cmd_import_doi(self, paper_id: str, doi: str, save: bool = False) -> None:
        """Resolve a DOI through the server into a source draft, optionally saving it."""
        with self._server() as http, Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            console=self.ui.console,
        ) as progress:
            manager = self._citations(paper_id, resolve=lambda d: self._resolve_via_server(http, d))
            progress.add_task(f"Resolving {doi}...", total=None)
            try:
                draft = manager.import_by_doi(doi)
            except (httpx.HTTPError, KeyError, ValueError) as e:
                logger.warning("DOI import failed for %s: %s", doi, e)
                self.ui.error("Failed to resolve DOI. Please check the DOI and try again.")
                return
        self.ui.display_draft(draft)
        if save:
            source = manager.add(draft)
            self.ui.success(f"Added source {source.id} ({source.citation_key})")
        else:
            self.ui.info("Review the draft, then re-run with --save to add it.")

    # ── AI ────────────────────────────────────────────────────────────

    def cmd_ai(
        self,
        paper_id: str,
        section_id: str,
        task: str,
        word_target: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> None:
        """Run an AI task on a section through the running server."""
        with self._server() as http:
            workspace = self._workspace(paper_id, section_id, self._citations(paper_id), http)
            try:
                with Progress(
                    SpinnerColumn(),
                    TextColumn("[bold blue]{task.description}"),
                    console=self.ui.console,
                ) as progress:
                    progress.add_task(f"Running {task}...", total=None)
                    result = workspace.run_ai(task, word_target=word_target, notes=notes)
            finally:
                workspace.close()

        for notice in workspace.notices:
            self.ui.warning(notice)
        if result is None or not result.ok:
            return
        if result.kind == "replace":
            self.ui.display_section(f"{get_section(section_id).title} (revised, saved)", workspace.document.text)
        else:
            self.ui.display_ai_result(task, workspace.ai_results[task])

    def _workspace(
        self,
        paper_id: str,
        section_id: str,
        citations: CitationManager,
        http: httpx.Client,
    ) -> PaperWorkspace:
        return PaperWorkspace(
            paper_id,
            drafts=self.drafts,
            repo=self.repo,
            citations=citations,
            dispatcher=AIDispatcher(http),
            autosave_delay=self.settings.autosave_delay,
            section_id=section_id,
        )

    # ── Session ───────────────────────────────────────────────────────

    def cmd_login(self, email: str, password: str) -> None:
        user = self.session.login(email, password)
        self.ui.success(f"Signed in as {user.name} <{user.email}>")

    def cmd_logout(self) -> None:
        self.session.logout()
        self.ui.success("Signed out")

    def cmd_theme(self) -> None:
        self.ui.success(f"Theme: {self.session.toggle_theme()}")

    def cmd_serve(self, host: Optional[str] = None, port: Optional[int] = None) -> None:
        """Run the web server."""
        import uvicorn

        uvicorn.run(
            "researchflow.gui.app:app",
            host=host or self.settings.host,
            port=port or self.settings.port,
        )


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="researchflow",
        description="Academic writing assistant: papers, sections, citations, AI actions",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Run the web server")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: from settings)")
    serve_parser.add_argument("--port", type=int, default=None, help="Port (default: from settings)")

    # papers command
    papers_parser = subparsers.add_parser("papers", help="List papers")
    papers_parser.add_argument("--search", default="", help="Filter by title or topic")

    # new command
    new_parser = subparsers.add_parser("new", help="Create a paper")
    new_parser.add_argument("title", help="Paper title")
    new_parser.add_argument("--topic", required=True, help="Research topic / field")
    new_parser.add_argument("--type", required=True, dest="paper_type", help="Paper type, e.g. 'Research Paper'")
    new_parser.add_argument("--due", default=None, help="Due date (YYYY-MM-DD)")

    # show command
    show_parser = subparsers.add_parser("show", help="Print a section draft")
    show_parser.add_argument("paper_id")
    show_parser.add_argument("section_id")

    # save command
    save_parser = subparsers.add_parser("save", help="Save a section draft")
    save_parser.add_argument("paper_id")
    save_parser.add_argument("section_id")
    save_parser.add_argument("--text", default=None, help="Section text (default: read stdin)")
    save_parser.add_argument("--file", default=None, help="Read section text from a file")

    # versions command
    versions_parser = subparsers.add_parser("versions", help="List version snapshots of a section")
    versions_parser.add_argument("paper_id")
    versions_parser.add_argument("section_id")

    # restore command
    restore_parser = subparsers.add_parser("restore", help="Restore a section version")
    restore_parser.add_argument("paper_id")
    restore_parser.add_argument("section_id")
    restore_parser.add_argument("version_id")

    # sources command
    sources_parser = subparsers.add_parser("sources", help="List a paper's sources")
    sources_parser.add_argument("paper_id")
    sources_parser.add_argument("--search", default="", help="Filter by title or author")
    sources_parser.add_argument(
        "--type",
        default="all",
        dest="source_type",
        choices=("all",) + SOURCE_TYPES,
        help="Filter by source type (default: all)",
    )
    sources_parser.add_argument("--style", default="apa", choices=["apa", "mla"])

    # add-source command
    add_parser = subparsers.add_parser("add-source", help="Add a source to a paper")
    add_parser.add_argument("paper_id")
    add_parser.add_argument("--type", default="journal", dest="source_type", choices=SOURCE_TYPES)
    add_parser.add_argument("--title", required=True)
    add_parser.add_argument("--author", required=True, help="e.g. 'Smith, J. & Johnson, M.'")
    add_parser.add_argument("--year", required=True)
    for name in SOURCE_FIELDS:
        add_parser.add_argument(f"--{name}", default=None)

    # remove-source command
    remove_parser = subparsers.add_parser("remove-source", help="Remove a source")
    remove_parser.add_argument("paper_id")
    remove_parser.add_argument("source_id")

    # cite command
    cite_parser = subparsers.add_parser("cite", help="Format a source or the bibliography")
    cite_parser.add_argument("paper_id")
    cite_parser.add_argument("source_id", nargs="?", default=None)
    cite_parser.add_argument("--style", default="apa", choices=["apa", "mla"])
    cite_parser.add_argument("--inline", action="store_true", help="Print the in-text citation")
    cite_parser.add_argument(
        "--add-reference",
        action="store_true",
        help="Append the entry to the References section",
    )

    # import-doi command
    doi_parser = subparsers.add_parser("import-doi", help="Prefill a source from a DOI")
    doi_parser.add_argument("paper_id")
    doi_parser.add_argument("doi")
    doi_parser.add_argument("--save", action="store_true", help="Add the resolved source")

    # ai command
    ai_parser = subparsers.add_parser("ai", help="Run an AI task on a section (server must be running)")
    ai_parser.add_argument("paper_id")
    ai_parser.add_argument("section_id")
    ai_parser.add_argument("task", choices=TASKS)
    ai_parser.add_argument("--words", type=int, default=None, dest="word_target", help="Word target for shorten/expand")
    ai_parser.add_argument("--notes", default=None, help="Extra notes for ideation tasks")

    # login / logout / theme
    login_parser = subparsers.add_parser("login", help="Sign in (mock)")
    login_parser.add_argument("email")
    login_parser.add_argument("--password", default="password")
    subparsers.add_parser("logout", help="Sign out")
    subparsers.add_parser("theme", help="Toggle light/dark theme")

    return parser


def _read_text(args: argparse.Namespace) -> str:
    if args.text is not None:
        return args.text
    if args.file is not None:
        with open(args.file, "r", encoding="utf-8") as f:
            return f.read()
    return sys.stdin.read()


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI.

    Returns:
        Process exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    cli = ResearchFlowCLI()

    try:
        if args.command == "serve":
            cli.cmd_serve(args.host, args.port)
        elif args.command == "papers":
            cli.cmd_papers(args.search)
        elif args.command == "new":
            cli.cmd_new(args.title, args.topic, args.paper_type, args.due)
        elif args.command == "show":
            cli.cmd_show(args.paper_id, args.section_id)
        elif args.command == "save":
            cli.cmd_save(args.paper_id, args.section_id, _read_text(args))
        elif args.command == "versions":
            cli.cmd_versions(args.paper_id, args.section_id)
        elif args.command == "restore":
            cli.cmd_restore(args.paper_id, args.section_id, args.version_id)
        elif args.command == "sources":
            cli.cmd_sources(args.paper_id, args.search, args.source_type, args.style)
        elif args.command == "add-source":
            draft = {
                "type": args.source_type,
                "title": args.title,
                "author": args.author,
                "year": args.year,
                **{name: getattr(args, name) for name in SOURCE_FIELDS},
            }
            cli.cmd_add_source(args.paper_id, draft)
        elif args.command == "remove-source":
            cli.cmd_remove_source(args.paper_id, args.source_id)
        elif args.command == "cite":
            cli.cmd_cite(args.paper_id, args.source_id, args.style, args.inline, args.add_reference)
        elif args.command == "import-doi":
            cli.cmd_import_doi(args.paper_id, args.doi, args.save)
        elif args.command == "ai":
            cli.cmd_ai(args.paper_id, args.section_id, args.task, args.word_target, args.notes)
        elif args.command == "login":
            cli.cmd_login(args.email, args.password)
        elif args.command == "logout":
            cli.cmd_logout()
        elif args.command == "theme":
            cli.cmd_theme()
    except ResearchFlowError as e:
        cli.ui.error(str(e))
        return 1
    return 0


def run_cli() -> None:
    sys.exit(main())
