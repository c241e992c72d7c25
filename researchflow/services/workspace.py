"""Paper editor shell: outline, editor, AI panel and citation manager together.

The workspace owns the document of the active section and wires the
pieces through the event bus the same way the editor page wires its
panels: the citation manager never touches the editor directly, it
publishes a request and the workspace routes it.
"""

import logging
from typing import Any, Callable, Optional

from researchflow.database.drafts import DraftStore
from researchflow.database.repository import PaperRepository
from researchflow.errors import ValidationError
from researchflow.models.source import Source
from researchflow.services.citation_service import CitationManager
from researchflow.services.dispatcher import AIDispatcher, DispatchResult
from researchflow.services.editor import Autosaver, EditorDocument
from researchflow.services.events import (
    AddReferenceEntry,
    EditorFocus,
    EditorInsertCitation,
    EventBus,
    OpenAddSource,
    RequestAI,
    RequestInsertCitation,
    Topic,
)
from researchflow.services.sections import get_section, section_word_total

logger = logging.getLogger(__name__)

TABS = ("write", "sources", "settings")
REFERENCES_SECTION = "references"


class PaperWorkspace:
    """Editing session for one paper."""

    def __init__(
        self,
        paper_id: str,
        drafts: DraftStore,
        repo: PaperRepository,
        citations: CitationManager,
        dispatcher: AIDispatcher,
        bus: Optional[EventBus] = None,
        autosave_delay: float = 0.8,
        section_id: str = "abstract",
    ):
        self.paper = repo.get(paper_id)
        self.drafts = drafts
        self.repo = repo
        self.citations = citations
        self.dispatcher = dispatcher
        self.bus = bus or EventBus()
        self.autosave_delay = autosave_delay

        self.active_tab = "write"
        self.focused = False
        self.save_status = "idle"
        self.ai_results: dict[str, Any] = {}
        self.notices: list[str] = []

        self.active_section = get_section(section_id).id
        self.document = EditorDocument(self.drafts.load(self.paper.id, self.active_section))
        self.autosaver = self._new_autosaver()

        self._unsubscribers: list[Callable[[], None]] = [
            self.bus.subscribe(Topic.EDITOR_FOCUS, self._on_focus),
            self.bus.subscribe(Topic.REQUEST_INSERT_CITATION, self._on_request_insert_citation),
            self.bus.subscribe(Topic.EDITOR_INSERT_CITATION, self._on_insert_citation),
            self.bus.subscribe(Topic.ADD_REFERENCE_ENTRY, self._on_add_reference_entry),
            self.bus.subscribe(Topic.OPEN_ADD_SOURCE, self._on_open_add_source),
            self.bus.subscribe(Topic.REQUEST_AI, self._on_request_ai),
        ]

    # ── Navigation ────────────────────────────────────────────────────

    def open_section(self, section_id: str) -> None:
        """Save the current section and load *section_id* into the editor."""
        section = get_section(section_id)
        self.autosaver.flush()
        self.active_section = section.id
        self.document = EditorDocument(self.drafts.load(self.paper.id, section.id))
        self.autosaver = self._new_autosaver()

    def set_tab(self, tab: str) -> None:
        if tab not in TABS:
            raise ValidationError(f"Unknown tab: {tab}")
        self.active_tab = tab

    # ── Editing ───────────────────────────────────────────────────────

    def write(self, text: str) -> None:
        """Insert *text* at the caret and schedule an autosave."""
        self.document.insert(text)
        self.autosaver.touch(self.document.text)

    def replace_text(self, text: str) -> None:
        self.document.set_text(text)
        self.autosaver.touch(self.document.text)

    def format(self, command: str, value: Optional[str] = None) -> None:
        self.document.apply(command, value)
        self.autosaver.touch(self.document.text)

    def save(self) -> None:
        """Explicit save: write the current text now."""
        self.autosaver.cancel()
        self._run_save(self.document.text)

    # ── Citations ─────────────────────────────────────────────────────

    def insert_citation(self, source: Source, style: str = "apa") -> None:
        self.bus.publish(RequestInsertCitation(self.citations.inline_citation(source, style)))

    def add_reference(self, source: Source, style: str = "apa") -> None:
        self.bus.publish(AddReferenceEntry(self.citations.reference_entry(source, style)))

    def open_add_source(self) -> None:
        self.bus.publish(OpenAddSource())

    # ── AI ────────────────────────────────────────────────────────────

    def request_ai(self, task: str, word_target: Optional[int] = None) -> None:
        self.bus.publish(RequestAI(task, word_target))

    def run_ai(
        self,
        task: str,
        word_target: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> Optional[DispatchResult]:
        """Run *task* on the active section and apply the result.

        Returns:
            The dispatch result, or None when the request was refused locally
        """
        try:
            result = self.dispatcher.invoke(
                task,
                section_text=self.document.text,
                word_target=word_target,
                field=self.paper.topic,
                notes=notes,
            )
        except ValidationError as e:
            self.notices.append(str(e))
            return None

        if not result.ok:
            self.notices.append(result.notice or "AI request failed.")
            return result

        if result.kind == "replace":
            revised = result.revised
            if revised is not None:
                self.document.set_text(revised)
                self.save()
        else:
            self.ai_results[task] = result.data
        return result

    # ── Lifecycle ─────────────────────────────────────────────────────

    def close(self) -> None:
        """Flush pending edits and detach from the bus."""
        self.autosaver.flush()
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    # ── Private ───────────────────────────────────────────────────────

    def _new_autosaver(self) -> Autosaver:
        section_id = self.active_section
        return Autosaver(
            lambda text: self._save_section(section_id, text),
            delay=self.autosave_delay,
            on_status=self._on_save_status,
        )

    def _run_save(self, text: str) -> None:
        self._on_save_status("saving")
        self._save_section(self.active_section, text)
        self._on_save_status("saved")

    def _save_section(self, section_id: str, text: str) -> None:
        self.drafts.save(self.paper.id, section_id, text)
        paper = self.repo.record_save(self.paper.id, section_word_total(self.drafts, self.paper.id))
        if paper is not None:
            self.paper = paper

    def _on_save_status(self, status: str) -> None:
        self.save_status = status

    def _on_focus(self, _event: EditorFocus) -> None:
        self.focused = True

    def _on_request_insert_citation(self, event: RequestInsertCitation) -> None:
        if not event.inline:
            return
        self.active_tab = "write"
        self.bus.publish(EditorFocus())
        self.bus.publish(EditorInsertCitation(event.inline))

    def _on_insert_citation(self, event: EditorInsertCitation) -> None:
        if not event.inline:
            return
        self.document.insert_citation(event.inline)
        self.autosaver.touch(self.document.text)

    def _on_add_reference_entry(self, event: AddReferenceEntry) -> None:
        if not event.entry:
            return
        if self.active_section == REFERENCES_SECTION:
            self.autosaver.flush()
        current = self.drafts.load(self.paper.id, REFERENCES_SECTION)
        separator = "\n\n" if current.strip() else ""
        updated = current + separator + event.entry
        self._save_section(REFERENCES_SECTION, updated)
        if self.active_section == REFERENCES_SECTION:
            self.document.set_text(updated)
        self.active_tab = "write"

    def _on_open_add_source(self, _event: OpenAddSource) -> None:
        self.active_tab = "sources"

    def _on_request_ai(self, event: RequestAI) -> None:
        self.run_ai(event.task, event.word_target)
