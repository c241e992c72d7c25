"""Paper registry for the dashboard."""

from __future__ import annotations

import logging
import time
from datetime import date
from typing import Any, Optional

from researchflow.database.store import PAPERS_KEY, KeyValueStore, get_json, set_json
from researchflow.errors import NotFoundError, ValidationError
from researchflow.models.paper import Paper

logger = logging.getLogger(__name__)

SAMPLE_PAPERS: list[dict[str, Any]] = [
    {
        "id": "1",
        "title": "The Impact of AI on Modern Education Systems",
        "topic": "Educational Technology",
        "type": "Research Paper",
        "createdAt": "2024-01-15",
        "lastModified": "2024-01-20",
        "progress": 65,
        "dueDate": "2024-02-15",
        "wordCount": 3500,
    },
    {
        "id": "2",
        "title": "Climate Change Adaptation Strategies",
        "topic": "Environmental Science",
        "type": "Literature Review",
        "createdAt": "2024-01-10",
        "lastModified": "2024-01-18",
        "progress": 30,
        "dueDate": "2024-03-01",
        "wordCount": 1200,
    },
]


class PaperRepository:
    """Repository for paper list operations over a key-value store."""

    def __init__(self, store: KeyValueStore, seed_samples: bool = True):
        """Initialize repository.

        Args:
            store: Backing key-value store
            seed_samples: Seed the sample papers when the list key is absent
        """
        self.store = store
        self.seed_samples = seed_samples

    def _write(self, papers: list[Paper]) -> None:
        set_json(self.store, PAPERS_KEY, [p.to_dict() for p in papers])

    def list(self) -> list[Paper]:
        """Return all papers, newest first, seeding samples on first use."""
        raw = get_json(self.store, PAPERS_KEY)
        if raw is None:
            papers = [Paper.from_dict(p) for p in SAMPLE_PAPERS] if self.seed_samples else []
            self._write(papers)
            return papers
        if not isinstance(raw, list):
            return []
        return [Paper.from_dict(p) for p in raw if isinstance(p, dict) and "id" in p]

    def search(self, term: str) -> list[Paper]:
        """Filter papers by a case-insensitive match on title or topic."""
        needle = term.strip().lower()
        papers = self.list()
        if not needle:
            return papers
        return [p for p in papers if needle in p.title.lower() or needle in p.topic.lower()]

    def get(self, paper_id: str) -> Paper:
        """Find a paper by id.

        Raises:
            NotFoundError: If no paper has *paper_id*
        """
        paper = next((p for p in self.list() if p.id == paper_id), None)
        if paper is None:
            raise NotFoundError(f"Paper {paper_id} not found")
        return paper

    def create(
        self,
        title: str,
        topic: str,
        type: str,
        due_date: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Paper:
        """Create a paper from the dashboard form and prepend it.

        ``description`` is accepted from the form but not stored.

        Raises:
            ValidationError: If title, topic or type is blank
        """
        title, topic, type = (title or "").strip(), (topic or "").strip(), (type or "").strip()
        if not title or not topic or not type:
            raise ValidationError("Title, topic and type are required")

        papers = self.list()
        today = date.today().isoformat()
        paper = Paper(
            id=self._next_id(papers),
            title=title,
            topic=topic,
            type=type,
            created_at=today,
            last_modified=today,
            progress=0,
            due_date=due_date or None,
            word_count=0,
        )
        self._write([paper] + papers)
        logger.info("Created paper %s (%s)", paper.id, paper.title)
        return paper

    def update(
        self,
        paper_id: str,
        title: Optional[str] = None,
        topic: Optional[str] = None,
        due_date: Optional[str] = None,
    ) -> Paper:
        """Apply settings-tab edits and write them back to the list.

        Raises:
            NotFoundError: If no paper has *paper_id*
            ValidationError: If title or topic would become blank
        """
        papers = self.list()
        paper = next((p for p in papers if p.id == paper_id), None)
        if paper is None:
            raise NotFoundError(f"Paper {paper_id} not found")
        if title is not None:
            if not title.strip():
                raise ValidationError("Title cannot be empty")
            paper.title = title.strip()
        if topic is not None:
            if not topic.strip():
                raise ValidationError("Topic cannot be empty")
            paper.topic = topic.strip()
        if due_date is not None:
            paper.due_date = due_date or None
        paper.last_modified = date.today().isoformat()
        self._write(papers)
        return paper

    def record_save(self, paper_id: str, word_count: int) -> Optional[Paper]:
        """Update word count and last-modified date after a section save.

        Unknown ids are ignored; drafts may outlive their paper.
        """
        papers = self.list()
        paper = next((p for p in papers if p.id == paper_id), None)
        if paper is None:
            return None
        paper.word_count = word_count
        paper.last_modified = date.today().isoformat()
        self._write(papers)
        return paper

    @staticmethod
    def _next_id(papers: list[Paper]) -> str:
        """Millisecond timestamp id, bumped past any id already taken."""
        taken = {p.id for p in papers}
        candidate = int(time.time() * 1000)
        while str(candidate) in taken:
            candidate += 1
        return str(candidate)
