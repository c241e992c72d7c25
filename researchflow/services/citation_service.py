"""Citation manager: a paper's source list, formatted citations and DOI import.

The list is mirrored to the key-value store under ``paper_{id}_sources``.
Formatting fills per-type templates as-is; author names and dates are
never normalized.
"""

from __future__ import annotations

import logging
import re
import time
from typing import Any, Callable, Optional

from researchflow.database.store import KeyValueStore, get_json, set_json, sources_key
from researchflow.errors import NotFoundError, ValidationError
from researchflow.models.source import SOURCE_TYPES, Source

logger = logging.getLogger(__name__)

STYLES = ("apa", "mla")

SAMPLE_SOURCES: list[dict[str, Any]] = [
    {
        "id": "1",
        "type": "journal",
        "title": "The Impact of AI on Educational Outcomes",
        "author": "Smith, J. & Johnson, M.",
        "year": "2023",
        "journal": "Journal of Educational Technology",
        "volume": "45",
        "pages": "123-145",
        "doi": "10.1016/j.edutech.2023.123456",
        "citationKey": "smith2023impact",
        "notes": "Key study on AI effectiveness in classroom settings",
    },
    {
        "id": "2",
        "type": "book",
        "title": "Modern Educational Approaches",
        "author": "Brown, A.",
        "year": "2022",
        "publisher": "Academic Press",
        "citationKey": "brown2022modern",
        "notes": "Comprehensive overview of contemporary teaching methods",
    },
]

# Fields a caller may set on a source
_EDITABLE = ("type", "title", "author", "year", "publisher", "journal", "volume", "pages", "url", "doi", "notes")


def citation_key(author: str, year: str, title: str) -> str:
    """First author's surname + year + first title word, lowercased."""
    return f"{author.lower().split(',')[0].strip()}{year}{title.lower().split(' ')[0]}"


def format_citation(source: Source, style: str = "apa") -> str:
    """Render *source* in APA or MLA.

    Raises:
        ValidationError: If *style* is not ``apa`` or ``mla``
    """
    if style not in STYLES:
        raise ValidationError(f"Unknown citation style: {style}")

    author, year, title = source.author, source.year, source.title
    journal = source.journal or ""
    volume = source.volume or ""
    pages = source.pages or ""
    publisher = source.publisher or ""
    url = source.url or ""

    if style == "apa":
        if source.type == "journal":
            doi = f"https://doi.org/{source.doi}" if source.doi else ""
            return f"{author} ({year}). {title}. *{journal}*, *{volume}*, {pages}. {doi}".strip()
        if source.type == "book":
            return f"{author} ({year}). *{title}*. {publisher}."
        if source.type == "website":
            return f"{author} ({year}). {title}. Retrieved from {url}"
        return f"{author} ({year}). {title}."

    if source.type == "journal":
        return f'{author} "{title}." *{journal}*, vol. {volume}, {year}, pp. {pages}.'
    if source.type == "book":
        return f"{author} *{title}*. {publisher}, {year}."
    if source.type == "website":
        return f'{author} "{title}." *Web*, {year}, {url}.'
    return f'{author} "{title}." {year}.'


def inline_citation(source: Source, style: str = "apa") -> str:
    """In-text citation: ``(Smith, 2023)`` for APA, ``(Smith)`` for MLA."""
    surname = source.author.split(",")[0].strip() or source.author.strip()
    if re.search(r"&| and ", source.author):
        surname += " et al."
    if style == "mla":
        return f"({surname})"
    return f"({surname}, {source.year})"


class CitationManager:
    """Sources of one paper."""

    def __init__(
        self,
        store: KeyValueStore,
        paper_id: str,
        resolve: Optional[Callable[[str], dict[str, Any]]] = None,
        seed_samples: bool = True,
    ):
        """
        Args:
            store: Backing key-value store
            paper_id: Paper the sources belong to
            resolve: DOI -> metadata callable used by ``import_by_doi``
            seed_samples: Start an untouched paper with the two sample sources
        """
        self.store = store
        self.paper_id = paper_id
        self._resolve = resolve
        self.seed_samples = seed_samples

    # ── Persistence ───────────────────────────────────────────────────

    def _write(self, sources: list[Source]) -> None:
        set_json(self.store, sources_key(self.paper_id), [s.to_dict() for s in sources])

    def list(self) -> list[Source]:
        """Return every source, newest first."""
        raw = get_json(self.store, sources_key(self.paper_id))
        if raw is None:
            sources = [Source.from_dict(s) for s in SAMPLE_SOURCES] if self.seed_samples else []
            self._write(sources)
            return sources
        if not isinstance(raw, list):
            return []
        return [Source.from_dict(s) for s in raw if isinstance(s, dict) and "id" in s]

    def get(self, source_id: str) -> Source:
        """Find a source by id.

        Raises:
            NotFoundError: If no source has *source_id*
        """
        source = next((s for s in self.list() if s.id == source_id), None)
        if source is None:
            raise NotFoundError(f"Source {source_id} not found")
        return source

    # ── Operations ────────────────────────────────────────────────────

    def add(self, draft: dict[str, Any]) -> Source:
        """Validate *draft* and prepend it as a new source.

        Raises:
            ValidationError: If title, author or year is blank
        """
        values = {"type": "journal", **_clean(draft)}
        _require(values)
        sources = self.list()
        source = Source.from_dict({
            **values,
            "id": _next_id(sources),
            "citationKey": citation_key(values["author"], values["year"], values["title"]),
        })
        self._write([source] + sources)
        logger.info("Added source %s (%s) to paper %s", source.id, source.citation_key, self.paper_id)
        return source

    def update(self, source_id: str, changes: dict[str, Any]) -> Source:
        """Apply *changes* and regenerate the citation key.

        Raises:
            NotFoundError: If no source has *source_id*
            ValidationError: If title, author or year would become blank
        """
        sources = self.list()
        index = next((i for i, s in enumerate(sources) if s.id == source_id), None)
        if index is None:
            raise NotFoundError(f"Source {source_id} not found")

        values = {**sources[index].to_dict(), **_clean(changes)}
        _require(values)
        values["citationKey"] = citation_key(values["author"], values["year"], values["title"])
        sources[index] = Source.from_dict(values)
        self._write(sources)
        return sources[index]

    def remove(self, source_id: str) -> None:
        """Delete a source.

        Raises:
            NotFoundError: If no source has *source_id*
        """
        sources = self.list()
        remaining = [s for s in sources if s.id != source_id]
        if len(remaining) == len(sources):
            raise NotFoundError(f"Source {source_id} not found")
        self._write(remaining)

    def search(self, term: str = "", type: str = "all") -> list[Source]:
        """Filter by a case-insensitive match on title or author, and by type."""
        needle = term.strip().lower()
        return [
            s for s in self.list()
            if (needle in s.title.lower() or needle in s.author.lower())
            and (type == "all" or s.type == type)
        ]

    def format(self, source: Source, style: str = "apa") -> str:
        return format_citation(source, style)

    def bibliography(self, style: str = "apa") -> list[str]:
        """Formatted entries of every source, sorted alphabetically."""
        return sorted((format_citation(s, style) for s in self.list()), key=str.lower)

    def inline_citation(self, source: Source, style: str = "apa") -> str:
        return inline_citation(source, style)

    def reference_entry(self, source: Source, style: str = "apa") -> str:
        """The line appended to the references section."""
        return format_citation(source, style)

    def import_by_doi(self, doi: str) -> dict[str, Any]:
        """Resolve *doi* into a prefilled draft for :meth:`add`.

        Raises:
            ValidationError: If the DOI is blank or no resolver is configured
        """
        doi = (doi or "").strip()
        if not doi:
            raise ValidationError("Please enter a DOI")
        if self._resolve is None:
            raise ValidationError("No DOI resolver configured")

        metadata = self._resolve(doi)
        authors = metadata.get("authors")
        return {
            "type": metadata.get("type") or "journal",
            "title": metadata.get("title") or "",
            "author": ", ".join(authors) if isinstance(authors, list) else authors or "",
            "year": metadata.get("year") or "",
            "journal": metadata.get("journal") or "",
            "volume": metadata.get("volume") or "",
            "pages": metadata.get("pages") or "",
            "url": metadata.get("url") or "",
            "doi": metadata.get("doi") or doi,
            "publisher": metadata.get("publisher") or "",
            "notes": f"Imported from DOI: {doi}",
        }


def _clean(draft: dict[str, Any]) -> dict[str, Any]:
    values = {k: draft[k] for k in _EDITABLE if k in draft and draft[k] is not None}
    for key, value in values.items():
        values[key] = str(value).strip()
    if "type" in values and values["type"] not in SOURCE_TYPES:
        raise ValidationError(f"Unknown source type: {values['type']}")
    return values


def _require(values: dict[str, Any]) -> None:
    if not values.get("title") or not values.get("author") or not values.get("year"):
        raise ValidationError("Title, author and year are required")


def _next_id(sources: list[Source]) -> str:
    taken = {s.id for s in sources}
    candidate = int(time.time() * 1000)
    while str(candidate) in taken:
        candidate += 1
    return str(candidate)
