"""Crossref works API: DOI lookup for the citation manager's import form.

Only used when ``doi_resolver: crossref`` is configured; the default
resolver answers from fixed records.
"""

import logging
from typing import Any, Optional

import requests

from researchflow.utils.text import normalize_doi

logger = logging.getLogger(__name__)

WORKS_URL = "https://api.crossref.org/works/{doi}"
MAX_AUTHORS = 20

# Crossref work type -> source type
SOURCE_TYPE_BY_WORK = {
    "journal-article": "journal",
    "book": "book",
    "monograph": "book",
    "edited-book": "book",
    "book-chapter": "book",
    "proceedings-article": "conference",
    "dissertation": "thesis",
    "posted-content": "website",
}

_DATE_FIELDS = ("published-print", "published-online", "issued", "created")


def _first(value: Any) -> str:
    """Crossref wraps titles in lists; take the first entry."""
    if isinstance(value, list):
        value = value[0] if value else ""
    return str(value or "").strip()


def _author_name(author: dict[str, Any]) -> str:
    """``Family, G. M.``, or whichever part Crossref provides."""
    family = (author.get("family") or "").strip()
    given = (author.get("given") or "").replace("-", " ").split()
    initials = " ".join(f"{name[0]}." for name in given)
    if family and initials:
        return f"{family}, {initials}"
    return family or (author.get("name") or "").strip() or " ".join(given)


def _year(work: dict[str, Any]) -> str:
    for field in _DATE_FIELDS:
        parts = (work.get(field) or {}).get("date-parts") or [[]]
        if parts[0] and parts[0][0]:
            return str(parts[0][0])
    return ""


class CrossrefService:
    """Looks up DOIs against Crossref."""

    def __init__(self, contact_email: Optional[str] = None, timeout: float = 20):
        """
        Args:
            contact_email: Sent in the User-Agent to join Crossref's polite pool
            timeout: Request timeout in seconds
        """
        self.timeout = timeout
        self.session = requests.Session()
        if contact_email:
            self.session.headers["User-Agent"] = f"researchflow/1.0 (mailto:{contact_email})"

    def lookup(self, doi: str) -> dict[str, Any]:
        """Fetch the work record for *doi*.

        Raises:
            requests.RequestException: On network errors or a non-2xx status
        """
        url = WORKS_URL.format(doi=requests.utils.quote(normalize_doi(doi)))
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        logger.info("Crossref lookup %s: HTTP %d", doi, response.status_code)
        return response.json().get("message") or {}

    @staticmethod
    def extract_metadata(work: dict[str, Any], doi: str) -> dict[str, Any]:
        """Reduce a work record to the fields of a source draft."""
        authors = [
            name
            for name in (_author_name(a) for a in (work.get("author") or [])[:MAX_AUTHORS] if isinstance(a, dict))
            if name
        ]
        return {
            "title": _first(work.get("title")),
            "authors": authors,
            "journal": _first(work.get("container-title")),
            "year": _year(work),
            "volume": str(work.get("volume") or ""),
            "pages": str(work.get("page") or ""),
            "publisher": str(work.get("publisher") or ""),
            "url": f"https://doi.org/{doi}",
            "doi": doi,
            "type": SOURCE_TYPE_BY_WORK.get(work.get("type", ""), "other"),
        }
