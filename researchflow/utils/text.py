"""Text helpers for drafts, previews and DOIs."""

import html
import re

from bs4 import BeautifulSoup

# DOI regex pattern: 10.XXXX/... format
DOI_RE = re.compile(r"\b10\.\d{4,9}/[-._;()/:A-Z0-9]+\b", re.IGNORECASE)

_TAG_RE = re.compile(r"<[a-zA-Z/][^>]*>")
_MARKDOWN_RE = re.compile(r"(\*\*|__|\*|_|`|^#+\s*|^>\s*|^\s*[-*•]\s+|^\s*\d+\.\s+)", re.MULTILINE)
_LINK_RE = re.compile(r"\[([^\]]*)\]\([^)]*\)")
_SENTENCE_RE = re.compile(r"(?<=[.!?])\s+(?=[A-Z0-9\"'(\[])")

PREVIEW_LENGTH = 100


def normalize_doi(doi: str) -> str:
    """Normalize DOI by removing URL prefixes and surrounding whitespace."""
    doi = doi.strip()
    for prefix in (
        "https://doi.org/",
        "http://doi.org/",
        "https://dx.doi.org/",
        "http://dx.doi.org/",
        "doi:",
    ):
        if doi.lower().startswith(prefix):
            doi = doi[len(prefix):]
    return doi.strip()


def plain_text(text: str) -> str:
    """Reduce a draft (markdown, possibly with pasted HTML) to plain text.

    Args:
        text: Raw section content

    Returns:
        Text with tags, markdown markers and link targets removed
    """
    if not text:
        return ""
    if _TAG_RE.search(text):
        text = BeautifulSoup(text, "html.parser").get_text(" ")
    text = html.unescape(text)
    text = _LINK_RE.sub(r"\1", text)
    text = _MARKDOWN_RE.sub("", text)
    return text


def word_count(text: str) -> int:
    """Count whitespace-separated words of the plain text."""
    return len(plain_text(text).split())


def split_sentences(text: str) -> list[str]:
    """Split plain text into sentences (period / question / exclamation)."""
    flat = " ".join(plain_text(text).split())
    if not flat:
        return []
    return [s.strip() for s in _SENTENCE_RE.split(flat) if s.strip()]


def make_preview(text: str, length: int = PREVIEW_LENGTH) -> str:
    """Return the first *length* characters, with ``...`` when truncated."""
    if len(text) <= length:
        return text
    return text[:length] + "..."
