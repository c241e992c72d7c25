"""Bibliographic source model."""

from dataclasses import dataclass, fields
from typing import Any, Literal, Optional

SourceType = Literal["book", "journal", "website", "conference", "thesis", "other"]
SOURCE_TYPES: tuple[str, ...] = ("book", "journal", "website", "conference", "thesis", "other")


@dataclass
class Source:
    """A source in the citation manager."""

    id: str
    type: SourceType
    title: str
    author: str
    year: str
    citation_key: str = ""
    publisher: Optional[str] = None
    journal: Optional[str] = None
    volume: Optional[str] = None
    pages: Optional[str] = None
    url: Optional[str] = None
    doi: Optional[str] = None
    notes: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == "citation_key":
                data["citationKey"] = value
            elif value is not None:
                data[f.name] = value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Source":
        source_type = data.get("type") or "other"
        if source_type not in SOURCE_TYPES:
            source_type = "other"
        return cls(
            id=str(data["id"]),
            type=source_type,
            title=str(data.get("title", "")),
            author=str(data.get("author", "")),
            year=str(data.get("year", "")),
            citation_key=str(data.get("citationKey", "")),
            publisher=data.get("publisher") or None,
            journal=data.get("journal") or None,
            volume=data.get("volume") or None,
            pages=data.get("pages") or None,
            url=data.get("url") or None,
            doi=data.get("doi") or None,
            notes=data.get("notes") or None,
        )
