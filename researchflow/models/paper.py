"""Paper and section-version data models.

Records serialize with the camelCase keys the dashboard stores
(``createdAt``, ``wordCount`` ...) so that the persisted JSON matches
what the browser client writes.
"""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class Paper:
    """A paper on the dashboard."""

    id: str
    title: str
    topic: str
    type: str
    created_at: str
    last_modified: str
    progress: int = 0
    due_date: Optional[str] = None
    word_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "topic": self.topic,
            "type": self.type,
            "createdAt": self.created_at,
            "lastModified": self.last_modified,
            "progress": self.progress,
            "wordCount": self.word_count,
        }
        if self.due_date:
            data["dueDate"] = self.due_date
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Paper":
        return cls(
            id=str(data["id"]),
            title=str(data.get("title", "")),
            topic=str(data.get("topic", "")),
            type=str(data.get("type", "")),
            created_at=str(data.get("createdAt", "")),
            last_modified=str(data.get("lastModified", "")),
            progress=int(data.get("progress", 0) or 0),
            due_date=data.get("dueDate") or None,
            word_count=int(data.get("wordCount", 0) or 0),
        )


@dataclass
class Version:
    """A timestamped snapshot of a section draft."""

    id: str
    timestamp: str
    content: str
    preview: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "content": self.content,
            "preview": self.preview,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Version":
        return cls(
            id=str(data["id"]),
            timestamp=str(data.get("timestamp", "")),
            content=str(data.get("content", "")),
            preview=str(data.get("preview", "")),
        )
