"""Section drafts and their capped version history."""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from researchflow.database.store import (
    KeyValueStore,
    get_json,
    section_key,
    set_json,
    versions_key,
)
from researchflow.errors import NotFoundError
from researchflow.models.paper import Version
from researchflow.utils.text import make_preview

logger = logging.getLogger(__name__)

MAX_VERSIONS = 10
# Drafts this short or shorter are saved without a snapshot
MIN_SNAPSHOT_LENGTH = 10


class DraftStore:
    """Current text and version snapshots per (paper, section)."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def save(self, paper_id: str, section_id: str, text: str) -> Optional[Version]:
        """Persist *text* and snapshot it when it is long enough.

        Args:
            paper_id: Paper identifier
            section_id: Section identifier
            text: Full section content

        Returns:
            The new version when one was recorded, None otherwise
        """
        self.store.set(section_key(paper_id, section_id), text)
        if len(text) <= MIN_SNAPSHOT_LENGTH:
            return None

        version = Version(
            id=uuid.uuid4().hex[:8],
            timestamp=datetime.now(timezone.utc).isoformat(),
            content=text,
            preview=make_preview(text),
        )
        versions = [version] + self.list_versions(paper_id, section_id)
        set_json(
            self.store,
            versions_key(paper_id, section_id),
            [v.to_dict() for v in versions[:MAX_VERSIONS]],
        )
        return version

    def load(self, paper_id: str, section_id: str) -> str:
        """Return the saved text, or an empty string."""
        return self.store.get(section_key(paper_id, section_id)) or ""

    def list_versions(self, paper_id: str, section_id: str) -> list[Version]:
        """Return snapshots, most recent first."""
        raw = get_json(self.store, versions_key(paper_id, section_id), [])
        if not isinstance(raw, list):
            return []
        return [Version.from_dict(v) for v in raw if isinstance(v, dict) and "id" in v]

    def restore(self, paper_id: str, section_id: str, version_id: str) -> str:
        """Roll a section back to a snapshot and save it as the current text.

        Raises:
            NotFoundError: If no snapshot has *version_id*
        """
        version = next(
            (v for v in self.list_versions(paper_id, section_id) if v.id == version_id),
            None,
        )
        if version is None:
            raise NotFoundError(f"Version {version_id} not found")
        self.save(paper_id, section_id, version.content)
        logger.info("Restored %s/%s to version %s", paper_id, section_id, version_id)
        return version.content

    def delete_paper(self, paper_id: str) -> int:
        """Remove every draft and version key of a paper.

        Returns:
            Number of keys deleted
        """
        keys = self.store.keys(f"paper_{paper_id}_section_")
        for key in keys:
            self.store.delete(key)
        return len(keys)
