"""Application state and templates."""

import os
from typing import Optional

from fastapi.templating import Jinja2Templates

from researchflow import __version__
from researchflow.config import Settings
from researchflow.database.drafts import DraftStore
from researchflow.database.repository import PaperRepository
from researchflow.database.store import KeyValueStore, SQLiteKeyValueStore
from researchflow.services.ai_service import AIService
from researchflow.services.citation_service import CitationManager
from researchflow.services.doi_resolver import DOIResolver
from researchflow.services.export_service import PaperExporter
from researchflow.services.session import Session


# ============================================================================
# Global State
# ============================================================================


class AppState:
    """Holds every runtime service; filled in by :func:`init_state` at startup."""

    settings: Settings
    store: KeyValueStore
    repo: PaperRepository
    drafts: DraftStore
    session: Session
    ai: AIService
    resolver: DOIResolver
    exporter: PaperExporter

    def citations(self, paper_id: str) -> CitationManager:
        """Citation manager for one paper (sources are stored per paper)."""
        return CitationManager(
            self.store,
            paper_id,
            seed_samples=self.settings.seed_samples,
        )


state = AppState()


def init_state(settings: Settings, store: Optional[KeyValueStore] = None) -> AppState:
    """Build the services from *settings* into the module-level ``state``."""
    state.settings = settings
    state.store = store if store is not None else SQLiteKeyValueStore(settings.db_path)
    state.repo = PaperRepository(state.store, seed_samples=settings.seed_samples)
    state.drafts = DraftStore(state.store)
    state.session = Session(state.store)
    state.ai = AIService(settings)
    state.resolver = DOIResolver(
        mode=settings.doi_resolver,
        delay=settings.resolve_delay,
        contact_email=settings.contact_email,
    )
    state.exporter = PaperExporter(delay=settings.export_delay)
    return state


# ============================================================================
# Templates & Filters
# ============================================================================

base_dir = os.path.dirname(__file__)
templates = Jinja2Templates(directory=os.path.join(base_dir, "templates"))
templates.env.globals["version"] = __version__


def format_date(date_str: str) -> str:
    """Format a ``YYYY-MM-DD`` string to 'Feb 11, 2026' style."""
    if not date_str:
        return ""
    try:
        from datetime import date

        return date.fromisoformat(date_str[:10]).strftime("%b %d, %Y")
    except ValueError:
        return date_str[:10]


templates.env.filters["format_date"] = format_date
