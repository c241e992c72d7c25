"""Service layer."""

from researchflow.services.ai_service import AIRequest, AIService
from researchflow.services.citation_service import CitationManager, format_citation
from researchflow.services.crossref_service import CrossrefService
from researchflow.services.dispatcher import AIDispatcher, DispatchResult
from researchflow.services.doi_resolver import DOIResolver
from researchflow.services.events import EventBus, Topic
from researchflow.services.export_service import PaperExporter
from researchflow.services.session import Session
from researchflow.services.workspace import PaperWorkspace

__all__ = [
    "AIDispatcher",
    "AIRequest",
    "AIService",
    "CitationManager",
    "CrossrefService",
    "DOIResolver",
    "DispatchResult",
    "EventBus",
    "PaperExporter",
    "PaperWorkspace",
    "Session",
    "Topic",
    "format_citation",
]
