"""Citation routes: DOI resolution and the per-paper source list."""

import logging
from typing import Optional

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from researchflow.errors import ValidationError
from researchflow.gui.state import state

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================================================
# DOI resolution
# ============================================================================


class ResolvePayload(BaseModel):
    """Request body for ``POST /api/citations/resolve``."""
    doi: Optional[str] = None


@router.post("/api/citations/resolve")
async def resolve_doi(body: ResolvePayload):
    """Resolve a DOI into bibliographic metadata."""
    try:
        metadata = await state.resolver.resolve(body.doi)
    except ValidationError as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    except Exception:
        logger.exception("DOI resolution failed for %s", body.doi)
        return JSONResponse({"error": "Failed to resolve DOI"}, status_code=500)
    return JSONResponse({"metadata": metadata})


# ============================================================================
# Sources  (/api/papers/{paper_id}/sources)
# ============================================================================


class SourcePayload(BaseModel):
    """Request body for creating / updating a source."""
    type: Optional[str] = None
    title: Optional[str] = None
    author: Optional[str] = None
    year: Optional[str] = None
    publisher: Optional[str] = None
    journal: Optional[str] = None
    volume: Optional[str] = None
    pages: Optional[str] = None
    url: Optional[str] = None
    doi: Optional[str] = None
    notes: Optional[str] = None


@router.get("/api/papers/{paper_id}/sources")
async def list_sources(
    paper_id: str,
    q: str = Query("", description="Search term over title and author"),
    type: str = Query("all", description="Source type filter"),
    style: str = Query("apa", description="Citation style for the formatted entries"),
):
    """Return the paper's sources with their formatted citations."""
    state.repo.get(paper_id)
    manager = state.citations(paper_id)
    return JSONResponse([
        {**s.to_dict(), "formatted": manager.format(s, style), "inline": manager.inline_citation(s, style)}
        for s in manager.search(q, type)
    ])


@router.post("/api/papers/{paper_id}/sources")
async def create_source(paper_id: str, body: SourcePayload):
    """Add a source (title, author and year are required)."""
    state.repo.get(paper_id)
    source = state.citations(paper_id).add(body.model_dump(exclude_none=True))
    return JSONResponse(source.to_dict(), status_code=201)


@router.get("/api/papers/{paper_id}/bibliography")
async def bibliography(paper_id: str, style: str = Query("apa")):
    """Every source formatted in *style*, alphabetically."""
    state.repo.get(paper_id)
    return JSONResponse({"style": style, "entries": state.citations(paper_id).bibliography(style)})


@router.put("/api/papers/{paper_id}/sources/{source_id}")
async def update_source(paper_id: str, source_id: str, body: SourcePayload):
    """Edit a source; the citation key is regenerated."""
    source = state.citations(paper_id).update(source_id, body.model_dump(exclude_none=True))
    return JSONResponse(source.to_dict())


@router.delete("/api/papers/{paper_id}/sources/{source_id}")
async def delete_source(paper_id: str, source_id: str):
    state.citations(paper_id).remove(source_id)
    return JSONResponse({"ok": True})


@router.get("/api/papers/{paper_id}/sources/{source_id}/format")
async def format_source(paper_id: str, source_id: str, style: str = Query("apa")):
    """One source as a full reference, an inline citation and a reference entry."""
    manager = state.citations(paper_id)
    source = manager.get(source_id)
    return JSONResponse({
        "style": style,
        "citation": manager.format(source, style),
        "inline": manager.inline_citation(source, style),
        "entry": manager.reference_entry(source, style),
    })
