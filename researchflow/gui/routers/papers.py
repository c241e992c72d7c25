"""Paper routes: dashboard list, paper settings, section drafts and versions."""

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from researchflow.gui.state import state
from researchflow.services.sections import SECTIONS, get_section, outline_summary, section_word_total

router = APIRouter()


# ============================================================================
# Papers
# ============================================================================


class PaperPayload(BaseModel):
    """Request body of the create-paper form."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    topic: str = ""
    type: str = ""
    due_date: Optional[str] = Field(None, alias="dueDate")
    description: Optional[str] = None


class PaperUpdatePayload(BaseModel):
    """Request body of the paper settings tab."""

    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    topic: Optional[str] = None
    due_date: Optional[str] = Field(None, alias="dueDate")


@router.get("/api/papers")
async def list_papers(q: str = Query("", description="Search over title and topic")):
    return JSONResponse([p.to_dict() for p in state.repo.search(q)])


@router.post("/api/papers")
async def create_paper(body: PaperPayload):
    """Create a paper (title, topic and type are required)."""
    paper = state.repo.create(
        title=body.title,
        topic=body.topic,
        type=body.type,
        due_date=body.due_date,
        description=body.description,
    )
    return JSONResponse(paper.to_dict(), status_code=201)


@router.get("/api/papers/{paper_id}")
async def get_paper(paper_id: str):
    return JSONResponse(state.repo.get(paper_id).to_dict())


@router.put("/api/papers/{paper_id}")
async def update_paper(paper_id: str, body: PaperUpdatePayload):
    """Persist settings-tab edits (title, topic, due date)."""
    paper = state.repo.update(paper_id, title=body.title, topic=body.topic, due_date=body.due_date)
    return JSONResponse(paper.to_dict())


@router.get("/api/papers/{paper_id}/outline")
async def paper_outline(paper_id: str):
    """Per-section word counts and status for the outline panel."""
    state.repo.get(paper_id)
    return JSONResponse(outline_summary(state.drafts, paper_id))


# ============================================================================
# Section registry
# ============================================================================


@router.get("/api/sections")
async def list_sections():
    return JSONResponse([asdict(s) for s in SECTIONS])


# ============================================================================
# Section drafts & versions
# ============================================================================


class SectionPayload(BaseModel):
    """Request body for saving a section draft."""
    content: str


@router.get("/api/papers/{paper_id}/sections/{section_id}")
async def get_section_draft(paper_id: str, section_id: str):
    section = get_section(section_id)
    return JSONResponse({
        "paperId": paper_id,
        "sectionId": section.id,
        "title": section.title,
        "content": state.drafts.load(paper_id, section.id),
    })


@router.put("/api/papers/{paper_id}/sections/{section_id}")
async def save_section_draft(paper_id: str, section_id: str, body: SectionPayload):
    """Save a draft, snapshot it, and refresh the paper's word count."""
    section = get_section(section_id)
    version = state.drafts.save(paper_id, section.id, body.content)
    paper = state.repo.record_save(paper_id, section_word_total(state.drafts, paper_id))
    return JSONResponse({
        "saved": True,
        "version": version.to_dict() if version else None,
        "wordCount": paper.word_count if paper else None,
    })


@router.get("/api/papers/{paper_id}/sections/{section_id}/versions")
async def list_section_versions(paper_id: str, section_id: str):
    section = get_section(section_id)
    return JSONResponse([v.to_dict() for v in state.drafts.list_versions(paper_id, section.id)])


@router.post("/api/papers/{paper_id}/sections/{section_id}/versions/{version_id}/restore")
async def restore_section_version(paper_id: str, section_id: str, version_id: str):
    """Roll a section back to a snapshot."""
    section = get_section(section_id)
    content = state.drafts.restore(paper_id, section.id, version_id)
    state.repo.record_save(paper_id, section_word_total(state.drafts, paper_id))
    return JSONResponse({"content": content})
