"""AI writing-action route."""

import logging
from typing import Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from researchflow.errors import UnsupportedTaskError
from researchflow.gui.state import state
from researchflow.services.ai_service import AIRequest
from researchflow.services.ai_tasks import MAX_WORD_TARGET

logger = logging.getLogger(__name__)

router = APIRouter()


class AIPayload(BaseModel):
    """Request body for ``POST /api/ai``.

    The section text may arrive as ``content`` or ``sectionText``.
    """

    model_config = ConfigDict(populate_by_name=True)

    task: Optional[str] = None
    content: Optional[str] = None
    section_text: Optional[str] = Field(None, alias="sectionText")
    word_target: Optional[int] = Field(None, alias="wordTarget", ge=1, le=MAX_WORD_TARGET)
    field: Optional[str] = None
    notes: Optional[str] = None


@router.post("/api/ai")
async def ai_action(body: AIPayload):
    """Answer one AI task with fixtures or the hosted-LLM relay."""
    if not body.task:
        return JSONResponse({"error": "Missing task"}, status_code=400)

    request = AIRequest(
        task=body.task,
        content=body.content or body.section_text or "",
        word_target=body.word_target,
        field=body.field,
        notes=body.notes,
    )
    try:
        result = await state.ai.run(request)
    except UnsupportedTaskError as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    except Exception:
        logger.exception("AI task %s failed", body.task)
        return JSONResponse({"error": "Failed to get AI response"}, status_code=500)
    return JSONResponse(result)
