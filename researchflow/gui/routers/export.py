"""Export routes (stubs)."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from researchflow.gui.state import state

router = APIRouter()


@router.post("/api/export/pdf")
async def export_pdf():
    return JSONResponse(await state.exporter.export("pdf"))


@router.post("/api/export/docx")
async def export_docx():
    return JSONResponse(await state.exporter.export("docx"))
