"""FastAPI application for ResearchFlow."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from researchflow.config import Settings
from researchflow.errors import NotFoundError, ResearchFlowError, UnsupportedTaskError, ValidationError
from researchflow.gui.routers import ai, citations, common, export, papers
from researchflow.gui.state import init_state

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize services on startup."""
    init_state(Settings.load())
    yield


app = FastAPI(title="ResearchFlow", lifespan=lifespan)


@app.exception_handler(ResearchFlowError)
async def researchflow_error_handler(request: Request, exc: ResearchFlowError):
    """Map application errors onto ``{"error": message}`` responses."""
    if isinstance(exc, NotFoundError):
        status_code = 404
    elif isinstance(exc, (ValidationError, UnsupportedTaskError)):
        status_code = 400
    else:
        logger.error("Unhandled application error on %s: %s", request.url.path, exc)
        return JSONResponse({"error": "Internal server error"}, status_code=500)
    return JSONResponse({"error": str(exc)}, status_code=status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are a 400 with the first problem as the message."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid {field}: {first.get('msg', 'invalid value')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse({"error": message}, status_code=400)


app.include_router(common.router)
app.include_router(papers.router)
app.include_router(citations.router)
app.include_router(ai.router)
app.include_router(export.router)
