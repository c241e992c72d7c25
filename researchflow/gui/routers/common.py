"""Common routes: HTML pages, mock auth, theme, LLM model registry."""

from dataclasses import asdict

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from researchflow.config import load_llm_models
from researchflow.errors import NotFoundError
from researchflow.gui.state import state, templates
from researchflow.services.ai_tasks import NO_TEXT_TASKS, REPLACEMENT_TASKS
from researchflow.services.dispatcher import EMPTY_TEXT_NOTICE, FAILURE_NOTICE
from researchflow.services.sections import SECTIONS, outline_summary

router = APIRouter()


# ============================================================================
# Pages
# ============================================================================


@router.get("/", response_class=HTMLResponse)
async def index(request: Request):
    """Dashboard page."""
    papers = state.repo.list()
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "papers": papers,
            "user": state.session.user,
            "theme": state.session.theme,
        },
    )


@router.get("/editor/{paper_id}", response_class=HTMLResponse)
async def editor(request: Request, paper_id: str):
    """Editor shell: outline, section list and source count."""
    try:
        paper = state.repo.get(paper_id)
    except NotFoundError:
        return templates.TemplateResponse(
            request,
            "index.html",
            {
                "papers": state.repo.list(),
                "user": state.session.user,
                "theme": state.session.theme,
                "notice": "The paper you're looking for doesn't exist.",
            },
            status_code=404,
        )
    return templates.TemplateResponse(
        request,
        "editor.html",
        {
            "paper": paper,
            "sections": SECTIONS,
            "outline": outline_summary(state.drafts, paper_id),
            "sources": state.citations(paper_id).list(),
            "no_text_tasks": sorted(NO_TEXT_TASKS),
            "replacement_tasks": sorted(REPLACEMENT_TASKS),
            "empty_text_notice": EMPTY_TEXT_NOTICE,
            "failure_notice": FAILURE_NOTICE,
            "theme": state.session.theme,
        },
    )


# ============================================================================
# Auth (mock)
# ============================================================================


class LoginPayload(BaseModel):
    """Request body for signing in."""
    email: str = ""
    password: str = ""


class SignupPayload(BaseModel):
    """Request body for creating an account."""

    model_config = ConfigDict(populate_by_name=True)

    email: str = ""
    password: str = ""
    name: str = ""
    accept_terms: bool = Field(False, alias="acceptTerms")


@router.post("/api/auth/login")
async def login(body: LoginPayload):
    return JSONResponse(state.session.login(body.email, body.password).to_dict())


@router.post("/api/auth/signup")
async def signup(body: SignupPayload):
    user = state.session.signup(body.email, body.password, body.name, body.accept_terms)
    return JSONResponse(user.to_dict(), status_code=201)


@router.post("/api/auth/logout")
async def logout():
    state.session.logout()
    return JSONResponse({"ok": True})


@router.get("/api/auth/me")
async def me():
    """Return the signed-in user, or ``{"user": null}``."""
    user = state.session.user
    return JSONResponse({"user": user.to_dict() if user else None})


# ============================================================================
# Theme
# ============================================================================


@router.get("/api/theme")
async def get_theme():
    return JSONResponse({"theme": state.session.theme})


@router.post("/api/theme/toggle")
async def toggle_theme():
    return JSONResponse({"theme": state.session.toggle_theme()})


# ============================================================================
# LLM Model Registry
# ============================================================================


@router.get("/api/llm-models")
async def get_llm_models():
    """Return the built-in provider registry and the current AI mode."""
    return JSONResponse({
        "mode": state.settings.ai_mode,
        "models": [asdict(m) for m in load_llm_models()],
    })
