"""
Onboarding API Endpoints.

One router for the whole wizard. The session id comes from the browser-session
cookie (created on first request) or, when a client resumes with a shared
identifier, from the X-Session-Id header.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response
from pydantic import BaseModel, Field

from .controller import StepState
from .errors import NoPreviousStep, SubmissionInProgress, ValidationError
from .forms import get_form_options
from .session import CookieSessionStorage, get_or_create_session_id
from .steps import StepDefinition, get_step
from .wizard import OnboardingWizard, WizardRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/onboarding", tags=["onboarding"])

# In-memory wizards (keyed by session id, bounded)
wizards = WizardRegistry()

IN_PROGRESS_DETAIL = "A submission for this step is in progress"


# =============================================================================
# Dependencies
# =============================================================================


def get_registry() -> WizardRegistry:
    return wizards


def get_session_id(
    request: Request,
    response: Response,
    x_session_id: str | None = Header(None),
) -> str:
    """
    Resolve the anonymous session id.

    New ids are set as a cookie without Max-Age, so the browser drops it
    when the browsing session ends.
    """
    if x_session_id and x_session_id.strip():
        return x_session_id.strip()

    from intake.config import settings

    storage = CookieSessionStorage(request.cookies)
    session_id = get_or_create_session_id(storage, settings.session_cookie_name)
    for key, value in storage.pending.items():
        response.set_cookie(key=key, value=value, httponly=True, samesite="lax")
    return session_id


def get_wizard(
    session_id: str = Depends(get_session_id),
    registry: WizardRegistry = Depends(get_registry),
) -> OnboardingWizard:
    return registry.get(session_id)


def _http_error(response: Response, status_code: int, detail: Any) -> HTTPException:
    """
    HTTPException that keeps a newly issued session cookie.

    Error responses are built from scratch, so the Set-Cookie header of the
    injected response has to travel with the exception.
    """
    headers = None
    cookie = response.headers.get("set-cookie")
    if cookie:
        headers = {"set-cookie": cookie}
    return HTTPException(status_code=status_code, detail=detail, headers=headers)


def _resolve_step(step: str, response: Response) -> StepDefinition:
    try:
        return get_step(step)
    except KeyError:
        raise _http_error(response, 404, f"Unknown step: {step}")


# =============================================================================
# Request Models
# =============================================================================


class StepValuesRequest(BaseModel):
    """Form values for one step, in form shape."""
    values: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Endpoints: Session & State
# =============================================================================


@router.get("/session")
async def get_session(session_id: str = Depends(get_session_id)):
    """Get (or create) the anonymous session id."""
    return {"session_id": session_id}


@router.get("/state")
async def get_onboarding_state(wizard: OnboardingWizard = Depends(get_wizard)):
    """Current step and everything entered so far in this session."""
    return wizard.snapshot()


@router.get("/options")
async def get_options():
    """Choice lists for rendering the forms."""
    return get_form_options()


# =============================================================================
# Endpoints: Steps
# =============================================================================


@router.get("/steps/{step}")
async def load_step(
    step: str,
    response: Response,
    wizard: OnboardingWizard = Depends(get_wizard),
):
    """Open a step and hydrate it from the latest saved row."""
    definition = _resolve_step(step, response)
    try:
        outcome = await wizard.enter(definition.step)
    except SubmissionInProgress:
        raise _http_error(response, 409, IN_PROGRESS_DETAIL)

    return {**outcome.to_dict(), "title": definition.title}


@router.post("/steps/{step}/submit")
async def submit_step(
    step: str,
    request: StepValuesRequest,
    response: Response,
    wizard: OnboardingWizard = Depends(get_wizard),
):
    """Validate and save a step, then advance."""
    definition = _resolve_step(step, response)
    try:
        outcome = await wizard.submit(definition.step, request.values)
        outcome.raise_for_errors()
    except SubmissionInProgress:
        raise _http_error(response, 409, IN_PROGRESS_DETAIL)
    except ValidationError as e:
        logger.info(f"Rejected {definition.key} for {wizard.session_id}: {e}")
        raise _http_error(
            response,
            422,
            {
                "message": "Please fix the highlighted fields.",
                "field_errors": e.field_errors,
                "warnings": outcome.warnings,
            },
        )

    if outcome.state is StepState.FAILED:
        raise _http_error(response, 503, outcome.notice)

    return outcome.to_dict()


@router.post("/steps/{step}/back")
async def back_step(
    step: str,
    request: StepValuesRequest,
    response: Response,
    wizard: OnboardingWizard = Depends(get_wizard),
):
    """Save what is on screen (best-effort) and go to the previous step."""
    definition = _resolve_step(step, response)
    try:
        outcome = await wizard.back(definition.step, request.values)
    except NoPreviousStep:
        raise _http_error(response, 400, f"{definition.key} is the first step")
    except SubmissionInProgress:
        raise _http_error(response, 409, IN_PROGRESS_DETAIL)

    return outcome.to_dict()
