"""
REST API Routes for Melodex.

Provides REST endpoints for the browser page:
- /api/status: Server status
- /api/profile*: Onboarding form (load, submit, live completeness check)
- /api/session*: Search session state and typed query
- /api/search*: Manual search and clear
- /api/popular/refresh: On-demand popular-tracks fetch

Session and search routes are gated: they answer 403 until a profile exists.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from melodex import __version__
from melodex.core import ValidationError
from melodex.core.profile import GENRES, Gender, is_complete

if TYPE_CHECKING:
    from melodex.core.profile import ProfileGate
    from melodex.core.search import SearchController

logger = logging.getLogger(__name__)

router = APIRouter(tags=["api"])


def register_api_routes(
    app,
    gate: ProfileGate,
    controller: SearchController,
) -> None:
    """
    Register API routes with the FastAPI app.

    Args:
        app: FastAPI application instance
        gate: ProfileGate guarding the search routes
        controller: SearchController serving session and search routes
    """
    app.state.gate = gate
    app.state.controller = controller
    app.include_router(router)


def _gate(request: Request) -> ProfileGate:
    return request.app.state.gate


def _ready_controller(request: Request) -> SearchController:
    """Return the controller, or 403 while the user is still onboarding."""
    if not _gate(request).is_ready:
        raise HTTPException(status_code=403, detail="Profile required")
    return request.app.state.controller


def _string_field(body: dict[str, Any], name: str) -> str | None:
    value = body.get(name)
    if value is not None and not isinstance(value, str):
        raise HTTPException(status_code=400, detail=f"'{name}' must be a string")
    return value


# =============================================================================
# Server Status
# =============================================================================


@router.get("/api/status")
async def server_status(request: Request) -> dict[str, Any]:
    """Get server status and basic info."""
    controller: SearchController = request.app.state.controller
    return {
        "server": "melodex",
        "version": __version__,
        "gate": _gate(request).state.value,
        "polling": controller.is_polling,
    }


# =============================================================================
# Profile Endpoints
# =============================================================================


@router.get("/api/profile")
async def get_profile(request: Request) -> dict[str, Any]:
    """Report whether a profile has been submitted."""
    profile = _gate(request).profile
    if profile is None:
        return {"present": False}
    return {"present": True, "profile": profile.to_dict()}


@router.post("/api/profile", status_code=201, response_model=None)
async def submit_profile(request: Request, body: dict[str, Any]) -> dict[str, Any] | JSONResponse:
    """Submit the onboarding form."""
    try:
        profile = await _gate(request).submit_async(body)
    except ValidationError as e:
        return JSONResponse(
            status_code=422,
            content={"message": e.message, "fields": e.fields},
        )

    return {"present": True, "profile": profile.to_dict()}


@router.post("/api/profile/check")
async def check_profile(body: dict[str, Any]) -> dict[str, Any]:
    """Live completeness check used to enable the submit button."""
    return {"complete": is_complete(body)}


@router.get("/api/profile/options")
async def profile_options() -> dict[str, Any]:
    """Choices for the gender and genre selects."""
    return {
        "genders": [g.value for g in Gender],
        "genres": list(GENRES),
    }


# =============================================================================
# Session / Search Endpoints
# =============================================================================


@router.get("/api/session")
async def get_session(request: Request) -> dict[str, Any]:
    """Current query, loading flag and results."""
    controller = _ready_controller(request)
    return controller.session.to_dict()


@router.put("/api/session/query")
async def set_query(request: Request, body: dict[str, Any]) -> dict[str, Any]:
    """Record typed text without searching."""
    controller = _ready_controller(request)
    controller.set_query(_string_field(body, "query") or "")
    return controller.session.to_dict()


@router.post("/api/search")
async def search(request: Request, body: dict[str, Any] | None = None) -> dict[str, Any]:
    """Run a manual search. Without a body the current session query is used."""
    controller = _ready_controller(request)
    query = _string_field(body or {}, "query")
    await controller.fetch_by_search(query)
    return controller.session.to_dict()


@router.post("/api/search/clear")
async def clear_search(request: Request) -> dict[str, Any]:
    """Clear the query text; results stay."""
    controller = _ready_controller(request)
    controller.clear_query()
    return controller.session.to_dict()


@router.post("/api/popular/refresh")
async def refresh_popular(request: Request) -> dict[str, Any]:
    """Fetch popular tracks now, outside the timer."""
    controller = _ready_controller(request)
    await controller.fetch_popular()
    return controller.session.to_dict()
