from fastapi import APIRouter, Response
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, Field

from pocketnotes.web.deps import (
    AppDep,
    ConfigDep,
    CurrentSessionDep,
    SessionIdDep,
    clear_session_cookie,
    set_session_cookie,
)
from pocketnotes.web.openapi import ErrorResponse

router = APIRouter(tags=["auth"])


class CsrfTokenResponse(BaseModel):
    """Fresh CSRF token."""

    token: str = Field(..., description="Send as the X-CSRF-Token header on POST, PUT and DELETE requests")


@router.get(
    "/login",
    summary="Start login",
    description="Redirect to the identity provider. Creates a session if the browser has none.",
    operation_id="login",
    status_code=302,
    response_class=RedirectResponse,
    responses={302: {"description": "Redirect to the identity provider"}},
)
async def login(app: AppDep, config: ConfigDep, session_id: SessionIdDep) -> RedirectResponse:
    session_id, url = await app.begin_login(session_id)
    response = RedirectResponse(url, status_code=302)
    response.headers["Cache-Control"] = "no-store"
    set_session_cookie(response, session_id, config)
    return response


@router.get(
    "/callback",
    summary="Identity provider callback",
    description="Complete the login started by /login and redirect to the home page.",
    operation_id="loginCallback",
    status_code=302,
    response_class=RedirectResponse,
    responses={
        302: {"description": "Logged in, redirect to home"},
        502: {"model": ErrorResponse, "description": "Identity provider or claims failure"},
    },
)
async def callback(
    app: AppDep,
    config: ConfigDep,
    session_id: SessionIdDep,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
) -> RedirectResponse:
    await app.complete_login(session_id, code, state, error)
    response = RedirectResponse("/", status_code=302)
    if session_id:
        set_session_cookie(response, session_id, config)
    return response


@router.get(
    "/logout",
    summary="End session",
    description="Destroy the server-side session, clear the cookie and redirect to the home page.",
    operation_id="logout",
    status_code=302,
    response_class=RedirectResponse,
    responses={302: {"description": "Logged out, redirect to home"}},
)
async def logout(app: AppDep, config: ConfigDep, session_id: SessionIdDep) -> RedirectResponse:
    await app.logout(session_id)
    response = RedirectResponse("/", status_code=302)
    clear_session_cookie(response, config)
    return response


@router.get(
    "/csrf",
    summary="Issue CSRF token",
    description="Issue a new CSRF token for the current session. Any previously issued token stops working.",
    operation_id="getCsrfToken",
    responses={
        200: {"description": "New CSRF token"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_csrf_token(app: AppDep, session: CurrentSessionDep, response: Response) -> CsrfTokenResponse:
    token = await app.refresh_csrf_token(session)
    response.headers["Cache-Control"] = "no-store"
    return CsrfTokenResponse(token=token)
