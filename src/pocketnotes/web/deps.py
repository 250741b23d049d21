import json
from typing import Annotated, Any, cast

from fastapi import Depends, Header, Request, Response
from fastapi.security import APIKeyCookie

from pocketnotes.app import App
from pocketnotes.config import Config
from pocketnotes.core.modules.session.models import Session, SessionId
from pocketnotes.errors import PayloadTooLargeError, ValidationError

SESSION_COOKIE_NAME = "pocketnotes.sid"
CSRF_HEADER_NAME = "X-CSRF-Token"
MUTATING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})

# Security schemes
cookie_scheme = APIKeyCookie(name=SESSION_COOKIE_NAME, auto_error=False)


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


async def get_config(request: Request) -> Config:
    return cast(Config, request.app.state.config)


async def get_session_id(
    session_cookie: Annotated[str | None, Depends(cookie_scheme)] = None,
) -> SessionId | None:
    """Opaque session id from the cookie, not validated."""
    return SessionId(session_cookie) if session_cookie else None


def set_session_cookie(response: Response, session_id: SessionId, config: Config) -> None:
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=session_id,
        httponly=True,
        secure=config.session_cookie_secure,
        samesite="lax",
        max_age=config.session_ttl_minutes * 60,
        path="/",
    )


def clear_session_cookie(response: Response, config: Config) -> None:
    response.delete_cookie(
        key=SESSION_COOKIE_NAME,
        httponly=True,
        secure=config.session_cookie_secure,
        samesite="lax",
        path="/",
    )


async def get_current_session(
    app: Annotated[App, Depends(get_app)],
    config: Annotated[Config, Depends(get_config)],
    session_id: Annotated[SessionId | None, Depends(get_session_id)],
    response: Response,
) -> Session:
    """Authentication guard: require a session with a user and renew its cookie."""
    session = await app.authenticate(session_id)
    set_session_cookie(response, session.id, config)
    return session


async def require_csrf(
    request: Request,
    app: Annotated[App, Depends(get_app)],
    session: Annotated[Session, Depends(get_current_session)],
    csrf_token: Annotated[str | None, Header(alias=CSRF_HEADER_NAME)] = None,
) -> None:
    """CSRF guard for mutating requests, runs after the authentication guard."""
    if request.method.upper() in MUTATING_METHODS:
        app.verify_csrf(session, csrf_token)


async def get_json_body(
    request: Request,
    config: Annotated[Config, Depends(get_config)],
    _: Annotated[None, Depends(require_csrf)],
) -> Any:
    """Request body decoded as JSON.

    Read only after the authentication and CSRF guards have passed, so an
    unauthenticated client gets 401/403 no matter what it sends. Bodies over
    `max_body_bytes` are rejected without reading the rest of the stream.
    """
    content_length = request.headers.get("content-length", "")
    if content_length.isdigit() and int(content_length) > config.max_body_bytes:
        raise PayloadTooLargeError(f"Declared body size {content_length} exceeds {config.max_body_bytes} bytes")

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > config.max_body_bytes:
            raise PayloadTooLargeError(f"Body exceeds {config.max_body_bytes} bytes")

    try:
        return json.loads(body)
    except ValueError as e:  # JSONDecodeError and UnicodeDecodeError
        raise ValidationError(f"Request body is not valid JSON: {e}") from e


# Type aliases for dependencies
AppDep = Annotated[App, Depends(get_app)]
ConfigDep = Annotated[Config, Depends(get_config)]
SessionIdDep = Annotated[SessionId | None, Depends(get_session_id)]
CurrentSessionDep = Annotated[Session, Depends(get_current_session)]
JsonBodyDep = Annotated[Any, Depends(get_json_body)]
