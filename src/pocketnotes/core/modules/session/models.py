"""Session management models."""

import secrets
from datetime import datetime
from typing import NewType

from pydantic import BaseModel, Field

from pocketnotes.core.db import MongoModel
from pocketnotes.core.modules.user.models import User
from pocketnotes.utils import now

SessionId = NewType("SessionId", str)


def new_session_id() -> SessionId:
    return SessionId(secrets.token_urlsafe(32))


class PendingLogin(BaseModel):
    """PKCE state kept between /login and /callback."""

    state: str
    code_verifier: str
    nonce: str
    created_at: datetime = Field(default_factory=now)


class Session(MongoModel):
    """Server-side browser session, referenced by an opaque cookie.

    `user` is a snapshot taken at login; later profile changes are not
    reflected until the next login. Indexed on expires_at (TTL).
    """

    id: SessionId = Field(alias="_id", serialization_alias="id", default_factory=new_session_id)
    user: User | None = None
    csrf_token: str | None = None
    pending_login: PendingLogin | None = None
    created_at: datetime = Field(default_factory=now)
    expires_at: datetime
