import secrets
from datetime import timedelta
from typing import Any

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from pocketnotes.core.core import Service
from pocketnotes.core.modules.session.models import PendingLogin, Session, SessionId
from pocketnotes.core.modules.user.models import User
from pocketnotes.utils import now

logger = structlog.get_logger(__name__)


class SessionService(Service):
    """Server-side sessions with sliding expiration."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("sessions")

    async def on_start(self) -> None:
        """Create indexes on startup."""
        # TTL index, documents are removed once expires_at has passed
        await self._collection.create_index([("expires_at", 1)], expireAfterSeconds=0)

    @property
    def ttl(self) -> timedelta:
        return timedelta(minutes=self.core.config.session_ttl_minutes)

    async def create(self) -> Session:
        """Allocate a new empty session."""
        session = Session(expires_at=now() + self.ttl)
        await self._collection.insert_one(session.to_mongo())
        logger.debug("session_created")
        return session

    async def get(self, session_id: SessionId) -> Session | None:
        """Get session by id, None if unknown or expired."""
        doc = await self._collection.find_one({"_id": session_id})
        if doc is None:
            return None
        session = Session.model_validate(doc)
        # The TTL monitor runs periodically, so expired documents may still exist
        if session.expires_at <= now():
            return None
        return session

    async def touch(self, session_id: SessionId) -> None:
        """Slide expiration forward by the inactivity window."""
        await self._collection.update_one({"_id": session_id}, {"$set": {"expires_at": now() + self.ttl}})

    async def set_pending_login(self, session_id: SessionId, pending: PendingLogin) -> None:
        await self._collection.update_one({"_id": session_id}, {"$set": {"pending_login": pending.model_dump()}})

    async def claim_pending_login(self, session_id: SessionId, state: str) -> PendingLogin | None:
        """Atomically take the pending login if its state matches, so a callback completes at most once."""
        doc = await self._collection.find_one_and_update(
            {"_id": session_id, "pending_login.state": state},
            {"$set": {"pending_login": None}},
        )
        if doc is None:
            return None
        return Session.model_validate(doc).pending_login

    async def set_user(self, session_id: SessionId, user: User) -> None:
        """Attach an authenticated user snapshot and finish any pending login."""
        await self._collection.update_one(
            {"_id": session_id},
            {"$set": {"user": user.model_dump(), "pending_login": None, "expires_at": now() + self.ttl}},
        )

    async def issue_csrf_token(self, session_id: SessionId) -> str:
        """Generate a new CSRF token, replacing any previous one."""
        token = secrets.token_hex(24)
        await self._collection.update_one({"_id": session_id}, {"$set": {"csrf_token": token}})
        return token

    async def destroy(self, session_id: SessionId) -> None:
        await self._collection.delete_one({"_id": session_id})
        logger.debug("session_destroyed")
