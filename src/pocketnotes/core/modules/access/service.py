import secrets

from pocketnotes.core.core import Service
from pocketnotes.core.modules.session.models import Session, SessionId
from pocketnotes.errors import ForbiddenError, UnauthorizedError


class AccessService(Service):
    async def ensure_authenticated(self, session_id: SessionId | None) -> Session:
        """Ensure the session exists and carries a user, and extend its lifetime."""
        if not session_id:
            raise UnauthorizedError("Missing session cookie")
        session = await self.core.services.session.get(session_id)
        if session is None:
            raise UnauthorizedError("Invalid or expired session")
        if session.user is None:
            raise UnauthorizedError("Session has no authenticated user")
        await self.core.services.session.touch(session.id)
        return session

    def ensure_csrf(self, session: Session, token: str | None) -> None:
        """Ensure the client-supplied token equals the session's current CSRF token."""
        if not token or session.csrf_token is None:
            raise ForbiddenError("Missing CSRF token")
        if not secrets.compare_digest(token.encode("utf-8"), session.csrf_token.encode("utf-8")):
            raise ForbiddenError("CSRF token mismatch")
