from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog

from pocketnotes.config import Config
from pocketnotes.core.core import Core
from pocketnotes.core.modules.note.models import Note, NoteView
from pocketnotes.core.modules.note.validators import validate_note_input
from pocketnotes.core.modules.session.models import Session, SessionId
from pocketnotes.core.modules.user.models import User, UserView
from pocketnotes.errors import NotFoundError, UnauthorizedError
from pocketnotes.utils import new_id

logger = structlog.get_logger(__name__)


class App:
    """Facade for all application operations.

    Note operations take the Session resolved by the authentication guard and
    always use its user as the owner.
    """

    def __init__(self, config: Config) -> None:
        self._core = Core(config)

    @property
    def config(self) -> Config:
        return self._core.config

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    # === Auth gate ===
    async def authenticate(self, session_id: SessionId | None) -> Session:
        """Resolve an authenticated session and slide its expiration."""
        return await self._core.services.access.ensure_authenticated(session_id)

    def verify_csrf(self, session: Session, token: str | None) -> None:
        """Check the CSRF token supplied with a mutating request."""
        self._core.services.access.ensure_csrf(session, token)

    # === Login / logout ===
    async def begin_login(self, session_id: SessionId | None) -> tuple[SessionId, str]:
        """Start a login, creating a session if needed. Returns session id and provider URL."""
        session = await self._core.services.session.get(session_id) if session_id else None
        if session is None:
            session = await self._core.services.session.create()
        url = await self._core.services.identity.begin_login(session.id)
        return session.id, url

    async def complete_login(
        self, session_id: SessionId | None, code: str | None, state: str | None, error: str | None
    ) -> User:
        """Finish the login started by begin_login."""
        return await self._core.services.identity.complete_login(session_id, code, state, error)

    async def logout(self, session_id: SessionId | None) -> None:
        """Destroy the session, if any."""
        if session_id:
            await self._core.services.session.destroy(session_id)

    async def get_current_user(self, session: Session) -> UserView:
        """Get the user snapshot stored in the session at login."""
        return UserView.from_domain(self._session_user(session))

    async def refresh_csrf_token(self, session: Session) -> str:
        """Issue a new CSRF token, invalidating the previous one."""
        return await self._core.services.session.issue_csrf_token(session.id)

    # === Notes ===
    async def list_notes(self, session: Session) -> list[NoteView]:
        """Get the caller's notes, most recently updated first."""
        owner = self._session_user(session)
        notes = await self._core.services.note.list_notes(owner.subject_id)
        return [NoteView.from_domain(note) for note in notes]

    async def create_note(self, session: Session, title: object, body: object) -> Note:
        """Validate input and create a note owned by the caller."""
        owner = self._session_user(session)
        title, body = validate_note_input(title, body)
        note = await self._core.services.note.create_note(owner.subject_id, new_id(), title, body)
        logger.info("note_created", note_id=note.id, owner_id=owner.subject_id)
        return note

    async def update_note(self, session: Session, note_id: str, title: object, body: object) -> None:
        """Validate input and update one of the caller's notes."""
        owner = self._session_user(session)
        title, body = validate_note_input(title, body)
        if not await self._core.services.note.update_note(owner.subject_id, note_id, title, body):
            raise NotFoundError(f"Note '{note_id}' not found for owner '{owner.subject_id}'")

    async def delete_note(self, session: Session, note_id: str) -> None:
        """Delete one of the caller's notes."""
        owner = self._session_user(session)
        if not await self._core.services.note.delete_note(owner.subject_id, note_id):
            raise NotFoundError(f"Note '{note_id}' not found for owner '{owner.subject_id}'")
        logger.info("note_deleted", note_id=note_id, owner_id=owner.subject_id)

    # === Private helpers ===
    def _session_user(self, session: Session) -> User:
        """Owner identity of an authenticated session."""
        if session.user is None:
            raise UnauthorizedError("Session has no authenticated user")
        return session.user
