import secrets

import structlog

from pocketnotes.core.core import Service
from pocketnotes.core.modules.identity.models import IdentityClaims
from pocketnotes.core.modules.identity.oidc import pkce_pair
from pocketnotes.core.modules.session.models import PendingLogin, SessionId
from pocketnotes.core.modules.user.models import User
from pocketnotes.errors import IdentityProviderError

logger = structlog.get_logger(__name__)


class IdentityService(Service):
    """Maps identity provider logins onto local users and sessions.

    A login is a two-step exchange kept in the session: `begin_login` stores
    the PKCE verifier, state and nonce (pending), `complete_login` consumes
    them and attaches the verified user (completed).
    """

    async def on_start(self) -> None:
        await self.core.oidc.discover()

    async def begin_login(self, session_id: SessionId) -> str:
        """Store a fresh pending login in the session and return the provider URL."""
        code_verifier, code_challenge = pkce_pair()
        pending = PendingLogin(
            state=secrets.token_urlsafe(32),
            code_verifier=code_verifier,
            nonce=secrets.token_urlsafe(32),
        )
        await self.core.services.session.set_pending_login(session_id, pending)
        return self.core.oidc.authorization_url(pending.state, code_challenge, pending.nonce)

    async def complete_login(
        self, session_id: SessionId | None, code: str | None, state: str | None, error: str | None = None
    ) -> User:
        """Validate the provider callback and establish the identity in the session."""
        if error:
            raise IdentityProviderError(f"Provider returned error '{error}'")
        if not code or not state:
            raise IdentityProviderError("Callback is missing code or state")

        session = await self.core.services.session.get(session_id) if session_id else None
        if session is None or session.pending_login is None:
            raise IdentityProviderError("No pending login for this session")

        pending = await self.core.services.session.claim_pending_login(session.id, state)
        if pending is None:
            raise IdentityProviderError("State mismatch or login already completed")

        claims = await self.core.oidc.exchange_code(code, pending.code_verifier, pending.nonce)
        return await self.establish_identity(session.id, claims)

    async def establish_identity(self, session_id: SessionId, claims: IdentityClaims) -> User:
        """Persist the user, attach it to the session and rotate the CSRF token."""
        user = await self.core.services.user.upsert_user(claims.to_user())
        await self.core.services.session.set_user(session_id, user)
        await self.core.services.session.issue_csrf_token(session_id)
        logger.info("login_completed", subject_id=user.subject_id)
        return user
