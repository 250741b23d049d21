"""Tests for server-side sessions."""

from datetime import timedelta

import pytest

from pocketnotes.core.modules.session.models import PendingLogin, SessionId
from pocketnotes.core.modules.user.models import User
from pocketnotes.utils import now


@pytest.fixture
def sessions(core):
    return core.services.session


@pytest.fixture
def user():
    return User(subject_id="alice-sub", email="alice@example.com", name="Alice")


class TestSessionLifecycle:
    async def test_created_session_is_empty(self, sessions):
        session = await sessions.create()

        loaded = await sessions.get(session.id)
        assert loaded is not None
        assert loaded.user is None
        assert loaded.csrf_token is None
        assert loaded.pending_login is None

    async def test_session_ids_are_unique(self, sessions):
        first = await sessions.create()
        second = await sessions.create()
        assert first.id != second.id

    async def test_unknown_session_is_absent(self, sessions):
        assert await sessions.get(SessionId("does-not-exist")) is None

    async def test_destroyed_session_is_absent(self, sessions):
        session = await sessions.create()
        await sessions.destroy(session.id)
        assert await sessions.get(session.id) is None

    async def test_set_user_stores_snapshot_and_clears_pending_login(self, sessions, user):
        session = await sessions.create()
        await sessions.set_pending_login(session.id, PendingLogin(state="s", code_verifier="v", nonce="n"))

        await sessions.set_user(session.id, user)

        loaded = await sessions.get(session.id)
        assert loaded.user == user
        assert loaded.pending_login is None


class TestSessionExpiry:
    async def test_expired_session_is_absent(self, sessions, mongo_database):
        """Test that sessions past expires_at are treated as unknown before the TTL monitor removes them."""
        session = await sessions.create()
        mongo_database.get_collection("sessions").docs[session.id]["expires_at"] = now() - timedelta(seconds=1)

        assert await sessions.get(session.id) is None

    async def test_touch_slides_expiration(self, sessions, mongo_database):
        """Test that touch pushes expires_at a full inactivity window into the future."""
        session = await sessions.create()
        docs = mongo_database.get_collection("sessions").docs
        docs[session.id]["expires_at"] = now() + timedelta(seconds=5)

        await sessions.touch(session.id)

        loaded = await sessions.get(session.id)
        assert loaded.expires_at >= now() + timedelta(minutes=29)


class TestCsrfToken:
    async def test_issue_overwrites_previous_token(self, sessions):
        """Test that only the latest token is stored."""
        session = await sessions.create()

        first = await sessions.issue_csrf_token(session.id)
        second = await sessions.issue_csrf_token(session.id)

        assert first != second
        assert (await sessions.get(session.id)).csrf_token == second

    async def test_token_has_enough_entropy(self, sessions):
        session = await sessions.create()
        token = await sessions.issue_csrf_token(session.id)
        assert len(token) == 48
        int(token, 16)


class TestClaimPendingLogin:
    async def test_matching_state_returns_and_clears_pending_login(self, sessions):
        session = await sessions.create()
        pending = PendingLogin(state="s", code_verifier="v", nonce="n")
        await sessions.set_pending_login(session.id, pending)

        claimed = await sessions.claim_pending_login(session.id, "s")

        assert claimed.code_verifier == "v"
        assert claimed.nonce == "n"
        assert (await sessions.get(session.id)).pending_login is None

    async def test_wrong_state_leaves_pending_login(self, sessions):
        session = await sessions.create()
        await sessions.set_pending_login(session.id, PendingLogin(state="s", code_verifier="v", nonce="n"))

        assert await sessions.claim_pending_login(session.id, "other") is None
        assert (await sessions.get(session.id)).pending_login.state == "s"

    async def test_second_claim_gets_nothing(self, sessions):
        """Test that a pending login can be taken only once."""
        session = await sessions.create()
        await sessions.set_pending_login(session.id, PendingLogin(state="s", code_verifier="v", nonce="n"))

        assert await sessions.claim_pending_login(session.id, "s") is not None
        assert await sessions.claim_pending_login(session.id, "s") is None
