"""Shared pytest fixtures.

MongoDB is replaced by an in-memory fake of the async collection API the
services use, and the OIDC client by a fake that hands out fixed claims.
"""

import copy
from collections.abc import Callable, Iterator
from types import SimpleNamespace
from typing import Any
from urllib.parse import parse_qs, urlencode, urlparse

import pytest
from fastapi.testclient import TestClient
from pymongo.errors import DuplicateKeyError

from pocketnotes.app import App
from pocketnotes.config import Config
from pocketnotes.core.core import Core
from pocketnotes.core.modules.identity.models import IdentityClaims
from pocketnotes.errors import IdentityProviderError
from pocketnotes.web.server import create_fastapi_app


def _resolve(doc: dict[str, Any], path: str) -> Any:
    value: Any = doc
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def _matches(doc: dict[str, Any], query: dict[str, Any]) -> bool:
    return all(_resolve(doc, key) == value for key, value in query.items())


class FakeCursor:
    def __init__(self, docs: list[dict[str, Any]]) -> None:
        self._docs = docs

    def sort(self, key_or_list: Any, direction: int | None = None) -> "FakeCursor":
        keys = key_or_list if isinstance(key_or_list, list) else [(key_or_list, direction)]
        # Stable sorts applied from the least significant key
        for key, key_direction in reversed(keys):
            self._docs.sort(key=lambda d: d[key], reverse=key_direction == -1)
        return self

    async def to_list(self, length: int | None = None) -> list[dict[str, Any]]:
        return list(self._docs)

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for doc in self._docs:
            yield doc


class FakeCollection:
    def __init__(self) -> None:
        self.docs: dict[Any, dict[str, Any]] = {}

    async def create_index(self, keys: Any, **kwargs: Any) -> str:
        return "index"

    async def insert_one(self, doc: dict[str, Any]) -> SimpleNamespace:
        if doc["_id"] in self.docs:
            raise DuplicateKeyError("E11000 duplicate key error")
        self.docs[doc["_id"]] = copy.deepcopy(doc)
        return SimpleNamespace(inserted_id=doc["_id"])

    async def find_one(self, query: dict[str, Any]) -> dict[str, Any] | None:
        return next((copy.deepcopy(d) for d in self.docs.values() if _matches(d, query)), None)

    def find(self, query: dict[str, Any] | None = None) -> FakeCursor:
        return FakeCursor([copy.deepcopy(d) for d in self.docs.values() if _matches(d, query or {})])

    async def update_one(self, query: dict[str, Any], update: dict[str, Any], upsert: bool = False) -> SimpleNamespace:
        for doc in self.docs.values():
            if _matches(doc, query):
                doc.update(copy.deepcopy(update["$set"]))
                return SimpleNamespace(matched_count=1, modified_count=1, upserted_id=None)
        if upsert:
            doc = {**query, **copy.deepcopy(update["$set"])}
            self.docs[doc["_id"]] = doc
            return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=doc["_id"])
        return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=None)

    async def find_one_and_update(self, query: dict[str, Any], update: dict[str, Any]) -> dict[str, Any] | None:
        """Returns the document as it was before the update, like ReturnDocument.BEFORE."""
        for doc in self.docs.values():
            if _matches(doc, query):
                before = copy.deepcopy(doc)
                doc.update(copy.deepcopy(update["$set"]))
                return before
        return None

    async def delete_one(self, query: dict[str, Any]) -> SimpleNamespace:
        for key, doc in list(self.docs.items()):
            if _matches(doc, query):
                del self.docs[key]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)


class FakeDatabase:
    def __init__(self) -> None:
        self._collections: dict[str, FakeCollection] = {}

    def get_collection(self, name: str) -> FakeCollection:
        return self._collections.setdefault(name, FakeCollection())


class FakeOidcClient:
    """Identity provider double: codes registered by tests map to claims."""

    def __init__(self) -> None:
        self.discovered = False
        self.claims_by_code: dict[str, IdentityClaims] = {}
        self.exchanges: list[tuple[str, str, str]] = []

    async def discover(self) -> None:
        self.discovered = True

    def authorization_url(self, state: str, code_challenge: str, nonce: str) -> str:
        params = {"state": state, "code_challenge": code_challenge, "nonce": nonce}
        return f"https://idp.example/authorize?{urlencode(params)}"

    async def exchange_code(self, code: str, code_verifier: str, nonce: str) -> IdentityClaims:
        self.exchanges.append((code, code_verifier, nonce))
        if code not in self.claims_by_code:
            raise IdentityProviderError("invalid_grant")
        return self.claims_by_code.pop(code)

    def register(self, claims: IdentityClaims) -> str:
        code = f"code-{len(self.claims_by_code) + len(self.exchanges)}-{claims.subject_id}"
        self.claims_by_code[code] = claims
        return code


@pytest.fixture
def config() -> Config:
    return Config(
        database_url="mongodb://localhost:27017/pocketnotes_test",
        host="127.0.0.1",
        port=3000,
        debug=True,
        base_url="https://testserver",
        oidc_issuer="https://idp.example",
        oidc_client_id="client-id",
        oidc_client_secret="client-secret",
    )


@pytest.fixture
def mongo_database(monkeypatch: pytest.MonkeyPatch) -> FakeDatabase:
    database = FakeDatabase()

    class FakeMongoClient:
        def __init__(self, *args: Any, **kwargs: Any) -> None:
            pass

        def get_database(self, name: str) -> FakeDatabase:
            return database

        async def aclose(self) -> None:
            pass

    monkeypatch.setattr("pocketnotes.core.core.AsyncMongoClient", FakeMongoClient)
    return database


@pytest.fixture
def fake_oidc(monkeypatch: pytest.MonkeyPatch) -> FakeOidcClient:
    oidc = FakeOidcClient()
    monkeypatch.setattr("pocketnotes.core.core.OidcClient", lambda config: oidc)
    return oidc


@pytest.fixture
def core(config: Config, mongo_database: FakeDatabase, fake_oidc: FakeOidcClient) -> Core:
    return Core(config)


@pytest.fixture
def app(config: Config, mongo_database: FakeDatabase, fake_oidc: FakeOidcClient) -> App:
    return App(config)


@pytest.fixture
def make_client(app: App, config: Config) -> Callable[[], TestClient]:
    """Factory for independent browsers (separate cookie jars) against one server."""
    fastapi_app = create_fastapi_app(app, config)

    def factory() -> TestClient:
        return TestClient(fastapi_app, base_url="https://testserver")

    return factory


@pytest.fixture
def client(make_client: Callable[[], TestClient]) -> Iterator[TestClient]:
    with make_client() as test_client:
        yield test_client


@pytest.fixture
def alice() -> IdentityClaims:
    return IdentityClaims(
        subject_id="alice-sub",
        email="alice@example.com",
        name="Alice",
        picture="https://example.com/alice.png",
    )


@pytest.fixture
def bob() -> IdentityClaims:
    return IdentityClaims(subject_id="bob-sub", email="bob@example.com", name="Bob")


@pytest.fixture
def login(fake_oidc: FakeOidcClient) -> Callable[[TestClient, IdentityClaims], str]:
    """Run the /login → /callback round-trip and return a CSRF token for the session."""

    def do_login(test_client: TestClient, claims: IdentityClaims) -> str:
        code = fake_oidc.register(claims)
        response = test_client.get("/login", follow_redirects=False)
        assert response.status_code == 302
        state = parse_qs(urlparse(response.headers["location"]).query)["state"][0]
        response = test_client.get("/callback", params={"code": code, "state": state}, follow_redirects=False)
        assert response.status_code == 302
        return test_client.get("/csrf").json()["token"]

    return do_login
