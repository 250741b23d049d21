"""OpenID Connect client for the authorization-code flow with PKCE."""

import base64
import hashlib
import secrets
from typing import Any
from urllib.parse import urlencode

import httpx
import jwt
import structlog

from pocketnotes.config import Config
from pocketnotes.core.modules.identity.models import IdentityClaims, OidcMetadata
from pocketnotes.errors import IdentityProviderError

logger = structlog.get_logger(__name__)

SCOPE = "openid email profile"
ID_TOKEN_LEEWAY_SECONDS = 60


def pkce_pair() -> tuple[str, str]:
    """Return (code_verifier, S256 code_challenge)."""
    verifier = secrets.token_urlsafe(64)
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    challenge = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    return verifier, challenge


class OidcClient:
    """Talks to the identity provider: discovery, token exchange and ID token verification."""

    def __init__(self, config: Config, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._config = config
        self._transport = transport
        self._metadata: OidcMetadata | None = None
        self._jwks: jwt.PyJWKSet | None = None

    @property
    def redirect_uri(self) -> str:
        return f"{self._config.base_url.rstrip('/')}/callback"

    @property
    def metadata(self) -> OidcMetadata:
        if self._metadata is None:
            raise RuntimeError("OIDC provider metadata not loaded, call discover() first")
        return self._metadata

    async def discover(self) -> OidcMetadata:
        """Load the provider's discovery document."""
        url = f"{self._config.oidc_issuer.rstrip('/')}/.well-known/openid-configuration"
        self._metadata = OidcMetadata.model_validate(await self._request_json("GET", url))
        logger.info("oidc_discovered", issuer=self._metadata.issuer)
        return self._metadata

    def authorization_url(self, state: str, code_challenge: str, nonce: str) -> str:
        params = {
            "client_id": self._config.oidc_client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": SCOPE,
            "state": state,
            "nonce": nonce,
            "prompt": "select_account",
            "code_challenge": code_challenge,
            "code_challenge_method": "S256",
        }
        return f"{self.metadata.authorization_endpoint}?{urlencode(params)}"

    async def exchange_code(self, code: str, code_verifier: str, nonce: str) -> IdentityClaims:
        """Redeem an authorization code and return the verified ID token claims."""
        payload = await self._request_json(
            "POST",
            self.metadata.token_endpoint,
            data={
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.redirect_uri,
                "client_id": self._config.oidc_client_id,
                "client_secret": self._config.oidc_client_secret,
                "code_verifier": code_verifier,
            },
        )
        id_token = payload.get("id_token")
        if not isinstance(id_token, str) or not id_token:
            raise IdentityProviderError("Token response has no id_token")
        claims = await self.verify_id_token(id_token, nonce)
        return IdentityClaims.from_id_token(claims)

    async def verify_id_token(self, id_token: str, nonce: str) -> dict[str, Any]:
        try:
            kid = jwt.get_unverified_header(id_token).get("kid")
        except jwt.InvalidTokenError as e:
            raise IdentityProviderError("Malformed id_token") from e

        signing_key = await self._signing_key(kid)
        try:
            payload = jwt.decode(
                id_token,
                signing_key.key,
                algorithms=self.metadata.id_token_signing_alg_values_supported,
                audience=self._config.oidc_client_id,
                issuer=self.metadata.issuer,
                leeway=ID_TOKEN_LEEWAY_SECONDS,
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.InvalidTokenError as e:
            raise IdentityProviderError(f"Invalid id_token: {e}") from e

        token_nonce = payload.get("nonce")
        if not isinstance(token_nonce, str) or not secrets.compare_digest(token_nonce, nonce):
            raise IdentityProviderError("id_token nonce mismatch")
        email = payload.get("email")
        if not isinstance(email, str) or not email.strip():
            raise IdentityProviderError("id_token has no email claim")
        return payload

    async def _signing_key(self, kid: str | None) -> jwt.PyJWK:
        key = self._find_key(kid)
        if key is None:
            # Unknown kid usually means the provider rotated its keys
            data = await self._request_json("GET", self.metadata.jwks_uri)
            try:
                self._jwks = jwt.PyJWKSet.from_dict(data)
            except jwt.PyJWTError as e:
                raise IdentityProviderError("Invalid JWKS document") from e
            key = self._find_key(kid)
        if key is None:
            raise IdentityProviderError(f"No signing key for kid '{kid}'")
        return key

    def _find_key(self, kid: str | None) -> jwt.PyJWK | None:
        if self._jwks is None:
            return None
        if kid is None:
            return self._jwks.keys[0] if len(self._jwks.keys) == 1 else None
        return next((k for k in self._jwks.keys if k.key_id == kid), None)

    async def _request_json(self, method: str, url: str, data: dict[str, str] | None = None) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self._config.oidc_http_timeout, transport=self._transport) as client:
                response = await client.request(method, url, data=data, headers={"Accept": "application/json"})
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPError as e:
            raise IdentityProviderError(f"{method} {url} failed: {e}") from e
        except ValueError as e:
            raise IdentityProviderError(f"{method} {url} returned invalid JSON") from e
        if not isinstance(payload, dict):
            raise IdentityProviderError(f"{method} {url} returned unexpected JSON")
        return payload
