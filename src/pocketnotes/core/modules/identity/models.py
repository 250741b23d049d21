from typing import Any

from pydantic import BaseModel

from pocketnotes.core.modules.user.models import User


class OidcMetadata(BaseModel):
    """Subset of the provider's discovery document that the login flow uses."""

    issuer: str
    authorization_endpoint: str
    token_endpoint: str
    jwks_uri: str
    id_token_signing_alg_values_supported: list[str] = ["RS256"]


class IdentityClaims(BaseModel):
    """Verified identity claims from an ID token."""

    subject_id: str
    email: str
    name: str | None = None
    picture: str | None = None

    @classmethod
    def from_id_token(cls, payload: dict[str, Any]) -> "IdentityClaims":
        return cls(
            subject_id=payload["sub"],
            email=payload["email"],
            name=payload.get("name"),
            picture=payload.get("picture"),
        )

    def to_user(self) -> User:
        return User(subject_id=self.subject_id, email=self.email, name=self.name, picture=self.picture)
