from pydantic import BaseModel, Field

from pocketnotes.core.db import MongoModel


class User(MongoModel):
    """Local identity, keyed by the identity provider's subject id."""

    subject_id: str = Field(alias="_id", serialization_alias="subject_id")
    email: str
    name: str | None = None
    picture: str | None = None


class UserView(BaseModel):
    """Current user profile (API representation)."""

    subject_id: str = Field(..., description="Stable subject id issued by the identity provider")
    email: str = Field(..., description="Email address")
    name: str | None = Field(None, description="Display name")
    picture: str | None = Field(None, description="Profile picture URL")

    @classmethod
    def from_domain(cls, user: User) -> "UserView":
        """Create view model from domain model."""
        return cls(subject_id=user.subject_id, email=user.email, name=user.name, picture=user.picture)
