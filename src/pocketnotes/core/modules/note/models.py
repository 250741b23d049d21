from datetime import datetime

from pydantic import BaseModel, Field

from pocketnotes.core.db import MongoModel
from pocketnotes.utils import new_id, now


class Note(MongoModel):
    """Short text note owned by a single user."""

    id: str = Field(alias="_id", serialization_alias="id", default_factory=new_id)
    owner_subject_id: str  # Set once on insert, never part of an update
    title: str
    body: str
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)


class NoteView(BaseModel):
    """Note as returned to its owner (API representation)."""

    id: str = Field(..., description="Note ID")
    title: str = Field(..., description="Title")
    body: str = Field(..., description="Body")
    created_at: datetime = Field(..., description="Creation timestamp (UTC)")
    updated_at: datetime = Field(..., description="Last modification timestamp (UTC)")

    @classmethod
    def from_domain(cls, note: Note) -> "NoteView":
        """Create view model from domain model."""
        return cls(
            id=note.id, title=note.title, body=note.body, created_at=note.created_at, updated_at=note.updated_at
        )
