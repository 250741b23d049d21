from typing import Any

import structlog
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from pocketnotes.core.core import Service
from pocketnotes.core.modules.note.models import Note
from pocketnotes.errors import ConflictError
from pocketnotes.utils import now

logger = structlog.get_logger(__name__)


class NoteService(Service):
    """Owner-scoped note storage.

    Every query and mutation filters on owner_subject_id, so a note can only be
    read, changed or removed through its owner's id. Update and delete report
    "not affected" the same way whether the note is missing or owned by someone
    else.
    """

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("notes")

    async def on_start(self) -> None:
        """Create indexes for owner-scoped listing."""
        await self._collection.create_index([("owner_subject_id", 1)])
        await self._collection.create_index([("owner_subject_id", 1), ("updated_at", -1)])

    async def list_notes(self, owner_id: str) -> list[Note]:
        """Get all notes of an owner, most recently updated first."""
        cursor = self._collection.find({"owner_subject_id": owner_id}).sort([("updated_at", -1), ("created_at", -1)])
        return await Note.list_cursor(cursor)

    async def get_note(self, owner_id: str, note_id: str) -> Note | None:
        doc = await self._collection.find_one({"_id": note_id, "owner_subject_id": owner_id})
        if doc is None:
            return None
        return Note.model_validate(doc)

    async def create_note(self, owner_id: str, note_id: str, title: str, body: str) -> Note:
        """Insert a new note with created_at == updated_at."""
        timestamp = now()
        note = Note(
            id=note_id,
            owner_subject_id=owner_id,
            title=title,
            body=body,
            created_at=timestamp,
            updated_at=timestamp,
        )
        try:
            await self._collection.insert_one(note.to_mongo())
        except DuplicateKeyError as e:
            raise ConflictError(f"Note '{note_id}' already exists") from e
        logger.debug("note_created", note_id=note_id, owner_id=owner_id)
        return note

    async def update_note(self, owner_id: str, note_id: str, title: str, body: str) -> bool:
        """Replace title and body. Returns False if no note matched id and owner."""
        res = await self._collection.update_one(
            {"_id": note_id, "owner_subject_id": owner_id},
            {"$set": {"title": title, "body": body, "updated_at": now()}},
        )
        logger.debug("note_updated", note_id=note_id, owner_id=owner_id, matched=res.matched_count)
        return res.matched_count > 0

    async def delete_note(self, owner_id: str, note_id: str) -> bool:
        """Delete a note. Returns False if no note matched id and owner."""
        res = await self._collection.delete_one({"_id": note_id, "owner_subject_id": owner_id})
        logger.debug("note_deleted", note_id=note_id, owner_id=owner_id, deleted=res.deleted_count)
        return res.deleted_count > 0
