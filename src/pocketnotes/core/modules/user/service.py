from typing import Any

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from pocketnotes.core.core import Service
from pocketnotes.core.modules.user.models import User
from pocketnotes.errors import NotFoundError

logger = structlog.get_logger(__name__)


class UserService(Service):
    """Stores users keyed by subject id."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("users")

    async def upsert_user(self, user: User) -> User:
        """Insert or overwrite profile fields of a user, last login wins."""
        profile = user.to_mongo()
        subject_id = profile.pop("_id")
        await self._collection.update_one({"_id": subject_id}, {"$set": profile}, upsert=True)
        logger.debug("user_upserted", subject_id=subject_id)
        return user

    async def get_user(self, subject_id: str) -> User:
        """Get user by subject id."""
        doc = await self._collection.find_one({"_id": subject_id})
        if doc is None:
            raise NotFoundError(f"User '{subject_id}' not found")
        return User.model_validate(doc)
