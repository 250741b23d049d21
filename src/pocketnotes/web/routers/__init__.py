from pocketnotes.web.routers.auth import router as auth_router
from pocketnotes.web.routers.notes import router as notes_router
from pocketnotes.web.routers.profile import router as profile_router

__all__ = [
    "auth_router",
    "notes_router",
    "profile_router",
]
