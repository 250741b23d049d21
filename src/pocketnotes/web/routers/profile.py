from fastapi import APIRouter

from pocketnotes.core.modules.user.models import UserView
from pocketnotes.web.deps import AppDep, CurrentSessionDep
from pocketnotes.web.openapi import ErrorResponse

router = APIRouter(tags=["profile"])


@router.get(
    "/me",
    summary="Get current user profile",
    description="Get the profile captured at login for the current session.",
    operation_id="getCurrentUserProfile",
    responses={
        200: {"description": "Current user profile"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_profile(app: AppDep, session: CurrentSessionDep) -> UserView:
    return await app.get_current_user(session)
