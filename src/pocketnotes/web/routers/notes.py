from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from pocketnotes.core.modules.note.models import NoteView
from pocketnotes.errors import ValidationError
from pocketnotes.web.deps import AppDep, CurrentSessionDep, JsonBodyDep, require_csrf
from pocketnotes.web.openapi import ErrorResponse

router: APIRouter = APIRouter(prefix="/api", tags=["notes"], dependencies=[Depends(require_csrf)])


class NoteRequest(BaseModel):
    """Note content. Both fields are trimmed before validation."""

    title: str = Field(..., description="Title, 1-120 characters")
    body: str = Field(..., description="Body, 1-5000 characters")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"title": "Groceries", "body": "milk, eggs, bread"},
            ]
        }
    }


async def get_note_request(body: JsonBodyDep) -> NoteRequest:
    """Note content from the JSON body, parsed after the auth and CSRF guards."""
    try:
        return NoteRequest.model_validate(body)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid note payload: {e.error_count()} error(s)") from e


NoteRequestDep = Annotated[NoteRequest, Depends(get_note_request)]

# The body is read by a dependency, so the schema is declared explicitly
NOTE_REQUEST_BODY = {
    "requestBody": {
        "required": True,
        "content": {"application/json": {"schema": NoteRequest.model_json_schema()}},
    }
}


class CreateNoteResponse(BaseModel):
    id: str = Field(..., description="ID of the created note")


class UpdateNoteResponse(BaseModel):
    updated: bool = True


class DeleteNoteResponse(BaseModel):
    deleted: bool = True


@router.get(
    "/notes",
    summary="List notes",
    description="Get all notes of the current user, most recently updated first.",
    operation_id="listNotes",
    responses={
        200: {"description": "Notes of the current user"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_notes(app: AppDep, session: CurrentSessionDep) -> list[NoteView]:
    return await app.list_notes(session)


@router.post(
    "/notes",
    summary="Create note",
    description="Create a note owned by the current user. Requires the X-CSRF-Token header.",
    operation_id="createNote",
    status_code=201,
    openapi_extra=NOTE_REQUEST_BODY,
    responses={
        201: {"description": "Note created"},
        400: {"model": ErrorResponse, "description": "Invalid input"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Missing or invalid CSRF token"},
        413: {"model": ErrorResponse, "description": "Request body too large"},
    },
)
async def create_note(note_request: NoteRequestDep, app: AppDep, session: CurrentSessionDep) -> CreateNoteResponse:
    note = await app.create_note(session, note_request.title, note_request.body)
    return CreateNoteResponse(id=note.id)


@router.put(
    "/notes/{note_id}",
    summary="Update note",
    description="Replace title and body of one of the current user's notes. Requires the X-CSRF-Token header.",
    operation_id="updateNote",
    openapi_extra=NOTE_REQUEST_BODY,
    responses={
        200: {"description": "Note updated"},
        400: {"model": ErrorResponse, "description": "Invalid input"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Missing or invalid CSRF token"},
        404: {"model": ErrorResponse, "description": "Note not found"},
        413: {"model": ErrorResponse, "description": "Request body too large"},
    },
)
async def update_note(
    note_id: str, note_request: NoteRequestDep, app: AppDep, session: CurrentSessionDep
) -> UpdateNoteResponse:
    await app.update_note(session, note_id, note_request.title, note_request.body)
    return UpdateNoteResponse()


@router.delete(
    "/notes/{note_id}",
    summary="Delete note",
    description="Delete one of the current user's notes. Requires the X-CSRF-Token header.",
    operation_id="deleteNote",
    responses={
        200: {"description": "Note deleted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Missing or invalid CSRF token"},
        404: {"model": ErrorResponse, "description": "Note not found"},
    },
)
async def delete_note(note_id: str, app: AppDep, session: CurrentSessionDep) -> DeleteNoteResponse:
    await app.delete_note(session, note_id)
    return DeleteNoteResponse()
