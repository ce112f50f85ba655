"""
Notes API — Note Route Handlers
=================================

What:  POST /v1/notes, GET|PUT|DELETE /v1/notes/{id}.
How:   Each handler decodes with the codec, validates with the Validator,
       calls the note store and encodes with write_json. Failures are raised
       as NotesAPIError subclasses and rendered by the global handlers.

ID parsing:
    The path segment must be a base-10 integer. Anything else, and any
    value below 1, is answered with 404: that part of the resource space is
    empty rather than malformed.
"""

import logging
import re
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from notes_api.codec import read_json, write_json
from notes_api.database import get_db_session
from notes_api.exceptions import (
    BadRequestError,
    EditConflictError,
    FailedValidationError,
    RecordNotFoundError,
)
from notes_api.models.note import Note
from notes_api.schemas.note import (
    CreateNoteRequest,
    ErrorResponse,
    MessageEnvelope,
    NoteEnvelope,
    NoteResponse,
    UpdateNoteRequest,
    validate_note,
)
from notes_api.services.note_store import note_store
from notes_api.validator import Validator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["Notes"])

_ID_PATTERN = re.compile(r"[+-]?[0-9]+")
_MAX_ID = 2**63 - 1


def read_id_param(raw: str) -> int:
    """
    Parse a note ID from the URL path.

    Raises:
        RecordNotFoundError: not a base-10 integer, below 1, or beyond BIGINT
    """
    if not _ID_PATTERN.fullmatch(raw):
        raise RecordNotFoundError()
    note_id = int(raw)
    if note_id < 1 or note_id > _MAX_ID:
        raise RecordNotFoundError()
    return note_id


def read_expected_version(request: Request) -> Optional[int]:
    """Return the optional X-Expected-Version header as an int (None if absent)."""
    raw = request.headers.get("X-Expected-Version")
    if raw is None:
        return None
    if not _ID_PATTERN.fullmatch(raw.strip()):
        raise BadRequestError("X-Expected-Version header must be an integer")
    return int(raw)


def note_envelope(note: Note) -> dict:
    return {"note": NoteResponse.model_validate(note).model_dump(mode="json")}


@router.post(
    "/notes",
    status_code=201,
    response_model=NoteEnvelope,
    responses={
        400: {"description": "Malformed JSON body", "model": ErrorResponse},
        422: {"description": "Field validation failed", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Create a note",
)
async def create_note(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    """Create a note from {title, body, tags}; responds 201 with a Location header."""
    payload = await read_json(request, CreateNoteRequest)

    v = Validator()
    validate_note(v, payload.title, payload.body, payload.tags)
    if not v.valid():
        raise FailedValidationError(v.errors)

    note = await note_store.insert(db, title=payload.title, body=payload.body, tags=payload.tags)

    return write_json(201, note_envelope(note), headers={"Location": f"/v1/notes/{note.id}"})


@router.get(
    "/notes/{note_id}",
    response_model=NoteEnvelope,
    responses={
        404: {"description": "Note not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Show a note",
)
async def show_note(
    note_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    note = await note_store.get(db, read_id_param(note_id))
    return write_json(200, note_envelope(note))


@router.put(
    "/notes/{note_id}",
    response_model=NoteEnvelope,
    responses={
        400: {"description": "Malformed JSON body or X-Expected-Version header", "model": ErrorResponse},
        404: {"description": "Note not found", "model": ErrorResponse},
        409: {"description": "Edit conflict", "model": ErrorResponse},
        422: {"description": "Field validation failed", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Replace a note",
)
async def update_note(
    note_id: str,
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    """
    Replace title, body, tags and archived of an existing note.

    The note is looked up before the body is read, so an unknown ID is a
    404 whatever the body contains. Clients that want to fence against their
    own stale reads send the version they saw in X-Expected-Version.
    """
    note = await note_store.get(db, read_id_param(note_id))

    expected_version = read_expected_version(request)
    if expected_version is not None and expected_version != note.version:
        raise EditConflictError(context={"note_id": note.id, "expected": expected_version})

    payload = await read_json(request, UpdateNoteRequest)

    v = Validator()
    validate_note(v, payload.title, payload.body, payload.tags)
    if not v.valid():
        raise FailedValidationError(v.errors)

    note.title = payload.title
    note.body = payload.body
    note.tags = list(payload.tags)
    note.archived = payload.archived

    note = await note_store.update(db, note)

    return write_json(200, note_envelope(note))


@router.delete(
    "/notes/{note_id}",
    response_model=MessageEnvelope,
    responses={
        404: {"description": "Note not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Delete a note",
)
async def delete_note(
    note_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await note_store.delete(db, read_id_param(note_id))
    return write_json(200, {"message": "note successfully deleted"})
