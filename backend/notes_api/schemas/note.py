"""
Notes API — Pydantic Request/Response Schemas
===============================================

What:  Pydantic models defining the JSON contract of the API.
How:   Request models are decoded strictly by `notes_api.codec.read_json`
       (unknown keys and type mismatches are rejected); response models are
       dumped to plain JSON types before `write_json` encodes them.

Request models mirror the zero-value semantics of the wire format: a field
that is absent from the body decodes to "", null tags or false, and the
Validator decides whether that is acceptable.
"""

from datetime import datetime
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from notes_api.validator import Validator, unique

MAX_TITLE_BYTES = 500

STRICT_INPUT = ConfigDict(extra="forbid", strict=True)


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class CreateNoteRequest(BaseModel):
    """Body of POST /v1/notes. `archived` is not accepted on creation."""

    model_config = STRICT_INPUT

    title: str = ""
    body: str = ""
    tags: Optional[List[str]] = None


class UpdateNoteRequest(BaseModel):
    """
    Body of PUT /v1/notes/{id}.

    A full replacement: every call resends the complete representation and
    missing fields overwrite the stored ones with their zero values.
    """

    model_config = STRICT_INPUT

    title: str = ""
    body: str = ""
    tags: Optional[List[str]] = None
    archived: bool = False


def validate_note(v: Validator, title: str, body: str, tags: Optional[List[str]]) -> None:
    """Apply the note field rules to `v`."""
    v.check(title != "", "title", "must be provided")
    v.check(len(title.encode("utf-8")) <= MAX_TITLE_BYTES, "title", "must not be more than 500 bytes long")

    v.check(body != "", "body", "must be provided")

    v.check(tags is not None, "tags", "must be provided")
    v.check(unique(tags or []), "tags", "must not contain duplicate values")


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class NoteResponse(BaseModel):
    """
    Public representation of a note.

    created_at is deliberately absent; it is internal to the store.
    """

    id: int = Field(description="Note identifier (positive integer)")
    updated_at: datetime = Field(description="Last modification time (UTC, RFC 3339)")
    title: str
    body: str
    tags: List[str]
    archived: bool
    version: int = Field(description="Incremented on every successful update")

    model_config = {"from_attributes": True}


class NoteEnvelope(BaseModel):
    note: NoteResponse


class MessageEnvelope(BaseModel):
    message: str


class SystemInfo(BaseModel):
    environment: str
    version: str


class HealthResponse(BaseModel):
    """Static availability payload returned by GET /v1/healthcheck."""

    status: str = Field(default="available")
    system_info: SystemInfo


class ErrorResponse(BaseModel):
    """
    Error envelope.

    `error` is a string for generic faults and a field → message mapping for
    validation faults.
    """

    error: Union[str, Dict[str, str]]
