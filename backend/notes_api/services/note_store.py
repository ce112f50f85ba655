"""
Notes API — Note Store (Persistence Gateway)
==============================================

What:  CRUD operations against the `notes` table.
How:   Stateless service; each call receives the request's AsyncSession and
       performs one round trip (plus commit for writes).
Who:   Called by the note route handlers.

Error Handling Strategy:
    - RecordNotFoundError: no matching row, or an ID below 1 (raised before
      touching the database).
    - EditConflictError: the row changed (or vanished) since it was read.
    - DatabaseError: every other SQLAlchemy failure, with the original error
      kept in the context for logging.
"""

import logging
from datetime import datetime, timezone
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from notes_api.exceptions import DatabaseError, EditConflictError, RecordNotFoundError
from notes_api.models.note import Note

logger = logging.getLogger(__name__)


class NoteStore:
    """
    Gateway to persisted notes.

    Writes are committed here, so a note returned from insert/update is
    durable by the time the handler serializes it.
    """

    async def insert(
        self,
        db: AsyncSession,
        title: str,
        body: str,
        tags: List[str],
    ) -> Note:
        """
        Persist a new note.

        The database assigns the ID; timestamps default to now, version to 1
        and archived to False.

        Raises:
            DatabaseError: the insert or commit failed
        """
        note = Note(title=title, body=body, tags=list(tags), archived=False)
        try:
            db.add(note)
            await db.flush()
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error inserting note: %s", str(e))
            raise DatabaseError(context={"error_type": type(e).__name__, "operation": "insert"})

        logger.info("Note %d created", note.id)
        return note

    async def get(self, db: AsyncSession, note_id: int) -> Note:
        """
        Fetch a note by ID.

        Raises:
            RecordNotFoundError: note_id < 1 or no such row
            DatabaseError: the query failed
        """
        if note_id < 1:
            raise RecordNotFoundError(resource_id=note_id)

        try:
            result = await db.execute(select(Note).where(Note.id == note_id))
            note = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching note %d: %s", note_id, str(e))
            raise DatabaseError(context={"error_type": type(e).__name__, "note_id": note_id})

        if note is None:
            raise RecordNotFoundError(resource_id=note_id)
        return note

    async def update(self, db: AsyncSession, note: Note) -> Note:
        """
        Persist title/body/tags/archived of a note loaded in this session.

        The UPDATE is conditioned on the version the note was read at and
        increments it by one. If another request got there first, zero rows
        match and the write is rejected.

        Raises:
            EditConflictError: the stored version no longer matches
            DatabaseError: the update or commit failed
        """
        # rollback expires `note`; only these locals are safe to read afterwards
        note_id, read_version = note.id, note.version
        note.updated_at = datetime.now(timezone.utc)
        try:
            await db.flush()
            await db.commit()
        except StaleDataError:
            await db.rollback()
            logger.warning("Edit conflict on note %d (read at version %d)", note_id, read_version)
            raise EditConflictError(context={"note_id": note_id, "version": read_version})
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error updating note %d: %s", note_id, str(e))
            raise DatabaseError(context={"error_type": type(e).__name__, "note_id": note_id})

        logger.info("Note %d updated to version %d", note_id, note.version)
        return note

    async def delete(self, db: AsyncSession, note_id: int) -> None:
        """
        Delete a note by ID.

        Raises:
            RecordNotFoundError: note_id < 1 or nothing was deleted
            DatabaseError: the delete or commit failed
        """
        if note_id < 1:
            raise RecordNotFoundError(resource_id=note_id)

        try:
            result = await db.execute(
                delete(Note).where(Note.id == note_id).execution_options(synchronize_session=False)
            )
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Database error deleting note %d: %s", note_id, str(e))
            raise DatabaseError(context={"error_type": type(e).__name__, "note_id": note_id})

        if result.rowcount == 0:
            raise RecordNotFoundError(resource_id=note_id)
        logger.info("Note %d deleted", note_id)


# ── Singleton Instance ────────────────────────────────────────────────────
note_store = NoteStore()
