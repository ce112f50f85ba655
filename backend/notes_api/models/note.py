"""
Notes API — Note SQLAlchemy Model
===================================

What:  ORM model representing the `notes` table.
Who:   Used by the note store for CRUD operations and by Alembic.

Table Design:
    - BIGINT identity primary key: IDs are positive integers assigned by the
      database; 0 and negatives never reference a row.
    - tags: PostgreSQL TEXT[] keeps element order; SQLite (tests) stores the
      same list as JSON.
    - version: SQLAlchemy's version counter. Every ORM flush that updates a
      row emits `... WHERE id = :id AND version = :expected` and bumps the
      counter, so a stale write affects zero rows and raises StaleDataError.
    - created_at is internal; it is never part of the JSON representation.
"""

from datetime import datetime, timezone
from typing import List

from sqlalchemy import TIMESTAMP, BigInteger, Boolean, Integer, JSON, Text, text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from notes_api.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Note(Base):
    """
    A single note.

    Lifecycle:
        1. Inserted with version=1 and archived=False
        2. Updated in place: title/body/tags/archived replaced, version + 1,
           updated_at refreshed
        3. Deleted unconditionally (no soft-delete)
    """

    __tablename__ = "notes"

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    title: Mapped[str] = mapped_column(Text, nullable=False)

    body: Mapped[str] = mapped_column(Text, nullable=False)

    tags: Mapped[List[str]] = mapped_column(
        ARRAY(Text).with_variant(JSON(), "sqlite"),
        nullable=False,
    )

    archived: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )

    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        server_default=text("1"),
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, version={self.version}, archived={self.archived})>"
