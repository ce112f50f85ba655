"""Create notes table

Revision ID: 001
Revises: None
Create Date: 2026-10-17 00:00:00.000000+00:00

Creates the `notes` table: identity primary key, title/body text, ordered
tag array, archived flag and the optimistic-locking version counter.
A GIN index on tags supports containment queries from ad-hoc tooling.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "notes",
        sa.Column("id", sa.BigInteger(), sa.Identity(always=False), nullable=False),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("tags", postgresql.ARRAY(sa.Text()), nullable=False),
        sa.Column("archived", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("version", sa.Integer(), server_default=sa.text("1"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("octet_length(title) <= 500", name="notes_title_length_check"),
    )

    op.create_index("notes_tags_idx", "notes", ["tags"], postgresql_using="gin")


def downgrade() -> None:
    """Drop the notes table. Destructive: all note data is lost."""
    op.drop_index("notes_tags_idx", table_name="notes")
    op.drop_table("notes")
