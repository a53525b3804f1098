"""Document briefings history table

Revision ID: 001
Revises:
Create Date: 2026-10-19

Creates document_briefings (one row per summarized document, per user).
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create document_briefings."""
    op.create_table(
        "document_briefings",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Text(), nullable=False),
        sa.Column("file_name", sa.Text(), nullable=False),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index(
        "idx_briefings_user_created", "document_briefings", ["user_id", "created_at"]
    )


def downgrade() -> None:
    """Drop document_briefings."""
    op.drop_index("idx_briefings_user_created", table_name="document_briefings")
    op.drop_table("document_briefings")
