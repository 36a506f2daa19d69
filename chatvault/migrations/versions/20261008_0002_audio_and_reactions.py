"""add audio content and reactions

Revision ID: 20261008_0002
Revises: 20261001_0001
Create Date: 2026-10-08 00:00:02
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261008_0002"
down_revision: str | None = "20261001_0001"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "message_audio",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("message_id", sa.Integer(), nullable=False),
        sa.Column("audio_uri", sa.String(length=1024), nullable=True),
        sa.Column("length_seconds", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["message_id"], ["message.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_message_audio_message_id", "message_audio", ["message_id"], unique=False)

    op.create_table(
        "reaction",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("reactor_id", sa.Integer(), nullable=False),
        sa.Column("message_id", sa.Integer(), nullable=False),
        sa.Column("reaction", sa.String(length=64), nullable=True),
        sa.ForeignKeyConstraint(["reactor_id"], ["person.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["message_id"], ["message.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_reaction_message_id", "reaction", ["message_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_reaction_message_id", table_name="reaction")
    op.drop_table("reaction")
    op.drop_index("ix_message_audio_message_id", table_name="message_audio")
    op.drop_table("message_audio")
