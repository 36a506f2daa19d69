"""initial chat store schema

Revision ID: 20261001_0001
Revises:
Create Date: 2026-10-01 00:00:01
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261001_0001"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None

EPOCH_NOW = sa.text("(CAST(strftime('%s', 'now') AS INTEGER))")


def upgrade() -> None:
    op.create_table(
        "export",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("source", sa.String(length=64), nullable=False),
        sa.Column("checksum", sa.String(length=128), nullable=True),
        sa.Column("imported_at", sa.Integer(), server_default=EPOCH_NOW, nullable=False),
        sa.Column("meta_json", sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "canonical_person",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=True),
        sa.Column("avatar_uri", sa.String(length=1024), nullable=True),
        sa.Column("created_at", sa.Integer(), server_default=EPOCH_NOW, nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "canonical_conversation",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.Integer(), server_default=EPOCH_NOW, nullable=False),
        sa.CheckConstraint("type in ('dm','group')", name="ck_canonical_conversation_type"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "conversation",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("image_uri", sa.String(length=1024), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("export_id", sa.Integer(), nullable=False),
        sa.Column("canonical_conversation_id", sa.Integer(), nullable=False),
        sa.CheckConstraint("type in ('dm','group')", name="ck_conversation_type"),
        sa.ForeignKeyConstraint(["export_id"], ["export.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["canonical_conversation_id"], ["canonical_conversation.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_conversation_export_id", "conversation", ["export_id"], unique=False)
    op.create_index(
        "ix_conversation_canonical_conversation_id",
        "conversation",
        ["canonical_conversation_id"],
        unique=False,
    )

    op.create_table(
        "person",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("conversation_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("avatar_uri", sa.String(length=1024), nullable=True),
        sa.Column("canonical_person_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["conversation_id"], ["conversation.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["canonical_person_id"], ["canonical_person.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_person_conversation", "person", ["conversation_id", "id"], unique=False)
    op.create_index("ix_person_canonical_person_id", "person", ["canonical_person_id"], unique=False)

    op.create_table(
        "message",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("sender", sa.Integer(), nullable=False),
        sa.Column("sent_at", sa.Integer(), nullable=False),
        sa.Column("unsent", sa.Boolean(), server_default=sa.text("0"), nullable=False),
        sa.ForeignKeyConstraint(["sender"], ["person.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_message_sender_time", "message", ["sender", "sent_at"], unique=False)

    for table_name, column_name in (
        ("message_text", "text"),
        ("message_image", "image_uri"),
        ("message_video", "video_uri"),
        ("message_gif", "gif_uri"),
    ):
        column_type = sa.Text() if column_name == "text" else sa.String(length=1024)
        op.create_table(
            table_name,
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            sa.Column("message_id", sa.Integer(), nullable=False),
            sa.Column(column_name, column_type, nullable=True),
            sa.ForeignKeyConstraint(["message_id"], ["message.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(f"ix_{table_name}_message_id", table_name, ["message_id"], unique=False)


def downgrade() -> None:
    for table_name in ("message_gif", "message_video", "message_image", "message_text"):
        op.drop_index(f"ix_{table_name}_message_id", table_name=table_name)
        op.drop_table(table_name)
    op.drop_index("idx_message_sender_time", table_name="message")
    op.drop_table("message")
    op.drop_index("ix_person_canonical_person_id", table_name="person")
    op.drop_index("idx_person_conversation", table_name="person")
    op.drop_table("person")
    op.drop_index("ix_conversation_canonical_conversation_id", table_name="conversation")
    op.drop_index("ix_conversation_export_id", table_name="conversation")
    op.drop_table("conversation")
    op.drop_table("canonical_conversation")
    op.drop_table("canonical_person")
    op.drop_table("export")
