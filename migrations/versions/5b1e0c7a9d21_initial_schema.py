"""initial schema

Revision ID: 5b1e0c7a9d21
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5b1e0c7a9d21"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Create profiles, gigs, offers, chats and both message feeds."""
    op.create_table(
        "profile",
        sa.Column("id", sa.String(length=128), nullable=False),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("first_name", sa.Text(), nullable=False),
        sa.Column("last_name", sa.Text(), nullable=False),
        sa.Column("college", sa.Text(), nullable=False),
        sa.Column("year", sa.Text(), nullable=False),
        sa.Column("branch", sa.Text(), nullable=False),
        sa.Column("roll_number", sa.Text(), nullable=False),
        sa.Column("phone", sa.Text(), nullable=False),
        sa.Column("profile_picture", sa.Text(), nullable=True),
        sa.Column("auth_method", sa.String(length=16), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_profile_college", "profile", ["college"])

    op.create_table(
        "gig",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("category", sa.String(length=32), nullable=False),
        sa.Column("budget", sa.Float(), nullable=False),
        sa.Column("deadline", sa.DateTime(timezone=True), nullable=False),
        sa.Column("location", sa.Text(), nullable=False),
        sa.Column("college", sa.Text(), nullable=False),
        sa.Column("posted_by", sa.String(length=128), nullable=False),
        sa.Column("posted_by_name", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("budget > 0", name="ck_gig_budget_positive"),
        sa.ForeignKeyConstraint(["posted_by"], ["profile.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_gig_posted_by", "gig", ["posted_by"])
    op.create_index("ix_gig_college_status_created", "gig", ["college", "status", "created_at"])

    op.create_table(
        "offer",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("gig_id", sa.Integer(), nullable=False),
        sa.Column("gig_title", sa.Text(), nullable=False),
        sa.Column("gig_posted_by", sa.String(length=128), nullable=False),
        sa.Column("offered_by", sa.String(length=128), nullable=False),
        sa.Column("offered_by_name", sa.Text(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("proposed_budget", sa.Float(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("proposed_budget > 0", name="ck_offer_budget_positive"),
        sa.ForeignKeyConstraint(["gig_id"], ["gig.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["offered_by"], ["profile.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_offer_gig_id", "offer", ["gig_id"])
    op.create_index("ix_offer_gig_posted_by", "offer", ["gig_posted_by"])
    op.create_index("ix_offer_offered_by", "offer", ["offered_by"])

    op.create_table(
        "chat",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("poster_id", sa.String(length=128), nullable=False),
        sa.Column("poster_name", sa.Text(), nullable=False),
        sa.Column("offerer_id", sa.String(length=128), nullable=False),
        sa.Column("offerer_name", sa.Text(), nullable=False),
        sa.Column("gig_id", sa.Integer(), nullable=False),
        sa.Column("gig_title", sa.Text(), nullable=False),
        sa.Column("offer_id", sa.Integer(), nullable=False),
        sa.Column("last_message", sa.Text(), nullable=True),
        sa.Column("last_message_time", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["gig_id"], ["gig.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["offer_id"], ["offer.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("offer_id"),
    )
    op.create_index("ix_chat_poster_id", "chat", ["poster_id"])
    op.create_index("ix_chat_offerer_id", "chat", ["offerer_id"])
    op.create_index("ix_chat_gig_id", "chat", ["gig_id"])

    op.create_table(
        "message",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("chat_id", sa.Integer(), nullable=False),
        sa.Column("sender_id", sa.String(length=128), nullable=False),
        sa.Column("sender_name", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("media_url", sa.Text(), nullable=True),
        sa.Column("media_name", sa.Text(), nullable=True),
        sa.Column("media_size", sa.BigInteger(), nullable=True),
        sa.Column("video_duration", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["chat_id"], ["chat.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_message_chat_created", "message", ["chat_id", "created_at", "id"])

    op.create_table(
        "message_read",
        sa.Column("message_id", sa.Integer(), nullable=False),
        sa.Column("principal_id", sa.String(length=128), nullable=False),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["message_id"], ["message.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("message_id", "principal_id"),
    )

    op.create_table(
        "global_message",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("sender_id", sa.String(length=128), nullable=False),
        sa.Column("sender_name", sa.Text(), nullable=False),
        sa.Column("sender_location", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("media_url", sa.Text(), nullable=True),
        sa.Column("media_name", sa.Text(), nullable=True),
        sa.Column("media_size", sa.BigInteger(), nullable=True),
        sa.Column("video_duration", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_global_message_created_at", "global_message", ["created_at"])


def downgrade() -> None:
    """Drop every table created by this revision."""
    op.drop_index("ix_global_message_created_at", table_name="global_message")
    op.drop_table("global_message")
    op.drop_table("message_read")
    op.drop_index("ix_message_chat_created", table_name="message")
    op.drop_table("message")
    op.drop_index("ix_chat_gig_id", table_name="chat")
    op.drop_index("ix_chat_offerer_id", table_name="chat")
    op.drop_index("ix_chat_poster_id", table_name="chat")
    op.drop_table("chat")
    op.drop_index("ix_offer_offered_by", table_name="offer")
    op.drop_index("ix_offer_gig_posted_by", table_name="offer")
    op.drop_index("ix_offer_gig_id", table_name="offer")
    op.drop_table("offer")
    op.drop_index("ix_gig_college_status_created", table_name="gig")
    op.drop_index("ix_gig_posted_by", table_name="gig")
    op.drop_table("gig")
    op.drop_index("ix_profile_college", table_name="profile")
    op.drop_table("profile")
