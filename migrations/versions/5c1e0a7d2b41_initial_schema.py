"""initial schema

Revision ID: 5c1e0a7d2b41
Revises:
Create Date: 2026-10-18 09:12:41.337202

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c1e0a7d2b41"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create report, vote, comment and comment_report tables."""
    op.create_table(
        "report",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("validity_expires_at", sa.DateTime(), nullable=False),
        sa.Column("upvote_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("downvote_count", sa.Integer(), nullable=False, server_default="0"),
        sa.CheckConstraint("latitude >= -90 AND latitude <= 90", name="ck_report_latitude"),
        sa.CheckConstraint("longitude >= -180 AND longitude <= 180", name="ck_report_longitude"),
        sa.CheckConstraint("upvote_count >= 0", name="ck_report_upvote_count"),
        sa.CheckConstraint("downvote_count >= 0", name="ck_report_downvote_count"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_report_validity_expires_at", "report", ["validity_expires_at"])
    op.create_index("ix_report_created_at", "report", ["created_at"])

    op.create_table(
        "vote",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("report_id", sa.String(length=36), nullable=False),
        sa.Column("fingerprint_hash", sa.String(length=64), nullable=False),
        sa.Column("ip_hash", sa.String(length=64), nullable=False),
        sa.Column("vote_type", sa.String(length=4), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("vote_type IN ('up', 'down')", name="ck_vote_type"),
        sa.ForeignKeyConstraint(["report_id"], ["report.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("report_id", "fingerprint_hash", "ip_hash", name="uq_vote_voter"),
    )
    op.create_index("ix_vote_report_id", "vote", ["report_id"])

    op.create_table(
        "comment",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("report_id", sa.String(length=36), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("fingerprint_hash", sa.String(length=64), nullable=False),
        sa.Column("ip_hash", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("report_count", sa.Integer(), nullable=False, server_default="0"),
        sa.CheckConstraint("report_count >= 0", name="ck_comment_report_count"),
        sa.ForeignKeyConstraint(["report_id"], ["report.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_comment_report_id_created_at", "comment", ["report_id", "created_at"])

    op.create_table(
        "comment_report",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("comment_id", sa.String(length=36), nullable=False),
        sa.Column("fingerprint_hash", sa.String(length=64), nullable=False),
        sa.Column("ip_hash", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["comment_id"], ["comment.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "comment_id", "fingerprint_hash", "ip_hash", name="uq_comment_report_voter"
        ),
    )


def downgrade() -> None:
    """Drop all Frostwatch tables."""
    op.drop_table("comment_report")
    op.drop_index("ix_comment_report_id_created_at", table_name="comment")
    op.drop_table("comment")
    op.drop_index("ix_vote_report_id", table_name="vote")
    op.drop_table("vote")
    op.drop_index("ix_report_created_at", table_name="report")
    op.drop_index("ix_report_validity_expires_at", table_name="report")
    op.drop_table("report")
