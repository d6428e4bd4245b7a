"""Initial schema: assignments, submissions and their feedback

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18

"""

import typing as t

from alembic import op
from sqlalchemy import false, true
from sqlalchemy import func as f
from sqlalchemy.schema import Column, ForeignKey, UniqueConstraint
from sqlalchemy.types import JSON, Boolean, DateTime, Integer, String, Text

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | t.Sequence[str] | None = None
depends_on: str | t.Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "assignments",
        Column("code", String(6), primary_key=True),
        Column("title", String, nullable=False),
        Column("deadline", DateTime(timezone=True), nullable=False),
        Column("description", Text, nullable=False, server_default=""),
        Column("requirements", JSON, nullable=False),
        Column("recommendations", JSON, nullable=False),
        Column("active", Boolean, nullable=False, server_default=true()),
        Column("allow_resubmission", Boolean, nullable=False, server_default=false()),
        Column("create_time", DateTime(timezone=True), server_default=f.now(), nullable=False),
        Column("update_time", DateTime(timezone=True), server_default=f.now(), nullable=False),
    )

    op.create_table(
        "submissions",
        Column("submission_id", String(22), primary_key=True),
        Column(
            "assignment_code", String(6), ForeignKey("assignments.code", ondelete="CASCADE"), nullable=False
        ),
        Column("submitter_id", String, nullable=False),
        Column("kind", String(32), nullable=False),
        Column("content", Text, nullable=False),
        Column("submitted_at", DateTime(timezone=True), nullable=False),
        Column("reference", String, nullable=True),
        Column("title", String, nullable=True),
        Column("structure", Text, nullable=True),
        Column("metadata", JSON, nullable=False),
        Column("state", String(32), nullable=False, server_default="created"),
        Column("failure_reason", String, nullable=True),
        Column("failure_detail", Text, nullable=True),
        Column("update_time", DateTime(timezone=True), server_default=f.now(), nullable=False),
        UniqueConstraint("assignment_code", "submitter_id"),
    )
    op.create_index("ix_submissions_assignment_code", "submissions", ["assignment_code"])
    op.create_index("ix_submissions_submitter_id", "submissions", ["submitter_id"])

    op.create_table(
        "feedback",
        Column("feedback_id", String(22), primary_key=True),
        Column(
            "submission_id",
            String(22),
            ForeignKey("submissions.submission_id", ondelete="CASCADE"),
            unique=True,
            nullable=False,
        ),
        Column("score", Integer, nullable=False),
        Column("subscores", JSON, nullable=False),
        Column("content", Text, nullable=False),
        Column("model", String, nullable=False),
        Column("latency_ms", Integer, nullable=False),
        Column("tokens_used", Integer, nullable=True),
        Column("create_time", DateTime(timezone=True), server_default=f.now(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("feedback")
    op.drop_index("ix_submissions_submitter_id", table_name="submissions")
    op.drop_index("ix_submissions_assignment_code", table_name="submissions")
    op.drop_table("submissions")
    op.drop_table("assignments")
