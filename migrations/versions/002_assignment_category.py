"""Add category and difficulty to assignments

Revision ID: 002_assignment_category
Revises: 001_initial
Create Date: 2026-10-18

"""

import typing as t

from alembic import op
from sqlalchemy.schema import Column
from sqlalchemy.types import String

# revision identifiers, used by Alembic.
revision: str = "002_assignment_category"
down_revision: str | None = "001_initial"
branch_labels: str | t.Sequence[str] | None = None
depends_on: str | t.Sequence[str] | None = None


def upgrade() -> None:
    op.add_column("assignments", Column("category", String(32), nullable=False, server_default="programming"))
    op.add_column("assignments", Column("difficulty", String(32), nullable=False, server_default="intermediate"))


def downgrade() -> None:
    op.drop_column("assignments", "difficulty")
    op.drop_column("assignments", "category")
