"""Add auth_attempts table for the register/login rate limiter.

Revision ID: 20261018000100
Revises: 20261018000000
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "20261018000100"
down_revision: Union[str, None] = "20261018000000"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "auth_attempts",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("client_key", sa.String(length=255), nullable=False),
        sa.Column("attempted_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_auth_attempts")),
    )
    op.create_index(
        "ix_auth_attempts_client_key_attempted_at",
        "auth_attempts",
        ["client_key", "attempted_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_auth_attempts_client_key_attempted_at", table_name="auth_attempts")
    op.drop_table("auth_attempts")
