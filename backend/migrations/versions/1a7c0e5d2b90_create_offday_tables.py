"""create users, offday_requests and offdays

Revision ID: 1a7c0e5d2b90
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '1a7c0e5d2b90'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("department", sa.String(128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("role IN ('teacher', 'director', 'chairman')", name="chk_user_role"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "offday_requests",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("owner_email", sa.String(255), nullable=False),
        sa.Column("subject", sa.String(200), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("days", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("rejection_message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("end_date >= start_date", name="chk_offday_request_range"),
        sa.CheckConstraint(
            "status IN ('pending', 'in_progress', 'accepted', 'rejected')",
            name="chk_offday_request_status",
        ),
    )
    op.create_index("ix_offday_requests_owner_email", "offday_requests", ["owner_email"])
    op.create_index("ix_offday_requests_status", "offday_requests", ["status"])
    op.create_index(
        "ix_offday_requests_status_created", "offday_requests", ["status", "created_at"]
    )

    op.create_table(
        "offdays",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("request_id", sa.Integer(), sa.ForeignKey("offday_requests.id"), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("request_id", name="uq_offdays_request_id"),
    )
    op.create_index("ix_offdays_user_range", "offdays", ["user_id", "start_date", "end_date"])


def downgrade() -> None:
    op.drop_index("ix_offdays_user_range", table_name="offdays")
    op.drop_table("offdays")
    op.drop_index("ix_offday_requests_status_created", table_name="offday_requests")
    op.drop_index("ix_offday_requests_status", table_name="offday_requests")
    op.drop_index("ix_offday_requests_owner_email", table_name="offday_requests")
    op.drop_table("offday_requests")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
