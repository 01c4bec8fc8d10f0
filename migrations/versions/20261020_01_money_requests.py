"""create money_requests table

Revision ID: 8b2e61c4d7a9
Revises: 3f9c2a7d1b40
Create Date: 2026-10-20 09:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "8b2e61c4d7a9"
down_revision = "3f9c2a7d1b40"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "money_requests",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("request_id", sa.String(length=32), nullable=False),
        sa.Column("requester_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("requester_name", sa.String(length=101), nullable=False),
        sa.Column("requester_quickpe_id", sa.String(length=12), nullable=False),
        sa.Column("requestee_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("requestee_name", sa.String(length=101), nullable=False),
        sa.Column("requestee_quickpe_id", sa.String(length=12), nullable=False),
        sa.Column("amount_paise", sa.BigInteger(), nullable=False),
        sa.Column("description", sa.String(length=500)),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("transaction_id", sa.String(length=32)),
        sa.Column("rejection_reason", sa.String(length=200)),
        sa.Column("responded_at", sa.DateTime(timezone=True)),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
        sa.CheckConstraint("amount_paise > 0", name="ck_money_requests_amount_positive"),
    )
    op.create_index("ix_money_requests_request_id", "money_requests", ["request_id"], unique=True)
    op.create_index("ix_money_requests_status", "money_requests", ["status"])
    op.create_index("ix_money_requests_expires_at", "money_requests", ["expires_at"])
    op.create_index("ix_money_requests_created_at", "money_requests", ["created_at"])
    op.create_index("ix_money_requests_requester_status", "money_requests", ["requester_id", "status"])
    op.create_index("ix_money_requests_requestee_status", "money_requests", ["requestee_id", "status"])


def downgrade() -> None:
    op.drop_index("ix_money_requests_requestee_status", table_name="money_requests")
    op.drop_index("ix_money_requests_requester_status", table_name="money_requests")
    op.drop_index("ix_money_requests_created_at", table_name="money_requests")
    op.drop_index("ix_money_requests_expires_at", table_name="money_requests")
    op.drop_index("ix_money_requests_status", table_name="money_requests")
    op.drop_index("ix_money_requests_request_id", table_name="money_requests")
    op.drop_table("money_requests")
