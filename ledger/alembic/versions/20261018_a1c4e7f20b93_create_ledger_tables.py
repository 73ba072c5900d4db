"""create outstanding, outstanding_history and idempotency_records tables

Revision ID: a1c4e7f20b93
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "a1c4e7f20b93"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "outstanding",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("order_id", sa.String(length=64), nullable=True),
        sa.Column("invoice_number", sa.String(length=64), nullable=True),
        sa.Column("amount", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("pending_amount", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("cleared_amount", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("amount > 0", name="ck_outstanding_amount_pos"),
        sa.CheckConstraint("pending_amount >= 0", name="ck_outstanding_pending_nonneg"),
        sa.CheckConstraint("cleared_amount >= 0", name="ck_outstanding_cleared_nonneg"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_outstanding_user_id", "outstanding", ["user_id"])
    op.create_index("ix_outstanding_order_id", "outstanding", ["order_id"])
    op.create_index("ix_outstanding_user_status", "outstanding", ["user_id", "status"])

    op.create_table(
        "outstanding_history",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("outstanding_id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("amount", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("payment_method", sa.String(length=50), nullable=True),
        sa.Column("transaction_id", sa.String(length=255), nullable=True),
        sa.Column("payment_date", sa.Date(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["outstanding_id"],
            ["outstanding.id"],
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "outstanding_id", "transaction_id", name="uq_outstanding_history_transaction"
        ),
    )
    op.create_index(
        "ix_outstanding_history_outstanding_id", "outstanding_history", ["outstanding_id"]
    )
    op.create_index("ix_outstanding_history_user_id", "outstanding_history", ["user_id"])
    op.create_index(
        "ix_outstanding_history_created",
        "outstanding_history",
        ["outstanding_id", "created_at"],
    )

    op.create_table(
        "idempotency_records",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("scope", sa.String(length=100), nullable=False),
        sa.Column("idempotency_key", sa.String(length=255), nullable=False),
        sa.Column("request_method", sa.String(length=10), nullable=False),
        sa.Column("request_path", sa.String(length=500), nullable=False),
        sa.Column("response_status", sa.Integer(), nullable=True),
        sa.Column("response_body", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("scope", "idempotency_key", name="uq_scope_idempotency_key"),
    )
    op.create_index("ix_idempotency_records_scope", "idempotency_records", ["scope"])
    op.create_index(
        "ix_idempotency_records_idempotency_key",
        "idempotency_records",
        ["idempotency_key"],
    )


def downgrade() -> None:
    op.drop_index(
        "ix_idempotency_records_idempotency_key", table_name="idempotency_records"
    )
    op.drop_index("ix_idempotency_records_scope", table_name="idempotency_records")
    op.drop_table("idempotency_records")

    op.drop_index("ix_outstanding_history_created", table_name="outstanding_history")
    op.drop_index("ix_outstanding_history_user_id", table_name="outstanding_history")
    op.drop_index("ix_outstanding_history_outstanding_id", table_name="outstanding_history")
    op.drop_table("outstanding_history")

    op.drop_index("ix_outstanding_user_status", table_name="outstanding")
    op.drop_index("ix_outstanding_order_id", table_name="outstanding")
    op.drop_index("ix_outstanding_user_id", table_name="outstanding")
    op.drop_table("outstanding")
