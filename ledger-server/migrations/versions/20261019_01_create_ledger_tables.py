"""create ledger account and statement tables

Revision ID: 3f9c1a7d2b10
Revises: 
Create Date: 2026-10-19 09:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3f9c1a7d2b10"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "ledger_accounts",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("balance_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
        sa.CheckConstraint("balance_cents >= 0", name="ck_ledger_accounts_balance_non_negative"),
    )

    op.create_table(
        "ledger_statements",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("account_id", sa.String(length=64), sa.ForeignKey("ledger_accounts.id"), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("operation_type", sa.String(length=20), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("balance_after_cents", sa.Integer(), nullable=False),
        sa.UniqueConstraint("account_id", "sequence", name="uq_ledger_statements_account_sequence"),
    )
    op.create_index("ix_ledger_statements_account_id", "ledger_statements", ["account_id"])


def downgrade() -> None:
    op.drop_index("ix_ledger_statements_account_id", table_name="ledger_statements")
    op.drop_table("ledger_statements")
    op.drop_table("ledger_accounts")
