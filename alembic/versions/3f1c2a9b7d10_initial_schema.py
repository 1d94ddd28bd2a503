"""initial schema

Revision ID: 3f1c2a9b7d10
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

revision: str = "3f1c2a9b7d10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "patients",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("uuid", sa.String(26), nullable=False, unique=True),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("patient_type", sa.String(50), nullable=False, server_default=""),
        sa.Column("ward", sa.String(100), nullable=False, server_default=""),
        sa.Column("contact", sa.String(100), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    )

    # Money columns hold canonical decimal strings so every backend round-trips them exactly.
    op.create_table(
        "bills",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("uuid", sa.String(26), nullable=False, unique=True),
        sa.Column("bill_number", sa.String(32), nullable=False, unique=True),
        sa.Column("patient_id", sa.Integer, sa.ForeignKey("patients.id"), nullable=False),
        sa.Column("subtotal", sa.String(40), nullable=False, server_default="0"),
        sa.Column("discount", sa.String(40), nullable=False, server_default="0"),
        sa.Column("tax_rate", sa.String(40), nullable=False, server_default="0"),
        sa.Column("tax_amount", sa.String(40), nullable=False, server_default="0"),
        sa.Column("total_amount", sa.String(40), nullable=False, server_default="0"),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default="Pending"),
        sa.Column("payment_method", sa.String(20), nullable=False, server_default="Cash"),
        sa.Column("notes", sa.Text, nullable=False, server_default=""),
        sa.Column("created_by", sa.Integer, nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_bills_created_at", "bills", ["created_at"])

    op.create_table(
        "bill_items",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("bill_id", sa.Integer, sa.ForeignKey("bills.id", ondelete="CASCADE"), nullable=False),
        sa.Column("service_name", sa.Text, nullable=False),
        sa.Column("quantity", sa.Integer, nullable=False, server_default="1"),
        sa.Column("unit_price", sa.String(40), nullable=False),
        sa.Column("line_total", sa.String(40), nullable=False),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
    )


def downgrade() -> None:
    op.drop_table("bill_items")
    op.drop_index("ix_bills_created_at", table_name="bills")
    op.drop_table("bills")
    op.drop_table("patients")
