"""create loyalty_programs, customer_loyalty and loyalty_transactions tables

Revision ID: c3f4a5b6c7d8
Revises: b2e3f4a5b6c7
Create Date: 2026-10-01 15:10:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "c3f4a5b6c7d8"
down_revision = "b2e3f4a5b6c7"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "loyalty_programs",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("organization_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column(
            "points_per_dollar",
            sa.Numeric(precision=8, scale=2),
            nullable=False,
            server_default="1",
        ),
        sa.Column("points_for_signup", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("points_for_referral", sa.Integer(), nullable=False, server_default="500"),
        sa.Column(
            "points_to_dollar_ratio",
            sa.Numeric(precision=10, scale=4),
            nullable=False,
            server_default="0.01",
        ),
        sa.Column("min_points_to_redeem", sa.Integer(), nullable=False, server_default="500"),
        sa.Column(
            "max_redemption_percent",
            sa.Numeric(precision=5, scale=2),
            nullable=False,
            server_default="50",
        ),
        sa.Column("tiers", sa.JSON(), nullable=False),
        sa.Column("stackable", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organization_id"),
    )

    op.create_table(
        "customer_loyalty",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("organization_id", sa.String(length=36), nullable=False),
        sa.Column("customer_id", sa.String(length=36), nullable=False),
        sa.Column("current_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_points_earned", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_points_redeemed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_orders", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "total_spent", sa.Numeric(precision=12, scale=2), nullable=False, server_default="0"
        ),
        sa.Column("first_order_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_order_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("referral_code", sa.String(length=20), nullable=False),
        sa.Column("referred_by_code", sa.String(length=20), nullable=True),
        sa.Column("referrals_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "enrolled_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.CheckConstraint(
            "current_points >= 0", name="ck_customer_loyalty_points_non_negative"
        ),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "organization_id", "customer_id", name="uq_customer_loyalty_org_customer"
        ),
        sa.UniqueConstraint("referral_code"),
    )
    op.create_index(
        op.f("ix_customer_loyalty_organization_id"), "customer_loyalty", ["organization_id"]
    )
    op.create_index(op.f("ix_customer_loyalty_customer_id"), "customer_loyalty", ["customer_id"])

    op.create_table(
        "loyalty_transactions",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("organization_id", sa.String(length=36), nullable=False),
        sa.Column("customer_loyalty_id", sa.String(length=36), nullable=False),
        sa.Column("transaction_type", sa.String(length=20), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("balance_after", sa.Integer(), nullable=False),
        sa.Column("order_id", sa.String(length=36), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(length=255), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(
            ["customer_loyalty_id"], ["customer_loyalty.id"], ondelete="RESTRICT"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_loyalty_transactions_organization_id"),
        "loyalty_transactions",
        ["organization_id"],
    )
    op.create_index(
        op.f("ix_loyalty_transactions_customer_loyalty_id"),
        "loyalty_transactions",
        ["customer_loyalty_id"],
    )
    op.create_index(
        op.f("ix_loyalty_transactions_transaction_type"),
        "loyalty_transactions",
        ["transaction_type"],
    )


def downgrade() -> None:
    op.drop_index(
        op.f("ix_loyalty_transactions_transaction_type"), table_name="loyalty_transactions"
    )
    op.drop_index(
        op.f("ix_loyalty_transactions_customer_loyalty_id"), table_name="loyalty_transactions"
    )
    op.drop_index(
        op.f("ix_loyalty_transactions_organization_id"), table_name="loyalty_transactions"
    )
    op.drop_table("loyalty_transactions")
    op.drop_index(op.f("ix_customer_loyalty_customer_id"), table_name="customer_loyalty")
    op.drop_index(op.f("ix_customer_loyalty_organization_id"), table_name="customer_loyalty")
    op.drop_table("customer_loyalty")
    op.drop_table("loyalty_programs")
