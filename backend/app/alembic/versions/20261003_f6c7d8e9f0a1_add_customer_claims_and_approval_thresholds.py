"""add discount_code_customer_claims table and org-wide approval thresholds

Revision ID: f6c7d8e9f0a1
Revises: e5b6c7d8e9f0
Create Date: 2026-10-03 09:15:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "f6c7d8e9f0a1"
down_revision = "e5b6c7d8e9f0"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "discount_code_customer_claims",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("organization_id", sa.String(length=36), nullable=False),
        sa.Column("discount_code_id", sa.String(length=36), nullable=False),
        sa.Column("customer_key", sa.String(length=300), nullable=False),
        sa.Column("claims", sa.Integer(), nullable=False, server_default="0"),
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
        sa.ForeignKeyConstraint(
            ["discount_code_id"], ["discount_codes.id"], ondelete="RESTRICT"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "discount_code_id", "customer_key", name="uq_discount_code_customer_claims_key"
        ),
    )
    op.create_index(
        "ix_discount_code_customer_claims_organization_id",
        "discount_code_customer_claims",
        ["organization_id"],
    )

    op.add_column(
        "discount_settings",
        sa.Column("approval_threshold_percent", sa.Numeric(precision=5, scale=2), nullable=True),
    )
    op.add_column(
        "discount_settings",
        sa.Column("approval_threshold_amount", sa.Numeric(precision=12, scale=2), nullable=True),
    )
    op.add_column(
        "discount_settings",
        sa.Column("approval_for_orders_over", sa.Numeric(precision=12, scale=2), nullable=True),
    )


def downgrade() -> None:
    op.drop_column("discount_settings", "approval_for_orders_over")
    op.drop_column("discount_settings", "approval_threshold_amount")
    op.drop_column("discount_settings", "approval_threshold_percent")
    op.drop_index(
        "ix_discount_code_customer_claims_organization_id",
        table_name="discount_code_customer_claims",
    )
    op.drop_table("discount_code_customer_claims")
