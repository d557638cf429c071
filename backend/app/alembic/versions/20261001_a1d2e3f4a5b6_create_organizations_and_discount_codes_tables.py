"""create organizations, discount_codes and discount_code_usages tables

Revision ID: a1d2e3f4a5b6
Revises:
Create Date: 2026-10-01 09:00:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "a1d2e3f4a5b6"
down_revision = None
branch_labels = None
depends_on = None

# Known default organization ID used when no tenant header is sent
DEFAULT_ORG_ID = "00000000-0000-0000-0000-000000000001"


def upgrade() -> None:
    organizations = op.create_table(
        "organizations",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="USD"),
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
        sa.PrimaryKeyConstraint("id"),
    )
    op.bulk_insert(
        organizations,
        [{"id": DEFAULT_ORG_ID, "name": "Default", "currency": "USD"}],
    )

    op.create_table(
        "discount_codes",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("organization_id", sa.String(length=36), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("discount_type", sa.String(length=20), nullable=False),
        sa.Column("discount_value", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("max_discount_amount", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column(
            "min_order_amount",
            sa.Numeric(precision=12, scale=2),
            nullable=False,
            server_default="0",
        ),
        sa.Column("max_uses_total", sa.Integer(), nullable=True),
        sa.Column("max_uses_per_customer", sa.Integer(), nullable=True),
        sa.Column("applicable_services", sa.JSON(), nullable=True),
        sa.Column("applicable_tiers", sa.JSON(), nullable=True),
        sa.Column(
            "new_customers_only", sa.Boolean(), nullable=False, server_default=sa.text("0")
        ),
        sa.Column(
            "existing_customers_only", sa.Boolean(), nullable=False, server_default=sa.text("0")
        ),
        sa.Column("specific_customer_ids", sa.JSON(), nullable=True),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("uses_claimed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("times_used", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "total_discount_given",
            sa.Numeric(precision=12, scale=2),
            nullable=False,
            server_default="0",
        ),
        sa.Column("created_by", sa.String(length=255), nullable=True),
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
        sa.UniqueConstraint("organization_id", "code", name="uq_discount_codes_org_code"),
    )
    op.create_index(
        op.f("ix_discount_codes_organization_id"), "discount_codes", ["organization_id"]
    )
    op.create_index(op.f("ix_discount_codes_code"), "discount_codes", ["code"])

    op.create_table(
        "discount_code_usages",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("organization_id", sa.String(length=36), nullable=False),
        sa.Column("discount_code_id", sa.String(length=36), nullable=False),
        sa.Column("order_id", sa.String(length=36), nullable=False),
        sa.Column("customer_id", sa.String(length=36), nullable=True),
        sa.Column("customer_email", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="reserved"),
        sa.Column(
            "order_amount", sa.Numeric(precision=12, scale=2), nullable=False, server_default="0"
        ),
        sa.Column(
            "discount_amount",
            sa.Numeric(precision=12, scale=2),
            nullable=False,
            server_default="0",
        ),
        sa.Column("reserved_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("committed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("released_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("release_reason", sa.String(length=50), nullable=True),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(
            ["discount_code_id"], ["discount_codes.id"], ondelete="RESTRICT"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_discount_code_usages_organization_id"),
        "discount_code_usages",
        ["organization_id"],
    )
    op.create_index(op.f("ix_discount_code_usages_order_id"), "discount_code_usages", ["order_id"])
    op.create_index(
        op.f("ix_discount_code_usages_customer_email"),
        "discount_code_usages",
        ["customer_email"],
    )
    op.create_index(
        op.f("ix_discount_code_usages_expires_at"), "discount_code_usages", ["expires_at"]
    )
    op.create_index(
        "ix_discount_code_usages_code_status",
        "discount_code_usages",
        ["discount_code_id", "status"],
    )
    op.create_index(
        "ix_discount_code_usages_code_customer",
        "discount_code_usages",
        ["discount_code_id", "customer_id"],
    )


def downgrade() -> None:
    op.drop_index("ix_discount_code_usages_code_customer", table_name="discount_code_usages")
    op.drop_index("ix_discount_code_usages_code_status", table_name="discount_code_usages")
    op.drop_index(
        op.f("ix_discount_code_usages_expires_at"), table_name="discount_code_usages"
    )
    op.drop_index(
        op.f("ix_discount_code_usages_customer_email"), table_name="discount_code_usages"
    )
    op.drop_index(op.f("ix_discount_code_usages_order_id"), table_name="discount_code_usages")
    op.drop_index(
        op.f("ix_discount_code_usages_organization_id"), table_name="discount_code_usages"
    )
    op.drop_table("discount_code_usages")
    op.drop_index(op.f("ix_discount_codes_code"), table_name="discount_codes")
    op.drop_index(op.f("ix_discount_codes_organization_id"), table_name="discount_codes")
    op.drop_table("discount_codes")
    op.drop_table("organizations")
