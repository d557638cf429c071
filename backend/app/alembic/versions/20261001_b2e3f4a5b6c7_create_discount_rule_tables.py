"""create automatic_rules, volume_discount_tiers, seasonal_campaigns and discount_settings tables

Revision ID: b2e3f4a5b6c7
Revises: a1d2e3f4a5b6
Create Date: 2026-10-01 11:30:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "b2e3f4a5b6c7"
down_revision = "a1d2e3f4a5b6"
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
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
    ]


def upgrade() -> None:
    op.create_table(
        "automatic_rules",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("organization_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("rule_type", sa.String(length=50), nullable=False),
        sa.Column("conditions", sa.JSON(), nullable=False),
        sa.Column("discount_type", sa.String(length=20), nullable=False),
        sa.Column("discount_value", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("max_discount_amount", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("stackable", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "stack_with_codes", sa.Boolean(), nullable=False, server_default=sa.text("1")
        ),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("times_applied", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "total_discount_given",
            sa.Numeric(precision=12, scale=2),
            nullable=False,
            server_default="0",
        ),
        sa.Column("created_by", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_automatic_rules_organization_id"), "automatic_rules", ["organization_id"]
    )
    op.create_index(op.f("ix_automatic_rules_priority"), "automatic_rules", ["priority"])
    op.create_index(op.f("ix_automatic_rules_rule_type"), "automatic_rules", ["rule_type"])

    op.create_table(
        "volume_discount_tiers",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("organization_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("measurement_type", sa.String(length=20), nullable=False),
        sa.Column("service_type", sa.String(length=50), nullable=True),
        sa.Column("bands", sa.JSON(), nullable=False),
        sa.Column("stackable", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        *_timestamps(),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_volume_discount_tiers_organization_id"),
        "volume_discount_tiers",
        ["organization_id"],
    )

    op.create_table(
        "seasonal_campaigns",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("organization_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("banner_text", sa.String(length=500), nullable=True),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ends_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_recurring", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("recurrence_type", sa.String(length=20), nullable=True),
        sa.Column("discount_type", sa.String(length=20), nullable=False),
        sa.Column("discount_value", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("max_discount_amount", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column(
            "min_order_amount",
            sa.Numeric(precision=12, scale=2),
            nullable=False,
            server_default="0",
        ),
        sa.Column("applicable_services", sa.JSON(), nullable=True),
        sa.Column("promo_code", sa.String(length=50), nullable=True),
        sa.Column("stackable", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("times_applied", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "total_discount_given",
            sa.Numeric(precision=12, scale=2),
            nullable=False,
            server_default="0",
        ),
        sa.Column("created_by", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_seasonal_campaigns_organization_id"), "seasonal_campaigns", ["organization_id"]
    )

    op.create_table(
        "discount_settings",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("organization_id", sa.String(length=36), nullable=False),
        sa.Column(
            "allow_code_rule_stacking", sa.Boolean(), nullable=False, server_default=sa.text("1")
        ),
        sa.Column(
            "max_combined_percent",
            sa.Numeric(precision=5, scale=2),
            nullable=False,
            server_default="50",
        ),
        sa.Column(
            "require_approval", sa.Boolean(), nullable=False, server_default=sa.text("1")
        ),
        sa.Column("role_limits", sa.JSON(), nullable=False),
        sa.Column("escalation_after_hours", sa.Integer(), nullable=False, server_default="24"),
        sa.Column("auto_reject_after_hours", sa.Integer(), nullable=False, server_default="72"),
        sa.Column("default_approver_id", sa.String(length=255), nullable=True),
        sa.Column("escalation_approver_id", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organization_id"),
    )


def downgrade() -> None:
    op.drop_table("discount_settings")
    op.drop_index(op.f("ix_seasonal_campaigns_organization_id"), table_name="seasonal_campaigns")
    op.drop_table("seasonal_campaigns")
    op.drop_index(
        op.f("ix_volume_discount_tiers_organization_id"), table_name="volume_discount_tiers"
    )
    op.drop_table("volume_discount_tiers")
    op.drop_index(op.f("ix_automatic_rules_rule_type"), table_name="automatic_rules")
    op.drop_index(op.f("ix_automatic_rules_priority"), table_name="automatic_rules")
    op.drop_index(op.f("ix_automatic_rules_organization_id"), table_name="automatic_rules")
    op.drop_table("automatic_rules")
