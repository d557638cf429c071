"""create discount_approval_requests and applied_discounts tables

Revision ID: d4a5b6c7d8e9
Revises: c3f4a5b6c7d8
Create Date: 2026-10-02 10:20:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "d4a5b6c7d8e9"
down_revision = "c3f4a5b6c7d8"
branch_labels = None
depends_on = None

OPEN_ONLY = sa.text("status IN ('pending', 'escalated')")


def upgrade() -> None:
    op.create_table(
        "discount_approval_requests",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("organization_id", sa.String(length=36), nullable=False),
        sa.Column("order_id", sa.String(length=36), nullable=False),
        sa.Column("customer_id", sa.String(length=36), nullable=True),
        sa.Column("order_amount", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("requested_by", sa.String(length=255), nullable=False),
        sa.Column("requester_role", sa.String(length=50), nullable=False),
        sa.Column("requested_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "requested_discount_amount", sa.Numeric(precision=12, scale=2), nullable=False
        ),
        sa.Column(
            "requested_discount_percent", sa.Numeric(precision=5, scale=2), nullable=False
        ),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("assigned_to", sa.String(length=255), nullable=True),
        sa.Column("reviewed_by", sa.String(length=255), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewer_notes", sa.Text(), nullable=True),
        sa.Column("counter_discount_type", sa.String(length=20), nullable=True),
        sa.Column("counter_discount_value", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("approved_discount_amount", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("escalated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("escalated_to", sa.String(length=255), nullable=True),
        sa.Column("reservation_id", sa.String(length=36), nullable=True),
        sa.Column("evaluation", sa.JSON(), nullable=False),
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
            ["reservation_id"], ["discount_code_usages.id"], ondelete="RESTRICT"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_discount_approval_requests_organization_id"),
        "discount_approval_requests",
        ["organization_id"],
    )
    op.create_index(
        op.f("ix_discount_approval_requests_order_id"),
        "discount_approval_requests",
        ["order_id"],
    )
    op.create_index(
        op.f("ix_discount_approval_requests_requested_by"),
        "discount_approval_requests",
        ["requested_by"],
    )
    op.create_index(
        op.f("ix_discount_approval_requests_status"),
        "discount_approval_requests",
        ["status"],
    )
    op.create_index(
        "uq_discount_approval_requests_open_order",
        "discount_approval_requests",
        ["organization_id", "order_id"],
        unique=True,
        sqlite_where=OPEN_ONLY,
        postgresql_where=OPEN_ONLY,
    )

    op.create_table(
        "applied_discounts",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("organization_id", sa.String(length=36), nullable=False),
        sa.Column("order_id", sa.String(length=36), nullable=False),
        sa.Column("customer_id", sa.String(length=36), nullable=True),
        sa.Column("source_type", sa.String(length=20), nullable=False),
        sa.Column("source_id", sa.String(length=36), nullable=True),
        sa.Column("source_name", sa.String(length=255), nullable=False),
        sa.Column("discount_type", sa.String(length=20), nullable=False),
        sa.Column("discount_value", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("discount_amount", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("order_position", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("applied_to_subtotal", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("approval_request_id", sa.String(length=36), nullable=True),
        sa.Column("applied_by", sa.String(length=255), nullable=True),
        sa.Column("applied_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(
            ["approval_request_id"], ["discount_approval_requests.id"], ondelete="RESTRICT"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_applied_discounts_organization_id"), "applied_discounts", ["organization_id"]
    )
    op.create_index(op.f("ix_applied_discounts_order_id"), "applied_discounts", ["order_id"])
    op.create_index(
        "ix_applied_discounts_source", "applied_discounts", ["source_type", "source_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_applied_discounts_source", table_name="applied_discounts")
    op.drop_index(op.f("ix_applied_discounts_order_id"), table_name="applied_discounts")
    op.drop_index(op.f("ix_applied_discounts_organization_id"), table_name="applied_discounts")
    op.drop_table("applied_discounts")
    op.drop_index(
        "uq_discount_approval_requests_open_order", table_name="discount_approval_requests"
    )
    op.drop_index(
        op.f("ix_discount_approval_requests_status"), table_name="discount_approval_requests"
    )
    op.drop_index(
        op.f("ix_discount_approval_requests_requested_by"),
        table_name="discount_approval_requests",
    )
    op.drop_index(
        op.f("ix_discount_approval_requests_order_id"), table_name="discount_approval_requests"
    )
    op.drop_index(
        op.f("ix_discount_approval_requests_organization_id"),
        table_name="discount_approval_requests",
    )
    op.drop_table("discount_approval_requests")
