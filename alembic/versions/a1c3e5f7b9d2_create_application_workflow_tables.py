"""create application workflow tables

Revision ID: a1c3e5f7b9d2
Revises:
Create Date: 2026-10-19 09:00:00.000000

This migration:
1. Creates the incubation_centres lookup table
2. Creates the applications table with its status enum
3. Creates the approval_tokens table with its action enum

approval_tokens.application_id has no foreign key: tokens
are kept as an audit trail and redemption reports a missing application.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "a1c3e5f7b9d2"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create incubation_centres, applications and approval_tokens."""
    application_status_enum = postgresql.ENUM(
        "pending",
        "approved",
        "rejected",
        name="application_status",
        create_type=False,
    )
    application_status_enum.create(op.get_bind(), checkfirst=True)

    approval_action_enum = postgresql.ENUM(
        "approve",
        "reject",
        name="approval_action",
        create_type=False,
    )
    approval_action_enum.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "incubation_centres",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("admin_email", sa.String(length=255), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", name="uq_incubation_centres_name"),
    )

    op.create_table(
        "applications",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        # Founder details
        sa.Column("founder_name", sa.String(length=200), nullable=False),
        sa.Column("startup_name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=30), nullable=False),
        sa.Column("company_type", sa.String(length=50), nullable=False),
        sa.Column("team_size", sa.String(length=20), nullable=False),
        sa.Column("source", sa.String(length=50), nullable=False),
        sa.Column("coupon_code", sa.String(length=100), nullable=False),
        # Incubation info
        sa.Column("incubation_centre", sa.String(length=200), nullable=False),
        sa.Column("registration_certificate_url", sa.String(length=1000), nullable=True),
        sa.Column("incubation_letter_url", sa.String(length=1000), nullable=True),
        sa.Column("website", sa.String(length=500), nullable=True),
        # Startup idea
        sa.Column("idea_description", sa.Text(), nullable=False),
        sa.Column("expectations", sa.JSON(), nullable=False),
        sa.Column("challenges", sa.Text(), nullable=True),
        # Review
        sa.Column("status", application_status_enum, nullable=False),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_applications_status", "applications", ["status"])
    op.create_index("ix_applications_email", "applications", ["email"])
    op.create_index("ix_applications_created_at", "applications", ["created_at"])

    op.create_table(
        "approval_tokens",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("application_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("token", sa.String(length=255), nullable=False),
        sa.Column("action", approval_action_enum, nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("token", name="uq_approval_tokens_token"),
    )
    op.create_index("ix_approval_tokens_application_id", "approval_tokens", ["application_id"])


def downgrade() -> None:
    """Drop the workflow tables and enum types."""
    op.drop_index("ix_approval_tokens_application_id", table_name="approval_tokens")
    op.drop_table("approval_tokens")

    op.drop_index("ix_applications_created_at", table_name="applications")
    op.drop_index("ix_applications_email", table_name="applications")
    op.drop_index("ix_applications_status", table_name="applications")
    op.drop_table("applications")

    op.drop_table("incubation_centres")

    postgresql.ENUM(name="approval_action").drop(op.get_bind(), checkfirst=True)
    postgresql.ENUM(name="application_status").drop(op.get_bind(), checkfirst=True)
