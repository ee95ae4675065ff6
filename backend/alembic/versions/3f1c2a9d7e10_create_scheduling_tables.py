"""create_scheduling_tables

Revision ID: 3f1c2a9d7e10
Revises:
Create Date: 2026-09-14 10:12:41.318204

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "3f1c2a9d7e10"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "organizations",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column(
            "timezone", sa.String(), nullable=False, server_default="America/New_York"
        ),
        sa.Column("business_hours", postgresql.JSONB(), nullable=True),
        sa.Column(
            "default_appointment_duration",
            sa.Integer(),
            nullable=False,
            server_default="30",
        ),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
    )

    op.create_table(
        "calendar_integrations",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "organization_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("organizations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("provider", sa.String(), nullable=False),
        sa.Column("access_token", sa.Text(), nullable=True),
        sa.Column("calendar_id", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
    )
    op.create_index(
        op.f("ix_calendar_integrations_organization_id"),
        "calendar_integrations",
        ["organization_id"],
        unique=False,
    )

    op.create_table(
        "appointments",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "organization_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("organizations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("provider", sa.String(), nullable=False, server_default="internal"),
        sa.Column("external_id", sa.String(), nullable=True),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=True),
        sa.Column("attendee_name", sa.String(), nullable=False),
        sa.Column("attendee_phone", sa.String(), nullable=True),
        sa.Column("attendee_email", sa.String(), nullable=True),
        sa.Column(
            "status", sa.String(length=50), nullable=False, server_default="confirmed"
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("metadata", postgresql.JSONB(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
        sa.CheckConstraint(
            "end_time > start_time", name="appointments_time_order_check"
        ),
        sa.CheckConstraint(
            "status IN ('confirmed', 'pending', 'cancelled', 'rescheduled', 'completed', 'no_show')",
            name="appointments_status_check",
        ),
    )
    op.create_index(
        op.f("ix_appointments_organization_id"),
        "appointments",
        ["organization_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_appointments_external_id"), "appointments", ["external_id"], unique=False
    )
    op.create_index(
        op.f("ix_appointments_attendee_phone"),
        "appointments",
        ["attendee_phone"],
        unique=False,
    )


def downgrade():
    op.drop_table("appointments")
    op.drop_index(
        op.f("ix_calendar_integrations_organization_id"),
        table_name="calendar_integrations",
    )
    op.drop_table("calendar_integrations")
    op.drop_table("organizations")
