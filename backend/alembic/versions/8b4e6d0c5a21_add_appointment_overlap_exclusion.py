"""add_appointment_overlap_exclusion

Revision ID: 8b4e6d0c5a21
Revises: 3f1c2a9d7e10
Create Date: 2026-09-21 16:40:03.902117

"""

from alembic import op


# revision identifiers, used by Alembic.
revision = "8b4e6d0c5a21"
down_revision = "3f1c2a9d7e10"
branch_labels = None
depends_on = None


def upgrade():
    # btree_gist lets a GiST index combine "=" on uuid with "&&" on ranges
    op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")

    op.execute(
        """
        ALTER TABLE appointments
        ADD COLUMN during TSTZRANGE
        GENERATED ALWAYS AS (tstzrange(start_time, end_time, '[)')) STORED
        """
    )

    op.execute(
        """
        ALTER TABLE appointments
        ADD CONSTRAINT no_overlapping_appointments
        EXCLUDE USING gist (organization_id WITH =, during WITH &&)
        WHERE (status <> 'cancelled')
        """
    )

    op.create_check_constraint(
        "organizations_default_appointment_duration_check",
        "organizations",
        "default_appointment_duration >= 5 AND default_appointment_duration <= 480",
    )


def downgrade():
    op.drop_constraint(
        "organizations_default_appointment_duration_check",
        "organizations",
        type_="check",
    )
    op.execute(
        "ALTER TABLE appointments DROP CONSTRAINT IF EXISTS no_overlapping_appointments"
    )
    op.execute("ALTER TABLE appointments DROP COLUMN IF EXISTS during")
