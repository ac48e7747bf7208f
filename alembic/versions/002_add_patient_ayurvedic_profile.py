"""Add Ayurvedic profile to patients

Revision ID: 002
Revises: 001
Create Date: 2026-10-20

"""

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision = "002"
down_revision = "001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Add the constitution assessment column to patients."""
    op.add_column(
        "patients",
        sa.Column("ayurvedic_profile", postgresql.JSON(), nullable=True),
    )


def downgrade() -> None:
    """Drop the constitution assessment column."""
    op.drop_column("patients", "ayurvedic_profile")
