"""Create airports table

Revision ID: 002
Revises: 001
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates the static `airports` reference table. Rows are bulk-loaded
       from the OurAirports dataset outside of migrations.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "airports",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("latitude_deg", sa.Float(), nullable=True),
        sa.Column("longitude_deg", sa.Float(), nullable=True),
        sa.Column("municipality", sa.Text(), nullable=True),
        sa.Column("iata_code", sa.String(8), nullable=False, server_default=sa.text("''")),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_airports_iata_code", "airports", ["iata_code"])


def downgrade() -> None:
    op.drop_index("idx_airports_iata_code", table_name="airports")
    op.drop_table("airports")
