"""Create places table

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates the `places` table backing the place-details cache.
How:   JSONB for the structured upstream values; a unique constraint on
       external_id is the only guard against duplicate inserts from
       concurrent cache misses.

Rollback: downgrade() drops the table. The cache refills on demand, at the
cost of one upstream detail call plus photo calls per place.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSONType = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        "places",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "external_id",
            sa.String(255),
            nullable=False,
            comment="Third-party place identifier, unique cache key",
        ),
        sa.Column("display_name", sa.Text(), nullable=True),
        sa.Column("formatted_address", sa.Text(), nullable=True),
        sa.Column("website_uri", sa.Text(), nullable=True),
        sa.Column("phone_number", sa.String(64), nullable=True),
        sa.Column("primary_type", sa.String(128), nullable=True),
        sa.Column("rating", sa.Float(), nullable=True),
        sa.Column("user_rating_count", sa.Integer(), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("price_level", sa.String(64), nullable=True),
        sa.Column("types", JSONType, nullable=True),
        sa.Column("photos", JSONType, nullable=False),
        sa.Column("reviews", JSONType, nullable=True),
        sa.Column("opening_hours", JSONType, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When this place was first cached (UTC)",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("external_id", name="uq_places_external_id"),
    )


def downgrade() -> None:
    op.drop_table("places")
