"""store timestamps with time zone

Revision ID: 8b41e07c2d95
Revises: 3f2a9c1d7b10
Create Date: 2026-10-17 15:02:27.540913

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '8b41e07c2d95'
down_revision: Union[str, Sequence[str], None] = '3f2a9c1d7b10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TIMESTAMP_COLUMNS = [
    ("book", "created_at"),
    ("book", "updated_at"),
    ("cart", "created_at"),
    ("cart", "updated_at"),
    ("cartitem", "created_at"),
    ("order", "created_at"),
    ("order", "updated_at"),
]


def upgrade():
    # existing naive values were written as UTC
    for table, column in TIMESTAMP_COLUMNS:
        op.alter_column(
            table,
            column,
            type_=sa.DateTime(timezone=True),
            existing_type=sa.DateTime(),
            existing_nullable=False,
            postgresql_using=f"{column} AT TIME ZONE 'UTC'",
        )


def downgrade():
    for table, column in TIMESTAMP_COLUMNS:
        op.alter_column(
            table,
            column,
            type_=sa.DateTime(),
            existing_type=sa.DateTime(timezone=True),
            existing_nullable=False,
            postgresql_using=f"{column} AT TIME ZONE 'UTC'",
        )
