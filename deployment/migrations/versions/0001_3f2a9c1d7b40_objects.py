"""objects

Revision ID: 3f2a9c1d7b40
Revises:
Create Date: 2026-09-02 10:12:31.204117

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "3f2a9c1d7b40"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "objects",
        sa.Column("bucket", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("directory", sa.String(), nullable=False),
        sa.Column("size", sa.BigInteger(), nullable=False),
        sa.Column("created", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("bucket", "name"),
    )
    op.create_index("ix_objects_directory", "objects", ["directory"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_objects_directory", table_name="objects")
    op.drop_table("objects")
