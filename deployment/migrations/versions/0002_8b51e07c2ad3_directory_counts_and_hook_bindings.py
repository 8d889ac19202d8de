"""directory counts and hook bindings

Revision ID: 8b51e07c2ad3
Revises: 3f2a9c1d7b40
Create Date: 2026-09-02 10:40:05.918362

Creates the directory_counts counter table and the hook_bindings table that
records which version of the counter trigger function is attached to a table.
No trigger is created here: triggers are installed with `dircount hooks ensure`.
"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "8b51e07c2ad3"
down_revision = "3f2a9c1d7b40"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "directory_counts",
        sa.Column("directory", sa.String(), nullable=False),
        sa.Column("count", sa.BigInteger(), nullable=False),
        sa.Column("entry_type", sa.Unicode(length=255), nullable=False),
        sa.Column("created", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("last_updated", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.CheckConstraint("count >= 1", name="directory_counts_count_positive"),
        sa.PrimaryKeyConstraint("directory"),
    )
    op.create_table(
        "hook_bindings",
        sa.Column("table_name", sa.String(), nullable=False),
        sa.Column("hook_name", sa.String(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("implementation_ref", sa.String(), nullable=False),
        sa.Column("installed", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.CheckConstraint("version >= 0", name="hook_bindings_version_positive"),
        sa.PrimaryKeyConstraint("table_name", "hook_name"),
    )


def downgrade() -> None:
    op.drop_table("hook_bindings")
    op.drop_table("directory_counts")
