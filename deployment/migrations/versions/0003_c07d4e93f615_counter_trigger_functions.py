"""counter trigger functions

Revision ID: c07d4e93f615
Revises: 8b51e07c2ad3
Create Date: 2026-09-03 14:27:48.551920

Defines the numbered directory count trigger functions. Defining a function
does not bind it: bindings are managed by the hook installer, which refuses to
bind functions that do not exist.
"""

from alembic import op
from sqlalchemy import text

from dircount.hooks.counter_functions import (
    COUNTER_FUNCTION_VERSIONS,
    counter_function_name,
    make_counter_function_sql,
)

# revision identifiers, used by Alembic.
revision = "c07d4e93f615"
down_revision = "8b51e07c2ad3"
branch_labels = None
depends_on = None


def upgrade() -> None:
    for version in sorted(COUNTER_FUNCTION_VERSIONS):
        op.execute(text(make_counter_function_sql(version)))


def downgrade() -> None:
    op.execute(
        text(
            "DELETE FROM hook_bindings "
            "WHERE implementation_ref LIKE 'directory_counts\\_trigger\\_v%'"
        )
    )
    # CASCADE drops the triggers executing the functions
    for version in sorted(COUNTER_FUNCTION_VERSIONS):
        op.execute(
            text(f"DROP FUNCTION IF EXISTS {counter_function_name(version)}() CASCADE")
        )
