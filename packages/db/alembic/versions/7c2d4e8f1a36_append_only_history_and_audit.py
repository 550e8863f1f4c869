# This project was developed with assistance from AI tools.
"""append-only triggers on application_history, disbursements and audit_events

Revision ID: 7c2d4e8f1a36
Revises: 3f1a9c2e7b10
Create Date: 2026-10-12
"""

from alembic import op

revision = "7c2d4e8f1a36"
down_revision = "3f1a9c2e7b10"
branch_labels = None
depends_on = None

_TABLES = ("application_history", "disbursements", "audit_events")

TRIGGER_FUNCTION = """
CREATE OR REPLACE FUNCTION casework_prevent_mutation()
RETURNS TRIGGER AS $$
BEGIN
    RAISE EXCEPTION '% is append-only: % denied for row %', TG_TABLE_NAME, TG_OP, OLD.id;
    RETURN NULL;
END;
$$ LANGUAGE plpgsql;
"""


def upgrade() -> None:
    op.execute(TRIGGER_FUNCTION)
    for table in _TABLES:
        op.execute(
            f"CREATE TRIGGER {table}_no_update BEFORE UPDATE ON {table} "
            "FOR EACH ROW EXECUTE FUNCTION casework_prevent_mutation()"
        )
        # Applications are never deleted, so cascades never reach these rows.
        op.execute(
            f"CREATE TRIGGER {table}_no_delete BEFORE DELETE ON {table} "
            "FOR EACH ROW EXECUTE FUNCTION casework_prevent_mutation()"
        )


def downgrade() -> None:
    for table in _TABLES:
        op.execute(f"DROP TRIGGER IF EXISTS {table}_no_delete ON {table}")
        op.execute(f"DROP TRIGGER IF EXISTS {table}_no_update ON {table}")
    op.execute("DROP FUNCTION IF EXISTS casework_prevent_mutation()")
