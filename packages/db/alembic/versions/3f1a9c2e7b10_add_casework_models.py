# This project was developed with assistance from AI tools.
"""add casework models

Revision ID: 3f1a9c2e7b10
Revises:
Create Date: 2026-10-12 09:14:22.418305

"""

import sqlalchemy as sa
from alembic import op

revision = "3f1a9c2e7b10"
down_revision = None
branch_labels = None
depends_on = None

_TS = sa.DateTime(timezone=True)


def upgrade() -> None:
    op.create_table(
        "masajid",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("zip_code", sa.String(20), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("applications_in_progress", sa.Integer(), server_default="0", nullable=False),
        sa.Column("total_applications_handled", sa.Integer(), server_default="0", nullable=False),
        sa.Column(
            "total_amount_disbursed", sa.Numeric(14, 2), server_default="0", nullable=False,
        ),
        sa.Column("created_at", _TS, server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", _TS, server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("applications_in_progress >= 0", name="ck_masajid_in_progress_nonneg"),
    )

    op.create_table(
        "user_profiles",
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False, server_default=""),
        sa.Column("last_name", sa.String(100), nullable=False, server_default=""),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="APPLICANT"),
        sa.Column("masjid_id", sa.Integer(), nullable=True),
        sa.Column("is_flagged", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("flagged_reason", sa.Text(), nullable=True),
        sa.Column("flagged_at", _TS, nullable=True),
        sa.Column("flagged_by", sa.String(255), nullable=True),
        sa.Column("flagged_by_masjid", sa.Integer(), nullable=True),
        sa.Column("created_at", _TS, server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", _TS, server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("user_id"),
        sa.ForeignKeyConstraint(["masjid_id"], ["masajid.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_user_profiles_email", "user_profiles", ["email"])

    op.create_table(
        "counters",
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("value", sa.Integer(), server_default="0", nullable=False),
        sa.PrimaryKeyConstraint("name"),
    )

    op.create_table(
        "applications",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("application_number", sa.String(20), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="DRAFT"),
        sa.Column("applicant_id", sa.String(255), nullable=False),
        sa.Column("applicant_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("applicant_email", sa.String(255), nullable=False, server_default=""),
        sa.Column("applicant_phone", sa.String(50), nullable=True),
        sa.Column("applicant_is_flagged", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("request_type", sa.String(100), nullable=True),
        sa.Column("amount_requested", sa.Numeric(12, 2), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("form_data", sa.JSON(), nullable=True),
        sa.Column("assigned_to", sa.String(255), nullable=True),
        sa.Column("assigned_to_masjid", sa.Integer(), nullable=True),
        sa.Column("assigned_to_masjid_name", sa.String(255), nullable=True),
        sa.Column("assigned_to_masjid_zip_code", sa.String(20), nullable=True),
        sa.Column("assigned_at", _TS, nullable=True),
        sa.Column("decision", sa.String(20), nullable=True),
        sa.Column("decided_by", sa.String(255), nullable=True),
        sa.Column("decided_by_name", sa.String(255), nullable=True),
        sa.Column("decided_by_masjid", sa.Integer(), nullable=True),
        sa.Column("decided_at", _TS, nullable=True),
        sa.Column("amount_approved", sa.Numeric(12, 2), nullable=True),
        sa.Column("disbursement_method", sa.String(50), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("amount_disbursed", sa.Numeric(12, 2), nullable=True),
        sa.Column("disbursed_at", _TS, nullable=True),
        sa.Column("disbursed_by", sa.String(255), nullable=True),
        sa.Column("created_at", _TS, server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", _TS, server_default=sa.text("now()"), nullable=False),
        sa.Column("submitted_at", _TS, nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("application_number"),
        sa.ForeignKeyConstraint(["assigned_to_masjid"], ["masajid.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_applications_status", "applications", ["status"])
    op.create_index("ix_applications_applicant_id", "applications", ["applicant_id"])
    op.create_index("ix_applications_assigned_to", "applications", ["assigned_to"])
    op.create_index("ix_applications_assigned_to_masjid", "applications", ["assigned_to_masjid"])
    op.create_index("ix_applications_created_at", "applications", ["created_at"])

    op.create_table(
        "application_history",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("application_id", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(20), nullable=False),
        sa.Column("performed_by", sa.String(255), nullable=False),
        sa.Column("performed_by_name", sa.String(255), nullable=False),
        sa.Column("performed_by_role", sa.String(50), nullable=True),
        sa.Column("performed_by_masjid", sa.Integer(), nullable=True),
        sa.Column("previous_status", sa.String(20), nullable=True),
        sa.Column("new_status", sa.String(20), nullable=True),
        sa.Column("previous_assignee", sa.String(255), nullable=True),
        sa.Column("new_assignee", sa.String(255), nullable=True),
        sa.Column("details", sa.Text(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("created_at", _TS, server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["application_id"], ["applications.id"], ondelete="CASCADE"),
    )
    op.create_index(
        "ix_application_history_application_id", "application_history", ["application_id"],
    )

    op.create_table(
        "application_notes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("application_id", sa.Integer(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("is_internal", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("created_by", sa.String(255), nullable=False),
        sa.Column("created_by_name", sa.String(255), nullable=False),
        sa.Column("created_by_masjid", sa.Integer(), nullable=True),
        sa.Column("created_at", _TS, server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["application_id"], ["applications.id"], ondelete="CASCADE"),
    )
    op.create_index(
        "ix_application_notes_application_id", "application_notes", ["application_id"],
    )

    op.create_table(
        "disbursements",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("application_id", sa.Integer(), nullable=False),
        sa.Column("applicant_id", sa.String(255), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("method", sa.String(20), nullable=False),
        sa.Column("reference_number", sa.String(100), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("disbursed_by", sa.String(255), nullable=False),
        sa.Column("disbursed_by_name", sa.String(255), nullable=False),
        sa.Column("masjid_id", sa.Integer(), nullable=True),
        sa.Column("masjid_name", sa.String(255), nullable=False),
        sa.Column("period_month", sa.Integer(), nullable=True),
        sa.Column("period_year", sa.Integer(), nullable=True),
        sa.Column("disbursed_at", _TS, server_default=sa.text("now()"), nullable=False),
        sa.Column("created_at", _TS, server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["application_id"], ["applications.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["masjid_id"], ["masajid.id"], ondelete="SET NULL"),
        sa.CheckConstraint("amount > 0", name="ck_disbursements_amount_positive"),
    )
    op.create_index("ix_disbursements_application_id", "disbursements", ["application_id"])
    op.create_index("ix_disbursements_applicant_id", "disbursements", ["applicant_id"])

    op.create_table(
        "flags",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("applicant_id", sa.String(255), nullable=False),
        sa.Column("applicant_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("applicant_email", sa.String(255), nullable=True),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("severity", sa.String(20), nullable=False),
        sa.Column("application_id", sa.Integer(), nullable=True),
        sa.Column("application_number", sa.String(20), nullable=True),
        sa.Column("flagged_by", sa.String(255), nullable=False),
        sa.Column("flagged_by_name", sa.String(255), nullable=False),
        sa.Column("flagged_by_masjid", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("resolved_at", _TS, nullable=True),
        sa.Column("resolved_by", sa.String(255), nullable=True),
        sa.Column("resolution_notes", sa.Text(), nullable=True),
        sa.Column("created_at", _TS, server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", _TS, server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_flags_applicant_id", "flags", ["applicant_id"])
    op.create_index("ix_flags_is_active", "flags", ["is_active"])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("application_id", sa.Integer(), nullable=True),
        sa.Column("extra", sa.JSON(), nullable=True),
        sa.Column("read", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("created_at", _TS, server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_application_id", "notifications", ["application_id"])

    op.create_table(
        "audit_events",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("timestamp", _TS, server_default=sa.text("now()"), nullable=False),
        sa.Column("user_id", sa.String(255), nullable=True),
        sa.Column("user_role", sa.String(50), nullable=True),
        sa.Column("event_type", sa.String(100), nullable=False),
        sa.Column("target_collection", sa.String(100), nullable=True),
        sa.Column("target_id", sa.String(255), nullable=True),
        sa.Column("event_data", sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_events_event_type", "audit_events", ["event_type"])

    # Application numbers start at ZKT-00000001
    op.execute("INSERT INTO counters (name, value) VALUES ('applications', 0)")


def downgrade() -> None:
    op.drop_table("audit_events")
    op.drop_table("notifications")
    op.drop_table("flags")
    op.drop_table("disbursements")
    op.drop_table("application_notes")
    op.drop_table("application_history")
    op.drop_table("applications")
    op.drop_table("counters")
    op.drop_table("user_profiles")
    op.drop_table("masajid")
