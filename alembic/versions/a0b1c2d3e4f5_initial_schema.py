"""initial schema

Revision ID: a0b1c2d3e4f5
Revises:
Create Date: 2026-10-19 09:00:00.000000

This migration creates:
1. users, sessions and verification_codes (accounts and sign-in)
2. office_profiles and audit_logs
3. applications, reapplications and leaves
4. archived_applications, archived_reapplications and archived_leaves

Enum types store the Python enum member names, matching SQLAlchemy's
default Enum mapping.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "a0b1c2d3e4f5"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


ENUMS = {
    "user_role": ("STUDENT", "HR", "OFFICE"),
    "verification_code_type": ("EMAIL_VERIFICATION", "PASSWORD_RESET"),
    "position": ("STUDENT_ASSISTANT", "STUDENT_MARSHAL"),
    "gender": ("MALE", "FEMALE", "OTHER"),
    "civil_status": ("SINGLE", "MARRIED", "WIDOWED", "SEPARATED"),
    "application_status": (
        "PENDING",
        "UNDER_REVIEW",
        "INTERVIEW_SCHEDULED",
        "PASSED_INTERVIEW",
        "FAILED_INTERVIEW",
        "HOURS_COMPLETED",
        "ACCEPTED",
        "REJECTED",
        "WITHDRAWN",
        "ON_HOLD",
    ),
    "term": ("FIRST", "SECOND", "SHORT"),
    "reapplication_status": ("PENDING", "UNDER_REVIEW", "APPROVED", "REJECTED", "WITHDRAWN"),
    "leave_status": ("PENDING", "APPROVED", "DISAPPROVED"),
}


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def _uuid() -> postgresql.UUID:
    return postgresql.UUID(as_uuid=True)


def _timestamps() -> list[sa.Column]:
    """Primary key and timestamps (from BaseModel)."""
    return [
        sa.Column("id", _uuid(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def _archive_columns(table: str) -> list:
    return [
        sa.Column("original_id", _uuid(), nullable=False),
        sa.Column("account_id", _uuid(), nullable=False),
        sa.Column("original_record", postgresql.JSON(astext_type=sa.Text()), nullable=False),
        sa.Column("original_status", sa.String(length=50), nullable=False),
        sa.Column(
            "archived_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("archived_by", _uuid(), nullable=True),
        sa.Column("archived_reason", sa.String(length=200), nullable=False),
        sa.Column("semester_year", sa.String(length=50), nullable=False),
        sa.Column("scheduled_deletion_date", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("original_id", name=f"uq_{table}_original_id"),
    ]


def _archive_indexes(table: str) -> None:
    op.create_index(f"ix_{table}_account_id", table, ["account_id"])
    op.create_index(f"ix_{table}_semester_year", table, ["semester_year"])
    op.create_index(f"ix_{table}_deletion", table, ["scheduled_deletion_date"])


def upgrade() -> None:
    """Create the full schema."""
    bind = op.get_bind()
    for name in ENUMS:
        _enum(name).create(bind, checkfirst=True)

    # ============================================
    # Accounts
    # ============================================
    op.create_table(
        "users",
        *_timestamps(),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("role", _enum("user_role"), nullable=False),
        sa.Column("status", sa.String(length=50), nullable=False),
        sa.Column("is_verified", sa.Boolean(), nullable=False),
        sa.Column("pending_email", sa.String(length=255), nullable=True),
        sa.Column("office_name", sa.String(length=200), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "office_profiles",
        *_timestamps(),
        sa.Column("account_id", _uuid(), nullable=False),
        sa.Column("profile_name", sa.String(length=50), nullable=False),
        sa.Column("pin_hash", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("permissions", postgresql.JSON(astext_type=sa.Text()), nullable=False),
        sa.Column("avatar", sa.String(length=500), nullable=True),
        sa.Column("last_accessed_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["account_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("account_id", "profile_name", name="uq_office_profiles_account_name"),
    )
    op.create_index("ix_office_profiles_account_id", "office_profiles", ["account_id"])

    op.create_table(
        "sessions",
        sa.Column("id", _uuid(), nullable=False),
        sa.Column("account_id", _uuid(), nullable=False),
        sa.Column("profile_id", _uuid(), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["account_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["profile_id"], ["office_profiles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_sessions_account_id", "sessions", ["account_id"])
    op.create_index("ix_sessions_account_expires", "sessions", ["account_id", "expires_at"])

    op.create_table(
        "verification_codes",
        sa.Column("id", _uuid(), nullable=False),
        sa.Column("account_id", _uuid(), nullable=False),
        sa.Column("type", _enum("verification_code_type"), nullable=False),
        sa.Column("code_hash", sa.String(length=64), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["account_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code_hash", name="uq_verification_codes_code_hash"),
    )
    op.create_index("ix_verification_codes_account_id", "verification_codes", ["account_id"])
    op.create_index(
        "ix_verification_codes_account_type", "verification_codes", ["account_id", "type"]
    )

    op.create_table(
        "audit_logs",
        sa.Column("id", _uuid(), nullable=False),
        sa.Column("account_id", _uuid(), nullable=False),
        sa.Column("profile_id", _uuid(), nullable=True),
        sa.Column("actor_name", sa.String(length=200), nullable=False),
        sa.Column("actor_email", sa.String(length=255), nullable=False),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("module", sa.String(length=100), nullable=False),
        sa.Column("target_type", sa.String(length=100), nullable=True),
        sa.Column("target_id", sa.String(length=100), nullable=True),
        sa.Column("target_name", sa.String(length=200), nullable=True),
        sa.Column("details", postgresql.JSON(astext_type=sa.Text()), nullable=False),
        sa.Column("old_value", postgresql.JSON(astext_type=sa.Text()), nullable=True),
        sa.Column("new_value", postgresql.JSON(astext_type=sa.Text()), nullable=True),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(["account_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_logs_account_timestamp", "audit_logs", ["account_id", "timestamp"])
    op.create_index("ix_audit_logs_profile_timestamp", "audit_logs", ["profile_id", "timestamp"])
    op.create_index("ix_audit_logs_module_action", "audit_logs", ["module", "action"])

    # ============================================
    # Applications
    # ============================================
    op.create_table(
        "applications",
        *_timestamps(),
        sa.Column("account_id", _uuid(), nullable=False),
        sa.Column("position", _enum("position"), nullable=False),
        # Personal
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("age", sa.Integer(), nullable=False),
        sa.Column("gender", _enum("gender"), nullable=False),
        sa.Column("civil_status", _enum("civil_status"), nullable=False),
        sa.Column("citizenship", sa.String(length=100), nullable=False),
        # Addresses and contact
        sa.Column("home_address", sa.String(length=500), nullable=False),
        sa.Column("baguio_address", sa.String(length=500), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("home_contact", sa.String(length=30), nullable=False),
        sa.Column("baguio_contact", sa.String(length=30), nullable=False),
        # Family
        sa.Column("father_name", sa.String(length=200), nullable=True),
        sa.Column("father_occupation", sa.String(length=200), nullable=True),
        sa.Column("mother_name", sa.String(length=200), nullable=True),
        sa.Column("mother_occupation", sa.String(length=200), nullable=True),
        sa.Column("emergency_contact", sa.String(length=200), nullable=False),
        sa.Column("emergency_contact_number", sa.String(length=30), nullable=False),
        # Details
        sa.Column("relatives", postgresql.JSON(astext_type=sa.Text()), nullable=True),
        sa.Column("education", postgresql.JSON(astext_type=sa.Text()), nullable=True),
        sa.Column("seminars", postgresql.JSON(astext_type=sa.Text()), nullable=True),
        # Uploads
        sa.Column("profile_photo_url", sa.String(length=500), nullable=True),
        sa.Column("signature_url", sa.String(length=500), nullable=True),
        sa.Column("certificate_urls", postgresql.JSON(astext_type=sa.Text()), nullable=True),
        sa.Column("agreed_to_terms", sa.Boolean(), nullable=False),
        # Workflow
        sa.Column("status", _enum("application_status"), nullable=False),
        sa.Column(
            "submitted_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewed_by", _uuid(), nullable=True),
        sa.Column("hr_comments", sa.Text(), nullable=True),
        # Interview
        sa.Column("interview_date", sa.Date(), nullable=True),
        sa.Column("interview_time", sa.String(length=20), nullable=True),
        sa.Column("interview_location", sa.String(length=200), nullable=True),
        sa.Column("interview_notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["account_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["reviewed_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_applications_account_id", "applications", ["account_id"])
    op.create_index("ix_applications_status_updated", "applications", ["status", "updated_at"])
    op.create_index("ix_applications_position", "applications", ["position"])

    op.create_table(
        "reapplications",
        *_timestamps(),
        sa.Column("account_id", _uuid(), nullable=False),
        sa.Column("previous_application_id", _uuid(), nullable=True),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("position", _enum("position"), nullable=False),
        sa.Column("effectivity_date", sa.Date(), nullable=False),
        sa.Column("years_in_service", sa.Integer(), nullable=False),
        sa.Column("term", _enum("term"), nullable=False),
        sa.Column("academic_year", sa.String(length=20), nullable=False),
        sa.Column("reapplication_reasons", sa.Text(), nullable=False),
        sa.Column("college", sa.String(length=200), nullable=False),
        sa.Column("course_year", sa.String(length=100), nullable=False),
        sa.Column("recent_grades_url", sa.String(length=500), nullable=True),
        sa.Column("status", _enum("reapplication_status"), nullable=False),
        sa.Column(
            "submitted_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewed_by", _uuid(), nullable=True),
        sa.Column("hr_comments", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["account_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["reviewed_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_reapplications_account_id", "reapplications", ["account_id"])
    op.create_index(
        "ix_reapplications_status_updated", "reapplications", ["status", "updated_at"]
    )

    op.create_table(
        "leaves",
        *_timestamps(),
        sa.Column("account_id", _uuid(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("school_dept", sa.String(length=200), nullable=False),
        sa.Column("course_year", sa.String(length=100), nullable=False),
        sa.Column("type_of_leave", sa.String(length=100), nullable=False),
        sa.Column("date_from", sa.Date(), nullable=False),
        sa.Column("date_to", sa.Date(), nullable=False),
        sa.Column("days_hours", sa.String(length=50), nullable=False),
        sa.Column("reasons", sa.Text(), nullable=False),
        sa.Column("signature_name", sa.String(length=200), nullable=False),
        sa.Column("signature_date", sa.Date(), nullable=False),
        sa.Column("proof_url", sa.String(length=500), nullable=True),
        sa.Column("status", _enum("leave_status"), nullable=False),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.Column("decided_by", _uuid(), nullable=True),
        sa.Column("decided_by_profile", sa.String(length=100), nullable=True),
        sa.Column("decided_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("allow_resubmit", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["account_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["decided_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("date_to >= date_from", name="ck_leaves_date_range"),
    )
    op.create_index("ix_leaves_account_id", "leaves", ["account_id"])
    op.create_index("ix_leaves_status_updated", "leaves", ["status", "updated_at"])

    # ============================================
    # Archives
    # ============================================
    op.create_table(
        "archived_applications",
        *_timestamps(),
        *_archive_columns("archived_applications"),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("position", sa.String(length=50), nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
    )
    _archive_indexes("archived_applications")

    op.create_table(
        "archived_reapplications",
        *_timestamps(),
        *_archive_columns("archived_reapplications"),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("position", sa.String(length=50), nullable=False),
        sa.Column("academic_year", sa.String(length=20), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
    )
    _archive_indexes("archived_reapplications")

    op.create_table(
        "archived_leaves",
        *_timestamps(),
        *_archive_columns("archived_leaves"),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("type_of_leave", sa.String(length=100), nullable=False),
        sa.Column("date_from", sa.Date(), nullable=False),
        sa.Column("date_to", sa.Date(), nullable=False),
    )
    _archive_indexes("archived_leaves")


def downgrade() -> None:
    """Drop the full schema."""
    for table in (
        "archived_leaves",
        "archived_reapplications",
        "archived_applications",
        "leaves",
        "reapplications",
        "applications",
        "audit_logs",
        "verification_codes",
        "sessions",
        "office_profiles",
        "users",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for name in reversed(ENUMS):
        _enum(name).drop(bind, checkfirst=True)
