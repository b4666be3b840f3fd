"""Initial matching schema: job postings, candidate profiles, match records, outbox.

Revision ID: 20261018_initial
Revises:
Create Date: 2026-10-18

- job_postings, candidate_profiles (pgvector embedding + text hash)
- match_records unique on (job_id, candidate_id), match_score in [0, 100]
- recommendation_notifications unique on (job_id, candidate_id, run_key)
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from pgvector.sqlalchemy import Vector

revision: str = "20261018_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

ENUM_NAMES = (
    "notification_status_enum",
    "match_status_enum",
    "scoring_strategy_enum",
    "job_status_enum",
)


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS vector")

    op.create_table(
        "job_postings",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("recruiter_id", sa.Uuid(), nullable=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("company", sa.Text(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("required_skills", sa.JSON(), nullable=True),
        sa.Column("location", sa.Text(), nullable=True),
        sa.Column("is_remote", sa.Boolean(), nullable=True),
        sa.Column("salary_min", sa.Integer(), nullable=True),
        sa.Column("salary_max", sa.Integer(), nullable=True),
        sa.Column("status", sa.Enum("OPEN", "CLOSED", name="job_status_enum"), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True
        ),
    )
    op.create_index("ix_job_postings_status", "job_postings", ["status"])

    op.create_table(
        "candidate_profiles",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("first_name", sa.Text(), nullable=True),
        sa.Column("last_name", sa.Text(), nullable=True),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("skills", sa.JSON(), nullable=True),
        sa.Column("experience_years", sa.Integer(), nullable=True),
        sa.Column("current_position", sa.Text(), nullable=True),
        sa.Column("current_company", sa.Text(), nullable=True),
        sa.Column("current_location", sa.Text(), nullable=True),
        sa.Column("preferred_location", sa.Text(), nullable=True),
        sa.Column("resume_url", sa.Text(), nullable=True),
        sa.Column("embedding", Vector(), nullable=True),
        sa.Column("embedding_text_hash", sa.String(64), nullable=True),
        sa.Column("embedding_model", sa.String(100), nullable=True),
        sa.Column("embedding_updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("job_alerts", sa.Boolean(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True
        ),
    )
    # Eligible-candidate scans filter on both flags and page by id
    op.create_index(
        "ix_candidate_profiles_eligible", "candidate_profiles", ["is_active", "job_alerts", "id"]
    )

    op.create_table(
        "match_records",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "job_id",
            sa.Uuid(),
            sa.ForeignKey("job_postings.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "candidate_id",
            sa.Uuid(),
            sa.ForeignKey("candidate_profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("match_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("skills_match", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("experience_match", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("location_match", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("salary_match", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("matched_skills", sa.JSON(), nullable=True),
        sa.Column("missing_skills", sa.JSON(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "scoring_strategy",
            sa.Enum("ATS", "EMBEDDING", "NONE", name="scoring_strategy_enum"),
            nullable=True,
        ),
        sa.Column("resume_url", sa.Text(), nullable=True),
        sa.Column(
            "status",
            sa.Enum("APPLIED", "REVIEWING", "REJECTED", "HIRED", name="match_status_enum"),
            nullable=True,
        ),
        sa.Column(
            "applied_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("job_id", "candidate_id", name="uq_match_job_candidate"),
        sa.CheckConstraint(
            "match_score >= 0 AND match_score <= 100", name="ck_match_score_range"
        ),
    )

    op.create_table(
        "recommendation_notifications",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "job_id",
            sa.Uuid(),
            sa.ForeignKey("job_postings.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "candidate_id",
            sa.Uuid(),
            sa.ForeignKey("candidate_profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("match_score", sa.Integer(), nullable=False),
        sa.Column("run_key", sa.String(100), nullable=False),
        sa.Column(
            "status",
            sa.Enum("PENDING", "SENT", "FAILED", name="notification_status_enum"),
            nullable=True,
        ),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_error", sa.Text(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True
        ),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("job_id", "candidate_id", "run_key", name="uq_notification_run"),
    )
    op.create_index(
        "ix_recommendation_notifications_status",
        "recommendation_notifications",
        ["status", "created_at"],
    )


def downgrade() -> None:
    op.drop_index(
        "ix_recommendation_notifications_status", table_name="recommendation_notifications"
    )
    op.drop_table("recommendation_notifications")
    op.drop_table("match_records")
    op.drop_index("ix_candidate_profiles_eligible", table_name="candidate_profiles")
    op.drop_table("candidate_profiles")
    op.drop_index("ix_job_postings_status", table_name="job_postings")
    op.drop_table("job_postings")

    for name in ENUM_NAMES:
        sa.Enum(name=name).drop(op.get_bind(), checkfirst=True)
