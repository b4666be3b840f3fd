"""Match record and recommendation outbox models."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from job_recommendations.models.base import Base
from job_recommendations.models.enums import (
    MatchStatusEnum,
    NotificationStatusEnum,
    ScoringStrategyEnum,
)


class MatchRecord(Base):
    """Scored job–candidate pair; at most one row per pair.

    Created by the batch worker when a candidate crosses the notification
    threshold, or by an application made through the job board (score 0 until
    the ranker backfills it).
    """

    __tablename__ = "match_records"
    __table_args__ = (
        UniqueConstraint("job_id", "candidate_id", name="uq_match_job_candidate"),
        CheckConstraint("match_score >= 0 AND match_score <= 100", name="ck_match_score_range"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    job_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("job_postings.id", ondelete="CASCADE"), nullable=False
    )
    candidate_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("candidate_profiles.id", ondelete="CASCADE"), nullable=False
    )

    # ═══════════════════════════════════════════════════════════════════
    # MATCH SCORING (0-100)
    # ═══════════════════════════════════════════════════════════════════
    match_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    skills_match: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    experience_match: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    location_match: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    salary_match: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # ═══════════════════════════════════════════════════════════════════
    # ANALYSIS
    # ═══════════════════════════════════════════════════════════════════
    matched_skills: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    missing_skills: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    scoring_strategy: Mapped[ScoringStrategyEnum | None] = mapped_column(
        Enum(ScoringStrategyEnum, name="scoring_strategy_enum"), nullable=True
    )

    # ═══════════════════════════════════════════════════════════════════
    # APPLICATION
    # ═══════════════════════════════════════════════════════════════════
    resume_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[MatchStatusEnum] = mapped_column(
        Enum(MatchStatusEnum, name="match_status_enum"), default=MatchStatusEnum.APPLIED
    )
    applied_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    candidate: Mapped["CandidateProfile"] = relationship("CandidateProfile")
    job: Mapped["JobPosting"] = relationship("JobPosting")


class RecommendationNotification(Base):
    """Outbox row for a "you may be a fit" message.

    Enqueued right after the match upsert; delivered by a separate op so that
    delivery failures never touch the persisted match.
    """

    __tablename__ = "recommendation_notifications"
    __table_args__ = (
        UniqueConstraint("job_id", "candidate_id", "run_key", name="uq_notification_run"),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    job_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("job_postings.id", ondelete="CASCADE"), nullable=False
    )
    candidate_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("candidate_profiles.id", ondelete="CASCADE"), nullable=False
    )
    match_score: Mapped[int] = mapped_column(Integer, nullable=False)
    run_key: Mapped[str] = mapped_column(String(100), nullable=False)

    status: Mapped[NotificationStatusEnum] = mapped_column(
        Enum(NotificationStatusEnum, name="notification_status_enum"),
        default=NotificationStatusEnum.PENDING,
    )
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    candidate: Mapped["CandidateProfile"] = relationship("CandidateProfile")
    job: Mapped["JobPosting"] = relationship("JobPosting")


# Import for type hints
from job_recommendations.models.candidates import CandidateProfile  # noqa: E402
from job_recommendations.models.jobs import JobPosting  # noqa: E402
