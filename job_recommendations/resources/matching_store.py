"""Matching store resource: DB reads and writes for the matching worker, ranker and dispatch."""

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from dagster import ConfigurableResource
from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from job_recommendations.db import get_session, upsert_statement
from job_recommendations.models.candidates import CandidateProfile
from job_recommendations.models.enums import JobStatusEnum, NotificationStatusEnum
from job_recommendations.models.jobs import JobPosting
from job_recommendations.models.matches import MatchRecord, RecommendationNotification

if TYPE_CHECKING:
    from job_recommendations.matching.scorer import MatchResult

# resume_url stored on matches created by the worker for candidates without a resume
SYSTEM_RECOMMENDATION_RESUME = "system:recommendation"


def _uuid(value: Any) -> UUID:
    return UUID(value) if isinstance(value, str) else value


def _now() -> datetime:
    return datetime.now(UTC)


class MatchingStoreResource(ConfigurableResource):
    """Storage collaborator for matching runs.

    Every method opens its own short-lived session; returned ORM objects are
    detached (sessions never expire on commit), so callers can read them from
    any thread.
    """

    @staticmethod
    def _get_session() -> Session:
        return get_session()

    # ═══════════════════════════════════════════════════════════════════
    # JOBS & CANDIDATES
    # ═══════════════════════════════════════════════════════════════════

    def get_job(self, job_id: UUID | str) -> JobPosting | None:
        session = self._get_session()
        try:
            return session.get(JobPosting, _uuid(job_id))
        finally:
            session.close()

    def list_open_job_ids(self) -> list[UUID]:
        """Ids of open jobs, oldest first."""
        session = self._get_session()
        try:
            rows = session.execute(
                select(JobPosting.id)
                .where(JobPosting.status == JobStatusEnum.OPEN)
                .order_by(JobPosting.created_at, JobPosting.id)
            ).all()
        finally:
            session.close()
        return [row[0] for row in rows]

    def get_eligible_candidates_page(
        self, after_id: UUID | str | None, limit: int
    ) -> list[CandidateProfile]:
        """One keyset page of active candidates with job alerts on, ordered by id.

        Args:
            after_id: Last id of the previous page (None for the first page)
            limit: Page size
        """
        stmt = (
            select(CandidateProfile)
            .where(CandidateProfile.is_active.is_(True), CandidateProfile.job_alerts.is_(True))
            .order_by(CandidateProfile.id)
            .limit(limit)
        )
        if after_id is not None:
            stmt = stmt.where(CandidateProfile.id > _uuid(after_id))

        session = self._get_session()
        try:
            return list(session.execute(stmt).scalars().all())
        finally:
            session.close()

    def save_candidate_embedding(
        self,
        candidate_id: UUID | str,
        vector: list[float],
        text_hash: str,
        model: str | None,
    ) -> None:
        """Store a profile embedding together with the text hash it was built from."""
        session = self._get_session()
        try:
            session.execute(
                update(CandidateProfile)
                .where(CandidateProfile.id == _uuid(candidate_id))
                .values(
                    embedding=[float(x) for x in vector],
                    embedding_text_hash=text_hash,
                    embedding_model=model,
                    embedding_updated_at=_now(),
                )
            )
            session.commit()
        finally:
            session.close()

    # ═══════════════════════════════════════════════════════════════════
    # MATCHES
    # ═══════════════════════════════════════════════════════════════════

    def upsert_match(
        self,
        job_id: UUID | str,
        candidate_id: UUID | str,
        result: "MatchResult",
        resume_url: str | None = None,
    ) -> None:
        """Create the (job, candidate) match, or replace its score and details.

        Status, applied_at and resume_url of an existing row are left alone.
        """
        now = _now()
        details = {
            "match_score": result.score,
            "skills_match": result.score,
            "matched_skills": list(result.matched_skills),
            "missing_skills": list(result.missing_skills),
            "notes": result.notes,
            "scoring_strategy": result.strategy,
            "updated_at": now,
        }
        session = self._get_session()
        try:
            stmt = upsert_statement(session, MatchRecord).values(
                id=uuid4(),
                job_id=_uuid(job_id),
                candidate_id=_uuid(candidate_id),
                resume_url=resume_url or SYSTEM_RECOMMENDATION_RESUME,
                applied_at=now,
                **details,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["job_id", "candidate_id"],
                set_=details,
            )
            session.execute(stmt)
            session.commit()
        finally:
            session.close()

    def list_applicants(self, job_id: UUID | str) -> list[MatchRecord]:
        """All match rows for a job with their candidate profiles loaded."""
        session = self._get_session()
        try:
            stmt = (
                select(MatchRecord)
                .where(MatchRecord.job_id == _uuid(job_id))
                .options(selectinload(MatchRecord.candidate))
                .order_by(MatchRecord.applied_at, MatchRecord.id)
            )
            return list(session.execute(stmt).scalars().all())
        finally:
            session.close()

    def save_backfilled_score(self, match_id: UUID | str, result: "MatchResult") -> None:
        """Write a lazily computed score onto an existing match row."""
        session = self._get_session()
        try:
            session.execute(
                update(MatchRecord)
                .where(MatchRecord.id == _uuid(match_id))
                .values(
                    match_score=result.score,
                    skills_match=result.score,
                    matched_skills=list(result.matched_skills),
                    missing_skills=list(result.missing_skills),
                    notes=result.notes,
                    scoring_strategy=result.strategy,
                    updated_at=_now(),
                )
            )
            session.commit()
        finally:
            session.close()

    # ═══════════════════════════════════════════════════════════════════
    # NOTIFICATION OUTBOX
    # ═══════════════════════════════════════════════════════════════════

    def enqueue_notification(
        self,
        job_id: UUID | str,
        candidate_id: UUID | str,
        match_score: int,
        run_key: str,
    ) -> bool:
        """Add a pending recommendation to the outbox.

        Returns:
            True if a row was inserted, False if this run already enqueued the pair
        """
        session = self._get_session()
        try:
            stmt = (
                upsert_statement(session, RecommendationNotification)
                .values(
                    id=uuid4(),
                    job_id=_uuid(job_id),
                    candidate_id=_uuid(candidate_id),
                    match_score=match_score,
                    run_key=run_key,
                    status=NotificationStatusEnum.PENDING,
                    attempts=0,
                )
                .on_conflict_do_nothing(index_elements=["job_id", "candidate_id", "run_key"])
            )
            result = session.execute(stmt)
            session.commit()
            return result.rowcount == 1
        finally:
            session.close()

    def get_pending_notifications(
        self, run_key: str | None = None, limit: int = 500
    ) -> list[RecommendationNotification]:
        """Pending outbox rows, oldest first, with candidate and job loaded."""
        stmt = (
            select(RecommendationNotification)
            .where(RecommendationNotification.status == NotificationStatusEnum.PENDING)
            .options(
                selectinload(RecommendationNotification.candidate),
                selectinload(RecommendationNotification.job),
            )
            .order_by(RecommendationNotification.created_at, RecommendationNotification.id)
            .limit(limit)
        )
        if run_key is not None:
            stmt = stmt.where(RecommendationNotification.run_key == run_key)

        session = self._get_session()
        try:
            return list(session.execute(stmt).scalars().all())
        finally:
            session.close()

    def mark_notification_sent(self, notification_id: UUID | str) -> None:
        session = self._get_session()
        try:
            session.execute(
                update(RecommendationNotification)
                .where(RecommendationNotification.id == _uuid(notification_id))
                .values(
                    status=NotificationStatusEnum.SENT,
                    attempts=RecommendationNotification.attempts + 1,
                    last_error=None,
                    sent_at=_now(),
                )
            )
            session.commit()
        finally:
            session.close()

    def mark_notification_failed(self, notification_id: UUID | str, error: str) -> None:
        """Record a delivery failure. Failed rows are not picked up again."""
        session = self._get_session()
        try:
            session.execute(
                update(RecommendationNotification)
                .where(RecommendationNotification.id == _uuid(notification_id))
                .values(
                    status=NotificationStatusEnum.FAILED,
                    attempts=RecommendationNotification.attempts + 1,
                    last_error=error[:1000],
                )
            )
            session.commit()
        finally:
            session.close()
