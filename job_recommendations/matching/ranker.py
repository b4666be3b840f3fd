"""On-demand ranking of a job's applicants.

Applications that have never been scored (score 0) are scored through the
match scorer while the request waits, and the new scores are written back.
The list is then sorted stably and sliced into the requested page.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from job_recommendations.errors import NotFoundError
from job_recommendations.matching.scorer import MatchScorer
from job_recommendations.matching.text import full_name

logger = logging.getLogger(__name__)

SORT_FIELDS = ("match_score", "applied_at", "status", "candidate_name")
SORT_ORDERS = ("asc", "desc")
MAX_LIMIT = 100


@dataclass
class RankedApplicant:
    match_id: Any
    candidate_id: Any
    candidate_name: str
    email: str | None
    match_score: int
    matched_skills: list[str] = field(default_factory=list)
    missing_skills: list[str] = field(default_factory=list)
    notes: str | None = None
    status: str | None = None
    applied_at: datetime | None = None
    resume_url: str | None = None
    backfilled: bool = False


@dataclass
class RankedApplicants:
    total: int
    page: int
    limit: int
    sort_by: str
    order: str
    applicants: list[RankedApplicant] = field(default_factory=list)


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


def _applicant_from_record(record: Any) -> RankedApplicant:
    candidate = record.candidate
    return RankedApplicant(
        match_id=record.id,
        candidate_id=record.candidate_id,
        candidate_name=full_name(candidate) if candidate is not None else "",
        email=getattr(candidate, "email", None),
        match_score=record.match_score or 0,
        matched_skills=list(record.matched_skills or []),
        missing_skills=list(record.missing_skills or []),
        notes=record.notes,
        status=_enum_value(record.status),
        applied_at=record.applied_at,
        resume_url=record.resume_url,
    )


def _nullable(value: Any) -> tuple[bool, Any]:
    # Missing values sort after present ones in ascending order.
    return (value is None, value)


def _sort_key(sort_by: str):
    if sort_by == "match_score":
        return lambda a: a.match_score
    if sort_by == "applied_at":
        return lambda a: _nullable(a.applied_at)
    if sort_by == "status":
        return lambda a: _nullable(a.status)
    return lambda a: a.candidate_name.lower()


def sort_applicants(
    applicants: list[RankedApplicant], sort_by: str = "match_score", order: str = "desc"
) -> list[RankedApplicant]:
    """Sort by ``sort_by``; equal keys keep earliest-applied first."""
    by_application = sorted(applicants, key=lambda a: _nullable(a.applied_at))
    return sorted(by_application, key=_sort_key(sort_by), reverse=order == "desc")


async def _backfill(
    job: Any, record: Any, applicant: RankedApplicant, store: Any, scorer: MatchScorer, persist: bool
) -> None:
    result = await scorer.score(job, record.candidate, record.resume_url)
    applicant.match_score = result.score
    applicant.matched_skills = result.matched_skills
    applicant.missing_skills = result.missing_skills
    applicant.notes = result.notes
    applicant.backfilled = True

    if not persist:
        return
    try:
        await asyncio.to_thread(store.save_backfilled_score, record.id, result)
    except Exception as e:
        logger.warning(
            "Could not save backfilled score for job %s candidate %s: %s",
            job.id,
            record.candidate_id,
            e,
        )


async def rank_applicants(
    job_id: Any,
    store: Any,
    scorer: MatchScorer,
    *,
    page: int = 1,
    limit: int = 20,
    sort_by: str = "match_score",
    order: str = "desc",
    persist: bool = True,
) -> RankedApplicants:
    """Return one page of a job's applicants, scoring unscored ones first.

    Raises:
        ValueError: unknown sort field or order
        NotFoundError: the job does not exist
    """
    if sort_by not in SORT_FIELDS:
        raise ValueError(f"sort_by must be one of {', '.join(SORT_FIELDS)}, got {sort_by!r}")
    if order not in SORT_ORDERS:
        raise ValueError(f"order must be 'asc' or 'desc', got {order!r}")
    page = max(1, int(page))
    limit = max(1, min(MAX_LIMIT, int(limit)))

    job = await asyncio.to_thread(store.get_job, job_id)
    if job is None:
        raise NotFoundError(f"Job {job_id} not found")

    records = await asyncio.to_thread(store.list_applicants, job_id)
    applicants = []
    for record in records:
        applicant = _applicant_from_record(record)
        if applicant.match_score == 0 and record.candidate is not None:
            await _backfill(job, record, applicant, store, scorer, persist)
        applicants.append(applicant)

    ranked = sort_applicants(applicants, sort_by, order)
    start = (page - 1) * limit
    return RankedApplicants(
        total=len(ranked),
        page=page,
        limit=limit,
        sort_by=sort_by,
        order=order,
        applicants=ranked[start : start + limit],
    )
