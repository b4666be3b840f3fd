"""Batch matching worker: score one job against every eligible candidate.

A run walks eligible candidates (active, with job alerts on) one keyset page
at a time. Within a page candidates are processed concurrently, bounded by a
semaphore. Each candidate is an isolated unit of work:

    ENSURE_EMBEDDING -> SCORE -> [score >= threshold: UPSERT -> NOTIFY]

A failure in one unit is logged with the job and candidate ids and recorded
as a ``failed`` outcome; the run carries on with the next candidate.
Re-running a job is safe: the match upsert is keyed on (job_id, candidate_id)
and the outbox is keyed on (job_id, candidate_id, run_key).
"""

import asyncio
import enum
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

from job_recommendations.matching.scorer import MatchScorer

logger = logging.getLogger(__name__)

NOTIFICATION_THRESHOLD = 50
DEFAULT_PAGE_SIZE = 100
DEFAULT_CONCURRENCY = 4


class RunStatus(str, enum.Enum):
    COMPLETED = "completed"
    JOB_NOT_FOUND = "job_not_found"
    CANCELLED = "cancelled"


class Outcome(str, enum.Enum):
    BELOW_THRESHOLD = "below_threshold"
    RECORDED = "recorded"
    NOTIFIED = "notified"
    FAILED = "failed"


@dataclass
class CandidateOutcome:
    """What happened to one candidate in a run.

    ``stage`` and ``error`` are set when a step failed: for ``failed`` the
    step that aborted the unit, for ``recorded`` a notification enqueue that
    did not go through.
    """

    candidate_id: Any
    outcome: Outcome = Outcome.FAILED
    score: int | None = None
    strategy: str | None = None
    stage: str | None = None
    error: str | None = None
    embedding_refreshed: bool = False


@dataclass
class MatchRunSummary:
    job_id: Any
    run_key: str
    status: RunStatus = RunStatus.COMPLETED
    threshold: int = NOTIFICATION_THRESHOLD
    outcomes: list[CandidateOutcome] = field(default_factory=list)

    def _count(self, *outcomes: Outcome) -> int:
        return sum(1 for o in self.outcomes if o.outcome in outcomes)

    @property
    def candidates_seen(self) -> int:
        return len(self.outcomes)

    @property
    def scored(self) -> int:
        return sum(1 for o in self.outcomes if o.score is not None)

    @property
    def recorded(self) -> int:
        return self._count(Outcome.RECORDED, Outcome.NOTIFIED)

    @property
    def notified(self) -> int:
        return self._count(Outcome.NOTIFIED)

    @property
    def failed(self) -> int:
        return self._count(Outcome.FAILED)

    @property
    def embeddings_refreshed(self) -> int:
        return sum(1 for o in self.outcomes if o.embedding_refreshed)

    def to_metadata(self) -> dict:
        """Return as Dagster metadata dict."""
        return {
            "job_id": str(self.job_id),
            "run_key": self.run_key,
            "status": self.status.value,
            "threshold": self.threshold,
            "candidates_seen": self.candidates_seen,
            "scored": self.scored,
            "recorded": self.recorded,
            "notified": self.notified,
            "failed": self.failed,
            "embeddings_refreshed": self.embeddings_refreshed,
        }


async def _ensure_embedding(store: Any, scorer: MatchScorer, job_id: Any, candidate: Any) -> bool:
    """Recompute and persist a missing or stale profile embedding.

    Best effort: on failure the error is logged and scoring goes ahead, where
    the scorer's own fallback chain deals with the missing vector.
    """
    if not scorer.cache.is_stale(candidate):
        return False
    try:
        vector = await scorer.cache.get(candidate, refresh=True)
        if not len(vector):
            return False
        await asyncio.to_thread(
            store.save_candidate_embedding,
            candidate.id,
            vector,
            candidate.embedding_text_hash,
            candidate.embedding_model,
        )
    except asyncio.CancelledError:
        raise
    except Exception as e:
        logger.warning(
            "Embedding refresh failed for job %s candidate %s: %s", job_id, candidate.id, e
        )
        return False
    return True


async def _process_candidate(
    job: Any,
    candidate: Any,
    store: Any,
    scorer: MatchScorer,
    threshold: int,
    run_key: str,
) -> CandidateOutcome:
    outcome = CandidateOutcome(candidate_id=candidate.id)
    stage = "embedding"
    try:
        outcome.embedding_refreshed = await _ensure_embedding(store, scorer, job.id, candidate)

        stage = "score"
        result = await scorer.score(job, candidate)
        outcome.score = result.score
        outcome.strategy = result.strategy.value
        if result.score < threshold:
            outcome.outcome = Outcome.BELOW_THRESHOLD
            return outcome

        stage = "upsert"
        resume_url = getattr(candidate, "resume_url", None)
        await asyncio.to_thread(store.upsert_match, job.id, candidate.id, result, resume_url)
        outcome.outcome = Outcome.RECORDED

        stage = "notify"
        try:
            await asyncio.to_thread(
                store.enqueue_notification, job.id, candidate.id, result.score, run_key
            )
        except Exception as e:
            # The match row is already committed and stays.
            logger.error(
                "Notification enqueue failed for job %s candidate %s: %s", job.id, candidate.id, e
            )
            outcome.stage = stage
            outcome.error = f"{type(e).__name__}: {e}"
            return outcome
        outcome.outcome = Outcome.NOTIFIED
    except asyncio.CancelledError:
        raise
    except Exception as e:
        logger.error(
            "Matching failed for job %s candidate %s at %s: %s", job.id, candidate.id, stage, e
        )
        outcome.outcome = Outcome.FAILED
        outcome.stage = stage
        outcome.error = f"{type(e).__name__}: {e}"
    return outcome


async def run_match_for_job(
    job_id: Any,
    store: Any,
    scorer: MatchScorer,
    *,
    threshold: int = NOTIFICATION_THRESHOLD,
    page_size: int = DEFAULT_PAGE_SIZE,
    concurrency: int = DEFAULT_CONCURRENCY,
    run_key: str | None = None,
    cancel_event: asyncio.Event | None = None,
) -> MatchRunSummary:
    """Score every eligible candidate for a job and record the ones that qualify.

    Args:
        job_id: Job posting id
        store: Storage collaborator (MatchingStoreResource or equivalent)
        scorer: MatchScorer shared by the whole run
        threshold: Minimum score that is recorded and notified
        page_size: Candidates fetched per page
        concurrency: Candidates scored at once within a page
        run_key: Identifies this run in the notification outbox (generated if omitted)
        cancel_event: When set, remaining pages are skipped

    Returns:
        MatchRunSummary with one CandidateOutcome per candidate processed
    """
    summary = MatchRunSummary(
        job_id=job_id, run_key=run_key or uuid.uuid4().hex, threshold=threshold
    )

    job = await asyncio.to_thread(store.get_job, job_id)
    if job is None:
        logger.warning("Job %s not found, nothing to match", job_id)
        summary.status = RunStatus.JOB_NOT_FOUND
        return summary

    page_size = max(1, page_size)
    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def bounded(candidate: Any) -> CandidateOutcome:
        async with semaphore:
            return await _process_candidate(
                job, candidate, store, scorer, threshold, summary.run_key
            )

    after_id = None
    page_number = 0
    while True:
        if cancel_event is not None and cancel_event.is_set():
            logger.info(
                "Matching run %s for job %s cancelled after %d candidates",
                summary.run_key,
                job_id,
                summary.candidates_seen,
            )
            summary.status = RunStatus.CANCELLED
            break

        candidates = await asyncio.to_thread(
            store.get_eligible_candidates_page, after_id, page_size
        )
        if not candidates:
            break
        page_number += 1
        logger.debug("Job %s: page %d with %d candidates", job_id, page_number, len(candidates))

        outcomes = await asyncio.gather(*(bounded(c) for c in candidates))
        summary.outcomes.extend(outcomes)
        # Vectors live on the page's candidate objects; keep memory bounded by one page
        scorer.cache.clear()

        after_id = candidates[-1].id
        if len(candidates) < page_size:
            break

    logger.info(
        "Matching run %s for job %s: %d seen, %d recorded, %d notified, %d failed",
        summary.run_key,
        job_id,
        summary.candidates_seen,
        summary.recorded,
        summary.notified,
        summary.failed,
    )
    return summary
