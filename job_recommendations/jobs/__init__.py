"""Dagster jobs for the job recommendations pipeline.

Jobs available in the Dagster dashboard:

- candidate_matching: Score one job against all eligible candidates, record
  matches at or above the threshold, then email the run's recommendations.
  Configure with ops.match_candidates_for_job.config.job_id.
- notification_dispatch: Send any recommendation emails still pending in the
  outbox (picked up every 15 minutes by its schedule).
"""

import asyncio

from dagster import (
    Backoff,
    Config,
    Jitter,
    OpExecutionContext,
    RetryPolicy,
    job,
    op,
)
from pydantic import Field

from job_recommendations.matching.scorer import MatchScorer, ResumePolicy
from job_recommendations.matching.worker import (
    DEFAULT_CONCURRENCY,
    DEFAULT_PAGE_SIZE,
    NOTIFICATION_THRESHOLD,
    run_match_for_job,
)
from job_recommendations.notifications import dispatch_pending_notifications

# Retry policy for the DB-bound ops (transient connection errors)
# Uses exponential backoff: 1s, 2s, 4s between retries
db_retry_policy = RetryPolicy(
    max_retries=3,
    delay=1,
    backoff=Backoff.EXPONENTIAL,
    jitter=Jitter.PLUS_MINUS,
)


class MatchingRunConfig(Config):
    """Per-run settings for candidate_matching."""

    job_id: str = Field(description="Job posting UUID to match candidates against")
    threshold: int = Field(
        default=NOTIFICATION_THRESHOLD,
        ge=0,
        le=100,
        description="Minimum score that is recorded and notified",
    )
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, description="Candidates per page")
    concurrency: int = Field(
        default=DEFAULT_CONCURRENCY, ge=1, description="Candidates scored at once per page"
    )
    resume_policy: str = Field(
        default=ResumePolicy.ALWAYS.value,
        description="When to try resume scoring: always, document_types or never",
    )


def run_config_for_job(job_id: str) -> dict:
    """Run config launching candidate_matching for one job with default tuning."""
    return {"ops": {"match_candidates_for_job": {"config": {"job_id": str(job_id)}}}}


@op(
    required_resource_keys={"openrouter", "matching_store"},
    tags={"dagster/concurrency_key": "openrouter_api"},
    description="Score eligible candidates for a job and record qualifying matches",
)
def match_candidates_for_job(context: OpExecutionContext, config: MatchingRunConfig) -> dict:
    """Run the batch matching worker for config.job_id.

    The run id doubles as the outbox run key, so the downstream dispatch op
    sends exactly what this run enqueued.
    """
    openrouter = context.resources.openrouter
    openrouter.reset_run_costs()
    scorer = MatchScorer(openrouter, resume_policy=config.resume_policy)

    context.log.info(
        f"Matching job {config.job_id} (threshold={config.threshold}, "
        f"page_size={config.page_size}, concurrency={config.concurrency}, "
        f"resume_policy={config.resume_policy})"
    )
    summary = asyncio.run(
        run_match_for_job(
            config.job_id,
            context.resources.matching_store,
            scorer,
            threshold=config.threshold,
            page_size=config.page_size,
            concurrency=config.concurrency,
            run_key=context.run_id,
        )
    )

    result = summary.to_metadata()
    if result["status"] == "job_not_found":
        context.log.warning(f"Job {config.job_id} not found; nothing matched")
    else:
        context.log.info(
            f"Matched job {config.job_id}: {summary.candidates_seen} candidates, "
            f"{summary.recorded} recorded, {summary.notified} queued for email, "
            f"{summary.failed} failed"
        )

    context.add_output_metadata({**result, **openrouter.get_run_costs().to_metadata()})
    return result


@op(
    required_resource_keys={"matching_store", "email"},
    description="Email the recommendations enqueued by a matching run",
)
def dispatch_recommendation_notifications(context: OpExecutionContext, run: dict) -> dict:
    if run.get("notified", 0) == 0:
        context.log.info("No recommendations enqueued; nothing to send")
        return {"pending": 0, "sent": 0, "failed": 0}

    summary = dispatch_pending_notifications(
        context.resources.matching_store, context.resources.email, run_key=run["run_key"]
    )
    context.log.info(f"Sent {summary.sent} of {summary.pending} recommendations")
    context.add_output_metadata(summary.to_metadata())
    return summary.to_metadata()


@op(
    required_resource_keys={"matching_store", "email"},
    description="Email every pending recommendation in the outbox",
)
def dispatch_pending_recommendations(context: OpExecutionContext) -> dict:
    summary = dispatch_pending_notifications(
        context.resources.matching_store, context.resources.email
    )
    if summary.pending:
        context.log.info(
            f"Sent {summary.sent} of {summary.pending} pending recommendations "
            f"({summary.failed} failed)"
        )
    context.add_output_metadata(summary.to_metadata())
    return summary.to_metadata()


@job(
    name="candidate_matching",
    description=(
        "Score one job against all active candidates with job alerts on, record matches "
        "at or above the threshold and email the recommendations."
    ),
    op_retry_policy=db_retry_policy,
    tags={"dagster/concurrency_limit": "candidate_matching"},
)
def candidate_matching_job():
    """Match a job, then dispatch the run's notifications.

    Op 1: run the batch worker (embeddings, scoring, upserts, outbox).
    Op 2: send the emails this run enqueued.
    """
    dispatch_recommendation_notifications(match_candidates_for_job())


@job(
    name="notification_dispatch",
    description="Send recommendation emails still pending in the outbox",
)
def notification_dispatch_job():
    dispatch_pending_recommendations()


__all__ = [
    "MatchingRunConfig",
    "candidate_matching_job",
    "notification_dispatch_job",
    "match_candidates_for_job",
    "dispatch_recommendation_notifications",
    "dispatch_pending_recommendations",
    "run_config_for_job",
]
