"""Dagster schedules for the job recommendations pipeline."""

import os
from datetime import UTC, datetime

from dagster import (
    RunRequest,
    ScheduleDefinition,
    ScheduleEvaluationContext,
    SkipReason,
    schedule,
)

from job_recommendations.jobs import (
    candidate_matching_job,
    notification_dispatch_job,
    run_config_for_job,
)


@schedule(
    name="daily_open_job_matching",
    job=candidate_matching_job,
    cron_schedule=os.getenv("MATCHING_SCHEDULE", "0 9 * * *"),
    description="Match every open job against the candidate pool (daily at 09:00 by default)",
    required_resource_keys={"matching_store"},
)
def daily_open_job_matching(context: ScheduleEvaluationContext):
    """One candidate_matching run per open job.

    Run keys include the scheduled tick, so each job is matched at most once
    per tick even if the schedule is evaluated again.
    """
    job_ids = context.resources.matching_store.list_open_job_ids()
    if not job_ids:
        return SkipReason("No open jobs to match")

    tick = context.scheduled_execution_time or datetime.now(UTC)
    context.log.info(f"Scheduling matching for {len(job_ids)} open jobs")
    return [
        RunRequest(
            run_key=f"daily-matching-{job_id}-{tick:%Y%m%d%H%M}",
            run_config=run_config_for_job(job_id),
            tags={"job_id": str(job_id), "trigger": "schedule"},
        )
        for job_id in job_ids
    ]


notification_dispatch_schedule = ScheduleDefinition(
    name="notification_dispatch_every_15_minutes",
    cron_schedule="*/15 * * * *",
    job=notification_dispatch_job,
    description="Send pending recommendation emails every 15 minutes",
)


__all__ = [
    "daily_open_job_matching",
    "notification_dispatch_schedule",
]
