"""New open job sensor: queues a candidate_matching run when a job is opened.

Flow:
1. List open jobs from the matching store
2. Skip jobs already recorded in the sensor cursor
3. Trigger candidate_matching for each new one
4. Keep only still-open jobs in the cursor, so a job that is closed and
   reopened gets matched again
"""

import json
from datetime import UTC, datetime

from dagster import (
    RunRequest,
    SensorEvaluationContext,
    SkipReason,
    sensor,
)

from job_recommendations.jobs import candidate_matching_job, run_config_for_job


@sensor(
    job=candidate_matching_job,
    minimum_interval_seconds=120,
    description=(
        "Polls for open job postings not seen before and triggers candidate matching for each."
    ),
    required_resource_keys={"matching_store"},
)
def new_open_job_sensor(context: SensorEvaluationContext):
    """Trigger matching for newly opened jobs.

    The cursor stores a JSON dict: {"seen": {"<job uuid>": "2026-...", ...}}.
    """
    cursor_data: dict = {"seen": {}}
    if context.cursor:
        cursor_data = json.loads(context.cursor)
    seen: dict[str, str] = cursor_data.get("seen", {})

    open_ids = [str(job_id) for job_id in context.resources.matching_store.list_open_job_ids()]
    new_ids = [job_id for job_id in open_ids if job_id not in seen]

    now_iso = datetime.now(UTC).isoformat()
    for job_id in new_ids:
        seen[job_id] = now_iso

    # Prune jobs that are no longer open
    open_set = set(open_ids)
    seen = {k: v for k, v in seen.items() if k in open_set}
    context.update_cursor(json.dumps({"seen": seen}))

    if not new_ids:
        return SkipReason(f"{len(open_ids)} open jobs, none new")

    context.log.info(f"Found {len(new_ids)} newly opened jobs")
    return [
        RunRequest(
            run_key=f"new-job-matching-{job_id}-{seen[job_id]}",
            run_config=run_config_for_job(job_id),
            tags={"job_id": job_id, "trigger": "new_open_job_sensor"},
        )
        for job_id in new_ids
    ]
