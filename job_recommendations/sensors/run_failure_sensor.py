"""Run failure sensor: tags failed runs with the classified cause of failure.

Causes are matched by substring against step errors (falling back to the
run-level error). Runs matching nothing are tagged UNKNOWN_FAILURE.
"""

import dagster as dg

FAILURE_TAG = "failure_type"

KNOWN_FAILURES: list[tuple[str, list[str]]] = [
    (
        "RESUME_DOWNLOAD_FAILED",
        ["Resume download failed", "ConnectError", "TimeoutException"],
    ),
    (
        "OPENROUTER_API_ERROR",
        ["openrouter.ai", "OpenRouter", "OPENROUTER_API_KEY"],
    ),
    (
        "LLM_JSON_PARSE_ERROR",
        ["ParseError", "JSONDecodeError", "no JSON object"],
    ),
    (
        "RATE_LIMIT",
        ["429", "Too Many Requests", "rate limit"],
    ),
    (
        "SMTP_ERROR",
        ["SMTP", "Recommendation email failed"],
    ),
    (
        "DATABASE_ERROR",
        ["OperationalError", "psycopg2", "could not connect to server"],
    ),
    (
        "JOB_NOT_FOUND",
        ["NotFoundError"],
    ),
    (
        "INVALID_RUN_CONFIG",
        ["DagsterInvalidConfigError", "badly formed hexadecimal UUID string"],
    ),
]


def _classify_failure(error_str: str) -> list[str]:
    """Return all matching failure tags for the given error string."""
    tags = []
    for tag, patterns in KNOWN_FAILURES:
        if any(p.lower() in error_str.lower() for p in patterns):
            tags.append(tag)
    return tags


def _failure_messages(context: dg.RunFailureSensorContext) -> list[str]:
    """Step error strings, or the run-level error when no step recorded one."""
    messages = [
        event.step_failure_data.error.to_string()
        for event in context.get_step_failure_events()
        if event.step_failure_data is not None and event.step_failure_data.error is not None
    ]
    if messages:
        return messages
    run_error = context.failure_event.pipeline_failure_data.error
    return [run_error.to_string()] if run_error is not None else []


@dg.run_failure_sensor(
    name="run_failure_tagger",
    description=(
        "Tags failed matching and dispatch runs with a classified failure reason "
        "(UNKNOWN_FAILURE when nothing matches)."
    ),
    default_status=dg.DefaultSensorStatus.RUNNING,
)
def run_failure_tagger(context: dg.RunFailureSensorContext):
    run = context.dagster_run

    tags: set[str] = set()
    for message in _failure_messages(context):
        tags.update(_classify_failure(message))
    tag_value = ", ".join(sorted(tags)) or "UNKNOWN_FAILURE"

    context.instance.add_run_tags(run.run_id, {FAILURE_TAG: tag_value})
    context.log.info(
        f"Tagged failed run {run.run_id} ({run.job_name}) with {FAILURE_TAG}={tag_value}"
    )
