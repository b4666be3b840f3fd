"""Dagster definitions for the job recommendations pipeline.

This module is the entry point for Dagster. It wires together:
- Resources (OpenRouter for LLM + embeddings, the matching store, SMTP email)
- Jobs (candidate matching, notification dispatch)
- Schedules (daily matching of open jobs, outbox dispatch)
- Sensors (newly opened jobs, run failure tagging)
"""

import os

from dagster import Definitions, EnvVar
from dotenv import load_dotenv

# Load environment variables from .env file (must be before the schedules read MATCHING_SCHEDULE)
load_dotenv()

from job_recommendations.jobs import (  # noqa: E402
    candidate_matching_job,
    notification_dispatch_job,
)
from job_recommendations.resources import (  # noqa: E402
    EmailNotificationResource,
    MatchingStoreResource,
    OpenRouterResource,
)
from job_recommendations.schedules import (  # noqa: E402
    daily_open_job_matching,
    notification_dispatch_schedule,
)
from job_recommendations.sensors import new_open_job_sensor, run_failure_tagger  # noqa: E402


def get_environment() -> str:
    """Get current environment from env var."""
    return os.getenv("ENVIRONMENT", "development")


# Using Dagster EnvVar for deferred resolution and better config visibility
resources = {
    # OpenRouter LLM resource with cost tracking (also handles embeddings)
    "openrouter": OpenRouterResource(
        api_key=EnvVar("OPENROUTER_API_KEY"),
        default_model=os.getenv("OPENROUTER_CHAT_MODEL", "openai/gpt-4o-mini"),
        embedding_model=os.getenv("OPENROUTER_EMBEDDING_MODEL", "openai/text-embedding-3-small"),
    ),
    # Jobs, candidates, matches and the notification outbox; shares the engine from db.py
    "matching_store": MatchingStoreResource(),
    # SMTP settings come from SMTP_* env vars (see EmailNotificationResource)
    "email": EmailNotificationResource(),
}

all_jobs = [
    candidate_matching_job,
    notification_dispatch_job,
]

all_schedules = [
    daily_open_job_matching,
    notification_dispatch_schedule,
]

all_sensors = [
    new_open_job_sensor,
    run_failure_tagger,
]

defs = Definitions(
    resources=resources,
    jobs=all_jobs,
    schedules=all_schedules,
    sensors=all_sensors,
)


def main():
    """Entry point for CLI usage."""
    print("Job recommendations Dagster project loaded successfully!")
    print(f"Environment: {get_environment()}")
    print(f"Jobs: {len(all_jobs)}")
    print(f"Schedules: {len(all_schedules)}")
    print(f"Sensors: {len(all_sensors)}")
    print("\nAvailable jobs:")
    for job in all_jobs:
        print(f"  - {job.name}")
    print("\nRun 'dagster dev -m job_recommendations.definitions' to start the development server.")


if __name__ == "__main__":
    main()
