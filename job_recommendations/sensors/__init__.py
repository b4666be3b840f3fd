"""Dagster sensors for the job recommendations pipeline."""

from job_recommendations.sensors.new_job_sensor import new_open_job_sensor
from job_recommendations.sensors.run_failure_sensor import run_failure_tagger

__all__ = [
    "new_open_job_sensor",
    "run_failure_tagger",
]
