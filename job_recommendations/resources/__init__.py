"""Dagster resources for the job recommendations pipeline."""

from job_recommendations.resources.email import EmailNotificationResource
from job_recommendations.resources.matching_store import MatchingStoreResource
from job_recommendations.resources.openrouter import OpenRouterResource, RunCostAccumulator

__all__ = [
    "EmailNotificationResource",
    "MatchingStoreResource",
    "OpenRouterResource",
    "RunCostAccumulator",
]
