"""SQLAlchemy models for the job recommendations database."""

from job_recommendations.models.base import Base
from job_recommendations.models.enums import (
    JobStatusEnum,
    MatchStatusEnum,
    NotificationStatusEnum,
    ScoringStrategyEnum,
)
from job_recommendations.models.jobs import JobPosting
from job_recommendations.models.candidates import CandidateProfile
from job_recommendations.models.matches import MatchRecord, RecommendationNotification

__all__ = [
    # Base
    "Base",
    # Enums
    "JobStatusEnum",
    "MatchStatusEnum",
    "NotificationStatusEnum",
    "ScoringStrategyEnum",
    # Tables
    "JobPosting",
    "CandidateProfile",
    "MatchRecord",
    "RecommendationNotification",
]
