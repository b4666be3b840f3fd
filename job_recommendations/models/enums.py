"""Database enums for the matching schema."""

import enum


class JobStatusEnum(str, enum.Enum):
    """Job posting status."""

    OPEN = "open"
    CLOSED = "closed"


class MatchStatusEnum(str, enum.Enum):
    """Status of a job–candidate match / application."""

    APPLIED = "applied"
    REVIEWING = "reviewing"
    REJECTED = "rejected"
    HIRED = "hired"


class ScoringStrategyEnum(str, enum.Enum):
    """Which strategy produced a match score."""

    ATS = "ats"  # Resume-grounded scoring
    EMBEDDING = "embedding"  # Profile embedding similarity
    NONE = "none"  # Both strategies failed


class NotificationStatusEnum(str, enum.Enum):
    """Delivery status of a queued recommendation notification."""

    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
