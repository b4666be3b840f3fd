"""Job posting model."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import JSON, Boolean, DateTime, Enum, Integer, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from job_recommendations.models.base import Base
from job_recommendations.models.enums import JobStatusEnum


class JobPosting(Base):
    """Job posting owned by a recruiter.

    Read-only for the matching pipeline; status decides whether scheduled
    runs pick the job up.
    """

    __tablename__ = "job_postings"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    recruiter_id: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)

    title: Mapped[str] = mapped_column(Text, nullable=False)
    company: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    required_skills: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)

    location: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_remote: Mapped[bool] = mapped_column(Boolean, default=False)
    salary_min: Mapped[int | None] = mapped_column(Integer, nullable=True)
    salary_max: Mapped[int | None] = mapped_column(Integer, nullable=True)

    status: Mapped[JobStatusEnum] = mapped_column(
        Enum(JobStatusEnum, name="job_status_enum"), default=JobStatusEnum.OPEN
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
