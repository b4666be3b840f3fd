"""Resume-grounded (ATS) scoring: extract the resume, then score it against the job."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from job_recommendations.llm.operations.extract_resume import (
    DEFAULT_DOWNLOAD_TIMEOUT,
    extract_resume_profile,
)
from job_recommendations.llm.operations.score_resume import score_resume_against_job

if TYPE_CHECKING:
    from job_recommendations.resources.openrouter import OpenRouterResource


@dataclass
class AtsScore:
    score: int
    parsed_profile: dict[str, Any] = field(default_factory=dict)
    skills: list[str] = field(default_factory=list)


async def compute_ats_score(
    openrouter: "OpenRouterResource",
    job: Any,
    resume_uri: str,
    download_timeout: float = DEFAULT_DOWNLOAD_TIMEOUT,
) -> AtsScore:
    """Score a resume against a job posting's description.

    Raises:
        ExternalServiceError: resume download or backend failure
        ParseError: empty document or unparseable extraction
    """
    extracted = await extract_resume_profile(
        openrouter, resume_uri, download_timeout=download_timeout
    )
    score = await score_resume_against_job(
        openrouter, getattr(job, "description", None), extracted.profile
    )
    return AtsScore(score=score, parsed_profile=extracted.profile, skills=extracted.skills)
