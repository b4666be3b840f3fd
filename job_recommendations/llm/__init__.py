"""LLM operations for the job recommendations pipeline.

Prompts are versioned per operation module; the OpenRouter resource is the
only place that talks HTTP.
"""

from job_recommendations.llm.operations import (
    EMBED_PROMPT_VERSION,
    RESUME_PROMPT_VERSION,
    SCORE_PROMPT_VERSION,
    ExtractResumeResult,
    embed_single,
    extract_resume_profile,
    score_resume_against_job,
)

__all__ = [
    "EMBED_PROMPT_VERSION",
    "RESUME_PROMPT_VERSION",
    "SCORE_PROMPT_VERSION",
    "ExtractResumeResult",
    "embed_single",
    "extract_resume_profile",
    "score_resume_against_job",
]
