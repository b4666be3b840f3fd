"""LLM operation modules.

Each module contains:
- PROMPT_VERSION: Bump when the prompt changes
- SYSTEM_PROMPT: The prompt template (where the operation has one)
- An async function that performs the operation
"""

from job_recommendations.llm.operations.embed_text import (
    PROMPT_VERSION as EMBED_PROMPT_VERSION,
)
from job_recommendations.llm.operations.embed_text import (
    EmbedTextResult,
    embed_single,
    embed_text,
)
from job_recommendations.llm.operations.extract_resume import (
    PROMPT_VERSION as RESUME_PROMPT_VERSION,
)
from job_recommendations.llm.operations.extract_resume import (
    ExtractResumeResult,
    download_resume,
    extract_resume_profile,
    infer_mime_type,
    is_document_url,
)
from job_recommendations.llm.operations.score_resume import (
    PROMPT_VERSION as SCORE_PROMPT_VERSION,
)
from job_recommendations.llm.operations.score_resume import (
    score_resume_against_job,
)

__all__ = [
    "EMBED_PROMPT_VERSION",
    "EmbedTextResult",
    "embed_single",
    "embed_text",
    "RESUME_PROMPT_VERSION",
    "ExtractResumeResult",
    "download_resume",
    "extract_resume_profile",
    "infer_mime_type",
    "is_document_url",
    "SCORE_PROMPT_VERSION",
    "score_resume_against_job",
]
