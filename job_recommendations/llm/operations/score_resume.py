"""Resume-grounded (ATS) scoring LLM operation.

Compares a job description with the structured facts extracted from a resume
and asks the model for a single integer similarity percentage.

Bump PROMPT_VERSION when changing the prompt.
"""

import json
from typing import TYPE_CHECKING, Any

from job_recommendations.errors import ParseError
from job_recommendations.utils.llm_output import extract_bounded_integer

if TYPE_CHECKING:
    from job_recommendations.resources.openrouter import OpenRouterResource

# Bump this version when the prompt changes
# Format: MAJOR.MINOR.PATCH
# - MAJOR: Breaking changes to output format
# - MINOR: Significant prompt improvements
# - PATCH: Minor wording tweaks
PROMPT_VERSION = "1.0.0"

SYSTEM_PROMPT = (
    "You are an ATS engine. Compare the job description to the candidate data and "
    "output a similarity percentage from 0 to 100. "
    "Consider skills alignment, years of experience, current position/company relevance, "
    "and location fit. "
    "Respond with only a number (integer 0-100)."
)


async def score_resume_against_job(
    openrouter: "OpenRouterResource",
    job_description: str | None,
    parsed_resume: dict[str, Any] | None,
    model: str | None = None,
) -> int:
    """Score extracted resume facts against a job description.

    The reply is expected to be a bare integer but models sometimes add words;
    the first 1-3 digit run is used and a reply without digits scores 0.

    Returns:
        Integer score in [0, 100]
    """
    user_content = (
        f"Job Description:\n{job_description or ''}\n\n"
        f"Candidate Data (JSON):\n{json.dumps(parsed_resume or {}, default=str)}"
    )

    response = await openrouter.complete(
        messages=[
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": user_content},
        ],
        model=model,
        operation="score_resume",
        temperature=0.0,
        max_tokens=16,
    )

    try:
        content = response["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise ParseError("Completion response has no message content") from exc

    return extract_bounded_integer(content if isinstance(content, str) else "", 0, 100)
