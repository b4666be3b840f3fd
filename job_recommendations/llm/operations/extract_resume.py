"""Structured candidate facts from a resume document.

The resume is downloaded, base64-encoded as a data URL and sent to the model
together with an extraction instruction. OpenRouter's file-parser plugin
handles PDFs; other document types go to the model's native file handling.

See: https://openrouter.ai/docs/guides/overview/multimodal/pdfs

Bump PROMPT_VERSION when changing the prompt.
"""

import base64
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

import httpx

from job_recommendations.errors import ExternalServiceError, ParseError
from job_recommendations.utils.llm_output import parse_json_object

if TYPE_CHECKING:
    from job_recommendations.resources.openrouter import OpenRouterResource

logger = logging.getLogger(__name__)

# Bump this version when the prompt changes
PROMPT_VERSION = "1.0.0"

DEFAULT_DOWNLOAD_TIMEOUT = 60.0

OCTET_STREAM = "application/octet-stream"

MIME_TYPES_BY_EXTENSION = {
    ".pdf": "application/pdf",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".doc": "application/msword",
    ".txt": "text/plain",
}

PROFILE_KEYS = (
    "full_name",
    "email",
    "phone",
    "skills",
    "experience_years",
    "current_position",
    "current_company",
    "preferred_location",
    "education",
)

SYSTEM_PROMPT = """Extract structured candidate profile data from the attached resume: full_name, email, phone, skills (array), experience_years, current_position, current_company, preferred_location, education.

Return only valid JSON matching this flat schema:
{"full_name": "string", "email": "string", "phone": "string", "skills": ["string"], "experience_years": number, "current_position": "string", "current_company": "string", "preferred_location": "string", "education": "string"}

If information is missing, use null, or an empty array for skills."""


@dataclass
class ExtractResumeResult:
    """Parsed resume facts plus provenance."""

    profile: dict[str, Any]
    mime_type: str
    model: str
    prompt_version: str = PROMPT_VERSION

    @property
    def skills(self) -> list[str]:
        skills = self.profile.get("skills")
        if not isinstance(skills, list):
            return []
        return [str(s).strip() for s in skills if s is not None and str(s).strip()]


def infer_mime_type(url: str | None) -> str:
    """MIME type from the URL path's extension; octet-stream when unknown."""
    path = urlparse(url or "").path.lower()
    for extension, mime_type in MIME_TYPES_BY_EXTENSION.items():
        if path.endswith(extension):
            return mime_type
    return OCTET_STREAM


def is_document_url(url: str | None) -> bool:
    """True when the URL looks like a resume document type we know how to send."""
    return infer_mime_type(url) != OCTET_STREAM


async def download_resume(
    url: str, timeout: float = DEFAULT_DOWNLOAD_TIMEOUT
) -> tuple[bytes, str | None]:
    """Download a resume.

    Returns:
        Tuple of (file bytes, Content-Type header without parameters or None)

    Raises:
        ExternalServiceError: on transport errors, timeouts or non-2xx responses
    """
    try:
        async with httpx.AsyncClient() as client:
            response = await client.get(url, timeout=timeout, follow_redirects=True)
            response.raise_for_status()
    except httpx.HTTPError as exc:
        raise ExternalServiceError(f"Resume download failed: {type(exc).__name__}: {exc}") from exc

    content_type = response.headers.get("content-type")
    if content_type:
        content_type = content_type.split(";")[0].strip().lower() or None
    return response.content, content_type


def to_data_url(document: bytes, mime_type: str) -> str:
    """Encode document bytes as a base64 data URL for the OpenRouter API."""
    b64 = base64.b64encode(document).decode("utf-8")
    return f"data:{mime_type};base64,{b64}"


def _message_content(response: dict[str, Any]) -> str:
    try:
        content = response["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise ParseError("Completion response has no message content") from exc
    if not isinstance(content, str):
        raise ParseError("Completion message content is not text")
    return content


async def extract_resume_profile(
    openrouter: "OpenRouterResource",
    resume_url: str,
    model: str | None = None,
    download_timeout: float = DEFAULT_DOWNLOAD_TIMEOUT,
) -> ExtractResumeResult:
    """Download a resume and extract a flat candidate profile from it.

    Args:
        openrouter: OpenRouterResource instance for API calls
        resume_url: Publicly accessible URL of the resume
        model: Model to use (defaults to the resource's default_model)
        download_timeout: Timeout for the resume download in seconds

    Returns:
        ExtractResumeResult with the parsed profile

    Raises:
        ExternalServiceError: download or backend failure
        ParseError: empty document, or no parseable JSON object in the response
    """
    if not resume_url or not isinstance(resume_url, str):
        raise ParseError("resume_url must be a non-empty string")

    document, content_type = await download_resume(resume_url, timeout=download_timeout)
    if not document:
        raise ParseError(f"Resume at {resume_url} is empty")

    if content_type and content_type != OCTET_STREAM:
        mime_type = content_type
    else:
        mime_type = infer_mime_type(resume_url)

    content_parts: list[dict[str, Any]] = [
        {"type": "text", "text": "Resume file content provided below. Extract and return JSON only."},
        {
            "type": "file",
            "file": {
                "filename": urlparse(resume_url).path.rsplit("/", 1)[-1] or "resume",
                "file_data": to_data_url(document, mime_type),
            },
        },
    ]

    plugins = None
    if mime_type == "application/pdf":
        plugins = [{"id": "file-parser", "pdf": {"engine": "pdf-text"}}]

    model = model or openrouter.default_model
    response = await openrouter.complete(
        messages=[
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": content_parts},
        ],
        model=model,
        operation="extract_resume",
        response_format={"type": "json_object"},
        temperature=0.0,
        plugins=plugins,
    )

    profile = parse_json_object(_message_content(response))
    for key in PROFILE_KEYS:
        profile.setdefault(key, [] if key == "skills" else None)

    result = ExtractResumeResult(profile=profile, mime_type=mime_type, model=model)
    logger.debug(
        "Extracted resume profile from %s (%s): %d skills",
        resume_url,
        mime_type,
        len(result.skills),
    )
    return result
