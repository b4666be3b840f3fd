"""Embedding-similarity scoring and skill overlap."""

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from job_recommendations.llm.operations.embed_text import embed_single
from job_recommendations.matching.embedding_cache import EmbeddingCache
from job_recommendations.matching.text import build_job_text, skill_names

if TYPE_CHECKING:
    from job_recommendations.resources.openrouter import OpenRouterResource


@dataclass
class EmbeddingScore:
    """Score from profile-embedding similarity."""

    score: int
    similarity: float
    matched_skills: list[str] = field(default_factory=list)
    missing_skills: list[str] = field(default_factory=list)


def cosine_similarity(a: Sequence[float] | None, b: Sequence[float] | None) -> float:
    """Cosine similarity remapped from [-1, 1] to [0, 1].

    Compares the common prefix when lengths differ. Returns 0.0 if either
    vector is empty or has zero norm.
    """
    if a is None or b is None or len(a) == 0 or len(b) == 0:
        return 0.0
    n = min(len(a), len(b))
    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for i in range(n):
        x = float(a[i] or 0.0)
        y = float(b[i] or 0.0)
        dot += x * y
        norm_a += x * x
        norm_b += y * y
    if norm_a == 0 or norm_b == 0:
        return 0.0
    sim = dot / (math.sqrt(norm_a) * math.sqrt(norm_b))
    return max(0.0, min(1.0, (sim + 1) / 2))


def normalize_skills(skills: Iterable[Any] | str | None) -> list[str]:
    """Lower-cased, trimmed, de-duplicated skill names in first-seen order."""
    seen: dict[str, None] = {}
    for name in skill_names(skills):
        key = name.lower().strip()
        if key:
            seen.setdefault(key, None)
    return list(seen)


def skill_overlap(
    required_skills: Iterable[Any] | str | None,
    candidate_skills: Iterable[Any] | str | None,
) -> tuple[list[str], list[str]]:
    """Split the job's required skills into (matched, missing) for a candidate.

    Both sides are normalized, so the two lists partition the normalized
    required skills.
    """
    required = normalize_skills(required_skills)
    have = set(normalize_skills(candidate_skills))
    matched = [s for s in required if s in have]
    missing = [s for s in required if s not in have]
    return matched, missing


async def compute_embedding_score(
    openrouter: "OpenRouterResource",
    job: Any,
    candidate: Any,
    cache: EmbeddingCache | None = None,
    job_embedding: Sequence[float] | None = None,
) -> EmbeddingScore:
    """Score a candidate for a job by cosine similarity of their canonical texts.

    The candidate vector comes from the read-through cache (embedded on demand
    when missing or stale); the job vector is embedded unless one is passed in.

    Raises:
        ExternalServiceError / ParseError from the embedding backend
    """
    cache = cache or EmbeddingCache(openrouter)
    candidate_vector = await cache.get(candidate)
    if job_embedding is None:
        job_embedding = await embed_single(openrouter, build_job_text(job))

    similarity = cosine_similarity(job_embedding, candidate_vector)
    matched, missing = skill_overlap(
        getattr(job, "required_skills", None), getattr(candidate, "skills", None)
    )
    return EmbeddingScore(
        score=math.floor(similarity * 100 + 0.5),
        similarity=similarity,
        matched_skills=matched,
        missing_skills=missing,
    )
