"""Match scorer: resume-grounded scoring with embedding fallback.

``MatchScorer.score`` is the boundary of the scoring path. It always returns a
``MatchResult``; backend and parse failures are logged and turned into the
next strategy, and finally into a zero score with strategy ``none``. Only
task cancellation propagates.
"""

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from job_recommendations.llm.operations.embed_text import embed_single
from job_recommendations.llm.operations.extract_resume import is_document_url
from job_recommendations.matching.ats import compute_ats_score
from job_recommendations.matching.embedding_cache import EmbeddingCache
from job_recommendations.matching.similarity import compute_embedding_score, skill_overlap
from job_recommendations.matching.text import build_job_text
from job_recommendations.models.enums import ScoringStrategyEnum

if TYPE_CHECKING:
    from job_recommendations.resources.openrouter import OpenRouterResource

logger = logging.getLogger(__name__)

ATS_NOTES = "ATS score computed via resume-grounded scoring"
EMBEDDING_NOTES = "Score computed from profile embedding similarity"
FAILURE_NOTES = "Scoring failed: resume and embedding strategies both unavailable"


class ResumePolicy(str, enum.Enum):
    """When the scorer attempts resume-grounded scoring."""

    ALWAYS = "always"
    DOCUMENT_TYPES = "document_types"
    NEVER = "never"


@dataclass
class MatchResult:
    score: int
    matched_skills: list[str] = field(default_factory=list)
    missing_skills: list[str] = field(default_factory=list)
    notes: str = ""
    strategy: ScoringStrategyEnum = ScoringStrategyEnum.NONE
    similarity: float | None = None
    parsed_profile: dict[str, Any] | None = None


class MatchScorer:
    """Scores a candidate for a job.

    Holds the embedding cache and a per-job memo of job vectors, so a single
    instance should be shared by everything scoring within one run.
    """

    def __init__(
        self,
        openrouter: "OpenRouterResource",
        cache: EmbeddingCache | None = None,
        resume_policy: ResumePolicy | str = ResumePolicy.ALWAYS,
    ):
        self.openrouter = openrouter
        self.cache = cache or EmbeddingCache(openrouter)
        self.resume_policy = ResumePolicy(resume_policy)
        self._job_vectors: dict[Any, list[float]] = {}

    def should_use_resume(self, resume_uri: str | None) -> bool:
        if not resume_uri:
            return False
        if self.resume_policy == ResumePolicy.NEVER:
            return False
        if self.resume_policy == ResumePolicy.DOCUMENT_TYPES:
            return is_document_url(resume_uri)
        return True

    async def job_embedding(self, job: Any) -> list[float]:
        """Embedding of the job's canonical text, computed once per job id."""
        key = getattr(job, "id", None)
        if key is not None and key in self._job_vectors:
            return self._job_vectors[key]
        vector = await embed_single(self.openrouter, build_job_text(job), self.cache.model)
        if key is not None:
            self._job_vectors[key] = vector
        return vector

    async def score(self, job: Any, candidate: Any, resume_uri: str | None = None) -> MatchResult:
        """Score ``candidate`` for ``job``.

        Tries resume-grounded scoring when a resume is available (the explicit
        ``resume_uri`` first, else the candidate's) and the policy allows it,
        then embedding similarity, then gives up with a zero score.
        """
        job_id = getattr(job, "id", None)
        candidate_id = getattr(candidate, "id", None)
        required_skills = getattr(job, "required_skills", None)
        stored_skills = getattr(candidate, "skills", None)
        resume_uri = resume_uri or getattr(candidate, "resume_url", None)

        if self.should_use_resume(resume_uri):
            try:
                ats = await compute_ats_score(self.openrouter, job, resume_uri)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(
                    "ATS scoring failed for job %s candidate %s, using embeddings: %s",
                    job_id,
                    candidate_id,
                    e,
                )
            else:
                matched, missing = skill_overlap(required_skills, ats.skills or stored_skills)
                return MatchResult(
                    score=ats.score,
                    matched_skills=matched,
                    missing_skills=missing,
                    notes=ATS_NOTES,
                    strategy=ScoringStrategyEnum.ATS,
                    parsed_profile=ats.parsed_profile,
                )

        try:
            job_vector = await self.job_embedding(job)
            emb = await compute_embedding_score(
                self.openrouter, job, candidate, cache=self.cache, job_embedding=job_vector
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(
                "Embedding scoring failed for job %s candidate %s: %s", job_id, candidate_id, e
            )
            matched, missing = skill_overlap(required_skills, stored_skills)
            return MatchResult(
                score=0,
                matched_skills=matched,
                missing_skills=missing,
                notes=FAILURE_NOTES,
                strategy=ScoringStrategyEnum.NONE,
            )

        return MatchResult(
            score=emb.score,
            matched_skills=emb.matched_skills,
            missing_skills=emb.missing_skills,
            notes=EMBEDDING_NOTES,
            strategy=ScoringStrategyEnum.EMBEDDING,
            similarity=emb.similarity,
        )

