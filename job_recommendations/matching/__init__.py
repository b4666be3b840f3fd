"""Candidate–job scoring, the batch matching worker and the applicant ranker."""

from job_recommendations.matching.ats import AtsScore, compute_ats_score
from job_recommendations.matching.embedding_cache import EmbeddingCache
from job_recommendations.matching.ranker import (
    RankedApplicant,
    RankedApplicants,
    rank_applicants,
    sort_applicants,
)
from job_recommendations.matching.scorer import MatchResult, MatchScorer, ResumePolicy
from job_recommendations.matching.similarity import (
    EmbeddingScore,
    compute_embedding_score,
    cosine_similarity,
    skill_overlap,
)
from job_recommendations.matching.text import (
    build_job_text,
    build_profile_text,
    profile_text_hash,
)
from job_recommendations.matching.worker import (
    NOTIFICATION_THRESHOLD,
    CandidateOutcome,
    MatchRunSummary,
    run_match_for_job,
)

__all__ = [
    "AtsScore",
    "compute_ats_score",
    "EmbeddingCache",
    "RankedApplicant",
    "RankedApplicants",
    "rank_applicants",
    "sort_applicants",
    "MatchResult",
    "MatchScorer",
    "ResumePolicy",
    "EmbeddingScore",
    "compute_embedding_score",
    "cosine_similarity",
    "skill_overlap",
    "build_job_text",
    "build_profile_text",
    "profile_text_hash",
    "NOTIFICATION_THRESHOLD",
    "CandidateOutcome",
    "MatchRunSummary",
    "run_match_for_job",
]
