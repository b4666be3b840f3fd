"""Read-through cache for candidate profile embeddings.

A cached vector is valid only for the exact canonical text it was built from:
``embedding_text_hash`` on the profile must equal the hash of the current
text, and the embedding model must match. Anything else is stale and gets
recomputed on the next read. Profile-update code does not need to do anything
beyond saving the profile.
"""

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from job_recommendations.llm.operations.embed_text import embed_single
from job_recommendations.matching.text import build_profile_text, profile_text_hash

if TYPE_CHECKING:
    from job_recommendations.resources.openrouter import OpenRouterResource

logger = logging.getLogger(__name__)


def as_vector(value: Sequence[float] | None) -> list[float]:
    """Plain list of floats from a stored vector (pgvector returns numpy arrays)."""
    if value is None:
        return []
    return [float(x) for x in value]


class EmbeddingCache:
    """Candidate embeddings keyed by candidate id, versioned by profile text hash."""

    def __init__(self, openrouter: "OpenRouterResource", model: str | None = None):
        self._openrouter = openrouter
        self.model = model or openrouter.embedding_model
        self._entries: dict[Any, tuple[str, list[float]]] = {}

    def is_stale(self, candidate: Any) -> bool:
        """True when the profile's stored vector cannot be used for its current text."""
        if not as_vector(getattr(candidate, "embedding", None)):
            return True
        if getattr(candidate, "embedding_text_hash", None) != profile_text_hash(candidate):
            return True
        stored_model = getattr(candidate, "embedding_model", None)
        return bool(stored_model) and stored_model != self.model

    async def get(self, candidate: Any, refresh: bool = False) -> list[float]:
        """Return the candidate's embedding, computing it when missing, stale or refreshed.

        A freshly computed vector is written back onto the candidate object so
        callers can persist it; persistence itself is the caller's decision.
        """
        text_hash = profile_text_hash(candidate)
        key = getattr(candidate, "id", None)

        if not refresh:
            entry = self._entries.get(key) if key is not None else None
            if entry is not None and entry[0] == text_hash:
                return entry[1]
            if not self.is_stale(candidate):
                vector = as_vector(candidate.embedding)
                if key is not None:
                    self._entries[key] = (text_hash, vector)
                return vector

        vector = await embed_single(self._openrouter, build_profile_text(candidate), self.model)
        logger.debug("Embedded profile %s (%d dims)", key, len(vector))
        candidate.embedding = vector
        candidate.embedding_text_hash = text_hash
        candidate.embedding_model = self.model
        if key is not None:
            self._entries[key] = (text_hash, vector)
        return vector

    def invalidate(self, candidate_id: Any) -> None:
        """Drop the in-process entry for a candidate."""
        self._entries.pop(candidate_id, None)

    def clear(self) -> None:
        """Drop every in-process entry; stored vectors on the profiles are untouched."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
