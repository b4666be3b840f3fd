"""Tests for the read-through profile embedding cache."""

import asyncio
from types import SimpleNamespace

import pytest

from job_recommendations.errors import ExternalServiceError
from job_recommendations.matching.embedding_cache import EmbeddingCache, as_vector
from job_recommendations.matching.text import profile_text_hash
from tests.conftest import FakeOpenRouter


def make_candidate(**overrides):
    fields = {
        "id": "cand-1",
        "first_name": "Grace",
        "last_name": "Hopper",
        "current_position": "Compiler Engineer",
        "skills": ["COBOL"],
        "experience_years": 30,
        "current_location": "Arlington",
        "preferred_location": None,
        "embedding": None,
        "embedding_text_hash": None,
        "embedding_model": None,
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


def fresh_candidate(openrouter, **overrides):
    candidate = make_candidate(**overrides)
    candidate.embedding = [0.1, 0.2]
    candidate.embedding_text_hash = profile_text_hash(candidate)
    candidate.embedding_model = openrouter.embedding_model
    return candidate


class TestIsStale:
    """Tests for staleness detection."""

    def test_missing_vector_is_stale(self):
        cache = EmbeddingCache(FakeOpenRouter())
        assert cache.is_stale(make_candidate())

    def test_matching_hash_is_fresh(self):
        openrouter = FakeOpenRouter()
        assert not EmbeddingCache(openrouter).is_stale(fresh_candidate(openrouter))

    def test_profile_edit_makes_vector_stale(self):
        """Test changing a text field after embedding invalidates the vector."""
        openrouter = FakeOpenRouter()
        candidate = fresh_candidate(openrouter)
        candidate.skills = ["COBOL", "FLOW-MATIC"]
        assert EmbeddingCache(openrouter).is_stale(candidate)

    def test_model_change_makes_vector_stale(self):
        openrouter = FakeOpenRouter()
        candidate = fresh_candidate(openrouter)
        candidate.embedding_model = "other/model"
        assert EmbeddingCache(openrouter).is_stale(candidate)

    def test_unknown_model_with_matching_hash_is_fresh(self):
        openrouter = FakeOpenRouter()
        candidate = fresh_candidate(openrouter)
        candidate.embedding_model = None
        assert not EmbeddingCache(openrouter).is_stale(candidate)


class TestGet:
    """Tests for reading through the cache."""

    def test_computes_and_writes_back_when_missing(self):
        openrouter = FakeOpenRouter(vector_for=lambda text: [0.5, 0.5])
        candidate = make_candidate()

        vector = asyncio.run(EmbeddingCache(openrouter).get(candidate))

        assert vector == [0.5, 0.5]
        assert candidate.embedding == [0.5, 0.5]
        assert candidate.embedding_text_hash == profile_text_hash(candidate)
        assert candidate.embedding_model == openrouter.embedding_model
        assert len(openrouter.embed_calls) == 1

    def test_fresh_vector_needs_no_call(self):
        openrouter = FakeOpenRouter()
        candidate = fresh_candidate(openrouter)

        vector = asyncio.run(EmbeddingCache(openrouter).get(candidate))

        assert vector == [0.1, 0.2]
        assert openrouter.embed_calls == []

    def test_second_read_hits_memory(self):
        openrouter = FakeOpenRouter()
        cache = EmbeddingCache(openrouter)
        candidate = make_candidate()

        asyncio.run(cache.get(candidate))
        asyncio.run(cache.get(candidate))

        assert len(openrouter.embed_calls) == 1

    def test_edit_after_caching_recomputes(self):
        openrouter = FakeOpenRouter()
        cache = EmbeddingCache(openrouter)
        candidate = make_candidate()
        asyncio.run(cache.get(candidate))

        candidate.current_position = "Rear Admiral"
        asyncio.run(cache.get(candidate))

        assert len(openrouter.embed_calls) == 2

    def test_refresh_forces_recompute(self):
        openrouter = FakeOpenRouter()
        candidate = fresh_candidate(openrouter)

        asyncio.run(EmbeddingCache(openrouter).get(candidate, refresh=True))

        assert len(openrouter.embed_calls) == 1

    def test_backend_error_propagates(self):
        openrouter = FakeOpenRouter(embed_error=ExternalServiceError("down"))
        with pytest.raises(ExternalServiceError):
            asyncio.run(EmbeddingCache(openrouter).get(make_candidate()))

    def test_clear_drops_entries_but_keeps_profile_vector(self):
        openrouter = FakeOpenRouter()
        cache = EmbeddingCache(openrouter)
        candidate = make_candidate()
        asyncio.run(cache.get(candidate))
        assert len(cache) == 1

        cache.clear()

        assert len(cache) == 0
        # The written-back vector is still fresh, so no new call is made
        asyncio.run(cache.get(candidate))
        assert len(openrouter.embed_calls) == 1


class TestAsVector:
    def test_converts_sequences_to_float_lists(self):
        assert as_vector((1, 2.5)) == [1.0, 2.5]

    def test_none_is_empty(self):
        assert as_vector(None) == []
