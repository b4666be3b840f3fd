"""Shared fixtures: a throwaway SQLite database and an in-process OpenRouter stand-in."""

from collections.abc import Callable

import pytest

from job_recommendations import db
from job_recommendations.models import Base
from job_recommendations.resources.openrouter import RunCostAccumulator


class FakeOpenRouter:
    """Duck-typed OpenRouterResource that never touches the network.

    Completions are returned from ``completions`` in order; embeddings come from
    ``vector_for(text)``. Setting ``embed_error`` / ``complete_error`` makes the
    corresponding call raise.
    """

    default_model = "test/chat-model"
    embedding_model = "test/embedding-model"

    def __init__(
        self,
        completions: list[str] | None = None,
        vector_for: Callable[[str], list[float]] | None = None,
        embed_error: Exception | None = None,
        complete_error: Exception | None = None,
    ):
        self.completions = list(completions or [])
        self.vector_for = vector_for or (lambda text: [1.0, 0.0, 0.0])
        self.embed_error = embed_error
        self.complete_error = complete_error
        self.embed_calls: list[list[str]] = []
        self.complete_calls: list[dict] = []
        self._run_costs = RunCostAccumulator()

    def get_run_costs(self) -> RunCostAccumulator:
        return self._run_costs

    def reset_run_costs(self) -> None:
        self._run_costs = RunCostAccumulator()

    async def complete(self, messages, model=None, operation="completion", **kwargs):
        self.complete_calls.append(
            {"messages": messages, "model": model, "operation": operation, **kwargs}
        )
        if self.complete_error is not None:
            raise self.complete_error
        content = self.completions.pop(0)
        return {"choices": [{"message": {"content": content}}], "usage": {}}

    async def embed(self, input, model=None, operation="embed"):
        texts = [input] if isinstance(input, str) else list(input)
        self.embed_calls.append(texts)
        if self.embed_error is not None:
            raise self.embed_error
        return {
            "data": [
                {"index": i, "embedding": self.vector_for(text)} for i, text in enumerate(texts)
            ],
            "usage": {},
        }

    @property
    def embedded_texts(self) -> list[str]:
        return [text for call in self.embed_calls for text in call]


@pytest.fixture
def fake_openrouter():
    return FakeOpenRouter()


@pytest.fixture
def sqlite_db(tmp_path, monkeypatch):
    """Point job_recommendations.db at a fresh SQLite file with the full schema."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'matching.db'}")
    db.reset_engine()
    Base.metadata.create_all(db.get_engine())
    yield db
    db.reset_engine()
