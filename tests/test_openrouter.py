"""Tests for the OpenRouter resource and the embedding operation."""

import asyncio
import json
from decimal import Decimal
from unittest.mock import patch

import httpx
import pytest

from job_recommendations.errors import ExternalServiceError, ParseError
from job_recommendations.llm.operations import embed_single, embed_text
from job_recommendations.resources.openrouter import OpenRouterResource, RunCostAccumulator
from tests.conftest import FakeOpenRouter


def patched_client(handler):
    """Patch OpenRouterResource._client to route requests to ``handler``."""
    return patch.object(
        OpenRouterResource,
        "_client",
        lambda self: httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def make_resource(**overrides) -> OpenRouterResource:
    settings = {
        "api_key": "sk-test",
        "default_model": "test/chat-model",
        "embedding_model": "test/embedding-model",
    }
    settings.update(overrides)
    return OpenRouterResource(**settings)


class TestRunCostAccumulator:
    def test_add_and_metadata(self):
        costs = RunCostAccumulator()
        costs.add("embed_text", Decimal("0.0001"), 12, 0)
        costs.add("score_resume", Decimal("0.002"), 300, 2)
        costs.add("score_resume", Decimal("0.003"), 310, 3)

        metadata = costs.to_metadata()
        assert metadata["llm/api_calls"] == 3
        assert metadata["llm/total_tokens"] == 627
        assert metadata["llm/costs_by_operation"]["score_resume"] == pytest.approx(0.005)
        assert metadata["llm/total_cost_usd"] == pytest.approx(0.0051)


class TestOpenRouterResource:
    """Tests for request building and error translation."""

    def test_complete_sends_body_and_records_cost(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "choices": [{"message": {"content": "42"}}],
                    "usage": {"prompt_tokens": 100, "completion_tokens": 1, "cost": 0.0005},
                },
            )

        resource = make_resource()
        with patched_client(handler):
            response = asyncio.run(
                resource.complete(
                    [{"role": "user", "content": "hi"}],
                    operation="score_resume",
                    max_tokens=16,
                )
            )

        assert response["choices"][0]["message"]["content"] == "42"
        assert seen["url"].endswith("/chat/completions")
        assert seen["auth"] == "Bearer sk-test"
        assert seen["body"]["model"] == "test/chat-model"
        assert seen["body"]["max_tokens"] == 16
        assert "plugins" not in seen["body"]

        costs = resource.get_run_costs()
        assert costs.api_calls == 1
        assert costs.total_input_tokens == 100
        assert costs.costs_by_operation["score_resume"] == Decimal("0.0005")

        resource.reset_run_costs()
        assert resource.get_run_costs().api_calls == 0

    def test_server_error_is_external_service_error(self):
        resource = make_resource()
        with patched_client(lambda request: httpx.Response(500, text="upstream down")):
            with pytest.raises(ExternalServiceError, match="500"):
                asyncio.run(resource.complete([{"role": "user", "content": "hi"}]))

    def test_rate_limit_is_external_service_error(self):
        resource = make_resource()
        with patched_client(lambda request: httpx.Response(429, text="Too Many Requests")):
            with pytest.raises(ExternalServiceError, match="429"):
                asyncio.run(resource.embed("hello"))

    @pytest.mark.parametrize(
        "error_cls", [httpx.ConnectError, httpx.ReadTimeout], ids=["connect", "timeout"]
    )
    def test_transport_errors_are_external_service_errors(self, error_cls):
        def handler(request):
            raise error_cls("boom", request=request)

        resource = make_resource()
        with patched_client(handler):
            with pytest.raises(ExternalServiceError, match=error_cls.__name__):
                asyncio.run(resource.embed("hello"))

    def test_non_json_body_is_parse_error(self):
        resource = make_resource()
        with patched_client(lambda request: httpx.Response(200, text="<html>oops</html>")):
            with pytest.raises(ParseError):
                asyncio.run(resource.embed("hello"))

    def test_missing_api_key_fails_without_request(self):
        def handler(request):
            raise AssertionError("no request expected")

        resource = make_resource(api_key="")
        with patched_client(handler):
            with pytest.raises(ExternalServiceError, match="OPENROUTER_API_KEY"):
                asyncio.run(resource.embed("hello"))


class TestEmbedText:
    """Tests for embed_text and embed_single."""

    def test_vectors_follow_input_order(self):
        openrouter = FakeOpenRouter()

        async def shuffled_embed(input, model=None, operation="embed"):
            return {
                "data": [
                    {"index": 1, "embedding": [0.0, 1.0]},
                    {"index": 0, "embedding": [1.0, 0.0]},
                ],
                "usage": {"cost": 0.00002},
            }

        openrouter.embed = shuffled_embed
        result = asyncio.run(embed_text(openrouter, ["first", "second"]))

        assert result.embeddings == [[1.0, 0.0], [0.0, 1.0]]
        assert result.dimensions == 2
        assert result.model == "test/embedding-model"
        assert result.cost_usd == pytest.approx(0.00002)

    def test_count_mismatch_is_parse_error(self):
        openrouter = FakeOpenRouter()

        async def short_embed(input, model=None, operation="embed"):
            return {"data": [], "usage": {}}

        openrouter.embed = short_embed
        with pytest.raises(ParseError):
            asyncio.run(embed_text(openrouter, ["only one"]))

    def test_embed_single_skips_blank_text(self):
        openrouter = FakeOpenRouter()
        assert asyncio.run(embed_single(openrouter, "   ")) == []
        assert openrouter.embed_calls == []

    def test_embed_single_returns_vector(self):
        openrouter = FakeOpenRouter(vector_for=lambda text: [0.5, 0.5])
        assert asyncio.run(embed_single(openrouter, "Python developer")) == [0.5, 0.5]
        assert openrouter.embedded_texts == ["Python developer"]
