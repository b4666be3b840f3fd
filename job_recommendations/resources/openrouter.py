"""OpenRouter LLM resource with cost tracking.

This resource is a thin HTTP client for the OpenRouter API. It handles:
- Authentication
- Request formatting and per-call timeouts
- Translating transport failures into ExternalServiceError
- Cost tracking (logged per call, accumulated per run)

Prompts and response parsing live in job_recommendations.llm.operations.
"""

import os
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

import httpx
from dagster import ConfigurableResource, get_dagster_logger
from pydantic import Field, PrivateAttr

from job_recommendations.errors import ExternalServiceError, ParseError

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


@dataclass
class RunCostAccumulator:
    """Accumulates LLM costs across all calls in a run."""

    total_cost_usd: Decimal = Decimal("0")
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    api_calls: int = 0
    costs_by_operation: dict[str, Decimal] = field(default_factory=dict)

    def add(self, operation: str, cost_usd: Decimal, input_tokens: int, output_tokens: int):
        """Record a cost."""
        self.total_cost_usd += cost_usd
        self.total_input_tokens += input_tokens
        self.total_output_tokens += output_tokens
        self.api_calls += 1
        self.costs_by_operation[operation] = (
            self.costs_by_operation.get(operation, Decimal("0")) + cost_usd
        )

    @property
    def total_tokens(self) -> int:
        return self.total_input_tokens + self.total_output_tokens

    def to_metadata(self) -> dict:
        """Return as Dagster metadata dict."""
        return {
            "llm/total_cost_usd": float(self.total_cost_usd),
            "llm/total_tokens": self.total_tokens,
            "llm/api_calls": self.api_calls,
            "llm/costs_by_operation": {k: float(v) for k, v in self.costs_by_operation.items()},
        }


class OpenRouterResource(ConfigurableResource):
    """OpenRouter client used for resume extraction, resume scoring and embeddings.

    Example usage in an op:
        from job_recommendations.llm.operations import embed_single

        vector = asyncio.run(embed_single(context.resources.openrouter, text))
    """

    api_key: str = Field(
        default_factory=lambda: os.getenv("OPENROUTER_API_KEY", ""),
        description="OpenRouter API key",
    )
    default_model: str = Field(
        default_factory=lambda: os.getenv("OPENROUTER_CHAT_MODEL", "openai/gpt-4o-mini"),
        description="Default model to use for completions",
    )
    embedding_model: str = Field(
        default_factory=lambda: os.getenv(
            "OPENROUTER_EMBEDDING_MODEL", "openai/text-embedding-3-small"
        ),
        description="Default model to use for embeddings",
    )
    site_url: str = Field(
        default="https://jobs.example.com",
        description="Site URL for OpenRouter analytics",
    )
    app_name: str = Field(
        default="Job Recommendations Pipeline",
        description="Application name for OpenRouter analytics",
    )
    request_timeout: float = Field(
        default=30.0,
        description="Per-call timeout in seconds; a timeout is an ExternalServiceError",
    )
    _run_costs: RunCostAccumulator = PrivateAttr(default_factory=RunCostAccumulator)

    def get_run_costs(self) -> RunCostAccumulator:
        """Get accumulated costs for the current run."""
        return self._run_costs

    def reset_run_costs(self) -> None:
        """Reset the run cost accumulator. Call at start of a new run."""
        self._run_costs = RunCostAccumulator()

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.request_timeout)

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": self.site_url,
            "X-Title": self.app_name,
        }

    def _record_cost(self, operation: str, model: str, usage: dict[str, Any]) -> None:
        input_tokens = usage.get("prompt_tokens", usage.get("total_tokens", 0)) or 0
        output_tokens = usage.get("completion_tokens", 0) or 0
        # OpenRouter returns cost directly - no need to calculate
        cost_usd = Decimal(str(usage.get("cost", 0) or 0))
        self._run_costs.add(operation, cost_usd, input_tokens, output_tokens)
        get_dagster_logger().info(
            f"LLM Cost: {operation} | {model} | "
            f"{input_tokens}+{output_tokens} tokens | ${cost_usd:.6f}"
        )

    async def _post(self, path: str, body: dict[str, Any], operation: str) -> dict[str, Any]:
        if not self.api_key:
            raise ExternalServiceError("OPENROUTER_API_KEY is not configured")

        try:
            async with self._client() as client:
                response = await client.post(
                    f"{OPENROUTER_BASE_URL}{path}",
                    headers=self._headers(),
                    json=body,
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ExternalServiceError(
                f"OpenRouter {operation} failed: "
                f"{exc.response.status_code}: {exc.response.text[:200]}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ExternalServiceError(
                f"OpenRouter {operation} failed: {type(exc).__name__}: {exc}"
            ) from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise ParseError(
                f"OpenRouter {operation} returned a non-JSON body", raw=response.text[:500]
            ) from exc

        self._record_cost(operation, body.get("model", ""), data.get("usage") or {})
        return data

    async def complete(
        self,
        messages: list[dict[str, Any]],
        model: str | None = None,
        operation: str = "completion",
        response_format: dict[str, str] | None = None,
        temperature: float = 0.0,
        max_tokens: int | None = None,
        plugins: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        """Make an async chat completion request and track costs.

        Args:
            messages: List of message dicts with 'role' and 'content'
            model: Model to use (defaults to default_model)
            operation: Operation type for cost tracking
            response_format: Response format (e.g., {"type": "json_object"})
            temperature: Sampling temperature (0.0 = deterministic)
            max_tokens: Maximum tokens in response
            plugins: OpenRouter plugins config (e.g., for PDF processing engine)

        Returns:
            Full API response dict including usage information

        Raises:
            ExternalServiceError: missing key, transport error, timeout or non-2xx
            ParseError: body is not JSON
        """
        request_body: dict[str, Any] = {
            "model": model or self.default_model,
            "messages": messages,
            "temperature": temperature,
        }
        if response_format:
            request_body["response_format"] = response_format
        if max_tokens:
            request_body["max_tokens"] = max_tokens
        if plugins:
            request_body["plugins"] = plugins

        return await self._post("/chat/completions", request_body, operation)

    async def embed(
        self,
        input: str | list[str],
        model: str | None = None,
        operation: str = "embed",
    ) -> dict[str, Any]:
        """Generate embeddings using OpenRouter's embeddings API.

        Args:
            input: Text or list of texts to embed
            model: Embedding model to use (defaults to embedding_model)
            operation: Operation type for cost tracking

        Returns:
            Full API response dict including embeddings and usage
        """
        if isinstance(input, str):
            input = [input]

        request_body: dict[str, Any] = {
            "model": model or self.embedding_model,
            "input": input,
        }
        return await self._post("/embeddings", request_body, operation)
