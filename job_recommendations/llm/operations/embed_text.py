"""Text embedding operation using OpenRouter's embeddings API.

Generates the vectors compared by embedding-similarity scoring.

Reference: https://openrouter.ai/docs/api/reference/embeddings
"""

from typing import TYPE_CHECKING, Any

from job_recommendations.errors import ParseError

if TYPE_CHECKING:
    from job_recommendations.resources.openrouter import OpenRouterResource

# Version tracking for embedding changes
PROMPT_VERSION = "1.0.0"


class EmbedTextResult:
    """Result of text embedding with usage stats."""

    def __init__(
        self,
        embeddings: list[list[float]],
        usage: dict[str, Any],
        model: str,
    ):
        self.embeddings = embeddings
        self.usage = usage
        self.model = model

    @property
    def cost_usd(self) -> float:
        return float(self.usage.get("cost", 0))

    @property
    def dimensions(self) -> int:
        """Return the dimensionality of the embeddings."""
        if self.embeddings:
            return len(self.embeddings[0])
        return 0


async def embed_text(
    openrouter: "OpenRouterResource",
    texts: list[str],
    model: str | None = None,
) -> EmbedTextResult:
    """Generate embeddings for one or more texts.

    Args:
        openrouter: OpenRouterResource instance for API calls
        texts: List of texts to embed (batch processing supported)
        model: Embedding model to use (defaults to the resource's embedding_model)

    Returns:
        EmbedTextResult with embeddings in input order

    Raises:
        ExternalServiceError: backend unreachable or not configured
        ParseError: response does not contain one vector per input
    """
    model = model or openrouter.embedding_model

    response = await openrouter.embed(
        input=texts,
        model=model,
        operation="embed_text",
    )

    data = response.get("data")
    if not isinstance(data, list) or len(data) != len(texts):
        raise ParseError(f"Expected {len(texts)} embeddings, got {type(data).__name__}")
    # OpenRouter echoes an index per item; keep input order
    items = sorted(data, key=lambda item: item.get("index", 0))
    try:
        embeddings = [[float(x) for x in item["embedding"]] for item in items]
    except (KeyError, TypeError, ValueError) as exc:
        raise ParseError(f"Malformed embedding in response: {exc}") from exc

    return EmbedTextResult(embeddings=embeddings, usage=response.get("usage") or {}, model=model)


async def embed_single(
    openrouter: "OpenRouterResource",
    text: str,
    model: str | None = None,
) -> list[float]:
    """Embed a single text. Empty text returns an empty vector without a network call."""
    if not text or not text.strip():
        return []
    result = await embed_text(openrouter, [text], model)
    return result.embeddings[0]
