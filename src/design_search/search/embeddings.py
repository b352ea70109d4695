"""Embedding providers over HTTP with availability caching."""

import logging
from typing import Protocol, runtime_checkable

import httpx

from design_search.config import (
    get_embedding_model,
    get_embedding_timeout,
    get_ollama_url,
    get_openai_api_key,
    get_openai_url,
)
from design_search.errors import DependencyUnavailable

logger = logging.getLogger(__name__)


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Turns text into a fixed-dimension float vector."""

    async def is_available(self) -> bool:
        """Check if the embedding backend is reachable."""
        ...

    async def embed(self, text: str) -> list[float]:
        """Embed text. Raises DependencyUnavailable on outage."""
        ...

    async def close(self) -> None:
        """Release resources."""
        ...


class OllamaEmbeddingClient:
    """Generates embeddings via Ollama's /api/embed endpoint."""

    def __init__(self, http_client: httpx.AsyncClient | None = None) -> None:
        """Initialize with an optional HTTP client."""
        self._http = http_client
        self._available: bool | None = None

    async def is_available(self) -> bool:
        """Check if Ollama is reachable. Only caches success, retries on failure."""
        if self._available is True:
            return True
        try:
            client = self._get_client()
            resp = await client.get(f"{get_ollama_url()}/api/tags", timeout=get_embedding_timeout())
            resp.raise_for_status()
            self._available = True
        except Exception:
            logger.warning("Ollama not available — embeddings disabled")
            self._available = None  # Will retry next call
        return self._available is True

    async def embed(self, text: str) -> list[float]:
        """Generate an embedding vector for the given text."""
        if not await self.is_available():
            raise DependencyUnavailable("Ollama embedding service is not reachable")
        try:
            client = self._get_client()
            resp = await client.post(
                f"{get_ollama_url()}/api/embed",
                json={"model": get_embedding_model(), "input": text},
                timeout=get_embedding_timeout(),
            )
            resp.raise_for_status()
            data = resp.json()
            # Ollama /api/embed returns {"embeddings": [[...]]}
            result: list[float] = data["embeddings"][0]
            return result
        except Exception as e:
            logger.warning("Embedding generation failed", exc_info=True)
            self._available = None  # Will retry next call
            raise DependencyUnavailable("Ollama embedding request failed") from e

    def _get_client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient()
        return self._http

    async def close(self) -> None:
        """Close the HTTP client if open."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None


class OpenAIEmbeddingClient:
    """Generates embeddings via an OpenAI-compatible /v1/embeddings endpoint."""

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        api_key: str | None = None,
    ) -> None:
        """Initialize with an optional HTTP client and API key (defaults to OPENAI_API_KEY)."""
        self._http = http_client
        self._api_key = api_key
        self._available: bool | None = None

    @property
    def api_key(self) -> str | None:
        """The configured API key, if any."""
        return self._api_key or get_openai_api_key()

    async def is_available(self) -> bool:
        """Check the key and the models endpoint. Only caches success."""
        if self._available is True:
            return True
        if not self.api_key:
            logger.warning("OPENAI_API_KEY not set — embeddings disabled")
            return False
        try:
            client = self._get_client()
            resp = await client.get(
                f"{get_openai_url()}/v1/models",
                headers=self._headers(),
                timeout=get_embedding_timeout(),
            )
            resp.raise_for_status()
            self._available = True
        except Exception:
            logger.warning("OpenAI embeddings not available — embeddings disabled")
            self._available = None
        return self._available is True

    async def embed(self, text: str) -> list[float]:
        """Generate an embedding vector for the given text."""
        if not await self.is_available():
            raise DependencyUnavailable("OpenAI embedding service is not reachable")
        try:
            client = self._get_client()
            resp = await client.post(
                f"{get_openai_url()}/v1/embeddings",
                json={"model": get_embedding_model(), "input": text},
                headers=self._headers(),
                timeout=get_embedding_timeout(),
            )
            resp.raise_for_status()
            data = resp.json()
            result: list[float] = data["data"][0]["embedding"]
            return result
        except Exception as e:
            logger.warning("Embedding generation failed", exc_info=True)
            self._available = None
            raise DependencyUnavailable("OpenAI embedding request failed") from e

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def _get_client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient()
        return self._http

    async def close(self) -> None:
        """Close the HTTP client if open."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None


def create_embedder(provider: str) -> EmbeddingProvider | None:
    """Create an embedding client for the given provider name."""
    if provider == "ollama":
        return OllamaEmbeddingClient()
    if provider == "openai":
        return OpenAIEmbeddingClient()
    return None
