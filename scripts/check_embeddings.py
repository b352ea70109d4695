"""Quick check that the embedding endpoint is reachable and the model is available."""

import sys

import httpx

from design_search.config import (
    get_embedding_model,
    get_embedding_provider,
    get_ollama_url,
    get_openai_api_key,
    get_openai_url,
)


def _check_ollama(model: str) -> None:
    url = get_ollama_url()
    print(f"Checking Ollama at {url} for model {model}...")
    resp = httpx.get(f"{url}/api/tags", timeout=5.0)
    resp.raise_for_status()
    models = [m["name"] for m in resp.json().get("models", [])]
    print(f"Available models: {', '.join(models) or '(none)'}")

    if any(model in m for m in models):
        print(f"  {model} is available")
    else:
        print(f"  {model} not found — run: ollama pull {model}")
        sys.exit(1)


def _check_openai(model: str) -> None:
    url = get_openai_url()
    key = get_openai_api_key()
    print(f"Checking OpenAI-compatible API at {url} for model {model}...")
    if not key:
        print("  OPENAI_API_KEY is not set")
        sys.exit(1)
    resp = httpx.post(
        f"{url}/v1/embeddings",
        json={"model": model, "input": "ping"},
        headers={"Authorization": f"Bearer {key}"},
        timeout=10.0,
    )
    resp.raise_for_status()
    dim = len(resp.json()["data"][0]["embedding"])
    print(f"  {model} is available ({dim} dimensions)")


def main() -> None:
    """Check embedding provider connectivity and model availability."""
    provider = get_embedding_provider()
    model = get_embedding_model()

    try:
        if provider == "ollama":
            _check_ollama(model)
        elif provider == "openai":
            _check_openai(model)
        else:
            print(f"  Unknown DS_EMBEDDING_PROVIDER '{provider}'. Use: ollama, openai")
            sys.exit(1)
    except httpx.ConnectError:
        print(f"  {provider} endpoint is not reachable")
        sys.exit(1)
    except Exception as e:
        print(f"  Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
