"""Environment-variable-based configuration."""

import os
from pathlib import Path


def get_db_path() -> Path:
    """Return the database file path from DS_DB_PATH."""
    raw = os.environ.get("DS_DB_PATH", "~/.local/share/design_search/search.db")
    return Path(raw).expanduser()


def get_embedding_provider() -> str:
    """Return the embedding provider name from DS_EMBEDDING_PROVIDER (ollama or openai)."""
    return os.environ.get("DS_EMBEDDING_PROVIDER", "ollama").lower()


def get_ollama_url() -> str:
    """Return the Ollama API URL from DS_OLLAMA_URL."""
    return os.environ.get("DS_OLLAMA_URL", "http://localhost:11434")


def get_openai_url() -> str:
    """Return the OpenAI-compatible API base URL from DS_OPENAI_URL."""
    return os.environ.get("DS_OPENAI_URL", "https://api.openai.com")


def get_openai_api_key() -> str | None:
    """Return the OpenAI API key from OPENAI_API_KEY."""
    return os.environ.get("OPENAI_API_KEY")


def get_embedding_model() -> str:
    """Return the embedding model name from DS_EMBEDDING_MODEL.

    The default depends on the configured provider.
    """
    default = "text-embedding-ada-002" if get_embedding_provider() == "openai" else "nomic-embed-text"
    return os.environ.get("DS_EMBEDDING_MODEL", default)


def get_embedding_timeout() -> float:
    """Return the embedding request timeout in seconds from DS_EMBEDDING_TIMEOUT."""
    return float(os.environ.get("DS_EMBEDDING_TIMEOUT", "10.0"))


def get_embedding_dim() -> int | None:
    """Return the expected embedding dimensions from DS_EMBEDDING_DIM, or None when unchecked."""
    raw = os.environ.get("DS_EMBEDDING_DIM")
    return int(raw) if raw else None


def get_vector_weight() -> float:
    """Return the default vector-path weight from DS_VECTOR_WEIGHT."""
    return float(os.environ.get("DS_VECTOR_WEIGHT", "0.7"))


def get_text_weight() -> float:
    """Return the default lexical-path weight from DS_TEXT_WEIGHT."""
    return float(os.environ.get("DS_TEXT_WEIGHT", "0.3"))


def get_score_threshold() -> float:
    """Return the minimum vector similarity from DS_SCORE_THRESHOLD."""
    return float(os.environ.get("DS_SCORE_THRESHOLD", "0.5"))


def is_manager_mode() -> bool:
    """Return True if DS_MANAGER is set to TRUE."""
    return os.environ.get("DS_MANAGER", "").upper() == "TRUE"


def get_log_level() -> str:
    """Return the logging level from DS_LOG_LEVEL."""
    return os.environ.get("DS_LOG_LEVEL", "WARNING")
