"""Environment-derived configuration.

Values come from the process environment (optionally populated from a
``.env`` file by the CLI via python-dotenv). Everything the pipelines
consume is collected into one ``Settings`` model so clients can be built
once at startup and handed to each stage.
"""

import os
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

# Default CSS selectors for the knowledge-base markup
DEFAULT_INDEX_SELECTOR = ".kb-index a"
DEFAULT_ARTICLE_LINK_SELECTOR = ".kb-categories__item ul li a"
DEFAULT_ARTICLE_SELECTOR = ".kb-article.tinymce-content"
DEFAULT_TITLE_SELECTOR = "h1 span"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


def _env_list(name: str, default: str) -> List[str]:
    raw = os.getenv(name) or default
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings(BaseModel):
    # Crawl target
    docs_url: Optional[str] = None
    languages: List[str] = Field(default_factory=lambda: ["en"])
    index_selector: str = DEFAULT_INDEX_SELECTOR
    article_link_selector: str = DEFAULT_ARTICLE_LINK_SELECTOR
    article_selector: str = DEFAULT_ARTICLE_SELECTOR
    title_selector: str = DEFAULT_TITLE_SELECTOR
    fetch_timeout: int = 30
    fetch_delay_seconds: float = 0.0

    # Chunking
    chunk_size: int = 500
    chunk_overlap: int = 100
    chunk_unit: str = "characters"
    chunk_keep_separator: str = "end"

    # Vector store
    chroma_path: str = "data/chroma"
    chroma_host: Optional[str] = None
    chroma_port: int = 8000
    collection_name: str = "article_chunks"
    store_mode: str = "append"

    # Embeddings
    embedding_url: Optional[str] = None
    embedding_key: Optional[str] = None
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 768

    # Generation
    llm_provider: str = "openai"
    llm_url: Optional[str] = None
    llm_key: Optional[str] = None
    llm_model: Optional[str] = None
    top_k: int = 5
    max_tokens: int = 512
    temperature: float = 0.2

    @field_validator("chunk_unit")
    @classmethod
    def _check_unit(cls, v: str) -> str:
        if v not in ("characters", "tokens"):
            raise ValueError(f"CHUNK_UNIT must be 'characters' or 'tokens', got {v!r}")
        return v

    @field_validator("chunk_keep_separator")
    @classmethod
    def _check_separator_position(cls, v: str) -> str:
        if v not in ("start", "end"):
            raise ValueError(f"CHUNK_KEEP_SEPARATOR must be 'start' or 'end', got {v!r}")
        return v

    @field_validator("store_mode")
    @classmethod
    def _check_mode(cls, v: str) -> str:
        if v not in ("append", "upsert"):
            raise ValueError(f"STORE_MODE must be 'append' or 'upsert', got {v!r}")
        return v

    @field_validator("llm_provider")
    @classmethod
    def _check_provider(cls, v: str) -> str:
        if v not in ("openai", "anthropic"):
            raise ValueError(f"LLM_PROVIDER must be 'openai' or 'anthropic', got {v!r}")
        return v

    @field_validator("top_k", "embedding_dimensions", "chunk_size")
    @classmethod
    def _check_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"expected a positive value, got {v}")
        return v

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the current environment."""
        llm_key = os.getenv("LLM_KEY")
        return cls(
            docs_url=(os.getenv("DOCS_URL") or "").rstrip("/") or None,
            languages=_env_list("DOCS_LANGUAGES", "en"),
            index_selector=os.getenv("KB_INDEX_SELECTOR", DEFAULT_INDEX_SELECTOR),
            article_link_selector=os.getenv("KB_ARTICLE_LINK_SELECTOR", DEFAULT_ARTICLE_LINK_SELECTOR),
            article_selector=os.getenv("KB_ARTICLE_SELECTOR", DEFAULT_ARTICLE_SELECTOR),
            title_selector=os.getenv("KB_TITLE_SELECTOR", DEFAULT_TITLE_SELECTOR),
            fetch_timeout=_env_int("FETCH_TIMEOUT", 30),
            fetch_delay_seconds=_env_float("FETCH_DELAY_SECONDS", 0.0),
            chunk_size=_env_int("CHUNK_SIZE", 500),
            chunk_overlap=_env_int("CHUNK_OVERLAP", 100),
            chunk_unit=os.getenv("CHUNK_UNIT", "characters"),
            chunk_keep_separator=os.getenv("CHUNK_KEEP_SEPARATOR", "end"),
            chroma_path=os.getenv("CHROMA_PATH", "data/chroma"),
            chroma_host=os.getenv("CHROMA_HOST") or None,
            chroma_port=_env_int("CHROMA_PORT", 8000),
            collection_name=os.getenv("CHROMA_COLLECTION", "article_chunks"),
            store_mode=os.getenv("STORE_MODE", "append"),
            embedding_url=os.getenv("LLM_EMBEDDING_URL") or None,
            embedding_key=os.getenv("LLM_EMBEDDING_KEY") or llm_key,
            embedding_model=os.getenv("LLM_EMBEDDING_MODEL", "text-embedding-3-small"),
            embedding_dimensions=_env_int("EMBEDDING_DIMENSIONS", 768),
            llm_provider=os.getenv("LLM_PROVIDER", "openai"),
            llm_url=os.getenv("LLM_URL") or None,
            llm_key=llm_key,
            llm_model=os.getenv("LLM_MODEL") or None,
            top_k=_env_int("RETRIEVAL_TOP_K", 5),
            max_tokens=_env_int("LLM_MAX_TOKENS", 512),
            temperature=_env_float("LLM_TEMPERATURE", 0.2),
        )
