"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # LLM
    openai_api_key: str = Field(default="", description="OpenAI API key (or dummy value for local vLLM)")
    llm_model_name: str = Field(default="gpt-4o-mini", description="LLM model identifier")
    llm_base_url: str = Field(
        default="",
        description=(
            "Base URL for the LLM API. Leave empty to use OpenAI cloud. "
            "Set to any OpenAI-compatible endpoint for self-hosted serving."
        ),
    )
    llm_temperature: float = 0.0

    # Embedding
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"
    embedding_batch_size: int = 64
    embedding_max_retries: int = Field(default=3, description="Attempts for transient embedding failures")
    embedding_retry_backoff: float = Field(default=1.0, description="Base backoff in seconds, doubled per attempt")

    # Vector store
    chroma_host: str = "localhost"
    chroma_port: int = 8000
    chroma_collection: str = "athena_docs"

    # Relational store
    database_url: str = Field(
        default="sqlite:///./athena.db",
        description="SQLAlchemy URL, e.g. 'mysql+pymysql://user:pw@host/athena'",
    )
    database_echo: bool = False

    # Chunking / retrieval
    chunk_size: int = 1000
    chunk_overlap: int = 100
    retrieval_top_k: int = 5

    # Serving
    api_key: str = Field(default="", description="Value expected in the x-api-key header; empty rejects every request")
    api_key_disabled: bool = Field(default=False, description="Skip the x-api-key check entirely (local development only)")
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Default instance; components take explicit arguments and fall back to it.
settings = Settings()
