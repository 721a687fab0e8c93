"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings

# Settings field → environment variable that must be present at startup.
REQUIRED_ENV_VARS: dict[str, str] = {
    "google_api_key": "GOOGLE_API_KEY",
    "supabase_url": "SUPABASE_URL",
    "supabase_service_role_key": "SUPABASE_SERVICE_ROLE_KEY",
}


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # Provider credentials
    google_api_key: str = Field(default="", description="Google Generative AI API key (LLM + embeddings)")
    supabase_url: str = Field(default="", description="Supabase project URL")
    supabase_service_role_key: str = Field(default="", description="Supabase service-role key")

    # LLM
    llm_model_name: str = "gemini-1.5-flash"
    llm_temperature: float = 0.0
    llm_max_retries: int = 2

    # Embedding
    embedding_model: str = "models/embedding-001"
    embedding_dimension: int = Field(
        default=768,
        description="Output width of the embedding model; must match the vector(N) column.",
    )

    # Vector store
    supabase_table: str = "documents"
    supabase_query_name: str = "match_documents"
    retrieval_k: int = 3

    # Ingestion
    policy_path: str = "data/returpolicy.pdf"
    chunk_size: int = 1000
    chunk_overlap: int = 200

    # Serving
    host: str = "0.0.0.0"
    port: int = 5000
    support_email: str = "support@farskvaruhornan.se"
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    def missing_required(self) -> list[str]:
        """Return the environment variable names of unset required values."""
        return [env for field, env in REQUIRED_ENV_VARS.items() if not getattr(self, field)]

    def required_status(self) -> dict[str, bool]:
        """Map each required environment variable to whether it is loaded."""
        return {env: bool(getattr(self, field)) for field, env in REQUIRED_ENV_VARS.items()}


# Singleton — import `settings` wherever needed.
settings = Settings()
