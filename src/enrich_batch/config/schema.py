"""Settings schema and validation using Pydantic.

Validates and coerces configuration from environment variables (``ENRICH_``
prefix), ``.env`` files and programmatic overrides into typed values with
defaults.
"""

from typing import Any, Literal

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from enrich_batch.constants import (
    DEFAULT_BASE_URL,
    DEFAULT_CHAT_MODEL,
    DEFAULT_COPY_DEPTH,
    DEFAULT_EMBEDDING_FIELD,
    DEFAULT_EMBEDDING_MODEL,
    DEFAULT_GEMINI_CHAT_MODEL,
    DEFAULT_GEMINI_EMBEDDING_MODEL,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_SNIPPETS,
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    DEFAULT_TEXT_FIELD,
    DEFAULT_TOPIC_FIELD,
    REQUEST_TIMEOUT_SECONDS,
)
from enrich_batch.core.types import RetryPolicy

ENV_PREFIX = "ENRICH_"


class EnrichSettings(BaseSettings):
    """Pydantic settings schema for enrichment runs.

    Environment variables use the ``ENRICH_`` prefix, e.g. ``ENRICH_API_KEY``
    or ``ENRICH_MAX_ATTEMPTS``.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=None,  # .env files are read explicitly by load_settings()
        case_sensitive=False,
        extra="ignore",
    )

    # --- Provider ---

    api_key: SecretStr | None = Field(
        default=None,
        description="API key for the embedding/chat provider",
    )

    provider: Literal["openai", "azure", "gemini"] = Field(
        default="openai",
        description="Which provider adapter to use",
    )

    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="Endpoint root for OpenAI-compatible providers",
        min_length=1,
    )

    api_version: str | None = Field(
        default=None,
        description="Azure OpenAI api-version (required for provider=azure)",
    )

    embedding_model: str = Field(default=DEFAULT_EMBEDDING_MODEL, min_length=1)
    chat_model: str = Field(default=DEFAULT_CHAT_MODEL, min_length=1)

    temperature: float = Field(default=DEFAULT_TEMPERATURE, ge=0.0, le=1.0)
    max_tokens: int = Field(default=DEFAULT_MAX_TOKENS, ge=1)

    # --- Resilience ---

    max_attempts: int = Field(
        default=DEFAULT_MAX_ATTEMPTS,
        description="Attempt budget per remote call (1 disables retries)",
        ge=1,
    )

    request_timeout: float = Field(
        default=REQUEST_TIMEOUT_SECONDS,
        description="Per-request transport timeout in seconds",
        gt=0,
    )

    copy_max_depth: int = Field(
        default=DEFAULT_COPY_DEPTH,
        description="Depth bound used when copying rows before mutation",
        ge=1,
    )

    # --- Row fields ---

    text_field: str = Field(default=DEFAULT_TEXT_FIELD, min_length=1)
    embedding_field: str = Field(default=DEFAULT_EMBEDDING_FIELD, min_length=1)
    topic_field: str = Field(default=DEFAULT_TOPIC_FIELD, min_length=1)
    max_snippets: int = Field(default=DEFAULT_MAX_SNIPPETS, ge=1)

    # --- Validation Rules ---

    @field_validator("provider", mode="before")
    @classmethod
    def normalize_provider(cls, v: Any) -> Any:
        """Accept provider names in any case."""
        return v.strip().lower() if isinstance(v, str) else v

    @model_validator(mode="after")
    def validate_azure_version(self) -> "EnrichSettings":
        """Azure deployments are addressed by api-version."""
        if self.provider == "azure" and not self.api_version:
            raise ValueError(
                "api_version is required when provider=azure. "
                "Set ENRICH_API_VERSION or pass api_version explicitly."
            )
        return self

    @model_validator(mode="after")
    def apply_gemini_model_defaults(self) -> "EnrichSettings":
        """OpenAI model names mean nothing to Gemini; swap in Gemini defaults."""
        if self.provider == "gemini":
            if "embedding_model" not in self.model_fields_set:
                self.embedding_model = DEFAULT_GEMINI_EMBEDDING_MODEL
            if "chat_model" not in self.model_fields_set:
                self.chat_model = DEFAULT_GEMINI_CHAT_MODEL
        return self

    def retry_policy(self) -> RetryPolicy:
        """Fresh retry policy for one remote call."""
        return RetryPolicy(max_attempts=self.max_attempts)

    def redacted(self) -> dict[str, Any]:
        """Settings as a plain dict with the API key masked."""
        values = self.model_dump()
        values["api_key"] = "***" if self.api_key is not None else None
        return values
