"""Provider adapters for embedding and chat endpoints.

Adapters translate neutral ``EmbeddingRequest``/``ChatRequest`` values into a
vendor call and report the outcome as a ``RemoteCallResult``. They never raise
for transport problems, so the retry executor stays vendor-agnostic.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from google import genai
from google.genai import types as genai_types
import httpx

from enrich_batch.constants import REQUEST_TIMEOUT_SECONDS
from enrich_batch.core.types import (
    ChatRequest,
    EmbeddingRequest,
    EmptyPayload,
    RemoteCallResult,
    Success,
)
from enrich_batch.exceptions import ConfigurationError, MissingKeyError

from .error_handler import guard_transport

if TYPE_CHECKING:
    from enrich_batch.config import EnrichSettings

log = logging.getLogger(__name__)


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Anything that can turn one text into an embedding vector."""

    def embed(self, request: EmbeddingRequest) -> RemoteCallResult: ...  # noqa: D102


@runtime_checkable
class ChatProvider(Protocol):
    """Anything that can answer one chat request with text."""

    def complete(self, request: ChatRequest) -> RemoteCallResult: ...  # noqa: D102


class OpenAICompatibleAdapter:
    """OpenAI or Azure OpenAI REST endpoints over httpx.

    With ``api_version`` set, requests go to Azure deployment URLs
    (``{base_url}/openai/deployments/{deployment}/...``) and authenticate with
    an ``api-key`` header; otherwise OpenAI-style paths with bearer auth.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        embedding_model: str,
        api_version: str | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        client: httpx.Client | None = None,
    ) -> None:
        if not api_key:
            raise MissingKeyError("An API key is required for the OpenAI adapter")
        self.base_url = base_url.rstrip("/")
        self.embedding_model = embedding_model
        self.api_version = api_version
        self.timeout = timeout
        self._api_key = api_key
        self._client = client

    @property
    def is_azure(self) -> bool:
        return self.api_version is not None

    def _create_http_client(self) -> httpx.Client:
        """Create a configured HTTP client with the fixed request timeout"""
        return httpx.Client(timeout=self.timeout)

    def _headers(self) -> dict[str, str]:
        if self.is_azure:
            return {"api-key": self._api_key}
        return {"Authorization": f"Bearer {self._api_key}"}

    def _url(self, operation: str, model: str) -> str:
        if self.is_azure:
            return f"{self.base_url}/openai/deployments/{model}/{operation}"
        return f"{self.base_url}/{operation}"

    def _post(self, operation: str, model: str, body: dict[str, Any]) -> Any:
        params = {"api-version": self.api_version} if self.is_azure else None
        url = self._url(operation, model)
        if self._client is not None:
            response = self._client.post(
                url, json=body, headers=self._headers(), params=params
            )
        else:
            with self._create_http_client() as client:
                response = client.post(
                    url, json=body, headers=self._headers(), params=params
                )
        response.raise_for_status()
        return response.json()

    def embed(self, request: EmbeddingRequest) -> RemoteCallResult:
        body: dict[str, Any] = {"input": request.input_text}
        if self.is_azure:
            body["max_tokens"] = request.max_tokens
            body["temperature"] = request.temperature
        else:
            body["model"] = self.embedding_model

        def call() -> Any:
            return _embedding_from_openai(
                self._post("embeddings", self.embedding_model, body)
            )

        return guard_transport(call, "embeddings")

    def complete(self, request: ChatRequest) -> RemoteCallResult:
        body: dict[str, Any] = {
            "messages": [m.as_dict() for m in request.messages],
            "temperature": request.temperature,
        }
        if not self.is_azure:
            body["model"] = request.model

        def call() -> Any:
            return _text_from_openai(
                self._post("chat/completions", request.model, body)
            )

        return guard_transport(call, "chat completion")


def _embedding_from_openai(payload: Any) -> Success[list[float]] | EmptyPayload:
    try:
        vector = payload["data"][0]["embedding"]
    except (KeyError, IndexError, TypeError):
        return EmptyPayload("embeddings response had no data[0].embedding")
    return _float_vector(vector, "embeddings response")


def _float_vector(values: Any, source: str) -> Success[list[float]] | EmptyPayload:
    if not isinstance(values, list | tuple) or not values:
        return EmptyPayload(f"{source} carried an empty vector")
    try:
        return Success([float(v) for v in values])
    except (TypeError, ValueError):
        return EmptyPayload(f"{source} carried non-numeric values")


def _text_from_openai(payload: Any) -> Success[str] | EmptyPayload:
    try:
        content = payload["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return EmptyPayload("chat response had no choices[0].message.content")
    if not isinstance(content, str) or not content.strip():
        return EmptyPayload("chat response carried blank text")
    return Success(content)


class GeminiAdapter:
    """Gemini embedding and generation through the google-genai SDK."""

    def __init__(
        self,
        api_key: str,
        *,
        embedding_model: str,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        client: genai.Client | None = None,
    ) -> None:
        if not api_key and client is None:
            raise MissingKeyError("An API key is required for the Gemini adapter")
        self.embedding_model = embedding_model
        self.client = client or genai.Client(
            api_key=api_key,
            http_options=genai_types.HttpOptions(timeout=int(timeout * 1000)),
        )

    def embed(self, request: EmbeddingRequest) -> RemoteCallResult:
        def call() -> Any:
            response = self.client.models.embed_content(
                model=self.embedding_model, contents=request.input_text
            )
            embeddings = getattr(response, "embeddings", None) or []
            values = getattr(embeddings[0], "values", None) if embeddings else None
            return _float_vector(values, "Gemini embedding response")

        return guard_transport(call, "embeddings")

    def complete(self, request: ChatRequest) -> RemoteCallResult:
        system = "\n".join(m.content for m in request.messages if m.role == "system")
        contents = [
            genai_types.Content(
                role="model" if m.role == "assistant" else "user",
                parts=[genai_types.Part(text=m.content)],
            )
            for m in request.messages
            if m.role != "system"
        ]
        config = genai_types.GenerateContentConfig(
            temperature=request.temperature,
            system_instruction=system or None,
        )

        def call() -> Any:
            response = self.client.models.generate_content(
                model=request.model, contents=contents, config=config
            )
            text = getattr(response, "text", None)
            if not text or not text.strip():
                return EmptyPayload("Gemini response carried blank text")
            return Success(text)

        return guard_transport(call, "chat completion")


def build_provider(settings: EnrichSettings) -> OpenAICompatibleAdapter | GeminiAdapter:
    """Create the adapter named by ``settings.provider``.

    Raises:
        MissingKeyError: If no API key is configured.
        ConfigurationError: If the provider name is unknown.
    """
    if settings.api_key is None or not settings.api_key.get_secret_value():
        raise MissingKeyError(
            "No API key configured. Set ENRICH_API_KEY or pass api_key explicitly."
        )
    api_key = settings.api_key.get_secret_value()
    log.debug(
        "Building %s provider (embedding model '%s', chat model '%s')",
        settings.provider,
        settings.embedding_model,
        settings.chat_model,
    )
    if settings.provider == "gemini":
        return GeminiAdapter(
            api_key,
            embedding_model=settings.embedding_model,
            timeout=settings.request_timeout,
        )
    if settings.provider in ("openai", "azure"):
        return OpenAICompatibleAdapter(
            settings.base_url,
            api_key,
            embedding_model=settings.embedding_model,
            api_version=settings.api_version if settings.provider == "azure" else None,
            timeout=settings.request_timeout,
        )
    raise ConfigurationError(f"Unknown provider: {settings.provider}")
