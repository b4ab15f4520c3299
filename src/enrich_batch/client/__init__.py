"""Remote call plumbing: provider adapters, retry executor and call sites."""

from .adapters import (
    ChatProvider,
    EmbeddingProvider,
    GeminiAdapter,
    OpenAICompatibleAdapter,
    build_provider,
)
from .calls import fetch_chat_completion, fetch_embedding
from .retry import execute_with_retry, is_blank_payload

__all__ = [
    "ChatProvider",
    "EmbeddingProvider",
    "GeminiAdapter",
    "OpenAICompatibleAdapter",
    "build_provider",
    "execute_with_retry",
    "fetch_chat_completion",
    "fetch_embedding",
    "is_blank_payload",
]
