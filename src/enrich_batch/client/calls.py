"""Retry-wrapped remote call sites used by the enrichment workflows."""

from __future__ import annotations

from collections.abc import Callable
import time
from typing import TYPE_CHECKING

from enrich_batch.core.types import ChatRequest, EmbeddingRequest, RetryPolicy

from .retry import execute_with_retry

if TYPE_CHECKING:
    from enrich_batch.telemetry import TelemetryContextProtocol

    from .adapters import ChatProvider, EmbeddingProvider


def fetch_embedding(
    provider: EmbeddingProvider,
    request: EmbeddingRequest,
    policy: RetryPolicy | None = None,
    *,
    sleep: Callable[[float], None] = time.sleep,
    telemetry: TelemetryContextProtocol | None = None,
) -> list[float]:
    """Fetch the embedding vector for one text, retrying empty vectors."""
    vector = execute_with_retry(
        lambda: provider.embed(request),
        policy,
        sleep=sleep,
        telemetry=telemetry,
        label="embedding request",
    )
    return list(vector)


def fetch_chat_completion(
    provider: ChatProvider,
    request: ChatRequest,
    policy: RetryPolicy | None = None,
    *,
    sleep: Callable[[float], None] = time.sleep,
    telemetry: TelemetryContextProtocol | None = None,
) -> str:
    """Fetch the completion text for one chat request, retrying blank text."""
    text = execute_with_retry(
        lambda: provider.complete(request),
        policy,
        sleep=sleep,
        telemetry=telemetry,
        label="chat completion request",
    )
    return str(text).strip()
