"""Embedding and topic enrichment for batches of records."""

import importlib.metadata
import logging

from enrich_batch.client import (
    GeminiAdapter,
    OpenAICompatibleAdapter,
    build_provider,
    execute_with_retry,
    fetch_chat_completion,
    fetch_embedding,
)
from enrich_batch.config import EnrichSettings, load_settings
from enrich_batch.copying import ObjectCopier, copy_value
from enrich_batch.core.types import (
    CopyOutcome,
    CopyRequest,
    CopyStrategyName,
    EmptyPayload,
    Failure,
    Fidelity,
    Result,
    RetryPolicy,
    Success,
    TransportError,
)
from enrich_batch.enrichment import (
    ClusterSpec,
    EmbeddingEnricher,
    EnrichmentReport,
    EnrichmentResult,
    TopicLabeler,
    clusters_from_records,
)
from enrich_batch.exceptions import (
    ConfigurationError,
    CopyError,
    EmptyInputError,
    EnrichBatchError,
    InvalidArgumentError,
    MissingKeyError,
    RetryExhaustedError,
)
from enrich_batch.prompts import assemble_clustering_prompt, build_clustering_prompt
from enrich_batch.telemetry import TelemetryContext, TelemetryReporter

# Version handling
try:
    __version__ = importlib.metadata.version("enrich-batch")
except importlib.metadata.PackageNotFoundError:
    __version__ = "development"

# Library logging stays silent unless the application configures handlers.
logging.getLogger(__name__).addHandler(logging.NullHandler())

# Public API
__all__ = [  # noqa: RUF022
    # Workflows
    "EmbeddingEnricher",
    "TopicLabeler",
    "ClusterSpec",
    "clusters_from_records",
    "EnrichmentReport",
    "EnrichmentResult",
    # Remote calls
    "GeminiAdapter",
    "OpenAICompatibleAdapter",
    "build_provider",
    "execute_with_retry",
    "fetch_embedding",
    "fetch_chat_completion",
    # Copying
    "ObjectCopier",
    "copy_value",
    "CopyRequest",
    "CopyOutcome",
    "CopyStrategyName",
    "Fidelity",
    # Prompts
    "assemble_clustering_prompt",
    "build_clustering_prompt",
    # Results
    "Result",
    "Success",
    "Failure",
    "TransportError",
    "EmptyPayload",
    "RetryPolicy",
    # Configuration
    "EnrichSettings",
    "load_settings",
    # Telemetry (extension points)
    "TelemetryContext",
    "TelemetryReporter",
    # Exceptions
    "EnrichBatchError",
    "InvalidArgumentError",
    "EmptyInputError",
    "ConfigurationError",
    "MissingKeyError",
    "CopyError",
    "RetryExhaustedError",
]
