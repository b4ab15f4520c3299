"""Row enrichment workflows built on the copier, prompts and call sites."""

from .embeddings import EmbeddingEnricher
from .report import EnrichmentReport, EnrichmentResult
from .topics import ClusterSpec, TopicLabeler, clusters_from_records

__all__ = [
    "ClusterSpec",
    "EmbeddingEnricher",
    "EnrichmentReport",
    "EnrichmentResult",
    "TopicLabeler",
    "clusters_from_records",
]
