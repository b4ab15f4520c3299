"""Prompt builders for topic labeling."""

from .clustering import (
    assemble_clustering_prompt,
    build_clustering_prompt,
    choose_delimiter,
    count_word,
    describe_delimiter,
)

__all__ = [
    "assemble_clustering_prompt",
    "build_clustering_prompt",
    "choose_delimiter",
    "count_word",
    "describe_delimiter",
]
