"""Outcome bookkeeping for enrichment batches."""

from __future__ import annotations

import dataclasses
from typing import Any


@dataclasses.dataclass(slots=True)
class EnrichmentReport:
    """Counts of what happened to each row or cluster in a batch."""

    total: int = 0
    enriched: int = 0
    skipped: int = 0
    failed: int = 0
    failures: list[tuple[Any, str]] = dataclasses.field(default_factory=list)

    def record_success(self) -> None:
        self.total += 1
        self.enriched += 1

    def record_skip(self) -> None:
        self.total += 1
        self.skipped += 1

    def record_failure(self, key: Any, reason: str) -> None:
        self.total += 1
        self.failed += 1
        self.failures.append((key, reason))

    def summary(self) -> str:
        return (
            f"{self.enriched}/{self.total} enriched, "
            f"{self.skipped} skipped, {self.failed} failed"
        )


@dataclasses.dataclass(frozen=True, slots=True)
class EnrichmentResult:
    """Enriched row copies plus the batch report."""

    rows: list[Any]
    report: EnrichmentReport
