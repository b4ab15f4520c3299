"""Per-row embedding enrichment.

Each row is copied before it is touched, so the caller's rows never change.
Rows are processed one after another; a row that cannot be enriched is
logged, kept as is and counted, and the batch carries on.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
import logging
import time
from typing import TYPE_CHECKING, Any

from enrich_batch.client.calls import fetch_embedding
from enrich_batch.config import EnrichSettings
from enrich_batch.copying import ObjectCopier
from enrich_batch.core.records import get_field, set_field
from enrich_batch.core.types import CopyRequest, EmbeddingRequest
from enrich_batch.exceptions import CopyError, RetryExhaustedError

from .report import EnrichmentReport, EnrichmentResult

if TYPE_CHECKING:
    from enrich_batch.client.adapters import EmbeddingProvider
    from enrich_batch.telemetry import TelemetryContextProtocol

log = logging.getLogger(__name__)


class EmbeddingEnricher:
    """Adds an embedding vector to every row that has text."""

    def __init__(
        self,
        provider: EmbeddingProvider,
        settings: EnrichSettings | None = None,
        *,
        copier: ObjectCopier | None = None,
        sleep: Callable[[float], None] = time.sleep,
        telemetry: TelemetryContextProtocol | None = None,
    ) -> None:
        self.provider = provider
        self.settings = settings or EnrichSettings()
        self.copier = copier or ObjectCopier(telemetry=telemetry)
        self._sleep = sleep
        self._telemetry = telemetry

    def enrich_row(self, row: Any) -> Any:
        """Return a copy of ``row`` with its embedding field set.

        Raises:
            CopyError: If the row cannot be copied.
            RetryExhaustedError: If the embedding call keeps failing.
        """
        copied = self.copier.copy(
            CopyRequest(source=row, max_depth=self.settings.copy_max_depth)
        ).value
        text = get_field(copied, self.settings.text_field)
        request = EmbeddingRequest(
            input_text=str(text),
            max_tokens=self.settings.max_tokens,
            temperature=self.settings.temperature,
        )
        vector = fetch_embedding(
            self.provider,
            request,
            self.settings.retry_policy(),
            sleep=self._sleep,
            telemetry=self._telemetry,
        )
        return set_field(copied, self.settings.embedding_field, vector)

    def enrich(self, rows: Iterable[Any]) -> EnrichmentResult:
        """Enrich ``rows`` in order and report per-row outcomes."""
        report = EnrichmentReport()
        output: list[Any] = []
        text_field = self.settings.text_field

        for index, row in enumerate(rows):
            text = get_field(row, text_field)
            if text is None or not str(text).strip():
                log.warning("Row %d has no text in '%s'; skipping", index, text_field)
                report.record_skip()
                output.append(row)
                continue
            try:
                output.append(self.enrich_row(row))
            except (RetryExhaustedError, CopyError) as e:
                log.warning("Row %d could not be enriched: %s", index, e)
                report.record_failure(index, str(e))
                output.append(row)
                continue
            report.record_success()

        log.info("Embedding enrichment finished: %s", report.summary())
        return EnrichmentResult(rows=output, report=report)
