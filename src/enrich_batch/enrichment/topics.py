"""Topic labelling for clustered rows.

A cluster names one representative row and its member rows. The texts of
those rows are sent to a chat model as a clustering prompt, and the label it
returns is written into every row of the cluster.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
import logging
import time
from typing import TYPE_CHECKING, Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from enrich_batch.client.calls import fetch_chat_completion
from enrich_batch.config import EnrichSettings
from enrich_batch.copying import ObjectCopier
from enrich_batch.core.records import get_field, set_field
from enrich_batch.core.types import ChatRequest, CopyRequest
from enrich_batch.exceptions import (
    CopyError,
    EnrichBatchError,
    InvalidArgumentError,
)
from enrich_batch.prompts import build_clustering_prompt

from .report import EnrichmentReport, EnrichmentResult

if TYPE_CHECKING:
    from enrich_batch.client.adapters import ChatProvider
    from enrich_batch.telemetry import TelemetryContextProtocol

log = logging.getLogger(__name__)

SYSTEM_PROMPT = "You label clusters of text records with concise topic names."


class ClusterSpec(BaseModel):
    """One cluster: a representative row and the rows that belong to it."""

    model_config = ConfigDict(frozen=True)

    cluster_id: int | str
    representative_index: int = Field(ge=0)
    member_indices: tuple[Annotated[int, Field(ge=0)], ...] = ()

    @field_validator("member_indices", mode="before")
    @classmethod
    def parse_member_indices(cls, v: Any) -> Any:
        """Accept ``"1;4;7"`` or ``"1,4,7"`` as well as sequences."""
        if v is None:
            return ()
        if isinstance(v, str):
            parts = v.replace(";", ",").split(",")
            return tuple(part.strip() for part in parts if part.strip())
        return v

    def row_indices(self) -> list[int]:
        """Representative first, then members, without repeats."""
        return list(dict.fromkeys((self.representative_index, *self.member_indices)))


def clusters_from_records(
    records: Iterable[Mapping[str, Any]],
    *,
    id_field: str = "cluster_id",
    representative_field: str = "representative_index",
    members_field: str = "member_indices",
) -> list[ClusterSpec]:
    """Parse cluster metadata rows into ``ClusterSpec`` values.

    Raises:
        InvalidArgumentError: If a record is missing a field or holds a bad
            value.
    """
    clusters: list[ClusterSpec] = []
    for i, record in enumerate(records):
        try:
            clusters.append(
                ClusterSpec(
                    cluster_id=get_field(record, id_field),
                    representative_index=get_field(record, representative_field),
                    member_indices=get_field(record, members_field),
                )
            )
        except ValidationError as e:
            raise InvalidArgumentError(f"Cluster record {i} is invalid: {e}") from e
    return clusters


class TopicLabeler:
    """Names each cluster's topic and writes it onto the cluster's rows."""

    def __init__(
        self,
        provider: ChatProvider,
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

    def collect_snippets(self, rows: Sequence[Any], cluster: ClusterSpec) -> list[str]:
        """Distinct non-blank texts of the cluster's rows, capped at ``max_snippets``.

        Raises:
            InvalidArgumentError: If the cluster points outside ``rows``.
        """
        snippets: list[str] = []
        for index in cluster.row_indices():
            if index >= len(rows):
                raise InvalidArgumentError(
                    f"Cluster {cluster.cluster_id!r} refers to row {index}, "
                    f"but only {len(rows)} rows were given"
                )
            text = get_field(rows[index], self.settings.text_field)
            if text is None:
                continue
            text = str(text).strip()
            if text and text not in snippets:
                snippets.append(text)
            if len(snippets) >= self.settings.max_snippets:
                break
        return snippets

    def label_cluster(self, rows: Sequence[Any], cluster: ClusterSpec) -> str:
        """Fetch the topic label for one cluster.

        Raises:
            EmptyInputError: If none of the cluster's rows has text.
            InvalidArgumentError: If the cluster points outside ``rows``.
            RetryExhaustedError: If the chat call keeps failing.
        """
        prompt = build_clustering_prompt(self.collect_snippets(rows, cluster))
        request = ChatRequest.for_prompt(
            self.settings.chat_model,
            prompt,
            self.settings.temperature,
            system=SYSTEM_PROMPT,
        )
        return fetch_chat_completion(
            self.provider,
            request,
            self.settings.retry_policy(),
            sleep=self._sleep,
            telemetry=self._telemetry,
        )

    def label(
        self, rows: Iterable[Any], clusters: Iterable[ClusterSpec]
    ) -> EnrichmentResult:
        """Label every cluster; the report counts clusters, not rows."""
        copies, uncopyable = self._copy_rows(list(rows))
        report = EnrichmentReport()

        for cluster in clusters:
            blocked = uncopyable.intersection(cluster.row_indices())
            if blocked:
                reason = f"rows {sorted(blocked)} could not be copied"
                log.warning("Cluster %r skipped: %s", cluster.cluster_id, reason)
                report.record_failure(cluster.cluster_id, reason)
                continue
            try:
                topic = self.label_cluster(copies, cluster)
            except EnrichBatchError as e:
                log.warning(
                    "Cluster %r could not be labelled: %s", cluster.cluster_id, e
                )
                report.record_failure(cluster.cluster_id, str(e))
                continue
            for index in cluster.row_indices():
                copies[index] = set_field(
                    copies[index], self.settings.topic_field, topic
                )
            log.debug("Cluster %r labelled %r", cluster.cluster_id, topic)
            report.record_success()

        log.info("Topic labelling finished: %s", report.summary())
        return EnrichmentResult(rows=copies, report=report)

    def _copy_rows(self, rows: list[Any]) -> tuple[list[Any], set[int]]:
        copies: list[Any] = []
        uncopyable: set[int] = set()
        for index, row in enumerate(rows):
            try:
                outcome = self.copier.copy(
                    CopyRequest(source=row, max_depth=self.settings.copy_max_depth)
                )
            except CopyError as e:
                log.warning("Row %d could not be copied: %s", index, e)
                uncopyable.add(index)
                copies.append(row)
                continue
            copies.append(outcome.value)
        return copies, uncopyable
