"""Cascade copier: duplicate any value without schema information.

Strategies are tried strictly in order and only when the previous one
failed. If every strategy fails at a non-default depth, the untrusted part
of the cascade is retried once at ``DEFAULT_COPY_DEPTH``; deep requests that
overrun recursion or memory limits often succeed there.
"""

from __future__ import annotations

from collections.abc import Sequence
import logging
from typing import TYPE_CHECKING, Any

from enrich_batch.constants import DEFAULT_COPY_DEPTH
from enrich_batch.core.types import (
    CopyOutcome,
    CopyRequest,
    CopyStrategyName,
    Fidelity,
    Success,
)
from enrich_batch.exceptions import CopyError, InvalidArgumentError
from enrich_batch.telemetry import TelemetryContext

from .strategies import CopyStrategy, default_strategies

if TYPE_CHECKING:
    from enrich_batch.telemetry import TelemetryContextProtocol

log = logging.getLogger(__name__)

type _FailureRecord = tuple[CopyStrategyName, int, str]


class ObjectCopier:
    """Copies values through an ordered cascade of strategies."""

    def __init__(
        self,
        strategies: Sequence[CopyStrategy] | None = None,
        telemetry: TelemetryContextProtocol | None = None,
    ) -> None:
        self.strategies = tuple(strategies or default_strategies())
        self._telemetry = telemetry or TelemetryContext()

    def copy(self, request: CopyRequest) -> CopyOutcome:
        """Copy ``request.source``.

        Raises:
            CopyError: If every applicable strategy failed, including the
                retry at the default depth.
        """
        if not isinstance(request, CopyRequest):
            raise InvalidArgumentError(
                f"copy() expects a CopyRequest, got {type(request).__name__}"
            )
        if request.source is None:
            return CopyOutcome(value=None, fidelity=Fidelity.EXACT, strategy_used=None)

        failures: list[_FailureRecord] = []
        outcome = self._run_cascade(
            request, request.max_depth, failures, include_trusted=True
        )
        if outcome is None and request.max_depth != DEFAULT_COPY_DEPTH:
            log.info(
                "All copy strategies failed at depth %d; retrying at depth %d",
                request.max_depth,
                DEFAULT_COPY_DEPTH,
            )
            outcome = self._run_cascade(
                request, DEFAULT_COPY_DEPTH, failures, include_trusted=False
            )
        if outcome is None:
            summary = "; ".join(
                f"{name.value}@{depth}: {reason}" for name, depth, reason in failures
            )
            raise CopyError(
                f"Could not copy {type(request.source).__name__} value: "
                f"{summary or 'no strategy was applicable'}",
                failures=tuple(failures),
            )
        return outcome

    def _run_cascade(
        self,
        request: CopyRequest,
        depth: int,
        failures: list[_FailureRecord],
        *,
        include_trusted: bool,
    ) -> CopyOutcome | None:
        for strategy in self.strategies:
            if (
                not include_trusted
                and strategy.name is CopyStrategyName.TRUSTED_BINARY_SERIALIZATION
            ):
                continue
            if not strategy.is_applicable(request):
                log.debug("Copy strategy %s not applicable", strategy.name.value)
                continue

            with self._telemetry(f"copy.{strategy.name.value}", depth=depth):
                result = strategy.attempt(request.source, depth)

            if isinstance(result, Success):
                return CopyOutcome(
                    value=result.value,
                    fidelity=strategy.fidelity,
                    strategy_used=strategy.name,
                    max_depth=depth,
                    fallbacks=tuple(failures),
                )

            reason = f"{type(result.error).__name__}: {result.error}"
            log.debug(
                "Copy strategy %s failed at depth %d: %s",
                strategy.name.value,
                depth,
                reason,
            )
            self._telemetry.count("copy.fallback", strategy=strategy.name.value)
            failures.append((strategy.name, depth, reason))
        return None


def copy_value(
    source: Any,
    *,
    max_depth: int = DEFAULT_COPY_DEPTH,
    source_trusted: bool = False,
    telemetry: TelemetryContextProtocol | None = None,
) -> CopyOutcome:
    """Copy ``source`` with the default cascade.

    ``source_trusted`` must only be set for values this process computed
    itself; it enables binary serialization, which is unsafe for external
    data.
    """
    request = CopyRequest(
        source=source, max_depth=max_depth, source_trusted=source_trusted
    )
    return ObjectCopier(telemetry=telemetry).copy(request)
