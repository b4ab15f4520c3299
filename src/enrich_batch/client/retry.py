"""Bounded retry with exponential backoff for remote calls.

A remote operation returns a ``RemoteCallResult``. Transport errors and
empty payloads are both retryable: providers sometimes answer HTTP 200 with
nothing usable, and that must not be mistaken for success. The delay after
attempt N is ``backoff_base ** N`` seconds with no jitter, independent of the
kind of failure.
"""

from __future__ import annotations

from collections.abc import Callable, Sized
import logging
import time
from typing import TYPE_CHECKING, Any

from enrich_batch.constants import DEFAULT_MAX_ATTEMPTS
from enrich_batch.core.types import (
    EmptyPayload,
    RemoteCallResult,
    RetryPolicy,
    Success,
    TransportError,
)
from enrich_batch.exceptions import InvalidArgumentError, RetryExhaustedError
from enrich_batch.telemetry import TelemetryContext

if TYPE_CHECKING:
    from enrich_batch.telemetry import TelemetryContextProtocol

log = logging.getLogger(__name__)

T_RETRY_ATTEMPT = "retry.attempt"


def is_blank_payload(payload: Any) -> bool:
    """Return True for payloads that carry no usable content."""
    if payload is None:
        return True
    if isinstance(payload, str):
        return not payload.strip()
    if isinstance(payload, Sized):
        return len(payload) == 0
    return False


def execute_with_retry(
    operation: Callable[[], RemoteCallResult],
    policy: RetryPolicy | None = None,
    *,
    is_empty: Callable[[Any], bool] = is_blank_payload,
    sleep: Callable[[float], None] = time.sleep,
    telemetry: TelemetryContextProtocol | None = None,
    label: str = "remote call",
) -> Any:
    """Invoke ``operation`` until it succeeds or the attempt budget runs out.

    Args:
        operation: Zero-argument callable returning ``Success``,
            ``TransportError`` or ``EmptyPayload``.
        policy: Attempt budget and backoff; defaults to
            ``RetryPolicy(DEFAULT_MAX_ATTEMPTS)``.
        is_empty: Predicate that turns a ``Success`` into an empty payload.
        sleep: Blocking sleep used between attempts.
        telemetry: Optional telemetry context.
        label: Human-readable name of the call for log and error messages.

    Returns:
        The payload of the first non-empty ``Success``.

    Raises:
        RetryExhaustedError: If the final permitted attempt fails.
        InvalidArgumentError: If ``operation`` returns something other than a
            ``RemoteCallResult``.
    """
    policy = policy or RetryPolicy(max_attempts=DEFAULT_MAX_ATTEMPTS)
    tele = telemetry or TelemetryContext()
    attempt = policy.current_attempt

    while True:
        with tele(T_RETRY_ATTEMPT, label=label, attempt=attempt):
            result = _classify(operation(), is_empty, label)

        if isinstance(result, Success):
            if attempt > policy.current_attempt:
                log.info("%s succeeded on attempt %d", label, attempt)
            return result.value

        if isinstance(result, EmptyPayload):
            tele.count("retry.empty_payload")
        else:
            tele.count("retry.transport_error")

        if attempt >= policy.max_attempts:
            break

        delay = policy.delay_for(attempt)
        log.warning(
            "%s failed on attempt %d of %d (%s); retrying in %d seconds",
            label,
            attempt,
            policy.max_attempts,
            result.describe(),
            delay,
        )
        sleep(delay)
        attempt += 1

    attempts_made = attempt - policy.current_attempt + 1
    if policy.max_attempts == 1:
        message = (
            f"{label} failed on its only attempt (retries disabled): "
            f"{result.describe()}"
        )
    else:
        message = (
            f"{label} still failing; giving up after {attempts_made} attempts: "
            f"{result.describe()}"
        )
    log.error("%s", message)
    raise RetryExhaustedError(
        message,
        attempts=attempts_made,
        max_attempts=policy.max_attempts,
        last_result=result,
    )


def _classify(
    result: object, is_empty: Callable[[Any], bool], label: str
) -> Success[Any] | TransportError | EmptyPayload:
    if isinstance(result, Success):
        if is_empty(result.value):
            return EmptyPayload(f"{label} returned an empty payload")
        return result
    if isinstance(result, TransportError | EmptyPayload):
        return result
    raise InvalidArgumentError(
        f"{label} operation must return Success, TransportError or EmptyPayload, "
        f"got {type(result).__name__}"
    )
