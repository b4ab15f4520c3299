"""Convert provider exceptions into retryable transport failures"""

from collections.abc import Callable
import json
import logging
from typing import Any

from google.genai import errors as genai_errors
import httpx

from ..core.types import EmptyPayload, Success, TransportError

log = logging.getLogger(__name__)

# Failures a provider call can raise that are worth another attempt
TRANSPORT_EXCEPTIONS: tuple[type[Exception], ...] = (
    httpx.HTTPError,
    genai_errors.APIError,
    json.JSONDecodeError,
    OSError,
)


def describe_http_error(error: Exception) -> str:
    """Build a short, credential-free description of a transport failure"""
    if isinstance(error, httpx.HTTPStatusError):
        return (
            f"HTTP {error.response.status_code} from "
            f"{error.request.url.copy_with(query=None)}"
        )
    if isinstance(error, httpx.TimeoutException):
        return f"request timed out: {type(error).__name__}"
    if isinstance(error, genai_errors.APIError):
        return f"provider error {error.code}: {error.message or error.status}"
    if isinstance(error, json.JSONDecodeError):
        return f"response was not valid JSON: {error.msg}"
    return f"{type(error).__name__}: {error}"


def guard_transport(
    call: Callable[[], Any], label: str
) -> Success[Any] | TransportError | EmptyPayload:
    """Run ``call`` and convert transport exceptions into ``TransportError``.

    ``call`` returns either a payload or an already-classified result.
    Exceptions outside ``TRANSPORT_EXCEPTIONS`` propagate unchanged.
    """
    try:
        value = call()
    except TRANSPORT_EXCEPTIONS as e:
        detail = describe_http_error(e)
        log.debug("%s transport failure: %s", label, detail)
        return TransportError(error=e, detail=f"{label}: {detail}")
    if isinstance(value, Success | TransportError | EmptyPayload):
        return value
    return Success(value)
