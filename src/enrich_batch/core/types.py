"""Core value types shared by the retry executor, copier and prompt builder.

Every type here is an immutable value created and consumed within a single
call. Constructors validate their invariants and raise
``InvalidArgumentError`` instead of coercing bad input.
"""

from __future__ import annotations

import dataclasses
from enum import Enum
import typing

from enrich_batch.constants import BACKOFF_BASE, DEFAULT_COPY_DEPTH
from enrich_batch.exceptions import InvalidArgumentError

# --- Minimal guard helpers ---


def _require(*, condition: bool, message: str, field_name: str | None = None) -> None:
    """Centralized validation with optional field context for clearer errors."""
    if not condition:
        if field_name:
            raise InvalidArgumentError(f"{field_name}: {message}")
        raise InvalidArgumentError(message)


def _is_strict_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_unit_interval(value: object) -> bool:
    return (
        isinstance(value, int | float)
        and not isinstance(value, bool)
        and 0.0 <= value <= 1.0
    )


# --- Result variants ---

TSuccess = typing.TypeVar("TSuccess")
TFailure = typing.TypeVar("TFailure", bound=Exception)


@dataclasses.dataclass(frozen=True, slots=True)
class Success[TSuccess]:
    """A successful result carrying its payload."""

    value: TSuccess


@dataclasses.dataclass(frozen=True, slots=True)
class Failure[TFailure]:
    """A failed result carrying the error."""

    error: TFailure


Result = Success[TSuccess] | Failure[TFailure]


@dataclasses.dataclass(frozen=True, slots=True)
class TransportError:
    """A remote call failed at the network or API level."""

    error: Exception | None = None
    detail: str = ""

    def describe(self) -> str:
        if self.detail:
            return self.detail
        if self.error is not None:
            return f"{type(self.error).__name__}: {self.error}"
        return "transport error"


@dataclasses.dataclass(frozen=True, slots=True)
class EmptyPayload:
    """A remote call returned a well-formed response with no usable content."""

    detail: str = "response carried no usable content"

    def describe(self) -> str:
        return self.detail


RemoteCallResult = Success[typing.Any] | TransportError | EmptyPayload


# --- Retry policy ---


@dataclasses.dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Attempt budget and exponential backoff for one remote call."""

    max_attempts: int
    current_attempt: int = 1
    backoff_base: int = BACKOFF_BASE

    def __post_init__(self) -> None:
        _require(
            condition=_is_strict_int(self.max_attempts) and self.max_attempts >= 1,
            message="must be a positive integer",
            field_name="max_attempts",
        )
        _require(
            condition=_is_strict_int(self.current_attempt)
            and self.current_attempt >= 1,
            message="must be a positive integer",
            field_name="current_attempt",
        )
        _require(
            condition=self.current_attempt <= self.max_attempts,
            message=f"must not exceed max_attempts ({self.max_attempts})",
            field_name="current_attempt",
        )
        _require(
            condition=_is_strict_int(self.backoff_base) and self.backoff_base >= 1,
            message="must be a positive integer",
            field_name="backoff_base",
        )

    def delay_for(self, attempt: int) -> int:
        """Seconds to wait after ``attempt`` fails."""
        return self.backoff_base**attempt


# --- Object copying ---


class Fidelity(str, Enum):
    """Whether a copy is guaranteed to preserve the whole value graph."""

    EXACT = "exact"
    APPROXIMATE = "approximate"


class CopyStrategyName(str, Enum):
    """Copy strategies in cascade order."""

    TRUSTED_BINARY_SERIALIZATION = "trusted_binary_serialization"
    FAST_MARSHAL = "fast_marshal"
    XML_OBJECT_GRAPH = "xml_object_graph"
    XML_FILE_ROUNDTRIP = "xml_file_roundtrip"


@dataclasses.dataclass(frozen=True, slots=True)
class CopyRequest:
    """A request to duplicate ``source``.

    ``source_trusted`` must be set explicitly; only values produced by this
    process's own computation may be marked trusted.
    """

    source: typing.Any
    max_depth: int = DEFAULT_COPY_DEPTH
    source_trusted: bool = False

    def __post_init__(self) -> None:
        if self.source is None:
            return
        _require(
            condition=_is_strict_int(self.max_depth) and self.max_depth >= 1,
            message=f"must be a positive integer, got {self.max_depth!r}",
            field_name="max_depth",
        )
        _require(
            condition=isinstance(self.source_trusted, bool),
            message=f"must be a bool, got {type(self.source_trusted).__name__}",
            field_name="source_trusted",
        )


@dataclasses.dataclass(frozen=True, slots=True)
class CopyOutcome:
    """A successful copy and how it was produced."""

    value: typing.Any
    fidelity: Fidelity
    strategy_used: CopyStrategyName | None
    max_depth: int | None = None
    fallbacks: tuple[tuple[CopyStrategyName, int, str], ...] = ()


# --- Remote requests ---


@dataclasses.dataclass(frozen=True, slots=True)
class EmbeddingRequest:
    """Input for one embedding call."""

    input_text: str
    max_tokens: int
    temperature: float

    def __post_init__(self) -> None:
        _require(
            condition=isinstance(self.input_text, str),
            message="must be str",
            field_name="input_text",
        )
        _require(
            condition=_is_strict_int(self.max_tokens) and self.max_tokens >= 1,
            message="must be a positive integer",
            field_name="max_tokens",
        )
        _require(
            condition=_is_unit_interval(self.temperature),
            message="must be between 0 and 1",
            field_name="temperature",
        )


@dataclasses.dataclass(frozen=True, slots=True)
class ChatMessage:
    """A single chat message."""

    role: str
    content: str

    def as_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclasses.dataclass(frozen=True, slots=True)
class ChatRequest:
    """Input for one chat completion call."""

    model: str
    messages: tuple[ChatMessage, ...]
    temperature: float

    def __post_init__(self) -> None:
        _require(
            condition=isinstance(self.model, str) and bool(self.model),
            message="must be a non-empty str",
            field_name="model",
        )
        _require(
            condition=isinstance(self.messages, tuple)
            and bool(self.messages)
            and all(isinstance(m, ChatMessage) for m in self.messages),
            message="must be a non-empty tuple[ChatMessage, ...]",
            field_name="messages",
        )
        _require(
            condition=_is_unit_interval(self.temperature),
            message="must be between 0 and 1",
            field_name="temperature",
        )

    @classmethod
    def for_prompt(
        cls, model: str, prompt: str, temperature: float, system: str | None = None
    ) -> ChatRequest:
        """Build a request with a single user message and optional system turn."""
        messages = [ChatMessage("user", prompt)]
        if system:
            messages.insert(0, ChatMessage("system", system))
        return cls(model=model, messages=tuple(messages), temperature=temperature)


# --- Prompts ---


@dataclasses.dataclass(frozen=True, slots=True)
class PromptAssembly:
    """An assembled clustering prompt; never persisted."""

    snippets: tuple[str, ...]
    delimiter: str | None
    text: str
