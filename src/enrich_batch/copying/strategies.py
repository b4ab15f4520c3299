"""Copy strategies, in cascade order.

Each strategy reports the outcome of one attempt as a ``Result`` instead of
raising, so the copier can move on to the next strategy. An attempt also
fails when it "succeeds" while emitting warnings or yields ``None`` for a
non-``None`` source: serializers that degrade quietly must not count as
success.
"""

from __future__ import annotations

from collections.abc import Callable
import io
import json
import os
from pathlib import Path
import pickle
import socket
import tempfile
import threading
import types
from typing import Any, Protocol, runtime_checkable
import warnings

from enrich_batch.constants import TEMP_FILE_PREFIX
from enrich_batch.core.types import (
    CopyRequest,
    CopyStrategyName,
    Failure,
    Fidelity,
    Result,
    Success,
)

from . import xml_graph
from .projection import to_jsonable

# Runtime objects that cannot be serialized to a byte stream
NON_SERIALIZABLE_TYPES: tuple[type, ...] = (
    types.GeneratorType,
    types.CoroutineType,
    types.AsyncGeneratorType,
    types.ModuleType,
    types.FrameType,
    types.TracebackType,
    io.IOBase,
    socket.socket,
    type(threading.Lock()),
    type(threading.RLock()),
)


def is_marked_serializable(value: Any) -> bool:
    """Whether ``value`` is of a kind binary serialization can handle.

    For lists and tuples only the first non-``None`` element is inspected;
    empty or all-``None`` sequences are vacuously serializable. The check is
    shallow, so serialization itself may still fail on deeper members.
    """
    if isinstance(value, list | tuple):
        probe = next((v for v in value if v is not None), None)
        if probe is None:
            return True
        value = probe
    if isinstance(value, NON_SERIALIZABLE_TYPES):
        return False
    if isinstance(value, types.FunctionType):
        qualname = value.__qualname__
        return "<lambda>" not in qualname and "<locals>" not in qualname
    return True


@runtime_checkable
class CopyStrategy(Protocol):
    """One way of duplicating a value."""

    name: CopyStrategyName
    fidelity: Fidelity

    def is_applicable(self, request: CopyRequest) -> bool:
        """Whether this strategy may be tried for ``request`` at all."""
        ...

    def attempt(self, value: Any, max_depth: int) -> Result[Any, Exception]:
        """Copy ``value``; never raises for serialization problems."""
        ...


def _guarded(source: Any, produce: Callable[[], Any]) -> Result[Any, Exception]:
    """Run ``produce`` and convert raised or silent failures into ``Failure``."""
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        try:
            copied = produce()
        except Exception as e:
            return Failure(e)
    relevant = [
        w for w in caught if not issubclass(w.category, DeprecationWarning)
    ]
    if relevant:
        return Failure(
            RuntimeError(f"serializer warned: {relevant[0].message}")
        )
    if copied is None and source is not None:
        return Failure(RuntimeError("serializer produced no value"))
    return Success(copied)


class TrustedBinaryStrategy:
    """Binary round-trip with full graph fidelity.

    Deserializing a binary stream can execute arbitrary code, so this
    strategy only runs for requests that explicitly mark their source as
    trusted in-process data. It never touches disk.
    """

    name = CopyStrategyName.TRUSTED_BINARY_SERIALIZATION
    fidelity = Fidelity.EXACT

    def is_applicable(self, request: CopyRequest) -> bool:
        return request.source_trusted is True and is_marked_serializable(
            request.source
        )

    def attempt(self, value: Any, max_depth: int) -> Result[Any, Exception]:  # noqa: ARG002
        return _guarded(
            value,
            lambda: pickle.loads(  # noqa: S301
                pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)
            ),
        )


class FastMarshalStrategy:
    """JSON round-trip of the depth-bounded projection."""

    name = CopyStrategyName.FAST_MARSHAL
    fidelity = Fidelity.APPROXIMATE

    def is_applicable(self, request: CopyRequest) -> bool:  # noqa: ARG002
        return True

    def attempt(self, value: Any, max_depth: int) -> Result[Any, Exception]:
        def produce() -> Any:
            text = json.dumps(to_jsonable(value, max_depth), allow_nan=False)
            return json.loads(text)

        return _guarded(value, produce)


class XmlObjectGraphStrategy:
    """In-memory typed XML object graph round-trip."""

    name = CopyStrategyName.XML_OBJECT_GRAPH
    fidelity = Fidelity.APPROXIMATE

    def __init__(self, probe: Callable[[], bool] | None = None) -> None:
        self._probe = probe or xml_graph.in_memory_encoding_available

    def is_applicable(self, request: CopyRequest) -> bool:  # noqa: ARG002
        return self._probe()

    def attempt(self, value: Any, max_depth: int) -> Result[Any, Exception]:
        return _guarded(
            value, lambda: xml_graph.loads(xml_graph.dumps(value, max_depth))
        )


class XmlFileRoundtripStrategy:
    """XML object graph written to a temporary file and read back.

    Each attempt uses its own uniquely named file and removes it on every
    exit path.
    """

    name = CopyStrategyName.XML_FILE_ROUNDTRIP
    fidelity = Fidelity.APPROXIMATE

    def __init__(self, temp_dir: str | Path | None = None) -> None:
        self.temp_dir = temp_dir

    def is_applicable(self, request: CopyRequest) -> bool:  # noqa: ARG002
        return True

    def attempt(self, value: Any, max_depth: int) -> Result[Any, Exception]:
        try:
            fd, name = tempfile.mkstemp(
                prefix=TEMP_FILE_PREFIX, suffix=".xml", dir=self.temp_dir
            )
        except OSError as e:
            return Failure(e)
        path = Path(name)
        try:
            return _guarded(
                value, lambda: self._roundtrip(value, max_depth, fd, path)
            )
        finally:
            path.unlink(missing_ok=True)

    @staticmethod
    def _roundtrip(value: Any, max_depth: int, fd: int, path: Path) -> Any:
        with os.fdopen(fd, "wb") as fh:
            xml_graph.dump(value, max_depth, fh)
        return xml_graph.load(path)


def default_strategies() -> tuple[CopyStrategy, ...]:
    """The standard cascade, most faithful first."""
    return (
        TrustedBinaryStrategy(),
        FastMarshalStrategy(),
        XmlObjectGraphStrategy(),
        XmlFileRoundtripStrategy(),
    )
