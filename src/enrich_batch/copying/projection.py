"""Depth-bounded projection of arbitrary values onto JSON-compatible data.

Nesting levels are counted from the root container (level 0). A container
found at a level at or beyond ``max_depth`` is replaced by an opaque
placeholder string, which also cuts reference cycles. So a value whose
containers nest ``max_depth`` deep survives intact.
"""

from __future__ import annotations

import base64
from collections.abc import Mapping
import dataclasses
from datetime import date, datetime, time
from enum import Enum
import functools
import types
from typing import Any

SCALAR_TYPES = (bool, int, float, str)
BINARY_TYPES = (bytes, bytearray, memoryview)
SEQUENCE_TYPES = (list, tuple, set, frozenset)

# Values with no natural data encoding
CODE_TYPES = (
    types.FunctionType,
    types.BuiltinFunctionType,
    types.MethodType,
    types.BuiltinMethodType,
    functools.partial,
    type,
)

_DROP = object()


def depth_placeholder(value: Any) -> str:
    """Opaque stand-in for a container cut off by the depth bound."""
    return f"<{type(value).__name__}>"


def is_container(value: Any) -> bool:
    """True for values whose members count as a nesting level."""
    return isinstance(value, (Mapping, *SEQUENCE_TYPES)) or has_attributes(value)


def has_attributes(value: Any) -> bool:
    """True for plain objects whose public attributes form a record."""
    if isinstance(value, (*SCALAR_TYPES, *BINARY_TYPES, *CODE_TYPES, Enum)):
        return False
    if isinstance(value, types.ModuleType):
        return False
    return dataclasses.is_dataclass(value) or hasattr(value, "__dict__")


def public_attributes(value: Any) -> dict[str, Any]:
    """Public attribute name/value pairs of an object."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: getattr(value, f.name)
            for f in dataclasses.fields(value)
            if not f.name.startswith("_")
        }
    return {k: v for k, v in vars(value).items() if not k.startswith("_")}


def scalar_text(value: Any) -> str:
    """Text form for leaf values without a natural encoding."""
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


def to_jsonable(value: Any, max_depth: int, _level: int = 0) -> Any:
    """Project ``value`` onto dicts, lists and JSON scalars.

    Functions, methods and classes are dropped from mappings and objects and
    become ``None`` inside sequences. Bytes become base64 text.
    """
    result = _project(value, max_depth, _level)
    return None if result is _DROP else result


def _project(value: Any, max_depth: int, level: int) -> Any:
    if value is None or isinstance(value, SCALAR_TYPES):
        return value
    if isinstance(value, Enum):
        return _project(value.value, max_depth, level)
    if isinstance(value, BINARY_TYPES):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, CODE_TYPES):
        return _DROP

    if is_container(value) and level >= max_depth:
        return depth_placeholder(value)

    if isinstance(value, Mapping):
        return _project_mapping(value.items(), max_depth, level)
    if isinstance(value, SEQUENCE_TYPES):
        items = [_project(v, max_depth, level + 1) for v in value]
        return [None if v is _DROP else v for v in items]
    if has_attributes(value):
        return _project_mapping(public_attributes(value).items(), max_depth, level)
    return scalar_text(value)


def _project_mapping(items: Any, max_depth: int, level: int) -> dict[str, Any]:
    projected: dict[str, Any] = {}
    for key, member in items:
        converted = _project(member, max_depth, level + 1)
        if converted is not _DROP:
            projected[key if isinstance(key, str) else scalar_text(key)] = converted
    return projected
