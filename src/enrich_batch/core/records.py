"""Field access for opaque row records.

Rows arrive from an external tabular layer as mappings or simple attribute
objects. Enrichment only ever reads one field and writes another.
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from typing import Any

from enrich_batch.exceptions import InvalidArgumentError

_MISSING = object()


def get_field(record: Any, name: str, default: Any = None) -> Any:
    """Return ``record[name]`` (or ``record.name``), else ``default``."""
    if isinstance(record, Mapping):
        return record.get(name, default)
    value = getattr(record, name, _MISSING)
    return default if value is _MISSING else value


def set_field(record: Any, name: str, value: Any) -> Any:
    """Set ``name`` on ``record`` and return the updated record.

    Mutable mappings and attribute objects are updated in place; read-only
    mappings produce a new ``dict``. Callers that must not disturb the
    original row copy it first.
    """
    if isinstance(record, MutableMapping):
        record[name] = value
        return record
    if isinstance(record, Mapping):
        updated = dict(record)
        updated[name] = value
        return updated
    try:
        setattr(record, name, value)
    except AttributeError as e:
        raise InvalidArgumentError(
            f"Cannot set field '{name}' on {type(record).__name__}"
        ) from e
    return record
