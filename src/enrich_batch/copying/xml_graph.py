"""Typed XML encoding of object graphs.

Unlike the JSON projection, this encoding keeps scalar types, tuples, sets
and bytes apart, and records shared references and cycles through ``ref``
ids on mutable containers (lists, dicts, objects). Objects decode into
``SimpleNamespace`` property bags. The same depth bound and placeholder as
the JSON projection apply.

Document shape::

    <graph version="1">
      <dict ref="1">
        <item><str>a</str><int>1</int></item>
        <item><str>self</str><ref id="1"/></item>
      </dict>
    </graph>
"""

from __future__ import annotations

import base64
from collections.abc import Mapping
from enum import Enum
import functools
import logging
from pathlib import Path
import re
from types import SimpleNamespace
from typing import Any, BinaryIO
import xml.etree.ElementTree as ET

from .projection import (
    BINARY_TYPES,
    CODE_TYPES,
    depth_placeholder,
    is_container,
    public_attributes,
    scalar_text,
)

log = logging.getLogger(__name__)

FORMAT_VERSION = "1"

# Characters XML 1.0 cannot carry verbatim (or that parsers normalize away)
_NEEDS_BASE64 = re.compile(r"[\x00-\x08\x0b-\x1f\ud800-\udfff\ufffe\uffff]")


class _GraphEncoder:
    def __init__(self, max_depth: int) -> None:
        self.max_depth = max_depth
        self.memo: dict[int, str] = {}

    def element(self, value: Any, level: int) -> ET.Element:
        if value is None:
            return ET.Element("none")
        if isinstance(value, bool):
            return _leaf("bool", "true" if value else "false")
        if isinstance(value, int):
            return _leaf("int", str(int(value)))
        if isinstance(value, float):
            return _leaf("float", repr(float(value)))
        if isinstance(value, str):
            return _string(value)
        if isinstance(value, Enum):
            return self.element(value.value, level)
        if isinstance(value, BINARY_TYPES):
            return _leaf("bytes", base64.b64encode(bytes(value)).decode("ascii"))
        if isinstance(value, CODE_TYPES):
            return _leaf("opaque", depth_placeholder(value))
        if not is_container(value):
            return _string(scalar_text(value))

        ref_id = self.memo.get(id(value))
        if ref_id is not None:
            return ET.Element("ref", {"id": ref_id})
        if level >= self.max_depth:
            return _leaf("opaque", depth_placeholder(value))

        if isinstance(value, Mapping):
            el = self._open("dict", value)
            for key, member in value.items():
                item = ET.SubElement(el, "item")
                item.append(self.element(key, level + 1))
                item.append(self.element(member, level + 1))
            return el
        if isinstance(value, list):
            el = self._open("list", value)
            el.extend(self.element(v, level + 1) for v in value)
            return el
        if isinstance(value, (tuple, set, frozenset)):
            el = ET.Element(_base_tag(value))
            el.extend(self.element(v, level + 1) for v in value)
            return el

        cls = type(value)
        el = self._open("object", value)
        el.set("type", f"{cls.__module__}.{cls.__qualname__}")
        for name, member in public_attributes(value).items():
            attr = ET.SubElement(el, "attr", {"name": name})
            attr.append(self.element(member, level + 1))
        return el

    def _open(self, tag: str, value: Any) -> ET.Element:
        ref_id = str(len(self.memo) + 1)
        self.memo[id(value)] = ref_id
        return ET.Element(tag, {"ref": ref_id})


def _base_tag(value: Any) -> str:
    for base in (tuple, frozenset, set):
        if isinstance(value, base):
            return base.__name__
    raise TypeError(f"Not a sequence: {type(value).__name__}")


def _leaf(tag: str, text: str) -> ET.Element:
    el = ET.Element(tag)
    el.text = text
    return el


def _string(value: str) -> ET.Element:
    if _NEEDS_BASE64.search(value):
        el = _leaf(
            "str",
            base64.b64encode(value.encode("utf-8", "surrogatepass")).decode("ascii"),
        )
        el.set("encoding", "base64")
        return el
    return _leaf("str", value)


class _GraphDecoder:
    def __init__(self) -> None:
        self.refs: dict[str, Any] = {}

    def value(self, el: ET.Element) -> Any:
        tag = el.tag
        text = el.text or ""
        if tag == "none":
            return None
        if tag == "bool":
            return text == "true"
        if tag == "int":
            return int(text)
        if tag == "float":
            return float(text)
        if tag == "str":
            if el.get("encoding") == "base64":
                return base64.b64decode(text).decode("utf-8", "surrogatepass")
            return text
        if tag == "bytes":
            return base64.b64decode(text)
        if tag == "opaque":
            return text
        if tag == "ref":
            return self.refs[el.attrib["id"]]
        if tag == "list":
            items: list[Any] = self._register(el, [])
            items.extend(self.value(child) for child in el)
            return items
        if tag == "dict":
            mapping: dict[Any, Any] = self._register(el, {})
            for item in el:
                key_el, value_el = list(item)
                mapping[self.value(key_el)] = self.value(value_el)
            return mapping
        if tag == "tuple":
            return tuple(self.value(child) for child in el)
        if tag == "set":
            return {self.value(child) for child in el}
        if tag == "frozenset":
            return frozenset(self.value(child) for child in el)
        if tag == "object":
            bag = self._register(el, SimpleNamespace())
            for attr in el:
                (member,) = list(attr)
                setattr(bag, attr.attrib["name"], self.value(member))
            return bag
        raise ValueError(f"Unknown object graph element <{tag}>")

    def _register(self, el: ET.Element, container: Any) -> Any:
        if ref_id := el.get("ref"):
            self.refs[ref_id] = container
        return container


def encode(value: Any, max_depth: int) -> ET.Element:
    """Encode ``value`` as a ``<graph>`` element, bounded by ``max_depth``."""
    root = ET.Element("graph", {"version": FORMAT_VERSION})
    root.append(_GraphEncoder(max_depth).element(value, 0))
    return root


def decode(root: ET.Element) -> Any:
    """Rebuild the value held by a ``<graph>`` element."""
    if root.tag != "graph" or len(root) != 1:
        raise ValueError("Malformed object graph document")
    if root.get("version") != FORMAT_VERSION:
        raise ValueError(f"Unsupported object graph version: {root.get('version')}")
    return _GraphDecoder().value(root[0])


def dumps(value: Any, max_depth: int) -> str:
    """Serialize ``value`` to an XML string."""
    return ET.tostring(encode(value, max_depth), encoding="unicode")


def loads(text: str) -> Any:
    """Parse an XML string produced by ``dumps``."""
    return decode(ET.fromstring(text))


def dump(value: Any, max_depth: int, target: str | Path | BinaryIO) -> None:
    """Write the encoding of ``value`` to a path or binary file object."""
    ET.ElementTree(encode(value, max_depth)).write(
        target, encoding="utf-8", xml_declaration=True
    )


def load(source: str | Path | BinaryIO) -> Any:
    """Read a value written by ``dump``."""
    return decode(ET.parse(source).getroot())


@functools.cache
def in_memory_encoding_available() -> bool:
    """Probe once per process whether in-memory encoding round-trips."""
    sample = {"probe": [1, "ok", None]}
    try:
        return loads(dumps(sample, 2)) == sample
    except Exception:
        log.warning("In-memory object graph encoding is unavailable", exc_info=True)
        return False
