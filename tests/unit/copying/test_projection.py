"""Unit tests for the depth-bounded JSON projection"""

import dataclasses
from datetime import date
from enum import Enum
import functools

import pytest

from enrich_batch.copying.projection import (
    depth_placeholder,
    has_attributes,
    is_container,
    to_jsonable,
)


class Color(Enum):
    RED = "red"


@dataclasses.dataclass
class Point:
    x: int
    y: int
    _hidden: int = 0


class Plain:
    def __init__(self):
        self.name = "plain"
        self._private = "skip"
        self.callback = print


@pytest.mark.unit
class TestToJsonable:
    def test_scalars_pass_through(self):
        assert to_jsonable({"a": 1, "b": 2.5, "c": "x", "d": None, "e": True}, 2) == {
            "a": 1,
            "b": 2.5,
            "c": "x",
            "d": None,
            "e": True,
        }

    def test_container_at_depth_bound_becomes_placeholder(self):
        assert to_jsonable({"a": 1, "b": {"c": 2}}, 1) == {"a": 1, "b": "<dict>"}

    def test_value_within_bound_survives(self):
        value = {"a": [1, {"b": 2}]}
        assert to_jsonable(value, 3) == value

    def test_tuples_and_sets_become_lists(self):
        assert to_jsonable({"t": (1, 2), "s": {3}}, 2) == {"t": [1, 2], "s": [3]}

    def test_objects_project_public_attributes(self):
        assert to_jsonable(Plain(), 2) == {"name": "plain"}
        assert to_jsonable(Point(1, 2), 2) == {"x": 1, "y": 2}

    def test_code_values_dropped_or_nulled(self):
        value = {"f": len, "items": [functools.partial(int), 1]}
        assert to_jsonable(value, 2) == {"items": [None, 1]}

    def test_special_leaves(self):
        projected = to_jsonable(
            {"color": Color.RED, "raw": b"\x00\x01", "day": date(2024, 1, 2), 3: "k"}, 2
        )
        assert projected == {
            "color": "red",
            "raw": "AAE=",
            "day": "2024-01-02",
            "3": "k",
        }

    def test_cycles_are_cut_by_the_bound(self):
        value: dict = {"name": "root"}
        value["self"] = value
        assert to_jsonable(value, 1) == {"name": "root", "self": "<dict>"}


@pytest.mark.unit
class TestClassification:
    def test_placeholder_names_the_type(self):
        assert depth_placeholder([1]) == "<list>"
        assert depth_placeholder(Point(0, 0)) == "<Point>"

    @pytest.mark.parametrize(
        ("value", "expected"),
        [({}, True), ([], True), (Point(0, 0), True), ("s", False), (3, False)],
    )
    def test_is_container(self, value, expected):
        assert is_container(value) is expected

    def test_classes_and_enums_are_not_records(self):
        assert has_attributes(Point) is False
        assert has_attributes(Color.RED) is False
