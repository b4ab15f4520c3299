"""Unit tests for the cascade copier"""

import pytest

from enrich_batch.copying import ObjectCopier, copy_value
from enrich_batch.core.types import (
    CopyOutcome,
    CopyRequest,
    CopyStrategyName,
    Failure,
    Fidelity,
    Success,
)
from enrich_batch.exceptions import CopyError, InvalidArgumentError


class StubStrategy:
    """Strategy double with a fixed outcome, recording each attempt."""

    fidelity = Fidelity.APPROXIMATE

    def __init__(self, name, outcome, *, applicable=True, succeed_at=None):
        self.name = name
        self.outcome = outcome
        self.applicable = applicable
        self.succeed_at = succeed_at
        self.attempts: list[int] = []

    def is_applicable(self, request):
        return self.applicable

    def attempt(self, value, max_depth):
        self.attempts.append(max_depth)
        if self.succeed_at is not None and max_depth == self.succeed_at:
            return Success(("copied", value))
        return self.outcome


def _failing(name, **kwargs):
    return StubStrategy(name, Failure(RuntimeError(f"{name.value} broke")), **kwargs)


@pytest.mark.unit
class TestObjectCopier:
    def test_null_source_short_circuits(self):
        stub = _failing(CopyStrategyName.FAST_MARSHAL)
        outcome = ObjectCopier([stub]).copy(CopyRequest(None))
        assert outcome == CopyOutcome(None, Fidelity.EXACT, None)
        assert stub.attempts == []

    def test_rejects_non_request_argument(self):
        with pytest.raises(InvalidArgumentError, match="CopyRequest"):
            ObjectCopier().copy({"source": 1})  # type: ignore[arg-type]

    def test_first_success_stops_the_cascade(self):
        first = StubStrategy(CopyStrategyName.FAST_MARSHAL, Success("a"))
        second = StubStrategy(CopyStrategyName.XML_OBJECT_GRAPH, Success("b"))
        outcome = ObjectCopier([first, second]).copy(CopyRequest({"x": 1}))

        assert outcome.value == "a"
        assert outcome.strategy_used is CopyStrategyName.FAST_MARSHAL
        assert outcome.max_depth == 2
        assert second.attempts == []

    def test_inapplicable_strategies_are_not_attempted(self):
        skipped = _failing(CopyStrategyName.XML_OBJECT_GRAPH, applicable=False)
        last = StubStrategy(CopyStrategyName.XML_FILE_ROUNDTRIP, Success("ok"))
        outcome = ObjectCopier([skipped, last]).copy(CopyRequest([1]))

        assert skipped.attempts == []
        assert outcome.strategy_used is CopyStrategyName.XML_FILE_ROUNDTRIP
        assert outcome.fallbacks == ()

    def test_fallbacks_record_earlier_failures(self):
        broken = _failing(CopyStrategyName.FAST_MARSHAL)
        working = StubStrategy(CopyStrategyName.XML_OBJECT_GRAPH, Success("ok"))
        outcome = ObjectCopier([broken, working]).copy(CopyRequest([1]))

        assert outcome.fallbacks == (
            (CopyStrategyName.FAST_MARSHAL, 2, "RuntimeError: fast_marshal broke"),
        )

    def test_retries_at_default_depth_without_trusted_strategy(self):
        trusted = _failing(CopyStrategyName.TRUSTED_BINARY_SERIALIZATION)
        fast = _failing(CopyStrategyName.FAST_MARSHAL, succeed_at=2)
        outcome = ObjectCopier([trusted, fast]).copy(
            CopyRequest([1], max_depth=40, source_trusted=True)
        )

        assert trusted.attempts == [40]
        assert fast.attempts == [40, 2]
        assert outcome.max_depth == 2
        assert outcome.strategy_used is CopyStrategyName.FAST_MARSHAL
        assert len(outcome.fallbacks) == 2

    def test_no_depth_retry_when_already_at_default(self):
        fast = _failing(CopyStrategyName.FAST_MARSHAL)
        with pytest.raises(CopyError):
            ObjectCopier([fast]).copy(CopyRequest([1], max_depth=2))
        assert fast.attempts == [2]

    def test_total_exhaustion_lists_every_failure(self):
        fast = _failing(CopyStrategyName.FAST_MARSHAL)
        xml = _failing(CopyStrategyName.XML_OBJECT_GRAPH)
        with pytest.raises(CopyError) as exc_info:
            ObjectCopier([fast, xml]).copy(CopyRequest([1], max_depth=5))

        err = exc_info.value
        assert [(name, depth) for name, depth, _ in err.failures] == [
            (CopyStrategyName.FAST_MARSHAL, 5),
            (CopyStrategyName.XML_OBJECT_GRAPH, 5),
            (CopyStrategyName.FAST_MARSHAL, 2),
            (CopyStrategyName.XML_OBJECT_GRAPH, 2),
        ]
        assert "xml_object_graph@2" in str(err)

    def test_nothing_applicable_raises(self):
        skipped = _failing(CopyStrategyName.FAST_MARSHAL, applicable=False)
        with pytest.raises(CopyError, match="no strategy was applicable"):
            ObjectCopier([skipped]).copy(CopyRequest([1]))


@pytest.mark.unit
class TestDefaultCascade:
    def test_untrusted_dict_uses_fast_marshal(self):
        outcome = copy_value({"a": 1, "b": [1, 2]})
        assert outcome.strategy_used is CopyStrategyName.FAST_MARSHAL
        assert outcome.fidelity is Fidelity.APPROXIMATE
        assert outcome.value == {"a": 1, "b": [1, 2]}

    def test_trusted_source_uses_binary_serialization(self):
        value = {"a": (1, 2)}
        outcome = copy_value(value, source_trusted=True)
        assert outcome.strategy_used is CopyStrategyName.TRUSTED_BINARY_SERIALIZATION
        assert outcome.fidelity is Fidelity.EXACT
        assert outcome.value == value

    def test_nan_falls_back_to_xml_graph(self):
        outcome = copy_value({"score": float("inf")})
        assert outcome.strategy_used is CopyStrategyName.XML_OBJECT_GRAPH
        assert outcome.value == {"score": float("inf")}
        assert outcome.fallbacks[0][0] is CopyStrategyName.FAST_MARSHAL

    def test_file_strategy_used_when_probe_fails(self, monkeypatch):
        monkeypatch.setattr(
            "enrich_batch.copying.xml_graph.in_memory_encoding_available",
            lambda: False,
        )
        outcome = copy_value({"score": float("nan")})
        assert outcome.strategy_used is CopyStrategyName.XML_FILE_ROUNDTRIP

    def test_mutating_copy_leaves_source_untouched(self):
        source = {"text": "hello", "tags": ["a"]}
        outcome = copy_value(source)
        outcome.value["tags"].append("b")
        outcome.value["text"] = "changed"
        assert source == {"text": "hello", "tags": ["a"]}
