"""Unit tests for the telemetry context and in-memory reporter"""

import importlib

import pytest

from enrich_batch import telemetry


@pytest.fixture
def enabled_telemetry(monkeypatch):
    """Telemetry module re-evaluated with ENRICH_TELEMETRY=1."""
    monkeypatch.setenv("ENRICH_TELEMETRY", "1")
    module = importlib.reload(telemetry)
    yield module
    monkeypatch.delenv("ENRICH_TELEMETRY")
    importlib.reload(telemetry)


@pytest.mark.unit
class TestTelemetryContext:
    def test_disabled_by_default_returns_shared_noop(self):
        reporter = telemetry.InMemoryReporter()
        ctx = telemetry.TelemetryContext(reporter)
        assert ctx is telemetry.TelemetryContext()
        with ctx("anything", attempt=1):
            ctx.count("counter")
        assert reporter.timings == {}
        assert reporter.metrics == {}

    def test_enabled_context_records_nested_scopes(self, enabled_telemetry):
        reporter = enabled_telemetry.InMemoryReporter()
        ctx = enabled_telemetry.TelemetryContext(reporter)

        with ctx("outer"), ctx("inner", attempt=2):
            ctx.count("hits", 3)

        assert set(reporter.timings) == {"outer", "outer.inner"}
        _, inner_meta = reporter.timings["outer.inner"][0]
        assert inner_meta["parent_scope"] == "outer"
        assert inner_meta["attempt"] == 2
        assert inner_meta["failed"] is False
        assert reporter.total("outer.inner.hits") == 3

    def test_enabled_context_marks_failed_scopes(self, enabled_telemetry):
        reporter = enabled_telemetry.InMemoryReporter()
        ctx = enabled_telemetry.TelemetryContext(reporter)

        with pytest.raises(RuntimeError), ctx("work"):
            raise RuntimeError("boom")

        _, meta = reporter.timings["work"][0]
        assert meta["failed"] is True

    def test_enabled_without_reporters_is_noop(self, enabled_telemetry):
        assert isinstance(
            enabled_telemetry.TelemetryContext(),
            enabled_telemetry._NoOpTelemetryContext,
        )

    def test_reporter_errors_do_not_escape(self, enabled_telemetry, caplog):
        class Broken:
            def record_timing(self, scope, duration, **metadata):
                raise ValueError("reporter down")

            def record_metric(self, scope, value, **metadata):
                raise ValueError("reporter down")

        ctx = enabled_telemetry.TelemetryContext(Broken())
        with ctx("scope"):
            ctx.gauge("level", 1.0)
        assert "reporter down" in caplog.text


@pytest.mark.unit
class TestInMemoryReporter:
    def test_report_lists_timings_and_metrics(self):
        reporter = telemetry.InMemoryReporter()
        reporter.record_timing("copy.fast_marshal", 0.5, failed=False)
        reporter.record_timing("copy.fast_marshal", 0.25, failed=True)
        reporter.record_metric("copy.fallback", 2)

        report = reporter.get_report()
        assert "copy.fast_marshal" in report
        assert "Calls: 2" in report
        assert "Failed: 1" in report
        assert "copy.fallback" in report

    def test_entries_per_scope_are_bounded(self):
        reporter = telemetry.InMemoryReporter(max_entries_per_scope=2)
        for i in range(5):
            reporter.record_metric("m", i)
        assert reporter.total("m") == 3 + 4
