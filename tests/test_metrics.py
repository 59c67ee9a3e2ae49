"""
Tests for the in-process metrics: labeled counters and latency windows.
"""

from resume_checker.metrics import LabeledCounter, LatencyWindow, MetricsCollector


class TestLabeledCounter:

    def test_totals_by_label(self):
        counter = LabeledCounter("analyses_total")
        for label in ("model", "model", "fallback"):
            counter.inc(label)
        assert counter.get("model") == 2
        assert counter.get("chat") == 0
        assert counter.to_dict() == {
            "name": "analyses_total",
            "total": 3,
            "by_label": {"model": 2, "fallback": 1},
        }


class TestLatencyWindow:

    def test_empty_window_reports_zeros(self):
        assert LatencyWindow("llm_latency_ms").to_dict() == {
            "name": "llm_latency_ms", "count": 0, "avg": 0.0, "p50": 0.0, "p95": 0.0,
        }

    def test_percentiles_use_nearest_rank(self):
        window = LatencyWindow("llm_latency_ms")
        for ms in range(100, 0, -1):
            window.observe(float(ms))
        summary = window.to_dict()
        assert summary["count"] == 100
        assert summary["avg"] == 50.5
        assert summary["p50"] == 51.0
        assert summary["p95"] == 96.0

    def test_only_recent_samples_kept(self):
        window = LatencyWindow("llm_latency_ms", size=3)
        for ms in (1000.0, 2.0, 3.0, 4.0):
            window.observe(ms)
        summary = window.to_dict()
        assert summary["count"] == 3
        assert summary["avg"] == 3.0
        assert summary["p95"] == 4.0


class TestMetricsCollector:

    def test_summary_shape(self):
        metrics = MetricsCollector()
        metrics.record_analysis("fallback", 12.5)
        metrics.record_llm_failure("chat")
        metrics.record_chat_persist("skipped")
        summary = metrics.summary()
        assert summary["analyses"]["by_label"] == {"fallback": 1}
        assert summary["llm_failures"]["by_label"] == {"chat": 1}
        assert summary["chat_history"]["by_label"] == {"skipped": 1}
        assert summary["llm_latency"]["p50"] == 12.5
        assert summary["uptime_s"] >= 0
