"""
Metrics Collector
==================
In-process counters and latency summaries for the API.
Makes analysis fallbacks and chat-history persistence outcomes observable
without an external metrics backend.
"""

import time
from collections import Counter, deque
from typing import Any, Dict, List


class LabeledCounter:
    """Running totals split by a single label (source, operation, outcome)."""

    def __init__(self, name: str):
        self.name = name
        self._counts: Counter = Counter()

    def inc(self, label: str):
        self._counts[label] += 1

    def get(self, label: str) -> int:
        return self._counts[label]

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "total": sum(self._counts.values()),
            "by_label": dict(self._counts),
        }


def _nearest_rank(ordered: List[float], pct: int) -> float:
    return ordered[min(len(ordered) * pct // 100, len(ordered) - 1)]


class LatencyWindow:
    """Latency samples (ms) for the most recent calls."""

    def __init__(self, name: str, size: int = 500):
        self.name = name
        self._samples: deque = deque(maxlen=size)

    def observe(self, ms: float):
        self._samples.append(ms)

    def to_dict(self) -> dict:
        summary = {"name": self.name, "count": len(self._samples), "avg": 0.0, "p50": 0.0, "p95": 0.0}
        if self._samples:
            ordered = sorted(self._samples)
            summary.update(
                avg=round(sum(ordered) / len(ordered), 3),
                p50=round(_nearest_rank(ordered, 50), 3),
                p95=round(_nearest_rank(ordered, 95), 3),
            )
        return summary


class MetricsCollector:
    """
    Metrics tracked:
    - analyses_total        by source: model | fallback
    - llm_failures_total    by operation: analyze | chat
    - llm_latency_ms        analyze generation time
    - chat_history_total    by PersistOutcome value
    """

    def __init__(self, buffer_size: int = 500):
        self._start_time = time.monotonic()
        self.analyses = LabeledCounter("analyses_total")
        self.llm_failures = LabeledCounter("llm_failures_total")
        self.chat_history = LabeledCounter("chat_history_total")
        self.llm_latency = LatencyWindow("llm_latency_ms", buffer_size)

    def record_analysis(self, source: str, latency_ms: float):
        self.analyses.inc(source)
        self.llm_latency.observe(latency_ms)

    def record_llm_failure(self, operation: str):
        self.llm_failures.inc(operation)

    def record_chat_persist(self, outcome: str):
        self.chat_history.inc(outcome)

    def summary(self) -> Dict[str, Any]:
        return {
            "uptime_s": round(time.monotonic() - self._start_time, 0),
            "analyses": self.analyses.to_dict(),
            "llm_failures": self.llm_failures.to_dict(),
            "llm_latency": self.llm_latency.to_dict(),
            "chat_history": self.chat_history.to_dict(),
        }
