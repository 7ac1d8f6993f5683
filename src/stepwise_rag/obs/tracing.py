"""Session trace storage and aggregate metrics."""

from __future__ import annotations

import threading
from collections import Counter, OrderedDict

from stepwise_rag.types import SessionTrace


class TraceStore:
    """Bounded in-memory trace storage shared by concurrent requests.

    Oldest traces are evicted first once `max_records` is exceeded. Every
    access holds the store lock.
    """

    def __init__(self, max_records: int = 1000) -> None:
        self._records: OrderedDict[str, SessionTrace] = OrderedDict()
        self._max_records = max_records
        self._lock = threading.Lock()

    def save(self, trace: SessionTrace) -> None:
        with self._lock:
            self._records[trace.session_id] = trace
            self._records.move_to_end(trace.session_id)
            while len(self._records) > self._max_records:
                self._records.popitem(last=False)

    def get(self, session_id: str) -> SessionTrace:
        with self._lock:
            record = self._records.get(session_id)
        if record is None:
            raise KeyError(f"Trace not found: {session_id}")
        return record

    def list_recent(self, limit: int = 20) -> list[SessionTrace]:
        if limit < 1:
            return []
        with self._lock:
            return list(self._records.values())[-limit:]

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def summary(self) -> dict[str, object]:
        """Aggregate request counts, latency and step usage."""
        with self._lock:
            records = list(self._records.values())
        total = len(records)
        if total == 0:
            return {
                "total_requests": 0,
                "failed_requests": 0,
                "avg_latency_ms": 0.0,
                "p95_latency_ms": 0.0,
                "step_counts": {},
            }

        latencies = sorted(record.duration_ms for record in records)
        p95_index = max(0, int((len(latencies) * 0.95) - 1))
        step_counts = Counter(step.path for record in records for step in record.steps)

        return {
            "total_requests": total,
            "failed_requests": sum(1 for record in records if record.status == "failed"),
            "avg_latency_ms": sum(latencies) / total,
            "p95_latency_ms": latencies[p95_index],
            "step_counts": dict(step_counts),
        }
