"""Prometheus metrics for chunking and orchestrated model requests."""

import logging
import threading
from typing import Dict, Iterable, Optional

from prometheus_client import Counter, Histogram, start_http_server


logger = logging.getLogger(__name__)


CHUNKS_PRODUCED = Counter(
    'commitscribe_chunks_produced_total',
    'Chunks produced by the diff chunking pipeline',
    ['priority']
)

DIFF_SIZE = Histogram(
    'commitscribe_diff_size_characters',
    'Size of diffs submitted for chunking',
    buckets=(1_000, 10_000, 25_000, 100_000, 500_000, 2_000_000)
)

ORCHESTRATED_REQUESTS = Counter(
    'commitscribe_orchestrated_requests_total',
    'Orchestrated model requests by final status',
    ['task', 'status']
)

LLM_CALLS = Counter(
    'commitscribe_llm_calls_total',
    'Individual model calls by outcome',
    ['outcome']
)


class MetricsCollector:
    """Records metrics and keeps an in-process copy for reporting."""

    def __init__(self, metrics_port: Optional[int] = None):
        self._counts: Dict[str, int] = {}
        self._lock = threading.Lock()

        if metrics_port:
            try:
                start_http_server(metrics_port)
                logger.info(f"Prometheus metrics server started on port {metrics_port}")
            except OSError as e:
                logger.error(f"Failed to start Prometheus server: {e}")

    def _bump(self, key: str, amount: int = 1) -> None:
        with self._lock:
            self._counts[key] = self._counts.get(key, 0) + amount

    def record_chunking(self, source_length: int, priorities: Iterable[str]) -> None:
        DIFF_SIZE.observe(source_length)
        for priority in priorities:
            CHUNKS_PRODUCED.labels(priority=priority).inc()
            self._bump(f"chunks_{priority}")
        self._bump("diffs_chunked")

    def record_llm_call(self, outcome: str) -> None:
        LLM_CALLS.labels(outcome=outcome).inc()
        self._bump(f"llm_{outcome}")

    def record_orchestration(self, task: str, status: str) -> None:
        ORCHESTRATED_REQUESTS.labels(task=task, status=status).inc()
        self._bump(f"requests_{status}")

    def get_summary(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counts)
