"""Thread-safe accumulator of per-request outcomes."""

import threading
import time

from auth_stress.models import AggregateResult, RequestOutcome

ERROR_SAMPLE_LIMIT = 3


class ResultRecorder:
    """Collects the outcomes of one batch and derives its aggregate.

    A recorder belongs to exactly one run. ``record`` may be called from any
    number of concurrent completions; ``snapshot`` holds the lock only while
    copying the outcome list.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._outcomes: list[RequestOutcome] = []
        self._started_at: float | None = None
        self._total_elapsed_ms: int | None = None

    def start(self) -> None:
        """Mark the start of the batch."""
        self._started_at = time.perf_counter()
        self._total_elapsed_ms = None

    def finish(self) -> None:
        """Freeze the batch's total elapsed time."""
        self._total_elapsed_ms = self.elapsed_ms()

    def elapsed_ms(self) -> int:
        if self._started_at is None:
            return 0
        return int((time.perf_counter() - self._started_at) * 1000)

    def record(self, outcome: RequestOutcome) -> None:
        with self._lock:
            self._outcomes.append(outcome)

    def outcomes(self) -> list[RequestOutcome]:
        with self._lock:
            return list(self._outcomes)

    def snapshot(self) -> AggregateResult:
        """Compute the aggregate over every outcome recorded so far."""
        with self._lock:
            outcomes = list(self._outcomes)
            total_elapsed_ms = self._total_elapsed_ms

        if total_elapsed_ms is None:
            total_elapsed_ms = max((o.elapsed_ms for o in outcomes), default=0)

        success_count = sum(1 for o in outcomes if o.succeeded)
        latencies = sorted(o.latency_ms for o in outcomes)
        average = sum(latencies) / len(latencies) if latencies else 0.0
        p95 = latencies[min(int(len(latencies) * 0.95), len(latencies) - 1)] if latencies else 0.0

        errors = sorted((o for o in outcomes if not o.succeeded), key=lambda o: o.sequence_index)

        return AggregateResult(
            success_count=success_count,
            error_count=len(outcomes) - success_count,
            total_elapsed_ms=total_elapsed_ms,
            average_response_time_ms=round(average, 2),
            p95_response_time_ms=round(p95, 2),
            token_missing_count=sum(1 for o in outcomes if o.succeeded and o.has_token is False),
            error_samples=errors[:ERROR_SAMPLE_LIMIT],
        )
