import threading
import time
from typing import Callable

from loadgen.entities import ThroughputSample


class GlobalCounters:
    """Run-wide row and transaction totals shared by all workers.

    Every mutation goes through a method that holds the lock for a single
    add, so concurrent increments are never lost. Reads are unsynchronised
    snapshots.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._total_rows = 0
        self._total_txns = 0
        self._pending_rows = 0

    @property
    def total_rows(self) -> int:
        return self._total_rows

    @property
    def total_txns(self) -> int:
        return self._total_txns

    @property
    def pending_rows(self) -> int:
        return self._pending_rows

    def add_pending(self, rows: int) -> None:
        with self._lock:
            self._pending_rows += rows

    def release_pending(self, rows: int) -> None:
        with self._lock:
            self._pending_rows -= rows

    def add_committed(self, rows: int) -> None:
        with self._lock:
            self._total_rows += rows
            self._total_txns += 1

    def snapshot(self) -> tuple[int, int]:
        return self._total_txns, self._total_rows


class ThroughputSampler:
    """Rolling throughput window, owned and called by a single worker."""

    def __init__(
        self,
        counters: GlobalCounters,
        interval_s: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
        on_sample: Callable[[ThroughputSample], None] | None = None,
    ) -> None:
        self.counters = counters
        self.interval_s = interval_s
        self.clock = clock
        self.on_sample = on_sample
        now = clock()
        self._last_check = now
        self._last_time = now
        self._last_txns, self._last_rows = counters.snapshot()

    def maybe_sample(self) -> ThroughputSample | None:
        now = self.clock()
        if now - self._last_check < self.interval_s:
            return None
        self._last_check = now

        current_txns, current_rows = self.counters.snapshot()
        delta_txns = current_txns - self._last_txns
        delta_rows = current_rows - self._last_rows
        elapsed = now - self._last_time

        if delta_txns > 0 and elapsed > 0:
            sample = ThroughputSample(
                elapsed_s=elapsed,
                delta_txns=delta_txns,
                delta_rows=delta_rows,
            )
            self._last_time = now
            self._last_txns = current_txns
            self._last_rows = current_rows
        else:
            sample = ThroughputSample(
                elapsed_s=elapsed,
                delta_txns=0,
                delta_rows=0,
                pending_rows=max(0, self.counters.pending_rows),
            )

        if self.on_sample is not None:
            self.on_sample(sample)
        return sample
