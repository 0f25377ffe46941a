import threading
from enum import Enum
from typing import Any

from loadgen.batch import BatchBuilder
from loadgen.counters import GlobalCounters, ThroughputSampler
from loadgen.entities import WorkloadConfig
from loadgen.errors import TransactionError
from loadgen.logger import get_logger
from loadgen.pool import ConnectionPool
from loadgen.runners.transaction import TransactionRunner
from loadgen.utils import error_chain
from loadgen.workloads import Workload

logger = get_logger(__name__)


class WorkerState(str, Enum):
    RUNNING = "running"
    BACKOFF = "backoff"
    DONE = "done"


class Worker:
    """Runs transactions on its own connection until its target is reached.

    With ``target_txns == 0`` the worker only stops when ``stop_event`` is
    set. Failed transactions are logged and retried after ``backoff_s``;
    there is no retry ceiling.
    """

    def __init__(
        self,
        index: int,
        config: WorkloadConfig,
        pool: ConnectionPool,
        workload: Workload,
        counters: GlobalCounters,
        stop_event: threading.Event,
        target_txns: int = 0,
        backoff_s: float = 1.0,
        sampler: ThroughputSampler | None = None,
    ) -> None:
        self.index = index
        self.config = config
        self.pool = pool
        self.workload = workload
        self.stop_event = stop_event
        self.target_txns = target_txns
        self.backoff_s = backoff_s
        self.builder = BatchBuilder(config.row_size, config.batch_rows)
        self.runner = TransactionRunner(
            counters,
            config.txn_mode,
            on_progress=sampler.maybe_sample if sampler is not None else None,
            label=f"thread {index}",
        )
        self.state = WorkerState.RUNNING
        self.completed_txns = 0
        self.failed_txns = 0

    def run(self) -> int:
        conn = self.pool.acquire(self.index)
        try:
            while not self.stop_event.is_set():
                self.step(conn)
                if self.state is WorkerState.DONE:
                    break
        finally:
            self.pool.release(conn)
        logger.debug(
            "Worker %d exits after %d transactions (%d failed attempts)",
            self.index,
            self.completed_txns,
            self.failed_txns,
        )
        return self.completed_txns

    def step(self, conn: Any) -> WorkerState:
        try:
            self.runner.run(conn, self.workload.plan(self.index, self.builder))
        except TransactionError as exc:
            self.failed_txns += 1
            logger.warning(
                "Do transaction failed, thread %d, err %s", self.index, error_chain(exc)
            )
            self.state = WorkerState.BACKOFF
            self.stop_event.wait(self.backoff_s)
            self.state = WorkerState.RUNNING
            return self.state

        self.completed_txns += 1
        if self.target_txns > 0 and self.completed_txns >= self.target_txns:
            self.state = WorkerState.DONE
        return self.state
