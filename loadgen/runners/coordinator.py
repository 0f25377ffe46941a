import threading
import time
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import Callable

from loadgen.counters import GlobalCounters, ThroughputSampler
from loadgen.entities import RunSummary, WorkloadConfig
from loadgen.logger import get_logger
from loadgen.pool import ConnectionPool
from loadgen.report import ResultsReporter
from loadgen.runners.worker import Worker
from loadgen.utils import error_chain
from loadgen.workloads import Workload

logger = get_logger(__name__)


class WorkloadCoordinator:
    def __init__(
        self,
        config: WorkloadConfig,
        pool: ConnectionPool,
        workload: Workload,
        reporter: ResultsReporter,
        counters: GlobalCounters | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config
        self.pool = pool
        self.workload = workload
        self.reporter = reporter
        self.counters = counters or GlobalCounters()
        self.clock = clock
        self.stop_event = threading.Event()
        self.workers: list[Worker] = []

    def stop(self) -> None:
        self.stop_event.set()

    def build_workers(self) -> list[Worker]:
        target = self.config.txns_per_worker
        sampler = ThroughputSampler(
            self.counters,
            interval_s=self.config.sample_interval_s,
            clock=self.clock,
            on_sample=self.reporter.record_sample,
        )
        return [
            Worker(
                index=index,
                config=self.config,
                pool=self.pool,
                workload=self.workload,
                counters=self.counters,
                stop_event=self.stop_event,
                target_txns=target,
                backoff_s=self.config.backoff_s,
                sampler=sampler if index == 0 else None,
            )
            for index in range(self.config.threads)
        ]

    def run(self) -> RunSummary:
        self.workers = self.build_workers()
        logger.info(
            "Starting %d workers, %s transactions per worker",
            len(self.workers),
            self.config.txns_per_worker or "unbounded",
        )
        started = time.perf_counter()
        first_error: BaseException | None = None
        interrupted = False

        with ThreadPoolExecutor(
            max_workers=len(self.workers), thread_name_prefix="loadgen-worker"
        ) as executor:
            futures: dict[Future, Worker] = {
                executor.submit(worker.run): worker for worker in self.workers
            }
            pending = set(futures)
            try:
                while pending:
                    done, pending = wait(pending, return_when=FIRST_EXCEPTION)
                    for future in done:
                        exc = future.exception()
                        if exc is None or first_error is not None:
                            continue
                        first_error = exc
                        logger.error(
                            "Worker %d failed, stopping all workers: %s",
                            futures[future].index,
                            error_chain(exc),
                        )
                        self.stop_event.set()
            except KeyboardInterrupt:
                interrupted = True
                logger.info("Interrupted, waiting for in-flight transactions")
                self.stop_event.set()

        summary = RunSummary(
            total_txns=self.counters.total_txns,
            total_rows=self.counters.total_rows,
            elapsed_s=time.perf_counter() - started,
            interrupted=interrupted,
        )
        self.reporter.print_summary(summary)
        if first_error is not None:
            raise first_error
        return summary
