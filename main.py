import sys

from loadgen.batch import BatchBuilder
from loadgen.cli import CLI
from loadgen.db import DatabaseManager
from loadgen.entities import Action, RunSummary, WorkloadConfig
from loadgen.errors import LoadgenError
from loadgen.logger import configure_logging, get_logger
from loadgen.pool import ConnectionPool
from loadgen.report import ResultsReporter
from loadgen.runners.coordinator import WorkloadCoordinator
from loadgen.utils import error_chain
from loadgen.workloads import InsertSelectWorkload, build_workload

logger = get_logger("loadgen")


class App:
    def __init__(self, config: WorkloadConfig, pool: ConnectionPool | None = None) -> None:
        self.config = config
        self.pool = pool or ConnectionPool.from_config(config)
        self.db = DatabaseManager(config, self.pool)
        self.workload = build_workload(config)
        self.reporter = ResultsReporter(config)

    def run(self) -> RunSummary | None:
        self.reporter.print_config()

        if (
            isinstance(self.workload, InsertSelectWorkload)
            and self.config.action is Action.PREPARE
        ):
            builder = BatchBuilder(self.config.row_size, self.config.batch_rows)
            rows = self.workload.prepare_source(self.db, builder)
            print(f"Prepared {self.config.select_source_table}: {rows} rows")
            return None

        self.workload.prepare_schema(self.db)
        coordinator = WorkloadCoordinator(
            self.config, self.pool, self.workload, self.reporter
        )
        try:
            summary = coordinator.run()
        finally:
            csv_path = self.reporter.save_samples_csv()
            if csv_path:
                print(f"Samples CSV saved: {csv_path}")

        report_path = self.reporter.save_report(summary)
        if report_path:
            print(f"Report saved: {report_path}")
        return summary


def main() -> None:
    config = CLI.parse_config()
    configure_logging(config.log_level)
    try:
        App(config).run()
    except LoadgenError as exc:
        logger.error("Fatal: %s", error_chain(exc))
        sys.exit(1)


if __name__ == "__main__":
    main()
