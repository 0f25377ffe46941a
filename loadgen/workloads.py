from typing import Iterable

from loadgen.batch import BatchBuilder
from loadgen.db import DatabaseManager
from loadgen.entities import Batch, WorkloadConfig, WorkloadKind
from loadgen.errors import ConfigError


class Workload:
    kind: WorkloadKind

    def __init__(self, config: WorkloadConfig) -> None:
        self.config = config

    def prepare_schema(self, db: DatabaseManager) -> None:
        raise NotImplementedError

    def plan(self, worker_index: int, builder: BatchBuilder) -> Iterable[Batch]:
        raise NotImplementedError


class InsertWorkload(Workload):
    """Multi-row INSERTs of freshly generated random values."""

    kind = WorkloadKind.INSERT

    def prepare_schema(self, db: DatabaseManager) -> None:
        db.create_database()
        db.create_destination_tables(with_key=True)

    def plan(self, worker_index: int, builder: BatchBuilder) -> Iterable[Batch]:
        return builder.insert_batches(
            self.config.destination_table(worker_index), self.config.row_count
        )


class InsertSelectWorkload(Workload):
    """One INSERT ... SELECT per transaction, copying the whole source table."""

    kind = WorkloadKind.INSERT_SELECT

    def prepare_schema(self, db: DatabaseManager) -> None:
        db.create_database()
        db.create_destination_tables(with_key=False)

    def prepare_source(self, db: DatabaseManager, builder: BatchBuilder) -> int:
        return db.prepare_select_source(builder)

    def plan(self, worker_index: int, builder: BatchBuilder) -> Iterable[Batch]:
        return [
            builder.insert_select(
                self.config.destination_table(worker_index),
                self.config.select_source_table,
                self.config.row_count,
            )
        ]


WORKLOADS: dict[WorkloadKind, type[Workload]] = {
    WorkloadKind.INSERT: InsertWorkload,
    WorkloadKind.INSERT_SELECT: InsertSelectWorkload,
}


def build_workload(config: WorkloadConfig) -> Workload:
    try:
        workload_cls = WORKLOADS[WorkloadKind(config.workload)]
    except (KeyError, ValueError) as exc:
        raise ConfigError(f"Unknown workload: {config.workload}") from exc
    return workload_cls(config)
