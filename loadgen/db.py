from typing import Any

from loadgen.batch import BatchBuilder
from loadgen.counters import GlobalCounters
from loadgen.entities import SELECT_SOURCE_SCHEMA, WorkloadConfig
from loadgen.errors import SchemaError, TransactionError
from loadgen.logger import get_logger
from loadgen.pool import ConnectionPool
from loadgen.runners.transaction import TransactionRunner
from loadgen.utils import error_chain

logger = get_logger(__name__)


class DatabaseManager:
    """Schema bootstrap, issued once on the first endpoint before workers start."""

    def __init__(self, config: WorkloadConfig, pool: ConnectionPool) -> None:
        self.config = config
        self.pool = pool

    def create_database(self) -> None:
        self._execute_ddl([f"CREATE SCHEMA IF NOT EXISTS {self.config.database}"])

    def create_destination_tables(self, with_key: bool = True) -> None:
        columns = "k BIGSERIAL PRIMARY KEY, v BYTEA" if with_key else "v BYTEA"
        self._execute_ddl(
            [
                f"CREATE TABLE IF NOT EXISTS {self.config.destination_table(i)} ({columns})"
                for i in range(self.config.threads)
            ]
        )

    def prepare_select_source(self, builder: BatchBuilder) -> int:
        """Recreate the insert-select source table with one transaction of rows."""
        table = self.config.select_source_table
        self._execute_ddl(
            [
                f"CREATE SCHEMA IF NOT EXISTS {SELECT_SOURCE_SCHEMA}",
                f"CREATE TABLE IF NOT EXISTS {table} (v BYTEA)",
                f"TRUNCATE TABLE {table}",
            ]
        )

        runner = TransactionRunner(
            GlobalCounters(), self.config.txn_mode, label="prepare"
        )
        conn = self.pool.admin_connection()
        try:
            rows = runner.run(
                conn, builder.insert_batches(table, self.config.row_count)
            )
        except TransactionError as exc:
            raise SchemaError(f"populating {table} failed: {error_chain(exc)}") from exc
        finally:
            self.pool.release(conn)
        logger.info("Prepared %s with %d rows", table, rows)
        return rows

    def _execute_ddl(self, statements: list[str]) -> None:
        conn = self.pool.admin_connection()
        try:
            for statement in statements:
                logger.debug("DDL: %s", statement)
                self._execute(conn, statement)
        finally:
            self.pool.release(conn)

    @staticmethod
    def _execute(conn: Any, statement: str) -> None:
        try:
            conn.execute(statement)
        except Exception as exc:
            raise SchemaError(f"{statement!r} failed") from exc
