import re
from dataclasses import dataclass
from enum import Enum

from loadgen.errors import ConfigError

INSERT_BATCH_ROWS = 1024
SELECT_SOURCE_SCHEMA = "db_select"
IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class TxnMode(str, Enum):
    OPTIMISTIC = "optimistic"
    PESSIMISTIC = "pessimistic"

    @property
    def begin_statement(self) -> str:
        # SERIALIZABLE aborts conflicting writers at commit time, READ COMMITTED
        # makes them wait on row locks.
        if self is TxnMode.OPTIMISTIC:
            return "BEGIN ISOLATION LEVEL SERIALIZABLE"
        return "BEGIN ISOLATION LEVEL READ COMMITTED"


class WorkloadKind(str, Enum):
    INSERT = "insert"
    INSERT_SELECT = "insert-select"


class Action(str, Enum):
    PREPARE = "prepare"
    RUN = "run"


@dataclass(frozen=True)
class WorkloadConfig:
    dsns: tuple[str, ...]
    threads: int = 1
    row_size: int = 1024
    txn_size_mb: int = 8
    txn_count: int = 0
    txn_mode: TxnMode = TxnMode.PESSIMISTIC
    database: str = "test"
    workload: WorkloadKind = WorkloadKind.INSERT
    action: Action = Action.RUN
    ca_path: str | None = None
    batch_rows: int = INSERT_BATCH_ROWS
    statement_timeout_ms: int = 0
    sample_interval_s: float = 10.0
    backoff_s: float = 1.0
    samples_csv: str | None = None
    report_md: str | None = None
    log_level: str = "INFO"

    @property
    def txn_size_bytes(self) -> int:
        return self.txn_size_mb * 1024 * 1024

    @property
    def row_count(self) -> int:
        if self.row_size <= 0:
            return 0
        return self.txn_size_bytes // self.row_size

    @property
    def txns_per_worker(self) -> int:
        # Remainder transactions are dropped.
        return self.txn_count // self.threads

    @property
    def select_source_table(self) -> str:
        return f"{SELECT_SOURCE_SCHEMA}.table_select_{self.txn_size_mb}"

    def destination_table(self, worker_index: int) -> str:
        return f"{self.database}.table_{worker_index}"

    def validate(self) -> None:
        if not self.dsns or not all(dsn.strip() for dsn in self.dsns):
            raise ConfigError("At least one non-empty DSN is required.")
        if self.threads < 1:
            raise ConfigError("threads must be > 0.")
        if self.row_size < 1:
            raise ConfigError("row size must be > 0.")
        if self.txn_size_mb < 1:
            raise ConfigError("transaction size must be >= 1 MB.")
        if self.row_count < 1:
            raise ConfigError(
                f"Transaction of {self.txn_size_bytes} bytes holds no row "
                f"of {self.row_size} bytes."
            )
        if self.batch_rows < 1:
            raise ConfigError("batch rows must be > 0.")
        if self.txn_count < 0:
            raise ConfigError("transaction count must be >= 0.")
        if 0 < self.txn_count < self.threads:
            raise ConfigError(
                "transaction count must be 0 (unbounded) or >= threads, "
                "otherwise every worker gets a target of 0 and never stops."
            )
        if not IDENTIFIER_RE.match(self.database):
            raise ConfigError(
                "Invalid database name. Use [A-Za-z_][A-Za-z0-9_]*."
            )
        if self.statement_timeout_ms < 0:
            raise ConfigError("statement timeout must be >= 0.")
        if self.sample_interval_s <= 0:
            raise ConfigError("sample interval must be > 0.")
        if self.backoff_s < 0:
            raise ConfigError("backoff must be >= 0.")


@dataclass(frozen=True)
class Batch:
    sql: str
    rows: int
    # Credit the cursor rowcount instead of `rows` (INSERT ... SELECT).
    count_from_cursor: bool = False


@dataclass(frozen=True)
class ThroughputSample:
    elapsed_s: float
    delta_txns: int
    delta_rows: int
    pending_rows: int = 0

    @property
    def is_pending(self) -> bool:
        return self.delta_txns == 0

    @property
    def txns_per_minute(self) -> float:
        if self.is_pending or self.elapsed_s <= 0:
            return 0.0
        return self.delta_txns * 60 / self.elapsed_s

    @property
    def rows_per_second(self) -> float:
        if self.is_pending or self.elapsed_s <= 0:
            return 0.0
        return self.delta_rows / self.elapsed_s


@dataclass
class RunSummary:
    total_txns: int
    total_rows: int
    elapsed_s: float
    interrupted: bool = False

    @property
    def txns_per_minute(self) -> float:
        if self.elapsed_s <= 0:
            return 0.0
        return self.total_txns * 60 / self.elapsed_s

    @property
    def rows_per_second(self) -> float:
        if self.elapsed_s <= 0:
            return 0.0
        return self.total_rows / self.elapsed_s
