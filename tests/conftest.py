import re
import threading
from dataclasses import replace
from typing import Callable

import pytest

from loadgen.entities import WorkloadConfig
from loadgen.pool import BackendEndpoint, ConnectionPool

INSERT_VALUES_RE = re.compile(r"^INSERT INTO (\S+) \(v\) VALUES ")
INSERT_SELECT_RE = re.compile(r"^INSERT INTO (\S+) \(v\) SELECT v FROM (\S+)$")
CREATE_TABLE_RE = re.compile(r"^CREATE TABLE IF NOT EXISTS (\S+) ")
TRUNCATE_RE = re.compile(r"^TRUNCATE TABLE (\S+)$")


class FakeBackend:
    """In-memory stand-in for a database server.

    Tracks row counts per table, applies INSERTs only on COMMIT and lets
    tests inject failures for statements matching a predicate.
    """

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.tables: dict[str, int] = {}
        self.statements: list[str] = []
        self.connections: list["FakeConnection"] = []
        self.conninfos: list[str] = []
        self.connect_failures: list[Callable[[str], bool]] = []
        self._rules: list[list] = []

    def fail(
        self,
        predicate: Callable[[str], bool],
        times: int = 1,
        exc: Exception | None = None,
    ) -> "FakeBackend":
        self._rules.append([predicate, times, exc or RuntimeError("injected failure")])
        return self

    def refuse_connections(self, predicate: Callable[[str], bool]) -> "FakeBackend":
        self.connect_failures.append(predicate)
        return self

    def connect(self, conninfo: str) -> "FakeConnection":
        with self.lock:
            self.conninfos.append(conninfo)
            if any(predicate(conninfo) for predicate in self.connect_failures):
                raise OSError(f"connection refused: {conninfo}")
            conn = FakeConnection(self, conninfo)
            self.connections.append(conn)
            return conn

    def check_failure(self, sql: str) -> None:
        with self.lock:
            self.statements.append(sql)
            for rule in self._rules:
                predicate, remaining, exc = rule
                if remaining > 0 and predicate(sql):
                    rule[1] -= 1
                    raise exc

    def rows(self, table: str) -> int:
        with self.lock:
            return self.tables.get(table, 0)


class FakeCursor:
    def __init__(self, rowcount: int = -1) -> None:
        self.rowcount = rowcount


class FakeConnection:
    def __init__(self, backend: FakeBackend, conninfo: str) -> None:
        self.backend = backend
        self.conninfo = conninfo
        self.statements: list[str] = []
        self.params: list[tuple | None] = []
        self.closed = False
        self.in_txn = False
        self.staged: dict[str, int] = {}

    def execute(self, sql: str, params: tuple | None = None) -> FakeCursor:
        self.statements.append(sql)
        self.params.append(params)
        self.backend.check_failure(sql)

        if sql.startswith("BEGIN"):
            self.in_txn = True
            self.staged = {}
            return FakeCursor()
        if sql == "COMMIT":
            with self.backend.lock:
                for table, rows in self.staged.items():
                    self.backend.tables[table] = self.backend.tables.get(table, 0) + rows
            self.in_txn = False
            self.staged = {}
            return FakeCursor()
        if sql == "ROLLBACK":
            self.in_txn = False
            self.staged = {}
            return FakeCursor()

        match = INSERT_VALUES_RE.match(sql)
        if match:
            return self._write(match.group(1), sql.count("('\\x"))
        match = INSERT_SELECT_RE.match(sql)
        if match:
            return self._write(match.group(1), self.backend.rows(match.group(2)))
        match = CREATE_TABLE_RE.match(sql)
        if match:
            with self.backend.lock:
                self.backend.tables.setdefault(match.group(1), 0)
            return FakeCursor()
        match = TRUNCATE_RE.match(sql)
        if match:
            with self.backend.lock:
                self.backend.tables[match.group(1)] = 0
        return FakeCursor()

    def _write(self, table: str, rows: int) -> FakeCursor:
        if self.in_txn:
            self.staged[table] = self.staged.get(table, 0) + rows
            return FakeCursor(rows)
        with self.backend.lock:
            self.backend.tables[table] = self.backend.tables.get(table, 0) + rows
        return FakeCursor(rows)

    def close(self) -> None:
        self.closed = True


def nth_match(prefix: str, n: int) -> Callable[[str], bool]:
    """Predicate that is true only for the n-th statement starting with prefix."""
    seen = {"count": 0}
    lock = threading.Lock()

    def predicate(sql: str) -> bool:
        if not sql.startswith(prefix):
            return False
        with lock:
            seen["count"] += 1
            return seen["count"] == n

    return predicate


class RecordingEvent(threading.Event):
    """Stop event whose waits return immediately and are recorded."""

    def __init__(self) -> None:
        super().__init__()
        self.waits: list[float | None] = []

    def wait(self, timeout: float | None = None) -> bool:
        self.waits.append(timeout)
        return self.is_set()


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def make_config() -> Callable[..., WorkloadConfig]:
    base = WorkloadConfig(
        dsns=("host=db1 dbname=bench",),
        threads=1,
        row_size=64 * 1024,
        txn_size_mb=1,
        database="bench",
        backoff_s=0.0,
    )

    def factory(**overrides) -> WorkloadConfig:
        return replace(base, **overrides)

    return factory


@pytest.fixture
def make_pool(backend):
    def factory(config: WorkloadConfig) -> ConnectionPool:
        return ConnectionPool(
            BackendEndpoint.from_config(config),
            statement_timeout_ms=config.statement_timeout_ms,
            connect=backend.connect,
        )

    return factory
