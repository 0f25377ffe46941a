from dataclasses import dataclass
from typing import Any, Callable

import psycopg
from psycopg.conninfo import make_conninfo

from loadgen.entities import WorkloadConfig
from loadgen.errors import BackendConnectionError
from loadgen.logger import get_logger

logger = get_logger(__name__)

# SET takes no bind parameters; set_config accepts the value as a function argument.
STATEMENT_TIMEOUT_SQL = "SELECT set_config('statement_timeout', %s, false)"


@dataclass(frozen=True)
class BackendEndpoint:
    dsn: str
    ca_path: str | None = None

    @property
    def conninfo(self) -> str:
        if not self.ca_path:
            return self.dsn
        return make_conninfo(self.dsn, sslrootcert=self.ca_path, sslmode="verify-ca")

    @classmethod
    def from_config(cls, config: WorkloadConfig) -> list["BackendEndpoint"]:
        return [cls(dsn=dsn.strip(), ca_path=config.ca_path) for dsn in config.dsns]


def _connect(conninfo: str) -> Any:
    # BEGIN/COMMIT are issued explicitly, so the driver must not open
    # transactions on its own.
    return psycopg.connect(conninfo, autocommit=True)


class ConnectionPool:
    """Hands out one long-lived connection per worker index.

    Workers are spread over the endpoints round-robin; a connection is never
    shared between workers.
    """

    def __init__(
        self,
        endpoints: list[BackendEndpoint],
        statement_timeout_ms: int = 0,
        connect: Callable[[str], Any] = _connect,
    ) -> None:
        if not endpoints:
            raise BackendConnectionError("No backend endpoints configured.")
        self.endpoints = endpoints
        self.statement_timeout_ms = statement_timeout_ms
        self._connect = connect

    @classmethod
    def from_config(cls, config: WorkloadConfig, **kwargs: Any) -> "ConnectionPool":
        return cls(
            BackendEndpoint.from_config(config),
            statement_timeout_ms=config.statement_timeout_ms,
            **kwargs,
        )

    def endpoint_index(self, worker_index: int) -> int:
        return worker_index % len(self.endpoints)

    def endpoint_for(self, worker_index: int) -> BackendEndpoint:
        return self.endpoints[self.endpoint_index(worker_index)]

    def acquire(self, worker_index: int) -> Any:
        endpoint_index = self.endpoint_index(worker_index)
        try:
            conn = self._connect(self.endpoints[endpoint_index].conninfo)
        except Exception as exc:
            raise BackendConnectionError(
                f"worker {worker_index} cannot connect to endpoint #{endpoint_index}"
            ) from exc
        if self.statement_timeout_ms > 0:
            try:
                conn.execute(
                    STATEMENT_TIMEOUT_SQL, (str(self.statement_timeout_ms),)
                )
            except Exception as exc:
                self.release(conn)
                raise BackendConnectionError(
                    f"worker {worker_index} cannot set statement_timeout"
                ) from exc
        logger.debug("Worker %d connected to endpoint #%d", worker_index, endpoint_index)
        return conn

    def admin_connection(self) -> Any:
        """Connection to the first endpoint, used for schema bootstrap."""
        try:
            return self._connect(self.endpoints[0].conninfo)
        except Exception as exc:
            raise BackendConnectionError("cannot connect to the first endpoint") from exc

    @staticmethod
    def release(conn: Any) -> None:
        if conn is None:
            return
        try:
            conn.close()
        except Exception as exc:
            logger.warning("Closing connection failed: %s", exc)
