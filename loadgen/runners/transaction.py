from typing import Any, Callable, Iterable, Iterator

from loadgen.counters import GlobalCounters
from loadgen.entities import Batch, TxnMode
from loadgen.errors import (
    BatchError,
    BeginError,
    CommitError,
    RollbackError,
    TransactionError,
)
from loadgen.logger import get_logger
from loadgen.utils import error_chain

logger = get_logger(__name__)


class TransactionRunner:
    """Executes one BEGIN / batches / COMMIT cycle on a connection.

    A transaction either commits and is credited to the counters in full,
    or is rolled back and credits nothing. Rows of executed but uncommitted
    batches are tracked as pending while the transaction is open.
    """

    def __init__(
        self,
        counters: GlobalCounters,
        txn_mode: TxnMode = TxnMode.PESSIMISTIC,
        on_progress: Callable[[], Any] | None = None,
        label: str = "transaction",
    ) -> None:
        self.counters = counters
        self.txn_mode = txn_mode
        self.on_progress = on_progress
        self.label = label

    def run(self, conn: Any, batches: Iterable[Batch]) -> int:
        try:
            conn.execute(self.txn_mode.begin_statement)
        except Exception as exc:
            self._rollback(conn)
            raise BeginError("begin failed") from exc

        written = 0
        try:
            for batch in self._guarded(batches):
                try:
                    cursor = conn.execute(batch.sql)
                except Exception as exc:
                    raise BatchError("insert failed") from exc
                rows = cursor.rowcount if batch.count_from_cursor else batch.rows
                written += rows
                self.counters.add_pending(rows)
                self._notify()

            try:
                conn.execute("COMMIT")
            except Exception as exc:
                raise CommitError("commit failed") from exc
        except TransactionError:
            self.counters.release_pending(written)
            self._rollback(conn)
            raise

        self.counters.release_pending(written)
        self.counters.add_committed(written)
        self._notify()
        return written

    @staticmethod
    def _guarded(batches: Iterable[Batch]) -> Iterator[Batch]:
        # Statements are built lazily; a failure while building one (e.g. the
        # entropy source) belongs to the batch step.
        iterator = iter(batches)
        while True:
            try:
                batch = next(iterator)
            except StopIteration:
                return
            except Exception as exc:
                raise BatchError("generate random value failed") from exc
            yield batch

    def _rollback(self, conn: Any) -> None:
        try:
            conn.execute("ROLLBACK")
        except Exception as exc:
            error = RollbackError("rollback failed")
            error.__cause__ = exc
            logger.warning("%s: %s", self.label, error_chain(error))

    def _notify(self) -> None:
        if self.on_progress is not None:
            self.on_progress()
