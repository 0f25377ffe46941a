from typing import Iterator

from loadgen.entities import INSERT_BATCH_ROWS, Batch
from loadgen.payload import PayloadGenerator


class BatchBuilder:
    """Turns a row count into the statements of one transaction."""

    def __init__(
        self,
        row_size: int,
        batch_rows: int = INSERT_BATCH_ROWS,
        generator: PayloadGenerator | None = None,
    ) -> None:
        self.row_size = row_size
        self.batch_rows = batch_rows
        self.generator = generator or PayloadGenerator()

    def split(self, row_count: int) -> list[int]:
        if row_count < 1:
            return []
        full, rest = divmod(row_count, self.batch_rows)
        sizes = [self.batch_rows] * full
        if rest:
            sizes.append(rest)
        return sizes

    def insert_batches(self, table: str, row_count: int) -> Iterator[Batch]:
        # Values are generated lazily so a generator failure surfaces
        # while the transaction is open.
        for size in self.split(row_count):
            yield Batch(sql=self._build_insert(table, size), rows=size)

    @staticmethod
    def insert_select(dest: str, source: str, row_count: int) -> Batch:
        return Batch(
            sql=f"INSERT INTO {dest} (v) SELECT v FROM {source}",
            rows=row_count,
            count_from_cursor=True,
        )

    def _build_insert(self, table: str, rows: int) -> str:
        values = [
            f"('\\x{self.generator.generate_hex(self.row_size)}')"
            for _ in range(rows)
        ]
        return f"INSERT INTO {table} (v) VALUES " + ",".join(values)
