import csv
from datetime import datetime, UTC

from loadgen.entities import RunSummary, ThroughputSample, WorkloadConfig, WorkloadKind
from loadgen.utils import MetricsUtils


class ResultsReporter:
    def __init__(self, config: WorkloadConfig) -> None:
        self.config = config
        self.samples: list[tuple[str, ThroughputSample]] = []

    def print_config(self) -> None:
        print("=== Configuration ===")
        print(f"Workload: {self.config.workload.value}")
        if self.config.workload is WorkloadKind.INSERT_SELECT:
            print(f"Action: {self.config.action.value}")
        print(f"Number of Threads: {self.config.threads}")
        print(f"Endpoints: {len(self.config.dsns)}")
        print(f"Database: {self.config.database}")
        print(f"Size of Row: {MetricsUtils.format_bytes(self.config.row_size)}")
        print(f"Size of Transaction (MB): {self.config.txn_size_mb}")
        print(f"Rows per Transaction: {self.config.row_count}")
        print(f"Rows per Batch: {self.config.batch_rows}")
        print(f"Transaction Mode: {self.config.txn_mode.value}")
        print(f"Target Transactions: {self.config.txn_count or 'unbounded'}")
        print(f"Statement timeout: {self.config.statement_timeout_ms} ms")
        if self.config.ca_path:
            print(f"CA certificate: {self.config.ca_path}")
        print()

    def record_sample(self, sample: ThroughputSample) -> None:
        taken_at = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%SZ")
        self.samples.append((taken_at, sample))
        self.print_sample(sample)

    @staticmethod
    def print_sample(sample: ThroughputSample) -> None:
        if sample.is_pending:
            print(f"Pending rows: {sample.pending_rows}", flush=True)
            return
        print(
            f"QPM: {sample.txns_per_minute:.2f}, rows/s {sample.rows_per_second:.2f}",
            flush=True,
        )

    @staticmethod
    def print_summary(summary: RunSummary) -> None:
        print(
            f"Total transactions: {summary.total_txns}, "
            f"rows: {summary.total_rows}, "
            f"elapsed: {MetricsUtils.format_duration(summary.elapsed_s)}"
            + (" (interrupted)" if summary.interrupted else ""),
            flush=True,
        )

    def save_samples_csv(self) -> str | None:
        if not self.config.samples_csv:
            return None
        with open(self.config.samples_csv, "w", newline="", encoding="utf-8") as file:
            writer = csv.writer(file)
            writer.writerow(
                [
                    "taken_at",
                    "elapsed_s",
                    "delta_txns",
                    "delta_rows",
                    "txns_per_minute",
                    "rows_per_second",
                    "pending_rows",
                ]
            )
            for taken_at, sample in self.samples:
                writer.writerow(
                    [
                        taken_at,
                        f"{sample.elapsed_s:.6f}",
                        sample.delta_txns,
                        sample.delta_rows,
                        f"{sample.txns_per_minute:.6f}",
                        f"{sample.rows_per_second:.6f}",
                        sample.pending_rows,
                    ]
                )
        return self.config.samples_csv

    def save_report(self, summary: RunSummary) -> str | None:
        if not self.config.report_md:
            return None
        generated_at = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%SZ")
        rate_samples = [sample for _, sample in self.samples if not sample.is_pending]
        peak = max(rate_samples, key=lambda item: item.txns_per_minute, default=None)

        lines: list[str] = []
        lines.append("# Load Generator Report")
        lines.append("")
        lines.append(f"Generated at (UTC): {generated_at}")
        lines.append("")
        lines.append("## Configuration")
        lines.append("")
        lines.append(f"- Workload: `{self.config.workload.value}`")
        lines.append(f"- Threads: `{self.config.threads}`")
        lines.append(f"- Endpoints: `{len(self.config.dsns)}`")
        lines.append(f"- Row size: `{self.config.row_size}` bytes")
        lines.append(f"- Transaction size: `{self.config.txn_size_mb}` MB")
        lines.append(f"- Rows per transaction: `{self.config.row_count}`")
        lines.append(f"- Transaction mode: `{self.config.txn_mode.value}`")
        lines.append(f"- Target transactions: `{self.config.txn_count or 'unbounded'}`")
        lines.append("")
        lines.append("## Totals")
        lines.append("")
        lines.append(f"- Transactions: `{summary.total_txns}`")
        lines.append(f"- Rows: `{summary.total_rows}`")
        lines.append(f"- Elapsed: `{MetricsUtils.format_duration(summary.elapsed_s)}`")
        lines.append(f"- Average QPM: `{summary.txns_per_minute:.2f}`")
        lines.append(f"- Average rows/s: `{summary.rows_per_second:.2f}`")
        if summary.interrupted:
            lines.append("- Run was interrupted before every worker reached its target.")
        if peak is not None:
            lines.append(
                f"- Peak sampled QPM: `{peak.txns_per_minute:.2f}` "
                f"({peak.rows_per_second:.2f} rows/s)"
            )
        lines.append("")

        if self.samples:
            lines.append("## Throughput Samples")
            lines.append("")
            lines.append("| taken_at | elapsed_s | txns | rows | qpm | rows_per_s | pending_rows |")
            lines.append("|---|---:|---:|---:|---:|---:|---:|")
            for taken_at, sample in self.samples:
                lines.append(
                    f"| {taken_at} | {sample.elapsed_s:.2f} | {sample.delta_txns} | "
                    f"{sample.delta_rows} | {sample.txns_per_minute:.2f} | "
                    f"{sample.rows_per_second:.2f} | {sample.pending_rows} |"
                )
            lines.append("")

        with open(self.config.report_md, "w", encoding="utf-8") as file:
            file.write("\n".join(lines))
        return self.config.report_md
