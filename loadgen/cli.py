import argparse
import os

from dotenv import load_dotenv

from loadgen.entities import (
    INSERT_BATCH_ROWS,
    Action,
    TxnMode,
    WorkloadConfig,
    WorkloadKind,
)
from loadgen.errors import ConfigError


load_dotenv()


class CLI:
    @staticmethod
    def build_parser() -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            description=(
                "Transactional write load generator: worker threads run "
                "batched INSERT or INSERT ... SELECT transactions and report "
                "sustained throughput."
            )
        )
        parser.add_argument(
            "--threads",
            type=int,
            default=1,
            help="Number of worker threads (one connection and one table each).",
        )
        parser.add_argument(
            "--row-size",
            type=int,
            default=1024,
            help="Size of one row value in bytes.",
        )
        parser.add_argument(
            "--txn-size-mb",
            type=int,
            default=8,
            help="Size of one transaction in MB.",
        )
        parser.add_argument(
            "--txn-count",
            type=int,
            default=0,
            help=(
                "Total transactions to run, split evenly across threads "
                "(0 runs until interrupted)."
            ),
        )
        parser.add_argument(
            "--txn-mode",
            choices=[mode.value for mode in TxnMode],
            default=TxnMode.PESSIMISTIC.value,
            help="Concurrency control requested when the transaction begins.",
        )
        parser.add_argument(
            "--use-txn-file",
            action="store_true",
            help="Shorthand for --txn-mode optimistic.",
        )
        parser.add_argument(
            "--dsn",
            default=os.getenv("PG_DSN"),
            help="PostgreSQL DSN, or several separated by comma (or set PG_DSN).",
        )
        parser.add_argument(
            "--database",
            default="test",
            help="Schema holding the per-thread destination tables.",
        )
        parser.add_argument(
            "--workload",
            choices=[kind.value for kind in WorkloadKind],
            default=WorkloadKind.INSERT.value,
            help="Workload shape.",
        )
        parser.add_argument(
            "--action",
            choices=[action.value for action in Action],
            default=Action.RUN.value,
            help="insert-select only: prepare the source table, or run the workload.",
        )
        parser.add_argument(
            "--ca-path",
            default=os.getenv("PG_CA_PATH"),
            help="Root CA certificate used to verify the server (or set PG_CA_PATH).",
        )
        parser.add_argument(
            "--batch-rows",
            type=int,
            default=INSERT_BATCH_ROWS,
            help="Maximum rows per INSERT statement.",
        )
        parser.add_argument(
            "--statement-timeout-ms",
            type=int,
            default=0,
            help="Per-session statement_timeout in ms (0 disables timeout).",
        )
        parser.add_argument(
            "--sample-interval",
            type=float,
            default=10.0,
            help="Seconds between throughput samples.",
        )
        parser.add_argument(
            "--samples-csv",
            default=None,
            help="Optional CSV file for the throughput samples.",
        )
        parser.add_argument(
            "--report-md",
            default=None,
            help="Optional Markdown report file path.",
        )
        parser.add_argument(
            "--log-level",
            default=os.getenv("LOADGEN_LOG_LEVEL", "INFO"),
            help="Logging level for diagnostics on stderr.",
        )
        return parser

    @staticmethod
    def parse_config(argv: list[str] | None = None) -> WorkloadConfig:
        parser = CLI.build_parser()
        args = parser.parse_args(argv)
        if not args.dsn:
            parser.error("You must pass --dsn or set PG_DSN.")

        txn_mode = TxnMode.OPTIMISTIC if args.use_txn_file else TxnMode(args.txn_mode)
        config = WorkloadConfig(
            dsns=tuple(dsn.strip() for dsn in args.dsn.split(",")),
            threads=args.threads,
            row_size=args.row_size,
            txn_size_mb=args.txn_size_mb,
            txn_count=args.txn_count,
            txn_mode=txn_mode,
            database=args.database,
            workload=WorkloadKind(args.workload),
            action=Action(args.action),
            ca_path=args.ca_path or None,
            batch_rows=args.batch_rows,
            statement_timeout_ms=args.statement_timeout_ms,
            sample_interval_s=args.sample_interval,
            samples_csv=args.samples_csv,
            report_md=args.report_md,
            log_level=args.log_level,
        )
        try:
            config.validate()
        except ConfigError as exc:
            parser.error(str(exc))
        return config
