import csv

from loadgen.entities import RunSummary, ThroughputSample
from loadgen.report import ResultsReporter


class TestResultsReporter:
    def test_print_config_echoes_settings(self, make_config, capsys):
        ResultsReporter(make_config(threads=4, txn_count=40)).print_config()

        out = capsys.readouterr().out
        assert "Number of Threads: 4" in out
        assert "Size of Transaction (MB): 1" in out
        assert "Target Transactions: 40" in out
        assert "Transaction Mode: pessimistic" in out

    def test_rate_sample_line(self, capsys):
        ResultsReporter.print_sample(
            ThroughputSample(elapsed_s=10.0, delta_txns=5, delta_rows=5120)
        )

        assert capsys.readouterr().out == "QPM: 30.00, rows/s 512.00\n"

    def test_pending_sample_line(self, capsys):
        ResultsReporter.print_sample(
            ThroughputSample(elapsed_s=12.0, delta_txns=0, delta_rows=0, pending_rows=3072)
        )

        assert capsys.readouterr().out == "Pending rows: 3072\n"

    def test_summary_line(self, capsys):
        ResultsReporter.print_summary(
            RunSummary(total_txns=40, total_rows=40960, elapsed_s=75.5)
        )

        assert capsys.readouterr().out == (
            "Total transactions: 40, rows: 40960, elapsed: 1m15.500s\n"
        )

    def test_outputs_disabled_by_default(self, make_config):
        reporter = ResultsReporter(make_config())

        assert reporter.save_samples_csv() is None
        assert reporter.save_report(RunSummary(0, 0, 0.0)) is None

    def test_samples_csv(self, make_config, tmp_path, capsys):
        path = tmp_path / "samples.csv"
        reporter = ResultsReporter(make_config(samples_csv=str(path)))
        reporter.record_sample(ThroughputSample(elapsed_s=10.0, delta_txns=2, delta_rows=32))
        reporter.record_sample(
            ThroughputSample(elapsed_s=10.0, delta_txns=0, delta_rows=0, pending_rows=16)
        )

        assert reporter.save_samples_csv() == str(path)

        with open(path, newline="", encoding="utf-8") as file:
            rows = list(csv.DictReader(file))
        assert len(rows) == 2
        assert rows[0]["delta_txns"] == "2"
        assert float(rows[0]["txns_per_minute"]) == 12.0
        assert rows[1]["pending_rows"] == "16"

    def test_markdown_report(self, make_config, tmp_path, capsys):
        path = tmp_path / "report.md"
        reporter = ResultsReporter(make_config(report_md=str(path)))
        reporter.record_sample(ThroughputSample(elapsed_s=10.0, delta_txns=2, delta_rows=32))

        reporter.save_report(RunSummary(total_txns=2, total_rows=32, elapsed_s=10.0))

        text = path.read_text(encoding="utf-8")
        assert text.startswith("# Load Generator Report")
        assert "- Transactions: `2`" in text
        assert "- Peak sampled QPM: `12.00`" in text
        assert "## Throughput Samples" in text
