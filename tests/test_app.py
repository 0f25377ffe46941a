from unittest.mock import patch

import pytest

import main
from loadgen.entities import Action, WorkloadKind
from loadgen.errors import SchemaError


class TestApp:
    def test_insert_run_end_to_end(self, backend, make_config, make_pool, capsys):
        config = make_config(threads=2, txn_count=4)

        summary = main.App(config, pool=make_pool(config)).run()

        out = capsys.readouterr().out
        assert summary.total_txns == 4
        assert "=== Configuration ===" in out
        assert "Total transactions: 4" in out
        assert backend.rows("bench.table_0") == 2 * config.row_count

    def test_insert_select_prepare_only_populates_source(
        self, backend, make_config, make_pool, capsys
    ):
        config = make_config(workload=WorkloadKind.INSERT_SELECT, action=Action.PREPARE)

        result = main.App(config, pool=make_pool(config)).run()

        assert result is None
        assert backend.rows(config.select_source_table) == config.row_count
        assert "bench.table_0" not in backend.tables
        assert f"Prepared {config.select_source_table}" in capsys.readouterr().out

    def test_writes_optional_outputs(self, make_config, make_pool, tmp_path, capsys):
        config = make_config(
            txn_count=1,
            samples_csv=str(tmp_path / "s.csv"),
            report_md=str(tmp_path / "r.md"),
        )

        main.App(config, pool=make_pool(config)).run()

        assert (tmp_path / "s.csv").exists()
        assert (tmp_path / "r.md").exists()


class TestMain:
    def test_structural_error_exits_non_zero(self, make_config, caplog):
        config = make_config()
        with patch.object(main.CLI, "parse_config", return_value=config), patch.object(
            main.App, "run", side_effect=SchemaError("cannot create table")
        ), patch.object(main, "configure_logging"):
            with pytest.raises(SystemExit) as excinfo:
                main.main()

        assert excinfo.value.code == 1
        assert "Fatal: cannot create table" in caplog.text

    def test_connection_refused_exits_non_zero(self, make_config, make_pool, backend):
        backend.refuse_connections(lambda conninfo: True)
        config = make_config()
        pool = make_pool(config)

        with patch.object(main.CLI, "parse_config", return_value=config), patch.object(
            main.ConnectionPool, "from_config", return_value=pool
        ), patch.object(main, "configure_logging"):
            with pytest.raises(SystemExit) as excinfo:
                main.main()

        assert excinfo.value.code == 1
