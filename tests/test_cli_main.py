"""Tests for the top-level command group."""

from repairshop.cli.main import cli


def test_help_lists_groups(cli_runner):
    result = cli_runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    for group in ("customer", "job", "quote", "invoice", "settings", "submit", "track"):
        assert group in result.output


def test_db_path_from_environment(cli_runner, temp_db, monkeypatch):
    monkeypatch.setenv("REPAIRSHOP_DB_PATH", temp_db.database_path)

    result = cli_runner.invoke(cli, ["customer", "list"])

    assert result.exit_code == 0
    assert "No customers found" in result.output


def test_verbose_flag_is_accepted(cli_runner, temp_db):
    result = cli_runner.invoke(cli, ["-vv", "--db-path", temp_db.database_path, "job", "list"])

    assert result.exit_code == 0
    assert "No jobs found" in result.output
