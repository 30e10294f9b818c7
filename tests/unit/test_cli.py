"""CLI command tests for erschema."""

import json

import pytest
from typer.testing import CliRunner

from erschema.cli.commands.reverse import build_options
from erschema.cli.context import resolve_dialect_name
from erschema.cli.main import app
from erschema.core.types import TableNaming
from erschema.tracker import load_journal

runner = CliRunner()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep connection settings of the calling shell out of the tests."""
    for name in ("ERSCHEMA_URL", "ERSCHEMA_DIALECT", "ERSCHEMA_USER", "ERSCHEMA_PASSWORD"):
        monkeypatch.delenv(name, raising=False)


class TestVersionCommand:
    """Test the version command."""

    def test_version_output(self) -> None:
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "erschema v" in result.stdout


class TestDialectsCommand:
    """Test the dialects command."""

    def test_dialects_json(self) -> None:
        result = runner.invoke(app, ["--json", "dialects"])
        assert result.exit_code == 0
        rows = {row["name"]: row for row in json.loads(result.stdout)}
        assert set(rows) == {"MySQL", "PostgreSQL", "Oracle", "SQLite"}
        assert rows["MySQL"]["casing"] == "UPPERCASE"
        assert "VARCHAR2" in rows["Oracle"]["data_types"]

    def test_dialects_table(self) -> None:
        result = runner.invoke(app, ["dialects"])
        assert result.exit_code == 0
        assert "SQLite" in result.stdout


class TestReverseCommand:
    """Test the reverse command."""

    def test_reverse_json(self, sqlite_db_url: str) -> None:
        result = runner.invoke(app, ["--url", sqlite_db_url, "--json", "reverse"])
        assert result.exit_code == 0
        output = json.loads(result.stdout)
        assert output["dialect"] == "SQLite"
        assert [t["name"] for t in output["tables"]] == ["customer", "orders"]
        assert output["relations"][0]["name"] == "fk_orders_customer"
        assert output["views"][0]["name"] == "big_orders"
        assert output["warnings"] == []

    def test_reverse_table_output(self, sqlite_db_url: str) -> None:
        result = runner.invoke(app, ["--url", sqlite_db_url, "reverse"])
        assert result.exit_code == 0
        assert "customer" in result.stdout
        assert "big_orders (id, customer_id, total)" in result.stdout

    def test_skip_views(self, sqlite_db_url: str) -> None:
        result = runner.invoke(app, ["-u", sqlite_db_url, "-j", "reverse", "--skip-views"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["views"] == []

    def test_single_table(self, sqlite_db_url: str) -> None:
        result = runner.invoke(app, ["-u", sqlite_db_url, "-j", "reverse", "-t", "orders"])
        assert result.exit_code == 0
        output = json.loads(result.stdout)
        assert [t["name"] for t in output["tables"]] == ["orders"]
        assert len(output["warnings"]) == 1

    def test_journal_file(self, sqlite_db_url: str, tmp_path) -> None:
        journal = tmp_path / "shop.json"
        result = runner.invoke(
            app, ["--url", sqlite_db_url, "--json", "reverse", "--journal", str(journal)]
        )
        assert result.exit_code == 0
        events = load_journal(journal.read_text())
        assert events[0].operation == "add_table"
        assert events[0].after["name"] == "customer"

    def test_missing_url(self) -> None:
        result = runner.invoke(app, ["--dialect", "MySQL", "--json", "reverse"])
        assert result.exit_code == 1
        assert "No database URL" in json.loads(result.stdout)["error"]

    def test_unknown_dialect(self, sqlite_db_url: str) -> None:
        result = runner.invoke(
            app, ["--url", sqlite_db_url, "--dialect", "nosuch", "--json", "reverse"]
        )
        assert result.exit_code == 1
        error = json.loads(result.stdout)
        assert error["error"] == "ElementNotFoundError"
        assert "SQLite" in error["context"]["available"]

    def test_unreachable_database(self, tmp_path) -> None:
        url = f"sqlite:///{tmp_path / 'missing' / 'shop.db'}"
        result = runner.invoke(app, ["--url", url, "--json", "reverse"])
        assert result.exit_code == 1
        assert json.loads(result.stdout)["error"] == "ConnectionRefusedError"


class TestScriptCommand:
    """Test the script command."""

    def test_script_same_dialect(self, sqlite_db_url: str) -> None:
        result = runner.invoke(app, ["--url", sqlite_db_url, "script"])
        assert result.exit_code == 0
        lines = result.stdout.splitlines()
        assert lines[0].startswith("CREATE TABLE customer (")
        assert all(line.endswith(";") for line in lines)
        assert "REFERENCES customer (id) ON DELETE CASCADE" in result.stdout

    def test_script_other_target(self, sqlite_db_url: str) -> None:
        result = runner.invoke(
            app, ["--url", sqlite_db_url, "--json", "script", "--target", "PostgreSQL"]
        )
        assert result.exit_code == 0
        output = json.loads(result.stdout)
        assert output["dialect"] == "PostgreSQL"
        assert output["statements"][0].startswith("CREATE TABLE customer (id INTEGER NOT NULL")
        assert any("ADD CONSTRAINT fk_orders_customer" in s for s in output["statements"])

    def test_custom_terminator(self, sqlite_db_url: str) -> None:
        result = runner.invoke(app, ["--url", sqlite_db_url, "script", "--terminator", " GO"])
        assert result.exit_code == 0
        assert result.stdout.splitlines()[0].endswith(" GO")


class TestHelpers:
    """Tests for option handling."""

    def test_dialect_from_url(self) -> None:
        assert resolve_dialect_name(None, "mysql+pymysql://root@localhost/shop") == "mysql"
        assert resolve_dialect_name("Oracle", "sqlite://") == "Oracle"

    def test_no_dialect(self) -> None:
        with pytest.raises(ValueError):
            resolve_dialect_name(None, None)

    def test_build_options(self) -> None:
        options = build_options(["shop"], ["orders"], include_schema=True, skip_views=True)
        assert options.table_naming == TableNaming.INCLUDE_SCHEMA
        assert options.table_entries[0].schema_name == "shop"
        assert options.skip_views

    def test_tables_of_several_schemas_use_default(self) -> None:
        options = build_options(["a", "b"], ["orders"], include_schema=False, skip_views=False)
        assert options.table_entries[0].schema_name is None
