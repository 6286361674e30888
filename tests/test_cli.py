"""Tests for the command-line interface."""

import json

import pytest
from click.testing import CliRunner

from parking.cli import cli

FACILITIES_YAML = """
facilities:
  - id: pf001
    name: Central Garage
    weekdays:
      - {start: 0, end: 7, rate: 0.5}
      - {start: 7, end: 24, rate: 2.5}
    weekends:
      - {start: 0, end: 24, rate: 1.8}
"""

SESSIONS_CSV = """customer_id,facility_id,start_time,end_time
c004,pf001,2018-12-16T21:00:00,2018-12-17T10:00:00
c005,pf001,2018-12-17T12:25:00,2018-12-17T13:25:00
"""


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def loaded_db(tmp_path, runner):
    db_path = tmp_path / "parking.db"
    config = tmp_path / "facilities.yaml"
    config.write_text(FACILITIES_YAML)
    sessions_csv = tmp_path / "sessions.csv"
    sessions_csv.write_text(SESSIONS_CSV)
    customers_csv = tmp_path / "customers.csv"
    customers_csv.write_text("customer_id,name\nc004,Ann Peeters\n")

    base = ["--db-path", str(db_path)]
    assert runner.invoke(cli, base + ["database", "init"]).exit_code == 0
    assert runner.invoke(cli, base + ["tariff", "load", "--config", str(config)]).exit_code == 0
    assert runner.invoke(cli, base + ["import", "sessions", "--csv", str(sessions_csv)]).exit_code == 0
    assert runner.invoke(cli, base + ["import", "customers", "--csv", str(customers_csv)]).exit_code == 0
    return db_path


def test_invoices_json(runner, loaded_db):
    result = runner.invoke(cli, ["--db-path", str(loaded_db), "invoices", "pf001", "--json"])

    assert result.exit_code == 0
    data = json.loads(result.output)
    amounts = {row["customer_id"]: row["amount"] for row in data["invoices"]}
    assert amounts == {"c004": "16.4", "c005": "2.5"}
    assert data["invoices"][0]["customer_name"] == "Ann Peeters"


def test_invoices_text_for_one_customer(runner, loaded_db):
    result = runner.invoke(
        cli, ["--db-path", str(loaded_db), "invoices", "pf001", "--customer", "c005", "--breakdown"]
    )

    assert result.exit_code == 0
    assert "c005: 2.5 over 1 session" in result.output
    assert "c004" not in result.output
    assert "weekday" in result.output


def test_invoices_unknown_facility(runner, loaded_db):
    result = runner.invoke(cli, ["--db-path", str(loaded_db), "invoices", "pf999"])

    assert result.exit_code == 1
    assert "Invalid parking facility id 'pf999'" in result.output


def test_invoices_unknown_customer(runner, loaded_db):
    result = runner.invoke(cli, ["--db-path", str(loaded_db), "invoices", "pf001", "--customer", "c999"])

    assert result.exit_code == 1
    assert "No sessions for customer 'c999'" in result.output


def test_database_stats(runner, loaded_db):
    result = runner.invoke(cli, ["--db-path", str(loaded_db), "database", "stats"])

    assert result.exit_code == 0
    assert "Sessions" in result.output
    assert "pf001" in result.output


def test_tariff_list(runner, loaded_db):
    result = runner.invoke(cli, ["--db-path", str(loaded_db), "tariff", "list"])

    assert result.exit_code == 0
    assert "Central Garage" in result.output
    assert "07:00 - 24:00" in result.output


def test_tariff_check_rejects_gaps(runner, tmp_path):
    config = tmp_path / "facilities.yaml"
    config.write_text(FACILITIES_YAML.replace("end: 24, rate: 1.8", "end: 23, rate: 1.8"))

    result = runner.invoke(cli, ["tariff", "check", "--config", str(config)])

    assert result.exit_code == 1
    assert "no rate for hours 23" in result.output


def test_tariff_check_facility_without_id(runner, tmp_path):
    config = tmp_path / "facilities.yaml"
    config.write_text(FACILITIES_YAML.replace("  - id: pf001\n", "  -\n"))

    result = runner.invoke(cli, ["tariff", "check", "--config", str(config)])

    assert result.exit_code == 1
    assert "Facility entry 1 without id" in result.output


def test_tariff_load_unknown_timezone(runner, tmp_path):
    config = tmp_path / "facilities.yaml"
    config.write_text(FACILITIES_YAML.replace("name: Central Garage", "name: Central Garage\n    timezone: Europe/Brussel"))

    result = runner.invoke(cli, ["--db-path", str(tmp_path / "parking.db"), "tariff", "load", "--config", str(config)])

    assert result.exit_code == 1
    assert "Unknown timezone 'Europe/Brussel'" in result.output


def test_invoices_json_keeps_customer_names_verbatim(runner, loaded_db, tmp_path):
    customers_csv = tmp_path / "renamed.csv"
    customers_csv.write_text("customer_id,name\nc004,[bold]Ann[/bold] " + "Peeters " * 12 + "\n")
    runner.invoke(cli, ["--db-path", str(loaded_db), "import", "customers", "--csv", str(customers_csv)])

    result = runner.invoke(cli, ["--db-path", str(loaded_db), "invoices", "pf001", "--json"])

    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["invoices"][0]["customer_name"] == "[bold]Ann[/bold] " + ("Peeters " * 12).strip()
