import json
from datetime import date, timedelta

import pytest
from typer.testing import CliRunner

from finance_signals.cli import app

runner = CliRunner()


@pytest.fixture
def export(tmp_path):
    rows = [
        {"id": f"pay-{m}", "amount": 2500, "date": f"2024-{m:02d}-01", "category": "Income"}
        for m in (1, 2, 3)
    ]
    start = date(2024, 1, 5)
    rows += [
        {
            "id": f"nf-{i}",
            "amount": -15.99,
            "date": (start + timedelta(days=30 * i)).isoformat(),
            "category": "Streaming",
            "name": "NETFLIX.COM",
            "merchantName": "Netflix",
        }
        for i in range(3)
    ]
    rows += [
        {"id": "d1", "amount": -100, "date": "2024-02-10", "category": "dining"},
        {"id": "d2", "amount": -180, "date": "2024-03-10", "category": "DINING"},
    ]
    path = tmp_path / "export.json"
    path.write_text(json.dumps(rows), encoding="utf-8")
    return path


def _json(result):
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


def test_signals_json(export):
    payload = _json(
        runner.invoke(app, ["signals", "--transactions", str(export), "--today", "2024-03-20"])
    )

    assert payload[-1]["type"] == "CASHFLOW"
    assert payload[-1]["monthlyIncome"] == 2500.0
    types = {p["type"] for p in payload}
    assert {"CATEGORY_TREND", "RECURRING_CHARGE"} <= types


def test_today_falls_back_to_environment(export, monkeypatch):
    monkeypatch.setenv("FINANCE_SIGNALS_TODAY", "2024-02-15")
    payload = _json(runner.invoke(app, ["signals", "--transactions", str(export)]))
    cashflow = payload[-1]
    assert cashflow["monthlyExpenses"] == 115.99


def test_dashboard_json_and_table(export):
    payload = _json(
        runner.invoke(app, ["dashboard", "--transactions", str(export), "--month", "2024-03"])
    )
    assert payload["targetMonth"] == "2024-03"
    assert payload["categoryBreakdown"][0] == {"category": "Dining", "amount": 180.0}

    result = runner.invoke(
        app, ["dashboard", "--transactions", str(export), "--month", "2024-03", "--table"]
    )
    assert result.exit_code == 0, result.output
    assert "Dining" in result.stdout


def test_recurring_with_known_labels(export, tmp_path):
    known = tmp_path / "known.json"
    known.write_text(json.dumps([{"name": "Netflix", "status": "cancelled", "id": "k1"}]))

    payload = _json(
        runner.invoke(app, ["recurring", "--transactions", str(export), "--known", str(known)])
    )

    (charge,) = payload["recurringCharges"]
    assert charge["id"] == "k1"
    assert charge["status"] == "cancelled"
    assert payload["monthlyTotal"] == 0.0

    table = runner.invoke(app, ["recurring", "--transactions", str(export), "--table"])
    assert table.exit_code == 0, table.output
    assert "Netflix" in table.stdout


def test_recurring_rejects_unknown_bucket(export):
    result = runner.invoke(
        app, ["recurring", "--transactions", str(export), "--confidence", "certain"]
    )
    assert result.exit_code == 1
    assert "Unsupported confidence bucket" in result.output


def test_goal_forecast_and_packet(export):
    base = [
        "goal",
        "--transactions",
        str(export),
        "--target-amount",
        "6000",
        "--target-date",
        "2024-09-11",
        "--today",
        "2024-03-15",
    ]

    forecast = _json(runner.invoke(app, base))
    assert forecast["forecast"]["monthsRemaining"] == 6
    assert forecast["feasibility"]["requiredPerMonth"] == 1000.0
    assert len(forecast["historySummary"]) == 3

    packet = _json(runner.invoke(app, [*base, "--packet"]))
    assert packet["goal"]["months_remaining"] == 6
    assert packet["recurring_charges"] == [
        {"name": "Netflix", "amount": 15.99, "frequency": "monthly"}
    ]


def test_insights(export):
    payload = _json(
        runner.invoke(app, ["insights", "--transactions", str(export), "--today", "2024-03-20"])
    )
    priorities = [i["priority"] for i in payload]
    assert priorities == sorted(priorities)
    assert any(i["signalId"] == "CASHFLOW" for i in payload)


def test_missing_file_exits_nonzero(tmp_path):
    result = runner.invoke(app, ["signals", "--transactions", str(tmp_path / "nope.csv")])
    assert result.exit_code == 1
    assert "File not found" in result.output


def test_invalid_rows_exit_nonzero(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("id,amount,date\na,ten,2024-01-01\n", encoding="utf-8")
    result = runner.invoke(app, ["dashboard", "--transactions", str(path), "--month", "2024-01"])
    assert result.exit_code == 1
    assert "row 0" in result.output


def test_no_subcommand_shows_help():
    result = runner.invoke(app, [])
    assert "Usage" in result.output


def test_non_object_json_rows_exit_nonzero(tmp_path):
    path = tmp_path / "rows.json"
    path.write_text("[1, 2]", encoding="utf-8")
    result = runner.invoke(app, ["signals", "--transactions", str(path), "--today", "2024-03-01"])
    assert result.exit_code == 1
    assert "row 0 is not an object" in result.output
