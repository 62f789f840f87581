"""Tests for the mortgage-calc command line interface."""

import csv
import json

import pytest
from click.testing import CliRunner

from mortgage_calc.main import cli, parse_scenario_opts


@pytest.fixture
def runner(monkeypatch):
    monkeypatch.delenv("API_NINJAS_KEY", raising=False)
    return CliRunner()


class TestPayment:
    def test_thirty_year(self, runner):
        result = runner.invoke(cli, ["payment", "-p", "200k", "-r", "5", "-t", "30y"])
        assert result.exit_code == 0, result.output
        assert "Monthly payment: $1,073.64" in result.output

    def test_term_in_months(self, runner):
        result = runner.invoke(cli, ["payment", "-p", "100000", "-r", "0", "-t", "120m"])
        assert "$833.33" in result.output

    def test_bad_amount(self, runner):
        result = runner.invoke(cli, ["payment", "-p", "lots", "-r", "5"])
        assert result.exit_code == 2
        assert "Invalid amount" in result.output


class TestSchedule:
    def test_prints_summary_and_rows(self, runner):
        result = runner.invoke(cli, ["schedule", "-p", "50000", "-r", "6", "-t", "5y", "-s", "2025-01"])
        assert result.exit_code == 0, result.output
        assert "Payments made      : 60" in result.output
        assert "2029-12" in result.output

    def test_truncates_long_schedules(self, runner):
        result = runner.invoke(cli, ["schedule", "-p", "200k", "-r", "5", "-s", "2025-01"])
        assert "showing first 120 rows" in result.output

    def test_csv_export(self, runner, tmp_path):
        path = tmp_path / "schedule.csv"
        result = runner.invoke(
            cli, ["schedule", "-p", "200k", "-r", "5", "-s", "2025-01", "--output", str(path)]
        )
        assert result.exit_code == 0, result.output
        with path.open(newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))
        assert rows[0][0] == "Period"
        assert len(rows) == 361

    def test_json_export_with_extra(self, runner, tmp_path):
        path = tmp_path / "schedule.json"
        result = runner.invoke(
            cli,
            ["schedule", "-p", "200k", "-r", "5", "-s", "2025-01", "--extra", "500", "--output", str(path)],
        )
        assert result.exit_code == 0, result.output
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["summary"]["payments_made"] < 360
        assert data["schedule"][0]["extra"] == pytest.approx(500)

    def test_unsupported_output(self, runner, tmp_path):
        result = runner.invoke(
            cli, ["schedule", "-p", "200k", "-r", "5", "-s", "2025-01", "--output", str(tmp_path / "x.txt")]
        )
        assert result.exit_code == 2


class TestPayoff:
    def test_json(self, runner):
        result = runner.invoke(cli, ["payoff", "-p", "300k", "-r", "5", "--extra", "200", "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["payoff"]["baseline"]["months_to_payoff"] == 360
        assert data["payoff"]["months_saved"] > 0

    def test_text(self, runner):
        result = runner.invoke(
            cli, ["payoff", "-p", "300k", "-r", "5", "--lump-sum", "10k", "--lump-cadence", "yearly"]
        )
        assert result.exit_code == 0, result.output
        assert "Months saved" in result.output


class TestCompare:
    def test_side_by_side(self, runner):
        result = runner.invoke(
            cli,
            [
                "compare",
                "--scenario1",
                "-p 400k -r 6.5 -t 30y",
                "--scenario2",
                "-p 400k -r 5.9 -t 15y",
                "--start-date",
                "2025-01",
            ],
        )
        assert result.exit_code == 0, result.output
        assert "Comparison" in result.output
        assert "total_interest" in result.output

    def test_unknown_option(self):
        with pytest.raises(Exception, match="Unknown option in scenario"):
            parse_scenario_opts("-p 400k -r 6 --colour blue", "Scenario1")

    def test_missing_rate(self):
        with pytest.raises(Exception, match="missing required option rate"):
            parse_scenario_opts("-p 400k", "Scenario1")


class TestCalculatorCommands:
    def test_dscr_json(self, runner):
        result = runner.invoke(cli, ["dscr", "--json"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["dscr"] == pytest.approx(0.4543, abs=0.001)

    def test_purchase_text(self, runner):
        result = runner.invoke(cli, ["purchase", "--home-value", "400k", "--down-payment", "20%"])
        assert result.exit_code == 0, result.output
        assert "Monthly payment breakdown:" in result.output
        assert "$320,000.00" in result.output

    def test_refinance_as_of(self, runner):
        result = runner.invoke(
            cli, ["refinance", "--as-of", "2024-03-01", "--costs-handling", "cash", "--json"]
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["months_paid"] == 24
        assert data["recoup_months"] == pytest.approx(3.73, abs=0.01)

    def test_va_refinance_irrrl(self, runner):
        result = runner.invoke(cli, ["va-refinance", "--purpose", "irrrl", "--as-of", "2024-03-01", "--json"])
        assert json.loads(result.output)["cash_out_applied"] == 0

    def test_affordability_program(self, runner):
        result = runner.invoke(cli, ["affordability", "--program", "fha", "--json"])
        assert json.loads(result.output)["upfront_fee"] == pytest.approx(3500)

    def test_rent_vs_buy_years(self, runner):
        result = runner.invoke(cli, ["rent-vs-buy", "--years", "5", "--json"])
        assert json.loads(result.output)["months_elapsed"] == 60

    def test_negative_value_rejected(self, runner):
        result = runner.invoke(cli, ["fix-flip", "--renovation-cost=-5"])
        assert result.exit_code == 2
        assert "must not be negative" in result.output

    def test_invalid_choice_rejected(self, runner):
        result = runner.invoke(cli, ["va-purchase", "--va-use", "third"])
        assert result.exit_code == 2


class TestRates:
    def test_fallback_without_key(self, runner):
        result = runner.invoke(cli, ["--log-level", "ERROR", "rates"])
        assert result.exit_code == 0, result.output
        assert "7.25%" in result.output
        assert "Using estimated rates" in result.output
