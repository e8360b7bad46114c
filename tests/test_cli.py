import json
from decimal import Decimal

import click
import pytest
from click.testing import CliRunner

from mortgage_calc import main
from mortgage_calc.data_models import FeeKind, LoanType
from mortgage_calc.lookups import LocationData, RateLimitError, RateQuote
from mortgage_calc.main import (
    build_config_from_options,
    cli,
    parse_amount,
    parse_fee_strings,
    parse_scenario_opts,
)

BASE = ["--home-price", "500000", "-d", "100000", "-r", "6.5", "-s", "2025-01-15"]


@pytest.fixture
def runner():
    return CliRunner()


class FakeTaxClient:
    def __init__(self, url, error=None):
        self.url = url
        self.error = error

    def lookup(self, zip_code):
        if self.error:
            raise self.error
        return LocationData(city="Austin", state="TX", tax_rate=Decimal("0.012"))


class FakeRateClient:
    def __init__(self, url):
        self.url = url

    def current_rates(self):
        return RateQuote(rate_30_year=Decimal("6.5"), rate_15_year=Decimal("5.75"))


class TestParsing:
    @pytest.mark.parametrize(
        "raw, expected",
        [("500000", "500000"), ("500,000", "500000"), ("500k", "500000"), ("1.5m", "1500000"), ("$450,000", "450000")],
    )
    def test_parse_amount(self, raw, expected):
        assert parse_amount(raw) == Decimal(expected)

    def test_parse_amount_invalid(self):
        with pytest.raises(click.BadParameter):
            parse_amount("lots")

    def test_parse_fee_strings(self):
        fees = parse_fee_strings(("Points:1%", "Appraisal:650", "Title: 1,200"))
        assert [(f.name, f.value, f.kind) for f in fees] == [
            ("Points", Decimal("1"), FeeKind.PERCENTAGE),
            ("Appraisal", Decimal("650"), FeeKind.FIXED),
            ("Title", Decimal("1200"), FeeKind.FIXED),
        ]

    @pytest.mark.parametrize("raw", ["Points", ":500", "Points:", "Points:x%"])
    def test_parse_fee_strings_invalid(self, raw):
        with pytest.raises(click.BadParameter):
            parse_fee_strings((raw,))

    def test_down_payment_percent(self):
        config = build_config_from_options(home_price="500k", down_payment="20%", rate="6.5", start_date="2025-01-15")
        assert config.down_payment == Decimal("100000.00")
        assert config.principal == Decimal("400000.00")

    def test_loan_type_preset(self):
        config = build_config_from_options(home_price="400000", down_payment="4000", loan_type="fha",
                                           start_date="2025-01-15")
        assert config.loan_type is LoanType.FHA
        assert config.down_payment == Decimal("14000.00")

    def test_one_time_needs_date(self):
        with pytest.raises(click.BadParameter):
            build_config_from_options(home_price="500000", extra="5000", extra_type="one-time")

    def test_scenario_options(self):
        loan = parse_scenario_opts("--home-price 500k -d 20% -r 6.5 --frequency bi-weekly")
        assert loan["home_price"] == "500k"
        assert loan["down_payment"] == "20%"
        assert loan["frequency"] == "bi-weekly"
        assert loan["term"] == 30

    def test_scenario_options_invalid(self):
        with pytest.raises(click.BadParameter):
            parse_scenario_opts("--bogus 1")


class TestScheduleCommand:
    def test_prints_summary_and_rows(self, runner):
        result = runner.invoke(cli, ["schedule", *BASE])
        assert result.exit_code == 0, result.output
        assert "Monthly payment     : $2,528.27" in result.output
        assert "Schedule has 360 rows; showing first 120 rows." in result.output
        assert "120\t2035-01-15" in result.output
        assert "121\t2035-02-15" not in result.output

    def test_empty_input(self, runner):
        result = runner.invoke(cli, ["schedule", "-r", "6.5"])
        assert result.exit_code == 1
        assert "Enter valid loan details." in result.output

    def test_csv_output(self, runner, tmp_path):
        path = tmp_path / "schedule.csv"
        result = runner.invoke(cli, ["schedule", *BASE, "--output", str(path)])
        assert result.exit_code == 0, result.output
        assert "Schedule exported to" in result.output
        lines = path.read_text(encoding="utf-8").splitlines()
        assert lines[0] == "Period,Date,Principal,Interest,Extra Payment,Total Payment,Remaining Balance"
        assert len(lines) == 361

    def test_json_output(self, runner, tmp_path):
        path = tmp_path / "schedule.json"
        result = runner.invoke(cli, ["schedule", *BASE, "--frequency", "bi-weekly", "--output", str(path)])
        assert result.exit_code == 0, result.output
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["summary"]["number_of_payments"] == len(data["schedule"])
        assert data["summary"]["years_saved"] >= 4

    def test_unsupported_output(self, runner, tmp_path):
        result = runner.invoke(cli, ["schedule", *BASE, "--output", str(tmp_path / "schedule.txt")])
        assert result.exit_code == 2

    def test_one_time_without_date(self, runner):
        result = runner.invoke(cli, ["schedule", *BASE, "--extra", "5000", "--extra-type", "one-time"])
        assert result.exit_code == 2
        assert "needs a date" in result.output

    def test_zip_fills_property_tax(self, runner, monkeypatch):
        monkeypatch.setattr(main, "TaxRateClient", FakeTaxClient)
        result = runner.invoke(cli, ["summary", *BASE, "--zip", "78701", "--lookup-url", "https://lookup.test"])
        assert result.exit_code == 0, result.output
        assert "Property tax      : $500.00" in result.output

    def test_zip_lookup_failure(self, runner, monkeypatch):
        monkeypatch.setattr(main, "TaxRateClient", lambda url: FakeTaxClient(url, error=RateLimitError()))
        result = runner.invoke(cli, ["summary", *BASE, "--zip", "78701", "--lookup-url", "https://lookup.test"])
        assert result.exit_code == 1
        assert "Rate limit reached" in result.output

    def test_zip_without_lookup_url(self, runner, monkeypatch):
        monkeypatch.delenv("MORTGAGE_LOOKUP_URL", raising=False)
        result = runner.invoke(cli, ["summary", *BASE, "--zip", "78701"])
        assert result.exit_code == 2
        assert "MORTGAGE_LOOKUP_URL" in result.output


class TestSummaryCommand:
    def test_summary(self, runner):
        result = runner.invoke(cli, ["summary", *BASE, "--pmi", "0.5", "-d", "50000"])
        assert result.exit_code == 0, result.output
        assert "PMI               : $187.50" in result.output
        assert "Payments made       : 360" in result.output

    def test_json_only(self, runner, tmp_path):
        result = runner.invoke(cli, ["summary", *BASE, "--output", str(tmp_path / "summary.csv")])
        assert result.exit_code == 2

    def test_json_export(self, runner, tmp_path):
        path = tmp_path / "summary.json"
        result = runner.invoke(cli, ["summary", *BASE, "--fee", "Points:1%", "--output", str(path)])
        assert result.exit_code == 0, result.output
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["summary"]["total_origination_fees"] == 4000.0


class TestCompareCommands:
    def test_compare(self, runner):
        base = "--home-price 500k -d 20% -r 6.5 -s 2025-01-15"
        result = runner.invoke(
            cli, ["compare", "--scenario1", base, "--scenario2", f"{base} --frequency bi-weekly"]
        )
        assert result.exit_code == 0, result.output
        assert "Scenario B saves you" in result.output

    def test_compare_empty_scenario(self, runner):
        result = runner.invoke(cli, ["compare", "--scenario1", "-r 6.5", "--scenario2", "--home-price 500k -r 6.5"])
        assert result.exit_code == 1

    def test_compare_terms_with_rates(self, runner):
        result = runner.invoke(cli, ["compare-terms", *BASE, "--rate-30", "6.5", "--rate-15", "5.75"])
        assert result.exit_code == 0, result.output
        assert "15 year saves you" in result.output

    def test_compare_terms_fetches_rates(self, runner, monkeypatch):
        monkeypatch.setattr(main, "RateQuoteClient", FakeRateClient)
        result = runner.invoke(cli, ["compare-terms", *BASE, "--lookup-url", "https://lookup.test"])
        assert result.exit_code == 0, result.output
        assert "15 year saves you" in result.output
