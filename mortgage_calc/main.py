"""Command-line interface for the mortgage calculator.

This module uses the ``click`` library to implement a multi-command
interface. Users can compute full amortization schedules, view summaries,
compare two loan scenarios or compare a 30-year against a 15-year term at
current market rates. Results can be printed to the terminal or exported to
JSON/CSV files.
"""

from __future__ import annotations

import functools
import json
import logging
import os
import shlex
from dataclasses import replace
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import click

from .comparison import compare_summaries, compare_terms
from .data_models import (
    CalculatorMode,
    ExtraPaymentType,
    FeeKind,
    LoanConfig,
    LoanType,
    OriginationFee,
    PaymentFrequency,
)
from .engine import compute_schedule
from .export import export_to_csv, export_to_json, serialize_summary
from .formatter import print_comparison, print_schedule, print_summary
from .loan_types import apply_loan_type, down_payment_for_percent
from .lookups import (
    LookupServiceError,
    RateQuote,
    RateQuoteClient,
    TaxRateClient,
    annual_property_tax,
)
from .utils import decimal_from_str, parse_iso_date

EMPTY_RESULT_MESSAGE = "Enter valid loan details."
MAX_PRINTED_ROWS = 120


def parse_amount(value: str) -> Decimal:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("500000", "500,000") and shorthand with ``k``/``m``
    suffixes (e.g., "500k" meaning 500_000).
    """
    value = value.strip().lower().replace(",", "").lstrip("$")
    factor = Decimal(1)
    if value.endswith("k"):
        factor = Decimal(1_000)
        value = value[:-1]
    elif value.endswith("m"):
        factor = Decimal(1_000_000)
        value = value[:-1]
    try:
        return decimal_from_str(value) * factor
    except ValueError:
        raise click.BadParameter(f"Invalid amount: {value}")


def _optional_amount(value: Optional[str]) -> Decimal:
    return parse_amount(value) if value else Decimal("0")


def parse_fee_strings(values: Tuple[str, ...]) -> List[OriginationFee]:
    """Parse ``NAME:VALUE`` (fixed) or ``NAME:VALUE%`` (percentage) fees."""
    fees: List[OriginationFee] = []
    for item in values:
        name, sep, raw = item.rpartition(":")
        if not sep or not name.strip() or not raw.strip():
            raise click.BadParameter(f"Fee must be in NAME:VALUE or NAME:VALUE% format; got {item}")
        raw = raw.strip()
        if raw.endswith("%"):
            try:
                value = decimal_from_str(raw[:-1])
            except ValueError as exc:
                raise click.BadParameter(str(exc))
            kind = FeeKind.PERCENTAGE
        else:
            value = parse_amount(raw)
            kind = FeeKind.FIXED
        fees.append(OriginationFee(name=name.strip(), value=value, kind=kind))
    return fees


def _parse_date(value: str) -> date:
    try:
        return parse_iso_date(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc))


def build_config_from_options(
    home_price: Optional[str] = None,
    down_payment: Optional[str] = None,
    term: int = 30,
    rate: Any = "0",
    start_date: Optional[str] = None,
    mode: str = "purchase",
    loan_balance: Optional[str] = None,
    cash_out: Optional[str] = None,
    home_value: Optional[str] = None,
    frequency: str = "monthly",
    extra: Optional[str] = None,
    extra_type: str = "recurring",
    extra_date: Optional[str] = None,
    fee: Tuple[str, ...] = (),
    pmi: Any = None,
    tax: Optional[str] = None,
    insurance: Optional[str] = None,
    hoa: Optional[str] = None,
    homestead: Optional[str] = None,
    loan_type: str = "conventional",
    location: str = "",
) -> LoanConfig:
    """Build a ``LoanConfig`` from raw option strings.

    ``down_payment`` accepts an amount or a percentage of the home price
    (``"20%"``). Loan-type presets (FHA/VA fees and down payment rules) are
    applied on top of the parsed values.
    """
    try:
        calculator_mode = CalculatorMode(mode.lower())
        payment_frequency = PaymentFrequency(frequency.lower())
        extra_payment_type = ExtraPaymentType(extra_type.lower())
        program = LoanType(loan_type.lower())
    except ValueError as exc:
        raise click.BadParameter(str(exc))

    price = _optional_amount(home_price)
    if down_payment and down_payment.strip().endswith("%"):
        try:
            percent = decimal_from_str(down_payment.strip()[:-1])
        except ValueError as exc:
            raise click.BadParameter(str(exc))
        down_value = down_payment_for_percent(price, percent)
    else:
        down_value = _optional_amount(down_payment)

    try:
        rate_value = decimal_from_str(str(rate))
        pmi_value = decimal_from_str(str(pmi)) if pmi not in (None, "") else Decimal("0")
    except ValueError as exc:
        raise click.BadParameter(str(exc))

    one_time_date = _parse_date(extra_date) if extra_date else None
    if extra_payment_type is ExtraPaymentType.ONE_TIME and extra and one_time_date is None:
        raise click.BadParameter("A one-time extra payment needs a date (--extra-date YYYY-MM-DD)")

    config = LoanConfig(
        start_date=_parse_date(start_date) if start_date else date.today(),
        loan_term_years=term,
        annual_interest_rate=rate_value,
        mode=calculator_mode,
        home_price=price,
        down_payment=down_value,
        current_loan_balance=_optional_amount(loan_balance),
        cash_out_amount=_optional_amount(cash_out),
        estimated_home_value=_optional_amount(home_value),
        payment_frequency=payment_frequency,
        extra_payment=_optional_amount(extra),
        extra_payment_type=extra_payment_type,
        one_time_payment_date=one_time_date,
        origination_fees=parse_fee_strings(fee),
        annual_pmi_percent=pmi_value,
        annual_property_tax=_optional_amount(tax),
        annual_homeowners_insurance=_optional_amount(insurance),
        monthly_hoa_fee=_optional_amount(hoa),
        homestead_exemption=_optional_amount(homestead),
        location=location or "",
    )
    if program is not LoanType.CONVENTIONAL:
        config = apply_loan_type(config, program)
    return config


def apply_zip_tax(config: LoanConfig, zip_code: str, client: TaxRateClient) -> LoanConfig:
    """Fill in the annual property tax from the average rate of a zip code."""
    location = client.lookup(zip_code)
    return replace(
        config,
        annual_property_tax=annual_property_tax(config.property_value, location.tax_rate),
        location=f"{location.city}, {location.state}",
    )


def _lookup_url(url: Optional[str]) -> str:
    url = url or os.environ.get("MORTGAGE_LOOKUP_URL")
    if not url:
        raise click.UsageError("No lookup service configured; pass --lookup-url or set MORTGAGE_LOOKUP_URL")
    return url


def loan_options(func: Callable) -> Callable:
    """Attach the loan input options shared by every command."""
    options = [
        click.option("--mode", type=click.Choice([m.value for m in CalculatorMode]), default="purchase", help="Purchase or refinance"),
        click.option("--home-price", "home_price", help="Purchase price of the home"),
        click.option("--down-payment", "-d", "down_payment", help="Down payment amount or percent (e.g. 20%)"),
        click.option("--loan-balance", "loan_balance", help="Current loan balance (refinance)"),
        click.option("--cash-out", "cash_out", help="Cash-out amount (refinance)"),
        click.option("--home-value", "home_value", help="Estimated home value (refinance)"),
        click.option("--term", "-t", "term", type=int, default=30, show_default=True, help="Loan term in years"),
        click.option("--rate", "-r", "rate", type=float, default=0.0, help="Annual interest rate (percent)"),
        click.option("--frequency", type=click.Choice([f.value for f in PaymentFrequency]), default="monthly"),
        click.option("--extra", "extra", help="Extra principal payment amount"),
        click.option("--extra-type", "extra_type", type=click.Choice([t.value for t in ExtraPaymentType]), default="recurring"),
        click.option("--extra-date", "extra_date", help="Date of a one-time extra payment (YYYY-MM-DD)"),
        click.option("--fee", "fee", multiple=True, help="Origination fee as NAME:AMOUNT or NAME:PERCENT%"),
        click.option("--pmi", "pmi", type=float, help="Annual PMI rate (percent of the loan)"),
        click.option("--tax", "tax", help="Annual property tax (dollars)"),
        click.option("--insurance", "insurance", help="Annual homeowners insurance"),
        click.option("--hoa", "hoa", help="Monthly HOA fee"),
        click.option("--homestead", "homestead", help="Homestead exemption amount"),
        click.option("--start-date", "-s", "start_date", help="Loan start date (YYYY-MM-DD), defaults to today"),
        click.option("--loan-type", "loan_type", type=click.Choice([t.value for t in LoanType]), default="conventional"),
        click.option("--zip", "zip_code", help="Zip code used to look up the property tax rate when --tax is omitted"),
        click.option("--lookup-url", "lookup_url", help="Base URL of the lookup service (or MORTGAGE_LOOKUP_URL)"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _config_from_params(params: Dict[str, Any]) -> LoanConfig:
    params = dict(params)
    zip_code = params.pop("zip_code", None)
    lookup_url = params.pop("lookup_url", None)
    config = build_config_from_options(**params)
    if zip_code and not params.get("tax"):
        try:
            config = apply_zip_tax(config, zip_code, TaxRateClient(_lookup_url(lookup_url)))
        except ValueError as exc:
            raise click.BadParameter(str(exc))
        except LookupServiceError as exc:
            raise click.ClickException(str(exc))
    return config


def _loan_params(func: Callable) -> Callable:
    """Collect the shared loan options into a single ``loan`` argument."""
    names = (
        "mode", "home_price", "down_payment", "loan_balance", "cash_out", "home_value", "term",
        "rate", "frequency", "extra", "extra_type", "extra_date", "fee", "pmi", "tax",
        "insurance", "hoa", "homestead", "start_date", "loan_type", "zip_code", "lookup_url",
    )

    @functools.wraps(func)
    def wrapper(**kwargs: Any) -> Any:
        loan = {name: kwargs.pop(name) for name in names}
        return func(loan=loan, **kwargs)

    return loan_options(wrapper)


def _require_result(schedule, summary) -> None:
    if summary is None:
        click.echo(EMPTY_RESULT_MESSAGE, err=True)
        click.get_current_context().exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """A command-line mortgage calculator with extra payments, PMI and escrow."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@_loan_params
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def schedule(loan: Dict[str, Any], output: Optional[str]) -> None:
    """Compute and print the full amortization schedule."""
    config = _config_from_params(loan)
    schedule_entries, summary_data = compute_schedule(config)
    _require_result(schedule_entries, summary_data)
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, schedule_entries, summary_data)
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, schedule_entries)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        click.echo(f"Schedule exported to {path}")
        return
    print_summary(summary_data, config.payment_frequency)
    # Limit schedule length printed to avoid flooding the terminal
    if len(schedule_entries) > MAX_PRINTED_ROWS:
        click.echo(f"Schedule has {len(schedule_entries)} rows; showing first {MAX_PRINTED_ROWS} rows.")
        print_schedule(schedule_entries[:MAX_PRINTED_ROWS])
    else:
        print_schedule(schedule_entries)


@cli.command()
@_loan_params
@click.option("--output", "output", type=str, help="Output file path (.json)")
def summary(loan: Dict[str, Any], output: Optional[str]) -> None:
    """Compute and print only the summary metrics for a loan."""
    config = _config_from_params(loan)
    schedule_entries, summary_data = compute_schedule(config)
    _require_result(schedule_entries, summary_data)
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Summary export must use .json extension")
        with path.open("w", encoding="utf-8") as f:
            json.dump({"summary": serialize_summary(summary_data)}, f, indent=2)
        click.echo(f"Summary exported to {path}")
    else:
        print_summary(summary_data, config.payment_frequency)


@click.command("scenario", add_help_option=False)
@_loan_params
def _scenario_parser(loan: Dict[str, Any]) -> Dict[str, Any]:
    return loan


def parse_scenario_opts(opts: str) -> Dict[str, Any]:
    """Parse a quoted scenario option string with the shared loan options."""
    try:
        return _scenario_parser.main(args=shlex.split(opts), prog_name="scenario", standalone_mode=False)
    except click.UsageError as exc:
        raise click.BadParameter(f"Invalid scenario options: {exc.format_message()}")


@cli.command()
@click.option("--scenario1", "scenario1", required=True, help="First scenario options quoted string")
@click.option("--scenario2", "scenario2", required=True, help="Second scenario options quoted string")
def compare(scenario1: str, scenario2: str) -> None:
    """Compare two loan scenarios.

    Scenarios are provided as quoted option strings, for example:

        mortgage-calc compare --scenario1 "--home-price 500k -d 20% -r 6.5" --scenario2 "--home-price 500k -d 20% -r 6.5 --frequency bi-weekly"
    """
    config1 = _config_from_params(parse_scenario_opts(scenario1))
    config2 = _config_from_params(parse_scenario_opts(scenario2))
    _, summary1 = compute_schedule(config1)
    _, summary2 = compute_schedule(config2)
    if summary1 is None or summary2 is None:
        _require_result([], None)
    print_comparison(summary1, summary2, compare_summaries(summary1, summary2))


@cli.command("compare-terms")
@_loan_params
@click.option("--rate-30", "rate_30", type=float, help="30-year fixed rate (percent)")
@click.option("--rate-15", "rate_15", type=float, help="15-year fixed rate (percent)")
def compare_terms_command(loan: Dict[str, Any], rate_30: Optional[float], rate_15: Optional[float]) -> None:
    """Compare a 30-year and a 15-year term for the same loan.

    Rates not given on the command line are fetched from the rate-quote
    service.
    """
    config = _config_from_params(loan)
    if rate_30 is None or rate_15 is None:
        try:
            quote = RateQuoteClient(_lookup_url(loan.get("lookup_url"))).current_rates()
        except LookupServiceError as exc:
            raise click.ClickException(str(exc))
        rate_30 = rate_30 if rate_30 is not None else quote.rate_30_year
        rate_15 = rate_15 if rate_15 is not None else quote.rate_15_year
    quote = RateQuote(rate_30_year=Decimal(str(rate_30)), rate_15_year=Decimal(str(rate_15)))
    result = compare_terms(config, quote)
    if result.comparison is None:
        _require_result([], None)
    print_comparison(result.summary_30, result.summary_15, result.comparison, labels=("30 year", "15 year"))


if __name__ == "__main__":
    cli()
