"""JSON web API for the mortgage calculator.

Every endpoint accepts the same loan fields as the command line (snake_case
keys, e.g. ``home_price``, ``down_payment``, ``rate``, ``term``) and reuses
``build_config_from_options`` to turn them into a ``LoanConfig``. The lookup
service URL is read from ``MORTGAGE_LOOKUP_URL``; its responses are cached for
``MORTGAGE_LOOKUP_TTL`` seconds (ten minutes by default).
"""

import logging
import os

import click
from flask import Flask, Response, jsonify, request

from mortgage_calc.comparison import compare_summaries, compare_terms
from mortgage_calc.engine import compute_schedule
from mortgage_calc.export import (
    schedule_to_csv,
    serialize_comparison,
    serialize_schedule,
    serialize_summary,
)
from mortgage_calc.lookups import (
    LookupServiceError,
    RateLimitError,
    RateQuote,
    RateQuoteClient,
    TaxRateClient,
    TimedCache,
    annual_property_tax,
)
from mortgage_calc.main import EMPTY_RESULT_MESSAGE, build_config_from_options
from mortgage_calc.utils import decimal_from_str

logger = logging.getLogger(__name__)

app = Flask(__name__)

LOOKUP_URL = os.environ.get("MORTGAGE_LOOKUP_URL")
LOOKUP_TTL = float(os.environ.get("MORTGAGE_LOOKUP_TTL", 600))

tax_client = TaxRateClient(LOOKUP_URL, cache=TimedCache(LOOKUP_TTL)) if LOOKUP_URL else None
rate_client = RateQuoteClient(LOOKUP_URL, cache=TimedCache(LOOKUP_TTL)) if LOOKUP_URL else None

CONFIG_FIELDS = (
    "home_price", "down_payment", "term", "rate", "start_date", "mode", "loan_balance",
    "cash_out", "home_value", "frequency", "extra", "extra_type", "extra_date", "pmi",
    "tax", "insurance", "hoa", "homestead", "loan_type", "location",
)


class InvalidLoanInput(Exception):
    pass


def _fee_strings(fees) -> tuple:
    """Accept fees as ``NAME:VALUE[%]`` strings or ``{name, value, type}`` objects."""
    result = []
    for fee in fees or []:
        if isinstance(fee, str):
            result.append(fee)
        elif isinstance(fee, dict):
            suffix = "%" if fee.get("type") == "percentage" else ""
            result.append(f"{fee.get('name', '')}:{fee.get('value', 0)}{suffix}")
        else:
            raise InvalidLoanInput(f"Invalid fee entry: {fee!r}")
    return tuple(result)


def _require_object(payload):
    if not isinstance(payload, dict):
        raise InvalidLoanInput("Expected a JSON object")
    return payload


def _parse_term(value) -> int:
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValueError(f"Loan term must be a whole number of years: {value}")
    return int(value)


def _payload_to_config(payload):
    _require_object(payload)
    kwargs = {"fee": _fee_strings(payload.get("fees"))}
    try:
        for key in CONFIG_FIELDS:
            value = payload.get(key)
            if value is None or value == "":
                continue
            kwargs[key] = _parse_term(value) if key == "term" else str(value)
        return build_config_from_options(**kwargs)
    except (TypeError, ValueError, click.ClickException) as exc:
        raise InvalidLoanInput(exc.format_message() if isinstance(exc, click.ClickException) else str(exc))


def _result_payload(schedule, summary):
    payload = {"summary": serialize_summary(summary), "schedule": serialize_schedule(schedule)}
    if summary is None:
        payload["message"] = EMPTY_RESULT_MESSAGE
    return payload


@app.errorhandler(InvalidLoanInput)
def _bad_request(exc):
    return jsonify(error=str(exc)), 400


@app.errorhandler(LookupServiceError)
def _lookup_failed(exc):
    logger.warning("Lookup failed for %s: %s", request.path, exc)
    status = 429 if isinstance(exc, RateLimitError) else 502
    return jsonify(error=str(exc)), status


@app.post("/api/schedule")
def schedule():
    config = _payload_to_config(request.get_json(silent=True))
    return jsonify(_result_payload(*compute_schedule(config)))


@app.post("/api/schedule.csv")
def schedule_csv():
    config = _payload_to_config(request.get_json(silent=True))
    full_schedule, _ = compute_schedule(config)
    return Response(
        schedule_to_csv(full_schedule),
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=amortization_schedule.csv"},
    )


@app.post("/api/compare")
def compare():
    payload = _require_object(request.get_json(silent=True))
    schedule_a, summary_a = compute_schedule(_payload_to_config(payload.get("scenario_a")))
    schedule_b, summary_b = compute_schedule(_payload_to_config(payload.get("scenario_b")))
    comparison = None
    if summary_a is not None and summary_b is not None:
        comparison = compare_summaries(summary_a, summary_b)
    return jsonify(
        scenario_a=_result_payload(schedule_a, summary_a),
        scenario_b=_result_payload(schedule_b, summary_b),
        comparison=serialize_comparison(comparison),
    )


@app.post("/api/compare-terms")
def compare_loan_terms():
    payload = request.get_json(silent=True)
    config = _payload_to_config(payload)
    if payload.get("rate_30") is not None and payload.get("rate_15") is not None:
        try:
            quote = RateQuote(
                rate_30_year=decimal_from_str(str(payload["rate_30"])),
                rate_15_year=decimal_from_str(str(payload["rate_15"])),
            )
        except ValueError as exc:
            raise InvalidLoanInput(str(exc))
    elif rate_client is None:
        return jsonify(error="Rate lookup service is not configured"), 503
    else:
        quote = rate_client.current_rates()
    result = compare_terms(config, quote)
    return jsonify(
        rates={"rate_30_year": float(quote.rate_30_year), "rate_15_year": float(quote.rate_15_year)},
        term_30=_result_payload(result.schedule_30, result.summary_30),
        term_15=_result_payload(result.schedule_15, result.summary_15),
        comparison=serialize_comparison(result.comparison),
    )


@app.get("/api/location/<zip_code>")
def location(zip_code):
    if tax_client is None:
        return jsonify(error="Tax rate lookup service is not configured"), 503
    try:
        data = tax_client.lookup(zip_code)
    except ValueError as exc:
        raise InvalidLoanInput(str(exc))
    body = {"city": data.city, "state": data.state, "tax_rate": float(data.tax_rate)}
    home_price = request.args.get("home_price")
    if home_price:
        try:
            price = decimal_from_str(home_price)
        except ValueError as exc:
            raise InvalidLoanInput(str(exc))
        body["annual_property_tax"] = float(annual_property_tax(price, data.tax_rate))
    return jsonify(body)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    print("Starting Mortgage Calculator API...")
    app.run(host="0.0.0.0", port=8710, debug=True)
