"""Serialization and file export of schedules and summaries.

Money values are written as 2-decimal amounts and dates as ``YYYY-MM-DD``
strings so the output can be consumed by spreadsheets and other programs.
"""

from __future__ import annotations

import csv
import io
import json
from dataclasses import asdict
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .comparison import ScenarioComparison
from .data_models import AmortizationPeriod, LoanSummary
from .utils import to_cents

CSV_HEADER = [
    "Period",
    "Date",
    "Principal",
    "Interest",
    "Extra Payment",
    "Total Payment",
    "Remaining Balance",
]


def _money(value: Decimal) -> float:
    return float(to_cents(value))


def serialize_period(entry: AmortizationPeriod) -> Dict[str, Any]:
    return {
        "period": entry.period,
        "date": entry.date.isoformat(),
        "principal": _money(entry.principal),
        "interest": _money(entry.interest),
        "extra_payment": _money(entry.extra_payment),
        "total_payment": _money(entry.total_payment),
        "remaining_balance": _money(entry.remaining_balance),
    }


def serialize_schedule(schedule: Iterable[AmortizationPeriod]) -> List[Dict[str, Any]]:
    return [serialize_period(e) for e in schedule]


def serialize_summary(summary: Optional[LoanSummary]) -> Optional[Dict[str, Any]]:
    """Convert a summary into a JSON-serialisable dictionary."""
    if summary is None:
        return None
    data: Dict[str, Any] = {}
    for key, value in asdict(summary).items():
        if isinstance(value, Decimal):
            data[key] = _money(value)
        elif hasattr(value, "isoformat"):
            data[key] = value.isoformat()
        else:
            data[key] = value
    data["loan_to_value"] = float(summary.loan_to_value.quantize(Decimal("0.01")))
    data["origination_fees"] = [
        {"name": fee.name, "amount": _money(fee.amount)} for fee in summary.origination_fees
    ]
    return data


def serialize_comparison(comparison: Optional[ScenarioComparison]) -> Optional[Dict[str, Any]]:
    if comparison is None:
        return None
    return {
        "cheaper": comparison.cheaper,
        "cost_difference": _money(comparison.cost_difference),
        "differences": {k: _money(v) for k, v in comparison.differences.items()},
    }


def schedule_csv_rows(schedule: Iterable[AmortizationPeriod]) -> List[List[str]]:
    rows = [list(CSV_HEADER)]
    for e in schedule:
        rows.append(
            [
                str(e.period),
                e.date.isoformat(),
                f"{to_cents(e.principal):.2f}",
                f"{to_cents(e.interest):.2f}",
                f"{to_cents(e.extra_payment):.2f}",
                f"{to_cents(e.total_payment):.2f}",
                f"{to_cents(e.remaining_balance):.2f}",
            ]
        )
    return rows


def schedule_to_csv(schedule: Iterable[AmortizationPeriod]) -> str:
    """Render the schedule as CSV text."""
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="\n").writerows(schedule_csv_rows(schedule))
    return buffer.getvalue()


def export_to_csv(path: Path, schedule: Iterable[AmortizationPeriod]) -> None:
    """Export schedule to a CSV file."""
    with path.open("w", newline="", encoding="utf-8") as f:
        f.write(schedule_to_csv(schedule))


def export_to_json(path: Path, schedule: Iterable[AmortizationPeriod], summary: Optional[LoanSummary]) -> None:
    """Export schedule and summary to a JSON file."""
    data = {"summary": serialize_summary(summary), "schedule": serialize_schedule(schedule)}
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
