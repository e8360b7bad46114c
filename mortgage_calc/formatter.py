"""Output helpers for the mortgage calculator.

This module provides simple functions to render amortization schedules and
summaries in a tabular text format. We rely only on built-in printing and
string formatting.
"""

from __future__ import annotations

from typing import Iterable

from .comparison import COMPARED_METRICS, ScenarioComparison
from .data_models import AmortizationPeriod, LoanSummary, PaymentFrequency
from .utils import to_cents


def _usd(value) -> str:
    return f"${to_cents(value):,.2f}"


def print_summary(summary: LoanSummary, frequency: PaymentFrequency = PaymentFrequency.MONTHLY) -> None:
    """Print a summary of loan metrics in a human-readable format."""
    print("Summary")
    print("-" * 72)
    if frequency is PaymentFrequency.BI_WEEKLY:
        print(f"Bi-weekly payment   : {_usd(summary.bi_weekly_payment)}")
    print(f"Monthly payment     : {_usd(summary.monthly_payment)}")
    print(f"  Principal & int.  : {_usd(summary.principal_and_interest)}")
    if summary.monthly_pmi:
        print(f"  PMI               : {_usd(summary.monthly_pmi)}")
    if summary.monthly_taxes:
        print(f"  Property tax      : {_usd(summary.monthly_taxes)}")
    if summary.monthly_insurance:
        print(f"  Insurance         : {_usd(summary.monthly_insurance)}")
    if summary.monthly_hoa_fees:
        print(f"  HOA               : {_usd(summary.monthly_hoa_fees)}")
    print(f"Loan amount         : {_usd(summary.total_principal)}")
    print(f"Loan-to-value       : {summary.loan_to_value:.2f}%")
    print(f"Total interest      : {_usd(summary.total_interest)}")
    if summary.total_pmi:
        print(f"Total PMI           : {_usd(summary.total_pmi)}")
    for fee in summary.origination_fees:
        print(f"Fee: {fee.name:15.15s}: {_usd(fee.amount)}")
    if summary.total_origination_fees:
        print(f"Origination fees    : {_usd(summary.total_origination_fees)}")
    print(f"Total cost          : {_usd(summary.total_cost)}")
    print(f"Total of payments   : {_usd(summary.total_payments)}")
    print(f"Payments made       : {summary.number_of_payments}")
    print(f"Original payoff     : {summary.original_payoff_date.isoformat()}")
    print(f"Payoff date         : {summary.payoff_date.isoformat()}")
    if summary.years_saved or summary.months_saved:
        print(f"Time saved          : {summary.years_saved}y {summary.months_saved}m")
        print(f"Interest saved      : {_usd(summary.interest_saved)}")
    print("-" * 72)


def print_schedule(schedule: Iterable[AmortizationPeriod]) -> None:
    """Print the amortization schedule as a simple table."""
    headers = ["Period", "Date", "Principal", "Interest", "Extra", "Payment", "Balance"]
    print("\t".join(headers))
    for entry in schedule:
        row = [
            str(entry.period),
            entry.date.isoformat(),
            f"{to_cents(entry.principal):.2f}",
            f"{to_cents(entry.interest):.2f}",
            f"{to_cents(entry.extra_payment):.2f}",
            f"{to_cents(entry.total_payment):.2f}",
            f"{to_cents(entry.remaining_balance):.2f}",
        ]
        print("\t".join(row))


def print_comparison(a: LoanSummary, b: LoanSummary, comparison: ScenarioComparison,
                     labels=("Scenario A", "Scenario B")) -> None:
    """Print a comparison of two loan summaries side by side.

    The difference column is ``B - A``; a negative difference means the
    second scenario is cheaper.
    """
    print("Comparison")
    print("=" * 72)
    print(f"{'Metric':24s} {labels[0]:>15s} {labels[1]:>15s} {'Difference':>15s}")
    for key in COMPARED_METRICS:
        v1 = to_cents(getattr(a, key))
        v2 = to_cents(getattr(b, key))
        diff = to_cents(comparison.differences[key])
        print(f"{key:24s} {v1:15.2f} {v2:15.2f} {diff:15.2f}")
    print(f"{'payoff_date':24s} {a.payoff_date.isoformat():>15s} {b.payoff_date.isoformat():>15s}")
    print(f"{'time_saved':24s} {f'{a.years_saved}y {a.months_saved}m':>15s} {f'{b.years_saved}y {b.months_saved}m':>15s}")
    print("=" * 72)
    winner = labels[1] if comparison.cheaper == "B" else labels[0]
    print(f"{winner} saves you {_usd(comparison.cost_difference)} in total cost.")
