"""Side-by-side comparison of two loan scenarios.

Besides comparing any two summaries, this module builds the common
"30 vs 15 year" comparison: the same loan run at both terms with the
market rate quoted for each.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from .data_models import AmortizationPeriod, LoanConfig, LoanSummary
from .engine import compute_schedule
from .lookups import RateQuote

COMPARED_METRICS = (
    "monthly_payment",
    "bi_weekly_payment",
    "total_origination_fees",
    "total_interest",
    "total_cost",
    "interest_saved",
)


@dataclass(frozen=True)
class ScenarioComparison:
    """How scenario B differs from scenario A.

    ``differences`` maps each compared metric to ``B - A``; a negative value
    means B is cheaper. ``cheaper`` names the scenario with the lower total
    cost ("A" when they tie).
    """

    cheaper: str
    cost_difference: Decimal
    differences: Dict[str, Decimal]


@dataclass(frozen=True)
class TermComparison:
    schedule_30: List[AmortizationPeriod]
    summary_30: Optional[LoanSummary]
    schedule_15: List[AmortizationPeriod]
    summary_15: Optional[LoanSummary]
    comparison: Optional[ScenarioComparison]


def compare_summaries(a: LoanSummary, b: LoanSummary) -> ScenarioComparison:
    differences = {key: getattr(b, key) - getattr(a, key) for key in COMPARED_METRICS}
    return ScenarioComparison(
        cheaper="B" if a.total_cost > b.total_cost else "A",
        cost_difference=abs(a.total_cost - b.total_cost),
        differences=differences,
    )


def term_scenarios(config: LoanConfig, quote: RateQuote) -> Tuple[LoanConfig, LoanConfig]:
    """30- and 15-year copies of ``config`` at the quoted rates."""
    return (
        replace(config, loan_term_years=30, annual_interest_rate=quote.rate_30_year),
        replace(config, loan_term_years=15, annual_interest_rate=quote.rate_15_year),
    )


def compare_terms(config: LoanConfig, quote: RateQuote) -> TermComparison:
    config_30, config_15 = term_scenarios(config, quote)
    schedule_30, summary_30 = compute_schedule(config_30)
    schedule_15, summary_15 = compute_schedule(config_15)
    comparison = None
    if summary_30 is not None and summary_15 is not None:
        comparison = compare_summaries(summary_30, summary_15)
    return TermComparison(
        schedule_30=schedule_30,
        summary_30=summary_30,
        schedule_15=schedule_15,
        summary_15=summary_15,
        comparison=comparison,
    )
