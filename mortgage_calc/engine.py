"""Core calculation engine for the mortgage calculator.

This module implements the financial logic required to build the
amortization schedule of a fixed-rate mortgage paid monthly or bi-weekly.
It supports recurring, annual and one-time extra payments, PMI that drops
off at 80 % loan-to-value, origination fees and the escrow items (property
tax, homeowners insurance, HOA dues) reported in the summary. Results are
returned as a list of ``AmortizationPeriod`` objects along with a
``LoanSummary``.

The bi-weekly schedule pays half of the *monthly* principal and interest
every 14 days rather than re-amortizing the loan over 26 periods a year;
the acceleration comes from making 26 half payments (13 monthly payments'
worth) per year.
"""

from __future__ import annotations

import logging
import math
from datetime import date, timedelta
from decimal import Decimal, getcontext
from typing import Iterable, List, Optional, Tuple

from .data_models import (
    AmortizationPeriod,
    ExtraPaymentType,
    FeeKind,
    LoanConfig,
    LoanSummary,
    OriginationFee,
    PaymentFrequency,
    ResolvedFee,
)
from .utils import add_months, add_years, to_cents

getcontext().prec = 28  # increase precision for financial calculations

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HALF_CENT = Decimal("0.005")
PMI_LTV_LIMIT = Decimal("80")
PMI_STOP_RATIO = Decimal("0.80")
DAYS_PER_MONTH = Decimal("30.44")


def _dec(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if value is None:
        return ZERO
    return Decimal(str(value))


def resolve_fees(fees: Iterable[OriginationFee], principal: Decimal) -> List[ResolvedFee]:
    """Convert origination fees to dollar amounts.

    Percentage fees are taken of the financed principal. Every amount is
    quantized to cents with ``ROUND_HALF_UP``.
    """
    resolved: List[ResolvedFee] = []
    for fee in fees:
        value = _dec(fee.value)
        if fee.kind is FeeKind.PERCENTAGE:
            amount = principal * value / 100
        else:
            amount = value
        resolved.append(ResolvedFee(name=fee.name, amount=to_cents(amount)))
    return resolved


def monthly_principal_and_interest(principal: Decimal, annual_rate: Decimal, term_years: int) -> Decimal:
    """Return the monthly P&I of a fixed-rate loan.

    The formula is:

        payment = P * (i * (1 + i)^n) / ((1 + i)^n - 1)

    where ``P`` is the principal, ``i`` is the monthly interest rate and
    ``n`` is the number of monthly payments. When the interest rate is zero,
    the payment simplifies to ``P / n``. The result is not rounded.
    """
    n = term_years * 12
    rate_per_month = annual_rate / Decimal(100) / Decimal(12)
    if rate_per_month == 0:
        return principal / Decimal(n)
    factor = (1 + rate_per_month) ** n
    return principal * (rate_per_month * factor) / (factor - 1)


def period_date(start_date: date, period: int, frequency: PaymentFrequency) -> date:
    """Date of payment ``period`` counted from ``start_date``.

    Monthly dates are always derived from the start date so that a
    month-end start (e.g. Jan 31) does not drift after a short month.
    """
    if frequency is PaymentFrequency.BI_WEEKLY:
        return start_date + timedelta(days=14 * period)
    return add_months(start_date, period)


def _window_contains(target: date, previous_date: date, current_date: date, period: int) -> bool:
    # Period 1 also owns the start date itself.
    if period == 1:
        return previous_date <= target <= current_date
    return previous_date < target <= current_date


def is_one_time_period(target: Optional[date], previous_date: date, current_date: date, period: int) -> bool:
    """Whether a one-time payment dated ``target`` belongs to this period.

    A period covers ``(previous_date, current_date]``, so consecutive
    periods never both claim the same date and no date between two
    payments is skipped.
    """
    if target is None:
        return False
    return _window_contains(target, previous_date, current_date, period)


def is_anniversary_period(start_date: date, previous_date: date, current_date: date, period: int) -> bool:
    """Whether this period's window contains an anniversary of ``start_date``.

    Anniversaries are ``start_date`` plus whole years (Feb 29 falls back to
    Feb 28). On a monthly schedule this selects periods 12, 24, 36, ...; on a
    bi-weekly schedule it selects the first payment on or after each
    anniversary.
    """
    for years in (current_date.year - start_date.year - 1, current_date.year - start_date.year):
        if years < 1:
            continue
        if _window_contains(add_years(start_date, years), previous_date, current_date, period):
            return True
    return False


def _scheduled_extra(config: LoanConfig, previous_date: date, current_date: date, period: int) -> Decimal:
    extra = _dec(config.extra_payment)
    if extra <= 0:
        return ZERO
    extra_type = config.extra_payment_type
    if extra_type is ExtraPaymentType.RECURRING:
        return extra
    if extra_type is ExtraPaymentType.ANNUAL:
        if is_anniversary_period(config.start_date, previous_date, current_date, period):
            return extra
        return ZERO
    if is_one_time_period(config.one_time_payment_date, previous_date, current_date, period):
        return extra
    return ZERO


def compute_schedule(config: LoanConfig) -> Tuple[List[AmortizationPeriod], Optional[LoanSummary]]:
    """Compute the amortization schedule and summary for a mortgage.

    Parameters
    ----------
    config: LoanConfig
        The loan configuration. The financed principal is derived from it
        (home price less down payment, or refinanced balance plus cash out).

    Returns
    -------
    schedule: List[AmortizationPeriod]
        One entry per payment. The remaining balance reaches exactly zero on
        the last entry.
    summary: Optional[LoanSummary]
        Aggregate metrics, or ``None`` together with an empty schedule when
        the principal is not positive, the rate is negative or the term is
        not positive.
    """
    principal = _dec(config.principal)
    annual_rate = _dec(config.annual_interest_rate)
    term_years = config.loan_term_years
    if principal <= 0 or annual_rate < 0 or term_years <= 0:
        logger.debug(
            "Insufficient loan input (principal=%s, rate=%s, term=%s)",
            principal, annual_rate, term_years,
        )
        return [], None

    fees = resolve_fees(config.origination_fees, principal)
    total_fees = sum((fee.amount for fee in fees), ZERO)

    number_of_months = term_years * 12
    p_and_i = monthly_principal_and_interest(principal, annual_rate, term_years)

    # Escrow items. The property tax is entered as a dollar amount; the
    # homestead exemption reduces the taxable value at the same effective rate.
    property_value = _dec(config.property_value)
    effective_tax_rate = _dec(config.annual_property_tax) / property_value if property_value > 0 else ZERO
    taxable_value = max(ZERO, property_value - _dec(config.homestead_exemption))
    monthly_taxes = taxable_value * effective_tax_rate / 12
    monthly_insurance = _dec(config.annual_homeowners_insurance) / 12
    monthly_hoa = _dec(config.monthly_hoa_fee)

    pmi_percent = _dec(config.annual_pmi_percent)
    ltv = principal / property_value * 100 if property_value > 0 else ZERO
    pmi_applicable = ltv > PMI_LTV_LIMIT and pmi_percent > 0
    monthly_pmi = principal * pmi_percent / 100 / 12 if pmi_applicable else ZERO
    pmi_stop_threshold = property_value * PMI_STOP_RATIO

    frequency = config.payment_frequency
    periods_per_year = frequency.periods_per_year
    periodic_rate = annual_rate / Decimal(100) / Decimal(periods_per_year)
    if frequency is PaymentFrequency.BI_WEEKLY:
        base_payment = p_and_i / 2
        periodic_pmi = monthly_pmi / 2
    else:
        base_payment = p_and_i
        periodic_pmi = monthly_pmi
    max_periods = term_years * periods_per_year * 2

    schedule: List[AmortizationPeriod] = []
    balance = principal
    total_interest = ZERO
    total_pmi = ZERO
    period = 0
    previous_date = config.start_date

    while balance > 0:
        period += 1
        current_date = period_date(config.start_date, period, frequency)

        interest = balance * periodic_rate
        scheduled_principal = max(ZERO, base_payment - interest)
        pmi = periodic_pmi if pmi_applicable and balance > pmi_stop_threshold else ZERO

        extra = _scheduled_extra(config, previous_date, current_date, period)
        extra = max(ZERO, min(balance - scheduled_principal, extra))

        principal_paid = scheduled_principal + extra
        payment = base_payment + extra + pmi

        # Final payment: clear the balance. A sub-cent residual goes to the
        # scheduled principal, never to the extra payment.
        if balance - principal_paid < HALF_CENT:
            extra = min(extra, max(ZERO, balance - scheduled_principal))
            scheduled_principal = balance - extra
            payment = balance + interest + pmi
            balance = ZERO
        else:
            balance -= principal_paid

        total_interest += interest
        total_pmi += pmi
        schedule.append(
            AmortizationPeriod(
                period=period,
                date=current_date,
                interest=interest,
                principal=scheduled_principal,
                extra_payment=extra,
                total_payment=payment,
                remaining_balance=balance,
            )
        )
        previous_date = current_date

        if period > max_periods:
            logger.warning(
                "Schedule did not converge after %d periods; stopping with balance %s",
                period, balance,
            )
            break

    payoff_date = schedule[-1].date if schedule else config.start_date
    original_payoff_date = add_years(config.start_date, term_years)
    days_saved = (original_payoff_date - payoff_date).days
    total_months_saved = max(0, math.floor(Decimal(days_saved) / DAYS_PER_MONTH))
    years_saved, months_saved = divmod(total_months_saved, 12)

    standard_total_interest = p_and_i * number_of_months - principal

    months_in_loan = Decimal(len(schedule)) / (Decimal(periods_per_year) / 12)
    total_taxes = monthly_taxes * months_in_loan
    total_insurance = monthly_insurance * months_in_loan
    total_hoa = monthly_hoa * months_in_loan

    summary = LoanSummary(
        monthly_payment=p_and_i + monthly_pmi + monthly_taxes + monthly_insurance + monthly_hoa,
        bi_weekly_payment=p_and_i / 2 + periodic_pmi + monthly_taxes / 2 + monthly_insurance / 2 + monthly_hoa / 2,
        principal_and_interest=p_and_i,
        total_principal=principal,
        total_interest=total_interest,
        total_pmi=total_pmi,
        monthly_pmi=monthly_pmi,
        monthly_taxes=monthly_taxes,
        monthly_insurance=monthly_insurance,
        monthly_hoa_fees=monthly_hoa,
        origination_fees=fees,
        total_origination_fees=total_fees,
        total_cost=principal + total_interest + total_fees + total_pmi,
        total_payments=principal + total_interest + total_pmi + total_taxes + total_insurance + total_hoa,
        total_taxes=total_taxes,
        total_insurance=total_insurance,
        total_hoa_fees=total_hoa,
        payoff_date=payoff_date,
        original_payoff_date=original_payoff_date,
        years_saved=years_saved,
        months_saved=months_saved,
        interest_saved=standard_total_interest - total_interest,
        standard_total_interest=standard_total_interest,
        first_payment_principal=schedule[0].principal if schedule else ZERO,
        first_payment_interest=schedule[0].interest if schedule else ZERO,
        loan_to_value=ltv,
        number_of_payments=len(schedule),
    )
    return schedule, summary
