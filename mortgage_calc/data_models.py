"""Data models for the mortgage calculator.

This module defines the enums and dataclasses used by the calculator: the
loan configuration collected from the user, origination fees, the individual
schedule entries and the aggregate summary. Using dataclasses makes it easy
to construct, inspect and serialize these structures.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Optional


class CalculatorMode(str, Enum):
    PURCHASE = "purchase"
    REFINANCE = "refinance"


class PaymentFrequency(str, Enum):
    MONTHLY = "monthly"
    BI_WEEKLY = "bi-weekly"

    @property
    def periods_per_year(self) -> int:
        return 26 if self is PaymentFrequency.BI_WEEKLY else 12


class ExtraPaymentType(str, Enum):
    RECURRING = "recurring"
    ONE_TIME = "one-time"
    ANNUAL = "annual"


class LoanType(str, Enum):
    CONVENTIONAL = "conventional"
    JUMBO = "jumbo"
    FHA = "fha"
    VA = "va"


class FeeKind(str, Enum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"


@dataclass
class OriginationFee:
    """A closing fee entered by the user.

    Attributes
    ----------
    name: str
        Label shown in summaries (e.g. ``"FHA Upfront MIP"``).
    value: Decimal
        A dollar amount for ``FeeKind.FIXED`` fees, or a percentage of the
        financed principal for ``FeeKind.PERCENTAGE`` fees (``1.75`` means
        1.75 %).
    kind: FeeKind
    """

    name: str
    value: Decimal
    kind: FeeKind = FeeKind.FIXED


@dataclass(frozen=True)
class ResolvedFee:
    """An origination fee converted to a dollar amount."""

    name: str
    amount: Decimal


DECIMAL_FIELDS = (
    "annual_interest_rate",
    "home_price",
    "down_payment",
    "current_loan_balance",
    "cash_out_amount",
    "estimated_home_value",
    "extra_payment",
    "annual_pmi_percent",
    "annual_property_tax",
    "annual_homeowners_insurance",
    "monthly_hoa_fee",
    "homestead_exemption",
)


@dataclass
class LoanConfig:
    """Configuration of a mortgage.

    This configuration collects all user inputs into a single object. Which
    of the purchase or refinance fields are used depends on ``mode``; the
    other group is ignored. Rates are percentages (``6.5`` means 6.5 %) and
    money values are plain dollar amounts.
    """

    start_date: date
    loan_term_years: int = 30
    annual_interest_rate: Decimal = Decimal("0")
    mode: CalculatorMode = CalculatorMode.PURCHASE

    # Purchase
    home_price: Decimal = Decimal("0")
    down_payment: Decimal = Decimal("0")

    # Refinance
    current_loan_balance: Decimal = Decimal("0")
    cash_out_amount: Decimal = Decimal("0")
    estimated_home_value: Decimal = Decimal("0")

    payment_frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    extra_payment: Decimal = Decimal("0")
    extra_payment_type: ExtraPaymentType = ExtraPaymentType.RECURRING
    one_time_payment_date: Optional[date] = None

    origination_fees: List[OriginationFee] = field(default_factory=list)

    annual_pmi_percent: Decimal = Decimal("0")
    annual_property_tax: Decimal = Decimal("0")  # dollars per year, not a rate
    annual_homeowners_insurance: Decimal = Decimal("0")
    monthly_hoa_fee: Decimal = Decimal("0")
    homestead_exemption: Decimal = Decimal("0")

    loan_type: LoanType = LoanType.CONVENTIONAL
    location: str = ""

    def __post_init__(self) -> None:
        # Accept ints and floats for amounts and rates; the engine works in Decimal.
        for name in DECIMAL_FIELDS:
            value = getattr(self, name)
            if value is None:
                setattr(self, name, Decimal("0"))
            elif not isinstance(value, Decimal):
                setattr(self, name, Decimal(str(value)))

    @property
    def principal(self) -> Decimal:
        """The financed amount."""
        if self.mode is CalculatorMode.REFINANCE:
            return self.current_loan_balance + self.cash_out_amount
        return self.home_price - self.down_payment

    @property
    def property_value(self) -> Decimal:
        """Value used both as the property-tax base and the appraised value for LTV."""
        if self.mode is CalculatorMode.REFINANCE:
            return self.estimated_home_value
        return self.home_price

    @property
    def down_payment_percent(self) -> Decimal:
        if self.home_price <= 0:
            return Decimal("0")
        return self.down_payment / self.home_price * 100


@dataclass(frozen=True)
class AmortizationPeriod:
    """One payment event of the schedule.

    ``principal`` is the scheduled principal portion and ``extra_payment``
    the additional principal paid in the period, so the balance drops by
    their sum. ``total_payment`` includes PMI but not escrow items.
    """

    period: int
    date: date
    interest: Decimal
    principal: Decimal
    extra_payment: Decimal
    total_payment: Decimal
    remaining_balance: Decimal


@dataclass(frozen=True)
class LoanSummary:
    """Aggregate metrics for a computed schedule."""

    monthly_payment: Decimal
    bi_weekly_payment: Decimal
    principal_and_interest: Decimal
    total_principal: Decimal
    total_interest: Decimal
    total_pmi: Decimal
    monthly_pmi: Decimal
    monthly_taxes: Decimal
    monthly_insurance: Decimal
    monthly_hoa_fees: Decimal
    origination_fees: List[ResolvedFee]
    total_origination_fees: Decimal
    total_cost: Decimal
    total_payments: Decimal
    total_taxes: Decimal
    total_insurance: Decimal
    total_hoa_fees: Decimal
    payoff_date: date
    original_payoff_date: date
    years_saved: int
    months_saved: int
    interest_saved: Decimal
    standard_total_interest: Decimal
    first_payment_principal: Decimal
    first_payment_interest: Decimal
    loan_to_value: Decimal
    number_of_payments: int
