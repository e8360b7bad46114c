"""Loan-type presets.

Government-backed loans carry an upfront fee that is financed as a
percentage of the loan, and each program has its own down payment floor.
These rules are applied to a configuration before it reaches the engine;
the engine itself treats ``loan_type`` as informational.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from typing import Dict, Tuple

from .data_models import CalculatorMode, FeeKind, LoanConfig, LoanType, OriginationFee
from .utils import to_cents

FHA_UPFRONT_MIP = "FHA Upfront MIP"
VA_FUNDING_FEE = "VA Funding Fee"

# loan type -> (fee name, percent of principal)
PROGRAM_FEES: Dict[LoanType, Tuple[str, Decimal]] = {
    LoanType.FHA: (FHA_UPFRONT_MIP, Decimal("1.75")),
    LoanType.VA: (VA_FUNDING_FEE, Decimal("2.3")),
}

FHA_MIN_DOWN_PERCENT = Decimal("3.5")


def down_payment_for_percent(home_price: Decimal, percent: Decimal) -> Decimal:
    """Down payment amount for ``percent`` of ``home_price``, in cents."""
    return to_cents(home_price * percent / 100)


def apply_loan_type(config: LoanConfig, loan_type: LoanType) -> LoanConfig:
    """Return a copy of ``config`` switched to ``loan_type``.

    Program fees added for a previous loan type are dropped; fees entered by
    the user are kept in order. In purchase mode an FHA loan raises the down
    payment to 3.5 % of the price when it is lower, and a VA loan removes it.
    """
    program_names = {name for name, _ in PROGRAM_FEES.values()}
    fees = [fee for fee in config.origination_fees if fee.name not in program_names]
    down_payment = config.down_payment

    if loan_type in PROGRAM_FEES:
        name, percent = PROGRAM_FEES[loan_type]
        fees.append(OriginationFee(name=name, value=percent, kind=FeeKind.PERCENTAGE))

    if config.mode is CalculatorMode.PURCHASE:
        if loan_type is LoanType.FHA and config.down_payment_percent < FHA_MIN_DOWN_PERCENT:
            down_payment = down_payment_for_percent(config.home_price, FHA_MIN_DOWN_PERCENT)
        elif loan_type is LoanType.VA:
            down_payment = Decimal("0")

    return replace(config, loan_type=loan_type, origination_fees=fees, down_payment=down_payment)
