"""Fixed-rate mortgage amortization with extra payments, PMI and escrow."""

from .data_models import (
    AmortizationPeriod,
    CalculatorMode,
    ExtraPaymentType,
    FeeKind,
    LoanConfig,
    LoanSummary,
    LoanType,
    OriginationFee,
    PaymentFrequency,
    ResolvedFee,
)
from .engine import compute_schedule

__all__ = [
    "AmortizationPeriod",
    "CalculatorMode",
    "ExtraPaymentType",
    "FeeKind",
    "LoanConfig",
    "LoanSummary",
    "LoanType",
    "OriginationFee",
    "PaymentFrequency",
    "ResolvedFee",
    "compute_schedule",
]
