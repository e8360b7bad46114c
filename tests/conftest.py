"""Shared fixtures.

Canonical loan: $500K home, $100K down, 6.5% rate, 30yr fixed, monthly,
first payment period counted from 2025-01-15.
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from mortgage_calc.data_models import LoanConfig


@pytest.fixture
def canonical_config() -> LoanConfig:
    """$400K financed, no fees, PMI, escrow or extra payments."""
    return LoanConfig(
        start_date=date(2025, 1, 15),
        loan_term_years=30,
        annual_interest_rate=Decimal("6.5"),
        home_price=Decimal("500000"),
        down_payment=Decimal("100000"),
    )


@pytest.fixture
def make_config(canonical_config):
    """Copy of the canonical config with field overrides."""
    def _make(**overrides) -> LoanConfig:
        return replace(canonical_config, **overrides)
    return _make
