"""Normalized plan inputs.

These data classes hold the validated numeric form fields for one request.
They are built by calc.input_normalizer and never modified afterwards.
"""

from dataclasses import dataclass, field
from enum import Enum


class PlanMode(str, Enum):
    """Which planning question to answer."""
    STANDARD = 'standard'
    FIND_MAX_YEARS = 'findMaxYears'
    SOLVE_EXPENSES = 'solveExpenses'


@dataclass(frozen=True)
class AccountInputs:
    """Starting point and assumptions for a single account."""
    initial_balance: float = 0.0
    annual_contribution: float = 0.0
    annual_return: float = 0.0  # Fraction, e.g. 0.05 for 5%


@dataclass(frozen=True)
class PlanInputs:
    """All inputs needed to project the three savings accounts.

    Rates are fractions in [0, 1]. Monetary values are non-negative.
    The taxable (non-registered) account never has a user contribution;
    it only receives income surplus.
    """
    current_age: int = 0
    years_to_retire: int = 0
    years_to_plan: int = 1
    income_annual: float = 0.0
    expenses_annual: float = 0.0
    inflation_rate: float = 0.0
    tax_deferred: AccountInputs = field(default_factory=AccountInputs)
    tax_free: AccountInputs = field(default_factory=AccountInputs)
    taxable: AccountInputs = field(default_factory=AccountInputs)

    def total_initial_balance(self) -> float:
        """Sum of the three starting balances."""
        return (self.tax_deferred.initial_balance +
                self.tax_free.initial_balance +
                self.taxable.initial_balance)
