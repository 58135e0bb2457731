"""Projection results organized by year.

A projection is an ordered tuple of YearRow values, one per simulated
year starting at year index 0. Each renderer extracts the fields it
needs from this structure.
"""

from dataclasses import asdict, dataclass
from typing import Optional, Tuple

from model.PlanInputs import PlanInputs, PlanMode


ACCOUNT_NAMES = ('tax_deferred', 'tax_free', 'taxable')


@dataclass(frozen=True)
class AccountYear:
    """One account's flows for one year.

    closing = opening + contribution - withdrawal
    """
    opening: float = 0.0
    contribution: float = 0.0
    withdrawal: float = 0.0
    closing: float = 0.0

    def is_empty(self) -> bool:
        """True when the account had no balance and no activity this year."""
        return (self.opening <= 0 and self.contribution <= 0 and
                self.withdrawal <= 0 and self.closing <= 0)


@dataclass(frozen=True)
class YearRow:
    """All projected data for a single year."""
    year_index: int
    age: int
    income: float
    expense: float  # Inflation adjusted
    tax_deferred: AccountYear
    tax_free: AccountYear
    taxable: AccountYear

    @property
    def is_working_year(self) -> bool:
        return self.income > 0

    def account(self, name: str) -> AccountYear:
        """Get an account by name ('tax_deferred', 'tax_free' or 'taxable')."""
        if name not in ACCOUNT_NAMES:
            raise KeyError(name)
        return getattr(self, name)

    def total_closing(self) -> float:
        return self.tax_deferred.closing + self.tax_free.closing + self.taxable.closing


@dataclass(frozen=True)
class ProjectionResult:
    """Output of one simulation run.

    stopped_early is set when a year's spending could not be covered
    before the requested horizon ended; the rows then stop at that year.
    depleted is set when any simulated year, including the last one,
    had spending that no account could cover.
    """
    rows: Tuple[YearRow, ...]
    horizon: int
    fixed_withdrawal: float
    stopped_early: bool = False
    depleted: bool = False

    @property
    def years_survived(self) -> int:
        return len(self.rows)

    @property
    def years_funded(self) -> int:
        """Rows whose spending was fully covered; a short final year is excluded."""
        return len(self.rows) - (1 if self.depleted else 0)

    def final_row(self) -> Optional[YearRow]:
        return self.rows[-1] if self.rows else None

    @property
    def ending_total(self) -> float:
        """Sum of the three final closing balances."""
        last = self.final_row()
        return last.total_closing() if last else 0.0


@dataclass(frozen=True)
class PlanResult:
    """Final answer for one planning request.

    projection is the single authoritative simulation run for the
    requested mode. resolved_horizon is only set in findMaxYears mode and
    resolved_expense only in solveExpenses mode.
    """
    mode: PlanMode
    inputs: PlanInputs
    projection: ProjectionResult
    tax_deferred_withdrawal: float
    horizon: int
    expense_base: float
    resolved_horizon: Optional[int] = None
    resolved_expense: Optional[int] = None

    @property
    def rows(self) -> Tuple[YearRow, ...]:
        return self.projection.rows

    @property
    def ending_total(self) -> float:
        return self.projection.ending_total

    def get_age(self, age: int) -> Optional[YearRow]:
        """Get the row for a specific age."""
        for row in self.projection.rows:
            if row.age == age:
                return row
        return None

    @property
    def first_age(self) -> int:
        return self.rows[0].age if self.rows else self.inputs.current_age

    @property
    def last_age(self) -> int:
        return self.rows[-1].age if self.rows else self.inputs.current_age


def year_row_to_dict(row: YearRow) -> dict:
    """Convert a row to plain JSON-friendly values."""
    return asdict(row)


def plan_result_to_dict(result: PlanResult) -> dict:
    """Convert a plan result to plain JSON-friendly values.

    This is the hand-off format for external renderers.
    """
    return {
        "mode": result.mode.value,
        "inputs": asdict(result.inputs),
        "horizon": result.horizon,
        "expense_base": result.expense_base,
        "tax_deferred_withdrawal": result.tax_deferred_withdrawal,
        "resolved_horizon": result.resolved_horizon,
        "resolved_expense": result.resolved_expense,
        "stopped_early": result.projection.stopped_early,
        "depleted": result.projection.depleted,
        "years_survived": result.projection.years_survived,
        "years_funded": result.projection.years_funded,
        "ending_total": result.ending_total,
        "rows": [year_row_to_dict(row) for row in result.rows],
    }
