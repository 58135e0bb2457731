"""Maximum sustainable spending solver via bisection search."""

import math
from typing import Optional

from calc.engine_config import EngineConfig
from calc.projection_calculator import ProjectionCalculator
from calc.withdrawal_solver import solve_for_inputs


class MaxExpenseSolver:
    """Finds the largest starting expense that never runs out of money.

    The tax-deferred withdrawal is resolved once for the horizon; the
    search then varies only the year 0 expense. Depletion is monotone in
    the expense, so a bracket [affordable, unaffordable] can be halved.
    """

    def __init__(self, calculator: ProjectionCalculator, config: Optional[EngineConfig] = None):
        self.calculator = calculator
        self.config = config or calculator.config

    def _depletes(self, expense: float, horizon: int, withdrawal: float) -> bool:
        return self.calculator.project(expense, horizon, withdrawal).depleted

    def solve(self, horizon: int) -> int:
        """Find the maximum starting expense for a horizon.

        Args:
            horizon: Number of years the spending must be sustained

        Returns:
            The expense in whole currency units. Spending this amount does
            not deplete the accounts; one unit more does. When the accounts
            run out even with no spending (contributions exceed income),
            0 is returned and the plan stays depleted at that answer.
        """
        inputs = self.calculator.inputs
        withdrawal = solve_for_inputs(inputs, horizon)

        if self._depletes(0.0, horizon, withdrawal):
            return 0

        low = 0.0
        high = max(self.config.expense_search_floor, 2 * inputs.total_initial_balance())
        high = min(high, self.config.expense_search_cap)

        # Grow the upper bound until it is unaffordable
        while not self._depletes(high, horizon, withdrawal) and high < self.config.expense_search_cap:
            high = min(high * 2, self.config.expense_search_cap)

        for _ in range(self.config.expense_bisection_iterations):
            mid = (low + high) / 2.0
            if self._depletes(mid, horizon, withdrawal):
                high = mid
            else:
                low = mid

        expense = round(low)
        if expense > low and self._depletes(expense, horizon, withdrawal):
            expense = math.floor(low)
        return int(expense)
