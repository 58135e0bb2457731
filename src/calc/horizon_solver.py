"""Maximum sustainable horizon solver via fixed-point iteration."""

from typing import Optional

from calc.engine_config import EngineConfig
from calc.projection_calculator import ProjectionCalculator
from calc.withdrawal_solver import solve_for_inputs


class MaxHorizonSolver:
    """Finds how many years a spending level can be sustained.

    The tax-deferred withdrawal depends on the horizon, so the horizon is
    iterated: simulate with candidate N, and if fewer than N years are fully
    funded, retry with the funded count until the two agree. A year whose
    spending runs short is not counted.
    """

    def __init__(self, calculator: ProjectionCalculator, config: Optional[EngineConfig] = None):
        self.calculator = calculator
        self.config = config or calculator.config

    def solve(self, expense_base: float) -> int:
        """Find the self-consistent number of years for a starting expense.

        Args:
            expense_base: Year 0 expense

        Returns:
            Number of fully funded years. If the iteration budget runs out
            before the candidate stabilizes, the last candidate is returned.
        """
        candidate = self.config.max_horizon_years

        for _ in range(self.config.horizon_iterations):
            if candidate <= 0:
                return 0
            withdrawal = solve_for_inputs(self.calculator.inputs, candidate)
            funded = self.calculator.project(expense_base, candidate, withdrawal).years_funded
            if funded == candidate:
                return candidate
            candidate = funded

        return max(candidate, 0)
