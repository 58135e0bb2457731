"""Plan calculator that answers one of three planning questions.

Modes:
1. standard - project the entered horizon at the entered expense
2. findMaxYears - find the longest sustainable horizon for the entered expense
3. solveExpenses - find the largest sustainable expense for the entered horizon

Whatever the mode, the returned rows come from one final simulation run
made after any solving is done.
"""

from typing import Optional

from calc.engine_config import EngineConfig
from calc.expense_solver import MaxExpenseSolver
from calc.horizon_solver import MaxHorizonSolver
from calc.input_normalizer import build_plan_inputs, parse_mode
from calc.projection_calculator import ProjectionCalculator
from calc.withdrawal_solver import solve_for_inputs
from model.PlanInputs import PlanInputs, PlanMode
from model.ProjectionData import PlanResult


class PlanCalculator:
    """Dispatcher that selects solvers for the requested mode."""

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()

    def calculate(self, inputs: PlanInputs, mode: PlanMode = PlanMode.STANDARD) -> PlanResult:
        """Calculate the plan for the given inputs and mode.

        Args:
            inputs: Normalized plan inputs
            mode: Planning question to answer

        Returns:
            PlanResult holding the final projection and any resolved value
        """
        calculator = ProjectionCalculator(inputs, self.config)
        horizon = inputs.years_to_plan
        expense_base = inputs.expenses_annual
        resolved_horizon = None
        resolved_expense = None

        if mode == PlanMode.FIND_MAX_YEARS:
            resolved_horizon = MaxHorizonSolver(calculator, self.config).solve(expense_base)
            # The final run needs at least one row to report
            horizon = max(1, resolved_horizon)
        elif mode == PlanMode.SOLVE_EXPENSES:
            resolved_expense = MaxExpenseSolver(calculator, self.config).solve(horizon)
            expense_base = float(resolved_expense)

        withdrawal = solve_for_inputs(inputs, horizon)
        projection = calculator.project(expense_base, horizon, withdrawal)

        return PlanResult(
            mode=mode,
            inputs=inputs,
            projection=projection,
            tax_deferred_withdrawal=withdrawal,
            horizon=horizon,
            expense_base=expense_base,
            resolved_horizon=resolved_horizon,
            resolved_expense=resolved_expense,
        )

    def calculate_from_spec(self, spec: dict, mode: Optional[PlanMode] = None) -> PlanResult:
        """Normalize a raw plan spec and calculate it.

        Args:
            spec: Raw plan fields as loaded from spec.json
            mode: Optional mode override; defaults to the plan's 'mode' field

        Returns:
            PlanResult for the plan
        """
        inputs = build_plan_inputs(spec)
        if mode is None:
            mode = parse_mode((spec or {}).get('mode'))
        return self.calculate(inputs, mode)
