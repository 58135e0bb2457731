"""Tests for the PlanCalculator mode dispatcher.

Each mode ends with a single final projection:
1. standard - entered horizon and expense
2. findMaxYears - resolved horizon and entered expense
3. solveExpenses - entered horizon and resolved expense
"""

import os
import sys
import pytest
from unittest.mock import patch

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../src')))

from calc.engine_config import EngineConfig
from calc.input_normalizer import build_plan_inputs
from calc.plan_calculator import PlanCalculator
from calc.withdrawal_solver import solve_for_inputs
from model.PlanInputs import PlanMode
from model.ProjectionData import plan_result_to_dict


SAMPLE_SPEC = {
    'currentAge': 40,
    'yearsToRetire': 25,
    'yearsToPlan': 30,
    'rrspInitialBalance': 100000,
    'rrspContribute': 5000,
    'rrspRoi': 5,
    'tfsaInitialBalance': 50000,
    'tfsaContribute': 7000,
    'tfsaRoi': 5,
    'nonRegisteredInitialBalance': 20000,
    'nonRegisteredRoi': 4,
    'incomeAnnual': 80000,
    'expensesAnnual': 50000,
    'inflationRate': 2,
}


@pytest.fixture
def sample_inputs():
    return build_plan_inputs(SAMPLE_SPEC)


@pytest.fixture
def calculator():
    return PlanCalculator()


class TestStandardMode:

    def test_uses_entered_horizon_and_expense(self, calculator, sample_inputs):
        result = calculator.calculate(sample_inputs)

        assert result.mode == PlanMode.STANDARD
        assert result.horizon == 30
        assert result.expense_base == 50000.0
        assert result.resolved_horizon is None
        assert result.resolved_expense is None
        assert len(result.rows) == 30
        assert result.first_age == 40
        assert result.last_age == 69

    def test_withdrawal_matches_solver(self, calculator, sample_inputs):
        result = calculator.calculate(sample_inputs)

        assert result.tax_deferred_withdrawal == solve_for_inputs(sample_inputs, 30)
        assert result.projection.fixed_withdrawal == result.tax_deferred_withdrawal

    def test_get_age(self, calculator, sample_inputs):
        result = calculator.calculate(sample_inputs)

        assert result.get_age(65).year_index == 25
        assert result.get_age(65).income == 0.0
        assert result.get_age(39) is None
        assert result.get_age(70) is None


class TestFindMaxYearsMode:

    def test_unaffordable_expense(self, calculator, sample_inputs):
        inputs = build_plan_inputs({**SAMPLE_SPEC, 'expensesAnnual': 500000})
        result = calculator.calculate(inputs, PlanMode.FIND_MAX_YEARS)

        assert result.resolved_horizon == 0
        assert result.horizon == 1
        assert len(result.rows) == 1
        assert result.projection.depleted
        assert result.projection.years_funded == 0

    def test_final_run_uses_resolved_horizon(self, calculator, sample_inputs):
        result = calculator.calculate(sample_inputs, PlanMode.FIND_MAX_YEARS)

        assert result.horizon == result.resolved_horizon
        assert len(result.rows) == result.resolved_horizon
        assert not result.projection.depleted
        assert result.tax_deferred_withdrawal == solve_for_inputs(sample_inputs, result.horizon)

    def test_zero_horizon_still_reports_one_row(self, sample_inputs):
        calculator = PlanCalculator(EngineConfig(max_horizon_years=0))
        result = calculator.calculate(sample_inputs, PlanMode.FIND_MAX_YEARS)

        assert result.resolved_horizon == 0
        assert result.horizon == 1
        assert len(result.rows) == 1


class TestSolveExpensesMode:

    def test_resolved_expense_drives_final_run(self, calculator, sample_inputs):
        result = calculator.calculate(sample_inputs, PlanMode.SOLVE_EXPENSES)

        assert isinstance(result.resolved_expense, int)
        assert result.expense_base == float(result.resolved_expense)
        assert result.horizon == 30
        assert len(result.rows) == 30
        assert not result.projection.depleted
        assert result.rows[0].expense == pytest.approx(result.resolved_expense)

    def test_solver_is_called_with_entered_horizon(self, calculator, sample_inputs):
        with patch('calc.plan_calculator.MaxExpenseSolver') as mock_solver:
            mock_solver.return_value.solve.return_value = 40000
            result = calculator.calculate(sample_inputs, PlanMode.SOLVE_EXPENSES)

        mock_solver.return_value.solve.assert_called_once_with(30)
        assert result.resolved_expense == 40000
        assert result.expense_base == 40000.0


class TestCalculateFromSpec:

    def test_mode_read_from_spec(self, calculator):
        spec = {**SAMPLE_SPEC, 'mode': 'findMaxYears', 'expensesAnnual': 500000}
        result = calculator.calculate_from_spec(spec)

        assert result.mode == PlanMode.FIND_MAX_YEARS
        assert result.resolved_horizon == 0

    def test_explicit_mode_overrides_spec(self, calculator):
        spec = {**SAMPLE_SPEC, 'mode': 'findMaxYears'}
        result = calculator.calculate_from_spec(spec, PlanMode.STANDARD)

        assert result.mode == PlanMode.STANDARD
        assert result.resolved_horizon is None

    def test_missing_mode_is_standard(self, calculator):
        assert calculator.calculate_from_spec(SAMPLE_SPEC).mode == PlanMode.STANDARD

    def test_empty_spec(self, calculator):
        result = calculator.calculate_from_spec({})

        assert len(result.rows) == 1
        assert result.ending_total == 0.0
        assert not result.projection.depleted


def test_result_to_dict(calculator, sample_inputs):
    data = plan_result_to_dict(calculator.calculate(sample_inputs, PlanMode.SOLVE_EXPENSES))

    assert data["mode"] == "solveExpenses"
    assert data["horizon"] == 30
    assert data["resolved_horizon"] is None
    assert isinstance(data["resolved_expense"], int)
    assert data["years_survived"] == 30
    assert len(data["rows"]) == 30
    assert data["rows"][0]["age"] == 40
    assert set(data["rows"][0]["tax_free"]) == {"opening", "contribution", "withdrawal", "closing"}
    assert data["inputs"]["tax_deferred"]["initial_balance"] == 100000.0
