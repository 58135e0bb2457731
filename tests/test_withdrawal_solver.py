"""Tests for the constant tax-deferred withdrawal solver."""

import os
import sys
import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../src')))

from calc.projection_calculator import ProjectionCalculator
from calc.withdrawal_solver import _ending_balance, solve_for_inputs, solve_withdrawal
from model.PlanInputs import AccountInputs, PlanInputs


def test_single_retirement_year_withdraws_everything():
    assert solve_withdrawal(0, 1, 50000.0, 0.0, 0.05) == pytest.approx(50000.0)


def test_two_years_without_growth_splits_evenly():
    assert solve_withdrawal(0, 2, 10000.0, 0.0, 0.0) == pytest.approx(5000.0)


def test_two_years_with_growth():
    # (B - W)(1 + r) - W = 0
    balance, rate = 10000.0, 0.05
    expected = balance * (1 + rate) / (2 + rate)
    assert solve_withdrawal(0, 2, balance, 0.0, rate) == pytest.approx(expected)


def test_contributions_before_retirement():
    # Year 0: 1000 + 500, year 1: 1500 - W = 0
    assert solve_withdrawal(1, 2, 1000.0, 500.0, 0.0) == pytest.approx(1500.0)


def test_no_retirement_year_in_horizon():
    assert solve_withdrawal(10, 5, 10000.0, 1000.0, 0.05) == 0.0
    assert solve_withdrawal(5, 5, 10000.0, 1000.0, 0.05) == 0.0


def test_non_positive_horizon():
    assert solve_withdrawal(0, 0, 10000.0, 0.0, 0.05) == 0.0
    assert solve_withdrawal(0, -3, 10000.0, 0.0, 0.05) == 0.0


def test_empty_account():
    assert solve_withdrawal(0, 10, 0.0, 0.0, 0.05) == 0.0


def test_withdrawal_drains_account_at_horizon():
    balance, contribution, rate = 100000.0, 5000.0, 0.05
    years_to_retire, horizon = 25, 30
    w = solve_withdrawal(years_to_retire, horizon, balance, contribution, rate)

    closing = balance
    for t in range(horizon):
        opening = balance if t == 0 else closing * (1 + rate)
        if t < years_to_retire:
            closing = opening + contribution
        else:
            closing = opening - w

    assert w > 0
    assert closing == pytest.approx(0.0, abs=1e-6)


def test_shorter_horizon_gives_larger_withdrawal():
    long_w = solve_withdrawal(0, 30, 500000.0, 0.0, 0.04)
    short_w = solve_withdrawal(0, 10, 500000.0, 0.0, 0.04)
    assert short_w > long_w


def test_solve_for_inputs_uses_tax_deferred_account():
    inputs = PlanInputs(
        years_to_retire=0,
        years_to_plan=2,
        tax_deferred=AccountInputs(initial_balance=10000.0, annual_return=0.0),
        tax_free=AccountInputs(initial_balance=999999.0),
    )
    assert solve_for_inputs(inputs, 2) == pytest.approx(5000.0)


def test_long_horizon_residual_is_below_epsilon():
    # 25 working years then 5 withdrawals: the two trial balances nearly cancel
    w = solve_withdrawal(25, 30, 100000.0, 5000.0, 0.05)
    residual = _ending_balance(w, 25, 30, 100000.0, 5000.0, 0.05)

    assert abs(residual) < 1e-7


def test_headline_plan_final_row_keeps_balance_identity():
    inputs = PlanInputs(
        current_age=40,
        years_to_retire=25,
        years_to_plan=30,
        income_annual=80000.0,
        expenses_annual=50000.0,
        inflation_rate=0.02,
        tax_deferred=AccountInputs(100000.0, 5000.0, 0.05),
        tax_free=AccountInputs(50000.0, 7000.0, 0.05),
        taxable=AccountInputs(20000.0, 0.0, 0.04),
    )
    w = solve_for_inputs(inputs, 30)
    final = ProjectionCalculator(inputs).project(50000.0, 30, w).rows[-1].tax_deferred

    assert final.closing == pytest.approx(final.opening + final.contribution - final.withdrawal, abs=1e-7)
    assert final.closing == pytest.approx(0.0, abs=1e-7)
