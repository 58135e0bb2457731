"""Constant tax-deferred (RRSP) withdrawal solver.

The tax-deferred account's ending balance is an affine function of the
constant withdrawal W taken in each retirement year, so two evaluations
(W=0 and W=1) give the slope and the root in closed form.
"""

from model.PlanInputs import PlanInputs


def _ending_balance(withdrawal: float, years_to_retire: int, horizon: int,
                    initial_balance: float, contribution: float, rate: float) -> float:
    """Tax-deferred balance at the end of the horizon for a given withdrawal.

    Year 0 opens at the initial balance with no growth; later years open
    at the prior closing grown by one period.
    """
    closing = initial_balance
    for t in range(horizon):
        opening = initial_balance if t == 0 else closing * (1 + rate)
        contrib = contribution if t < years_to_retire else 0.0
        withdraw = withdrawal if t >= years_to_retire else 0.0
        closing = opening + contrib - withdraw
    return closing


def solve_withdrawal(years_to_retire: int, horizon: int, initial_balance: float,
                     contribution: float, rate: float) -> float:
    """Find the constant retirement withdrawal that empties the account at the horizon.

    Args:
        years_to_retire: Years before withdrawals start
        horizon: Total number of projected years
        initial_balance: Starting tax-deferred balance
        contribution: Annual contribution during working years
        rate: Annual rate of return (fraction)

    Returns:
        The withdrawal W >= 0, or 0 when no retirement year falls inside
        the horizon or the balance cannot support any withdrawal
    """
    if horizon <= 0:
        return 0.0

    a0 = _ending_balance(0.0, years_to_retire, horizon, initial_balance, contribution, rate)
    a1 = _ending_balance(1.0, years_to_retire, horizon, initial_balance, contribution, rate)
    slope = a0 - a1

    if slope <= 0:
        return 0.0
    withdrawal = a0 / slope

    # a0 and a1 nearly cancel for long horizons; one Newton step on the
    # affine ending balance removes the leftover residual
    residual = _ending_balance(withdrawal, years_to_retire, horizon, initial_balance, contribution, rate)
    withdrawal += residual / slope
    return max(0.0, withdrawal)


def solve_for_inputs(inputs: PlanInputs, horizon: int) -> float:
    """Solve the tax-deferred withdrawal for a plan at the given horizon."""
    account = inputs.tax_deferred
    return solve_withdrawal(
        years_to_retire=inputs.years_to_retire,
        horizon=horizon,
        initial_balance=account.initial_balance,
        contribution=account.annual_contribution,
        rate=account.annual_return,
    )
