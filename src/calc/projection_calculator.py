"""Year-by-year projection of the three savings accounts.

Each year is computed from the previous year's closing balances only:
1. Working years - income pays expenses and contributions, any surplus
   goes to the taxable account, any shortfall is drawn from the taxable
   account and then the tax-free account
2. Retirement years - the fixed tax-deferred withdrawal pays expenses
   first, then the taxable account, then the tax-free account
"""

from typing import List, Optional, Tuple

from calc.engine_config import EngineConfig
from model.PlanInputs import PlanInputs
from model.ProjectionData import AccountYear, ProjectionResult, YearRow


def _draw_tax_free(opening: float, contribution: float, need: float) -> Tuple[float, float, float]:
    """Cover a need from the tax-free account.

    The year's planned contribution is clawed back first, then the
    opening balance is withdrawn.

    Returns:
        Tuple of (contribution, withdrawal, uncovered need)
    """
    if need <= 0:
        return contribution, 0.0, 0.0
    clawback = min(contribution, need)
    contribution -= clawback
    need -= clawback
    withdrawal = min(max(opening, 0.0), need)
    return contribution, withdrawal, need - withdrawal


class ProjectionCalculator:
    """Simulator for the tax-deferred, tax-free and taxable accounts.

    The calculator holds only immutable inputs and settings, so one
    instance can be reused for any number of project() calls.
    """

    def __init__(self, inputs: PlanInputs, config: Optional[EngineConfig] = None):
        """Initialize with plan inputs and solver settings.

        Args:
            inputs: Normalized plan inputs
            config: Engine settings (epsilon is used for clamping and depletion)
        """
        self.inputs = inputs
        self.config = config or EngineConfig()

    def _clamp(self, balance: float) -> float:
        return 0.0 if balance < self.config.epsilon else balance

    def project(self, expense_base: float, horizon: int, fixed_withdrawal: float) -> ProjectionResult:
        """Simulate every year of the horizon.

        Args:
            expense_base: Year 0 expense; later years are inflated
            horizon: Number of years to simulate
            fixed_withdrawal: Constant tax-deferred withdrawal in retirement years

        Returns:
            ProjectionResult with one row per simulated year. The rows stop
            at the first year whose need cannot be covered, unless that
            year is the last of the horizon.
        """
        inputs = self.inputs
        eps = self.config.epsilon
        td = inputs.tax_deferred
        tf = inputs.tax_free
        tx = inputs.taxable

        rows: List[YearRow] = []
        td_prev = td.initial_balance
        tf_prev = tf.initial_balance
        tx_prev = tx.initial_balance
        taxable_closed = False
        depleted = False
        stopped_early = False

        for t in range(horizon):
            working = t < inputs.years_to_retire
            income = inputs.income_annual if working else 0.0
            expense = expense_base * (1 + inputs.inflation_rate) ** t

            # Year 0 opens at the initial balance, later years grow the prior closing
            if t == 0:
                td_open, tf_open, tx_open = td.initial_balance, tf.initial_balance, tx.initial_balance
            else:
                td_open = td_prev * (1 + td.annual_return)
                tf_open = tf_prev * (1 + tf.annual_return)
                tx_open = tx_prev * (1 + tx.annual_return)

            td_contrib = td.annual_contribution if working else 0.0
            td_withdraw = fixed_withdrawal if not working else 0.0
            tf_contrib = tf.annual_contribution if working else 0.0
            tf_withdraw = 0.0
            tx_contrib = 0.0
            tx_withdraw = 0.0

            if income > 0:
                surplus = income - expense - td_contrib - tf_contrib
                if surplus >= 0:
                    if not taxable_closed:
                        tx_contrib = surplus
                    unmet = 0.0
                else:
                    shortfall = -surplus
                    tx_withdraw = min(tx_open, shortfall)
                    tf_contrib, tf_withdraw, unmet = _draw_tax_free(
                        tf_open, tf_contrib, shortfall - tx_withdraw)
            else:
                need = max(0.0, expense - td_withdraw)
                surplus = max(0.0, td_withdraw - expense)
                if surplus > 0 and not taxable_closed:
                    tx_contrib = surplus
                tx_withdraw = min(tx_open, need)
                tf_contrib, tf_withdraw, unmet = _draw_tax_free(
                    tf_open, tf_contrib, need - tx_withdraw)

            td_close = self._clamp(td_open + td_contrib - td_withdraw)
            tf_close = self._clamp(tf_open + tf_contrib - tf_withdraw)
            tx_close = self._clamp(tx_open + tx_contrib - tx_withdraw)

            if tx_withdraw > 0 and tx_close == 0:
                taxable_closed = True

            rows.append(YearRow(
                year_index=t,
                age=inputs.current_age + t,
                income=income,
                expense=expense,
                tax_deferred=AccountYear(td_open, td_contrib, td_withdraw, td_close),
                tax_free=AccountYear(tf_open, tf_contrib, tf_withdraw, tf_close),
                taxable=AccountYear(tx_open, tx_contrib, tx_withdraw, tx_close),
            ))

            if unmet > eps:
                depleted = True
                if t < horizon - 1:
                    stopped_early = True
                    break

            td_prev, tf_prev, tx_prev = td_close, tf_close, tx_close

        return ProjectionResult(
            rows=tuple(rows),
            horizon=horizon,
            fixed_withdrawal=fixed_withdrawal,
            stopped_early=stopped_early,
            depleted=depleted,
        )
