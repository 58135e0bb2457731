"""Savings Planner Tools for MCP Server.

This module provides the tool implementations that wrap the projection
engine and expose plan results through MCP.
"""

import os
import sys
import json
from dataclasses import asdict, replace
from typing import Dict, List, Optional

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from calc.engine_config import EngineConfig, load_engine_config
from calc.input_normalizer import build_plan_inputs, parse_mode
from calc.plan_calculator import PlanCalculator
from model.PlanInputs import PlanMode
from model.ProjectionData import PlanResult, YearRow, year_row_to_dict


def _round_row(row: YearRow) -> dict:
    """Row as a dict with currency values rounded to cents."""
    data = year_row_to_dict(row)
    for key, value in data.items():
        if isinstance(value, float):
            data[key] = round(value, 2)
        elif isinstance(value, dict):
            data[key] = {k: round(v, 2) for k, v in value.items()}
    return data


class SavingsPlannerTools:
    """Tools that wrap the projection engine for one plan."""

    def __init__(self, base_path: str, plan_name: str, config: Optional[EngineConfig] = None):
        """Initialize with paths and calculate the plan.

        Args:
            base_path: Path to the savings-planner root directory
            plan_name: Name of the plan folder in input-parameters
            config: Engine settings; loaded from reference/ when omitted
        """
        self.base_path = base_path
        self.plan_name = plan_name
        self.spec = self._load_spec()
        self.config = config or self._load_config()
        self.calculator = PlanCalculator(self.config)
        self.inputs = build_plan_inputs(self.spec)
        self.mode = parse_mode(self.spec.get('mode'))
        self.result: PlanResult = self.calculator.calculate(self.inputs, self.mode)

    def _load_spec(self) -> dict:
        """Load the raw plan fields from spec.json."""
        spec_path = os.path.join(
            self.base_path, 'input-parameters', self.plan_name, 'spec.json'
        )
        with open(spec_path, 'r') as f:
            return json.load(f)

    def _load_config(self) -> EngineConfig:
        settings_path = os.path.join(self.base_path, 'reference', 'solver-settings.json')
        if os.path.exists(settings_path):
            return load_engine_config(settings_path)
        return EngineConfig()

    def get_plan_overview(self) -> dict:
        """Get an overview of the plan inputs and the result of its mode."""
        inputs = self.inputs
        result = self.result
        return {
            "plan_name": self.plan_name,
            "mode": self.mode.value,
            "current_age": inputs.current_age,
            "years_to_retire": inputs.years_to_retire,
            "retirement_age": inputs.current_age + inputs.years_to_retire,
            "years_to_plan": inputs.years_to_plan,
            "income_annual": inputs.income_annual,
            "expenses_annual": inputs.expenses_annual,
            "inflation_rate": inputs.inflation_rate,
            "accounts": {
                "tax_deferred": asdict(inputs.tax_deferred),
                "tax_free": asdict(inputs.tax_free),
                "taxable": asdict(inputs.taxable),
            },
            "result": {
                "horizon": result.horizon,
                "expense_base": round(result.expense_base, 2),
                "tax_deferred_withdrawal": round(result.tax_deferred_withdrawal, 2),
                "resolved_horizon": result.resolved_horizon,
                "resolved_expense": result.resolved_expense,
                "years_projected": result.projection.years_survived,
                "depleted": result.projection.depleted,
                "ending_total": round(result.ending_total, 2),
            }
        }

    def get_projection(self, start_age: Optional[int] = None, end_age: Optional[int] = None) -> dict:
        """Get projected rows, optionally limited to an age range."""
        start = start_age if start_age is not None else self.result.first_age
        end = end_age if end_age is not None else self.result.last_age
        rows = [_round_row(row) for row in self.result.rows if start <= row.age <= end]
        return {
            "mode": self.mode.value,
            "start_age": start,
            "end_age": end,
            "tax_deferred_withdrawal": round(self.result.tax_deferred_withdrawal, 2),
            "stopped_early": self.result.projection.stopped_early,
            "rows": rows,
        }

    def get_year_details(self, age: int) -> dict:
        """Get the projected row for a specific age."""
        row = self.result.get_age(age)
        if row is None:
            return {"error": f"No projection for age {age}. "
                             f"Available ages: {self.result.first_age}-{self.result.last_age}"}
        data = _round_row(row)
        data["is_working_year"] = row.is_working_year
        data["total_closing"] = round(row.total_closing(), 2)
        return data

    def get_final_balances(self) -> dict:
        """Get closing balances at the end of the projection."""
        final = self.result.projection.final_row()
        if final is None:
            return {"error": "Projection has no rows"}
        return {
            "age": final.age,
            "tax_deferred": round(final.tax_deferred.closing, 2),
            "tax_free": round(final.tax_free.closing, 2),
            "taxable": round(final.taxable.closing, 2),
            "total": round(self.result.ending_total, 2),
            "depleted": self.result.projection.depleted,
        }

    def find_max_years(self, expenses_annual: Optional[float] = None) -> dict:
        """Find how many years a starting expense can be sustained."""
        inputs = self.inputs
        if expenses_annual is not None:
            inputs = replace(inputs, expenses_annual=max(0.0, float(expenses_annual)))
        result = self.calculator.calculate(inputs, PlanMode.FIND_MAX_YEARS)
        years = result.resolved_horizon
        return {
            "expenses_annual": round(inputs.expenses_annual, 2),
            "max_years": years,
            "through_age": inputs.current_age + years - 1 if years else None,
            "tax_deferred_withdrawal": round(result.tax_deferred_withdrawal, 2),
            "ending_total": round(result.ending_total, 2),
        }

    def solve_max_expenses(self, years_to_plan: Optional[int] = None) -> dict:
        """Find the largest starting expense sustainable for a horizon."""
        inputs = self.inputs
        if years_to_plan is not None:
            inputs = replace(inputs, years_to_plan=max(1, int(years_to_plan)))
        result = self.calculator.calculate(inputs, PlanMode.SOLVE_EXPENSES)
        return {
            "years_to_plan": inputs.years_to_plan,
            "max_expenses_annual": result.resolved_expense,
            "tax_deferred_withdrawal": round(result.tax_deferred_withdrawal, 2),
            "ending_total": round(result.ending_total, 2),
        }


class MultiPlanTools:
    """Manager for multiple savings plans.

    Discovers all available plans and caches their results,
    allowing queries to specify which plan to use.
    """

    def __init__(self, base_path: str, default_plan: Optional[str] = None):
        """Initialize and discover all available plans.

        Args:
            base_path: Path to the savings-planner root directory
            default_plan: Default plan to use when none specified
        """
        self.base_path = base_path
        self.plans: Dict[str, SavingsPlannerTools] = {}
        self.default_plan = default_plan
        self._discover_plans()

    def _discover_plans(self):
        """Discover and load all available plans."""
        input_params_path = os.path.join(self.base_path, 'input-parameters')

        if not os.path.exists(input_params_path):
            return

        for name in sorted(os.listdir(input_params_path)):
            plan_dir = os.path.join(input_params_path, name)
            spec_path = os.path.join(plan_dir, 'spec.json')

            if os.path.isdir(plan_dir) and os.path.exists(spec_path):
                try:
                    self.plans[name] = SavingsPlannerTools(self.base_path, name)
                except (OSError, ValueError) as e:
                    # Log but don't fail on individual plan errors
                    print(f"Warning: Failed to load plan '{name}': {e}", file=sys.stderr)

        # Set default if not specified
        if self.default_plan is None and self.plans:
            self.default_plan = list(self.plans.keys())[0]

    def _get_plan(self, plan: Optional[str] = None, require_explicit: bool = False) -> SavingsPlannerTools:
        """Get the specified plan or default.

        Args:
            plan: Plan name to use, or None for default
            require_explicit: If True, raise error when plan not specified and multiple exist
        """
        if plan is None and len(self.plans) > 1 and require_explicit:
            available = list(self.plans.keys())
            raise ValueError(
                f"Multiple plans available: {available}. Please specify which plan to query."
            )

        plan_name = plan or self.default_plan

        if plan_name not in self.plans:
            available = list(self.plans.keys())
            raise ValueError(
                f"Plan '{plan_name}' not found. Available plans: {available}"
            )

        return self.plans[plan_name]

    def list_plans(self) -> dict:
        """List all available plans."""
        plans_info = {}
        for name, tools in self.plans.items():
            plans_info[name] = {
                "mode": tools.mode.value,
                "current_age": tools.inputs.current_age,
                "years_to_retire": tools.inputs.years_to_retire,
                "years_to_plan": tools.inputs.years_to_plan,
                "expenses_annual": tools.inputs.expenses_annual,
            }

        return {
            "available_plans": list(self.plans.keys()),
            "default_plan": self.default_plan,
            "plans_info": plans_info
        }

    def reload_plans(self) -> dict:
        """Reload all plans from disk, refreshing the cache."""
        old_plans = set(self.plans.keys())

        self.plans.clear()
        self.default_plan = None
        self._discover_plans()

        new_plans = set(self.plans.keys())

        return {
            "status": "success",
            "message": f"Reloaded {len(self.plans)} plans",
            "plans_loaded": list(self.plans.keys()),
            "default_plan": self.default_plan,
            "changes": {
                "added": sorted(new_plans - old_plans),
                "removed": sorted(old_plans - new_plans),
                "reloaded": sorted(old_plans & new_plans)
            }
        }

    def get_plan_overview(self, plan: Optional[str] = None) -> dict:
        """Get an overview of the specified plan."""
        result = self._get_plan(plan, require_explicit=True).get_plan_overview()
        result["plan"] = plan or self.default_plan
        return result

    def get_projection(self, start_age: Optional[int] = None, end_age: Optional[int] = None,
                       plan: Optional[str] = None) -> dict:
        """Get projected rows for the specified plan."""
        result = self._get_plan(plan, require_explicit=True).get_projection(start_age, end_age)
        result["plan"] = plan or self.default_plan
        return result

    def get_year_details(self, age: int, plan: Optional[str] = None) -> dict:
        """Get the projected row for an age."""
        result = self._get_plan(plan, require_explicit=True).get_year_details(age)
        result["plan"] = plan or self.default_plan
        return result

    def get_final_balances(self, plan: Optional[str] = None) -> dict:
        """Get the final closing balances."""
        result = self._get_plan(plan, require_explicit=True).get_final_balances()
        result["plan"] = plan or self.default_plan
        return result

    def find_max_years(self, expenses_annual: Optional[float] = None, plan: Optional[str] = None) -> dict:
        """Find the longest sustainable horizon."""
        result = self._get_plan(plan, require_explicit=True).find_max_years(expenses_annual)
        result["plan"] = plan or self.default_plan
        return result

    def solve_max_expenses(self, years_to_plan: Optional[int] = None, plan: Optional[str] = None) -> dict:
        """Find the largest sustainable starting expense."""
        result = self._get_plan(plan, require_explicit=True).solve_max_expenses(years_to_plan)
        result["plan"] = plan or self.default_plan
        return result

    def compare_plans(self, plan1: str, plan2: str, metrics: Optional[List[str]] = None) -> dict:
        """Compare two plans and report which one leaves the stronger position.

        Args:
            plan1: First plan name to compare
            plan2: Second plan name to compare
            metrics: Optional list of specific metrics to focus on. If None, compares all.
                     Options: 'ending_total', 'years_projected', 'tax_deferred_withdrawal',
                              'max_years', 'max_expenses'
        """
        if plan1 not in self.plans:
            return {"error": f"Plan '{plan1}' not found. Available: {list(self.plans.keys())}"}
        if plan2 not in self.plans:
            return {"error": f"Plan '{plan2}' not found. Available: {list(self.plans.keys())}"}

        tools1 = self.plans[plan1]
        tools2 = self.plans[plan2]

        def compare_metric(val1: float, val2: float, higher_is_better: bool = True) -> dict:
            """Compare a metric and determine winner."""
            diff = val2 - val1
            if higher_is_better:
                winner = plan1 if val1 > val2 else (plan2 if val2 > val1 else "tie")
            else:
                winner = plan1 if val1 < val2 else (plan2 if val2 < val1 else "tie")
            return {
                plan1: round(val1, 2),
                plan2: round(val2, 2),
                "difference": round(diff, 2),
                "better": winner,
                "higher_is_better": higher_is_better
            }

        all_metrics = {
            "ending_total": ("Final Total Assets",
                             lambda t: t.result.ending_total),
            "years_projected": ("Years Projected",
                                lambda t: t.result.projection.years_survived),
            "tax_deferred_withdrawal": ("RRSP Fixed Withdrawal",
                                        lambda t: t.result.tax_deferred_withdrawal),
            "max_years": ("Maximum Sustainable Years",
                          lambda t: t.find_max_years()["max_years"]),
            "max_expenses": ("Maximum Sustainable Expense",
                             lambda t: t.solve_max_expenses()["max_expenses_annual"]),
        }

        if metrics:
            metrics_to_compare = {k: v for k, v in all_metrics.items() if k in metrics}
            if not metrics_to_compare:
                return {
                    "error": f"No valid metrics specified. Available metrics: {list(all_metrics.keys())}"
                }
        else:
            metrics_to_compare = all_metrics

        comparison = {"metrics": {}}
        wins = {plan1: 0, plan2: 0, "tie": 0}

        for key, (description, getter) in metrics_to_compare.items():
            result = compare_metric(float(getter(tools1)), float(getter(tools2)))
            comparison["metrics"][key] = {"description": description, **result}
            wins[result["better"]] += 1

        if wins[plan1] > wins[plan2]:
            overall = plan1
        elif wins[plan2] > wins[plan1]:
            overall = plan2
        else:
            overall = "tie"

        comparison["summary"] = {
            "metrics_compared": len(metrics_to_compare),
            "wins": {plan1: wins[plan1], plan2: wins[plan2], "tied": wins["tie"]},
            "overall_better": overall,
        }

        if overall == "tie":
            comparison["recommendation"] = f"Both plans are roughly equivalent, each winning {wins[plan1]} metrics."
        else:
            loser = plan2 if overall == plan1 else plan1
            comparison["recommendation"] = (
                f"'{overall}' appears stronger, winning {wins[overall]} of {len(metrics_to_compare)} "
                f"metrics compared to {wins[loser]} for '{loser}'."
            )

        return comparison
