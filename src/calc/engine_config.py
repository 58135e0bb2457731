"""Solver settings shared by the simulator and the solvers."""

import json
import os
from dataclasses import dataclass


@dataclass(frozen=True)
class EngineConfig:
    """Tolerances and iteration budgets for the projection engine.

    Attributes:
        epsilon: Closing balances below this are clamped to zero, and an
            uncovered need must exceed it to count as depletion
        expense_bisection_iterations: Bisection steps for the spending search
        horizon_iterations: Fixed-point steps for the horizon search
        max_horizon_years: Starting candidate for the horizon search
        expense_search_floor: Smallest upper bracket for the spending search
        expense_search_cap: Largest upper bracket for the spending search
    """
    epsilon: float = 1e-9
    expense_bisection_iterations: int = 50
    horizon_iterations: int = 25
    max_horizon_years: int = 100
    expense_search_floor: float = 1000.0
    expense_search_cap: float = 1e9


DEFAULT_SETTINGS_PATH = os.path.normpath(
    os.path.join(os.path.dirname(__file__), '../../reference', 'solver-settings.json'))


def load_engine_config(path: str = DEFAULT_SETTINGS_PATH) -> EngineConfig:
    """Load solver settings from a JSON reference file.

    Keys missing from the file keep their EngineConfig defaults.

    Args:
        path: Path to the settings JSON file

    Returns:
        EngineConfig populated from the file
    """
    with open(path, 'r') as f:
        settings = json.load(f)

    defaults = EngineConfig()
    return EngineConfig(
        epsilon=float(settings.get('epsilon', defaults.epsilon)),
        expense_bisection_iterations=int(settings.get('expenseBisectionIterations',
                                                      defaults.expense_bisection_iterations)),
        horizon_iterations=int(settings.get('horizonIterations', defaults.horizon_iterations)),
        max_horizon_years=int(settings.get('maxHorizonYears', defaults.max_horizon_years)),
        expense_search_floor=float(settings.get('expenseSearchFloor', defaults.expense_search_floor)),
        expense_search_cap=float(settings.get('expenseSearchCap', defaults.expense_search_cap)),
    )
