"""Input normalizer.

Converts the raw plan fields (numbers, numeric text, currency strings,
blanks or junk) into a validated PlanInputs. Every function here is total:
bad input becomes a default value instead of an exception.
"""

import math
import re
from typing import Any, Optional

from model.PlanInputs import AccountInputs, PlanInputs, PlanMode


# Share of income used for the tax-deferred contribution when auto mode is on
AUTO_CONTRIBUTION_FRACTION = 0.18

_NON_NUMERIC = re.compile(r'[^\d.\-]')


def to_number(value: Any) -> float:
    """Coerce a raw value to a finite float, defaulting to 0.

    Numeric text may carry currency symbols, separators or spaces
    ("$1,200" -> 1200.0).
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return 0.0
        return number if math.isfinite(number) else 0.0

    text = str(value).strip()
    if text == "":
        return 0.0
    cleaned = _NON_NUMERIC.sub('', text)
    try:
        number = float(cleaned) if cleaned else 0.0
    except ValueError:
        return 0.0
    return number if math.isfinite(number) else 0.0


def to_int(value: Any, default: int = 0) -> int:
    """Coerce a raw value to an int (truncating), or default when absent/unparsable."""
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return default
    number = to_number(value)
    if number == 0 and _looks_unparsable(value):
        return default
    return int(number)


def _looks_unparsable(value: Any) -> bool:
    if isinstance(value, bool):
        return True
    if isinstance(value, (int, float)):
        try:
            return not math.isfinite(float(value))
        except OverflowError:
            return True
    cleaned = _NON_NUMERIC.sub('', str(value))
    try:
        float(cleaned)
    except ValueError:
        return True
    return False


def normalize_rate(value: Any) -> float:
    """Convert a rate to a fraction in [0, 1].

    Whole-number percentages are accepted: 2 -> 0.02, 0.02 -> 0.02.
    """
    rate = to_number(value)
    if rate > 1:
        rate = rate / 100
    return min(max(rate, 0.0), 1.0)


def normalize_money(value: Any) -> float:
    """Coerce a monetary amount, flooring negatives at 0."""
    return max(0.0, to_number(value))


def parse_mode(value: Any) -> PlanMode:
    """Parse a plan mode, falling back to standard for unknown values."""
    if isinstance(value, PlanMode):
        return value
    text = str(value).strip() if value is not None else ""
    for mode in PlanMode:
        if text == mode.value or text.lower() == mode.value.lower() or text.upper() == mode.name:
            return mode
    return PlanMode.STANDARD


def _is_truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return bool(value)


def build_plan_inputs(raw: Optional[dict]) -> PlanInputs:
    """Build validated PlanInputs from the raw flat form fields.

    Args:
        raw: Dictionary of form fields (currentAge, yearsToRetire,
             yearsToPlan, incomeAnnual, expensesAnnual, inflationRate,
             rrsp*, tfsa*, nonRegistered*). Missing keys default to 0.

    Returns:
        PlanInputs with normalized rates and non-negative amounts
    """
    raw = raw or {}

    income_annual = normalize_money(raw.get('incomeAnnual'))

    if _is_truthy(raw.get('rrspContributeAuto', False)):
        rrsp_contribution = float(round(income_annual * AUTO_CONTRIBUTION_FRACTION))
    else:
        rrsp_contribution = normalize_money(raw.get('rrspContribute'))

    return PlanInputs(
        current_age=max(0, to_int(raw.get('currentAge'))),
        years_to_retire=max(0, to_int(raw.get('yearsToRetire'))),
        years_to_plan=max(1, to_int(raw.get('yearsToPlan'))),
        income_annual=income_annual,
        expenses_annual=normalize_money(raw.get('expensesAnnual')),
        inflation_rate=normalize_rate(raw.get('inflationRate')),
        tax_deferred=AccountInputs(
            initial_balance=normalize_money(raw.get('rrspInitialBalance')),
            annual_contribution=rrsp_contribution,
            annual_return=normalize_rate(raw.get('rrspRoi')),
        ),
        tax_free=AccountInputs(
            initial_balance=normalize_money(raw.get('tfsaInitialBalance')),
            annual_contribution=normalize_money(raw.get('tfsaContribute')),
            annual_return=normalize_rate(raw.get('tfsaRoi')),
        ),
        taxable=AccountInputs(
            initial_balance=normalize_money(raw.get('nonRegisteredInitialBalance')),
            annual_contribution=0.0,
            annual_return=normalize_rate(raw.get('nonRegisteredRoi')),
        ),
    )
