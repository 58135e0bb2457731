"""Renderer classes for displaying savings projection results.

This module contains renderer classes that handle the presentation logic
for a plan result. Each renderer takes the PlanResult produced by the
PlanCalculator and extracts the rows and fields it needs.
"""

import json
import os
import sys
from abc import ABC, abstractmethod
from typing import Any, Dict, List

from model.ProjectionData import ACCOUNT_NAMES, PlanResult, YearRow, plan_result_to_dict
from model.PlanInputs import PlanMode
from model.field_metadata import ACCOUNT_LABELS, get_short_name, get_field_value, wrap_header


# Path to built-in custom renderer configuration file (in source)
CUSTOM_CONFIG_PATH = os.path.join(os.path.dirname(__file__), 'config', 'custom.json')

ACCOUNT_COLUMNS = ('opening', 'contribution', 'withdrawal', 'closing')

# Field paths that hold currency amounts
FIELD_PATHS = {"income", "expense"} | {
    f"{account}.{column}" for account in ACCOUNT_NAMES for column in ACCOUNT_COLUMNS
}

MODE_LABELS = {
    PlanMode.STANDARD: 'Standard Plan',
    PlanMode.FIND_MAX_YEARS: 'Find Max Years',
    PlanMode.SOLVE_EXPENSES: 'Solve Expenses',
}


def format_multiline_headers(columns: List[tuple], age_width: int = 6) -> tuple[List[str], str]:
    """Format column headers with multi-line wrapping support.

    Args:
        columns: List of (header_text, width) tuples for each column
        age_width: Width of the Age column (default 6)

    Returns:
        Tuple of (list of header lines, separator line)
    """
    wrapped_headers = []
    for header, width in columns:
        lines = wrap_header(header, width)
        wrapped_headers.append((lines, width))

    max_lines = max(len(lines) for lines, _ in wrapped_headers) if wrapped_headers else 1

    # Pad all headers to have the same number of lines (pad at top)
    for lines, _ in wrapped_headers:
        while len(lines) < max_lines:
            lines.insert(0, "")

    header_lines = []
    for line_idx in range(max_lines):
        if line_idx == max_lines - 1:
            header_line = f"  {'Age':<{age_width}}"
        else:
            header_line = f"  {'':<{age_width}}"

        for lines, width in wrapped_headers:
            header_line += f" {lines[line_idx]:>{width}}"
        header_lines.append(header_line)

    sep_line = f"  {'-' * age_width}"
    for _, width in wrapped_headers:
        sep_line += f" {'-' * width}"

    return header_lines, sep_line


def parse_age_range(age_range: str, result: PlanResult) -> tuple:
    """Parse an age range string into start and end ages.

    Args:
        age_range: String in format 'startAge-endAge', 'startAge-', '-endAge' or 'age'
        result: PlanResult to get default ages from

    Returns:
        Tuple of (start_age, end_age)
    """
    if '-' not in age_range:
        age = int(age_range)
        return (age, age)

    parts = age_range.split('-')
    start_age = int(parts[0]) if parts[0] else result.first_age
    end_age = int(parts[1]) if parts[1] else result.last_age
    return (start_age, end_age)


def exhausted_from(rows: tuple, account: str) -> int:
    """Index of the first row after which an account stays empty.

    An account is permanently exhausted from a row when that row and every
    later row has no balance and no activity. Returns len(rows) when the
    account is never permanently exhausted.
    """
    index = len(rows)
    while index > 0 and rows[index - 1].account(account).is_empty():
        index -= 1
    return index


def _money(value: float, width: int) -> str:
    return f"${value:>{width - 1},.0f}"


class BaseRenderer(ABC):
    """Abstract base class for all renderers."""

    def __init__(self, start_age: int = None, end_age: int = None):
        """Initialize with optional age range.

        Args:
            start_age: First age to display (defaults to the first projected age)
            end_age: Last age to display (defaults to the last projected age)
        """
        self.start_age = start_age
        self.end_age = end_age

    def _rows_in_range(self, result: PlanResult) -> List[YearRow]:
        start = self.start_age if self.start_age is not None else result.first_age
        end = self.end_age if self.end_age is not None else result.last_age
        return [row for row in result.rows if start <= row.age <= end]

    @abstractmethod
    def render(self, result: PlanResult) -> None:
        """Render the result to output.

        Args:
            result: The PlanResult containing the final projection
        """
        pass


class ProjectionRenderer(BaseRenderer):
    """Renderer for the full per-account projection table.

    Shows opening balance, contribution, withdrawal and closing balance for
    each account, followed by income and expense. Cells for an account are
    left blank once the account is permanently exhausted.
    """

    COLUMN_WIDTH = 12

    def render(self, result: PlanResult) -> None:
        """Render the projection table.

        Args:
            result: PlanResult containing the final projection
        """
        width = self.COLUMN_WIDTH
        columns = []
        for account in ACCOUNT_NAMES:
            for column in ACCOUNT_COLUMNS:
                columns.append((get_short_name(f"{account}.{column}"), width))
        columns.append((get_short_name("income"), width))
        columns.append((get_short_name("expense"), width))

        age_width = 6
        total_width = 2 + age_width + len(columns) * (width + 1)

        print()
        print("=" * total_width)
        print(f"{'RETIREMENT PROJECTION - ' + MODE_LABELS[result.mode].upper():^{total_width}}")
        print("=" * total_width)
        print()

        # Group header above each account block
        group_line = f"  {'':<{age_width}}"
        block_width = len(ACCOUNT_COLUMNS) * (width + 1) - 1
        for account in ACCOUNT_NAMES:
            group_line += f" {ACCOUNT_LABELS[account]:^{block_width}}"
        print(group_line)

        header_lines, sep_line = format_multiline_headers(columns, age_width=age_width)
        for line in header_lines:
            print(line)
        print(sep_line)

        rows = result.rows
        cleared_at = {account: exhausted_from(rows, account) for account in ACCOUNT_NAMES}

        for row in self._rows_in_range(result):
            line = f"  {row.age:<{age_width}}"
            for account in ACCOUNT_NAMES:
                values = row.account(account)
                for column in ACCOUNT_COLUMNS:
                    if row.year_index >= cleared_at[account]:
                        line += f" {'':>{width}}"
                    else:
                        line += f" {_money(getattr(values, column), width)}"
            line += f" {_money(row.income, width)} {_money(row.expense, width)}"
            print(line)

        print(sep_line)
        print(f"  {'RRSP Fixed Withdrawal:':<40} ${result.tax_deferred_withdrawal:>18,.2f}")
        if result.projection.stopped_early:
            print(f"  Accounts depleted at age {result.last_age}; projection stopped early.")
        print()
        print("=" * total_width)
        print()


class BalancesRenderer(BaseRenderer):
    """Renderer for closing balances by account."""

    def render(self, result: PlanResult) -> None:
        """Render the closing balances for each year.

        Args:
            result: PlanResult containing the final projection
        """
        print()
        print("=" * 80)
        print(f"{'ACCOUNT BALANCES':^80}")
        print("=" * 80)
        print()

        columns = [(get_short_name(f"{account}.closing"), 16) for account in ACCOUNT_NAMES]
        columns.append(("Total Balance", 16))

        header_lines, sep_line = format_multiline_headers(columns, age_width=8)
        for line in header_lines:
            print(line)
        print(sep_line)

        for row in self._rows_in_range(result):
            print(f"  {row.age:<8} ${row.tax_deferred.closing:>15,.2f} ${row.tax_free.closing:>15,.2f} "
                  f"${row.taxable.closing:>15,.2f} ${row.total_closing():>15,.2f}")

        final = result.projection.final_row()
        print()
        print("=" * 80)
        print(f"{'FINAL BALANCES':^80}")
        print("=" * 80)
        if final:
            print(f"  {'RRSP Balance:':<40} ${final.tax_deferred.closing:>18,.2f}")
            print(f"  {'TFSA Balance:':<40} ${final.tax_free.closing:>18,.2f}")
            print(f"  {'Non-Registered Balance:':<40} ${final.taxable.closing:>18,.2f}")
        print(f"  {'-' * 60}")
        print(f"  {'TOTAL ASSETS:':<40} ${result.ending_total:>18,.2f}")
        print("=" * 80)
        print()


class SummaryRenderer(BaseRenderer):
    """Renderer for the plan summary block."""

    def render(self, result: PlanResult) -> None:
        """Render the mode, resolved values and ending position.

        Args:
            result: PlanResult containing the final projection
        """
        inputs = result.inputs
        projection = result.projection

        print()
        print("=" * 60)
        print(f"{'PLAN SUMMARY':^60}")
        print("=" * 60)
        print(f"  {'Mode:':<40} {MODE_LABELS[result.mode]:>18}")
        print(f"  {'Current Age:':<40} {inputs.current_age:>18}")
        print(f"  {'Years to Retire:':<40} {inputs.years_to_retire:>18}")
        print(f"  {'Years Planned:':<40} {result.horizon:>18}")
        print(f"  {'Starting Annual Expense:':<40} ${result.expense_base:>17,.2f}")
        print(f"  {'RRSP Fixed Withdrawal:':<40} ${result.tax_deferred_withdrawal:>17,.2f}")

        if result.resolved_horizon is not None:
            print()
            print("-" * 60)
            print("MAXIMUM SUSTAINABLE YEARS")
            print("-" * 60)
            print(f"  {'Years Sustained:':<40} {result.resolved_horizon:>18}")
            if result.resolved_horizon > 0:
                print(f"  {'Through Age:':<40} {inputs.current_age + result.resolved_horizon - 1:>18}")

        if result.resolved_expense is not None:
            print()
            print("-" * 60)
            print("MAXIMUM SUSTAINABLE EXPENSE")
            print("-" * 60)
            print(f"  {'Starting Annual Expense:':<40} ${result.resolved_expense:>17,.0f}")

        print()
        print("-" * 60)
        print("OUTCOME")
        print("-" * 60)
        print(f"  {'Years Projected:':<40} {projection.years_survived:>18}")
        status = "Depleted" if projection.depleted else "Funded"
        print(f"  {'Status:':<40} {status:>18}")
        print(f"  {'Ending Total:':<40} ${result.ending_total:>17,.2f}")
        print("=" * 60)
        print()


class CustomRenderer(BaseRenderer):
    """A generalized renderer that displays a table of specified fields.

    Fields are YearRow field paths such as 'expense' or 'tax_free.closing'.
    """

    # Maximum width for a column header before wrapping
    MAX_HEADER_WIDTH = 14

    def __init__(self, title: str, fields: List[str], start_age: int = None, end_age: int = None,
                 show_totals: bool = True):
        """Initialize with a title and list of fields to display.

        Args:
            title: The title to display at the top of the table
            fields: List of YearRow field paths to display as columns
            start_age: First age to display
            end_age: Last age to display
            show_totals: Whether to show a totals row at the bottom (default True)
        """
        super().__init__(start_age, end_age)
        self.title = title
        self.fields = fields
        self.show_totals = show_totals

    def _get_column_width(self, field: str) -> int:
        short_name = get_short_name(field)
        if len(short_name) > self.MAX_HEADER_WIDTH:
            wrapped = wrap_header(short_name, self.MAX_HEADER_WIDTH)
            return max(max(len(line) for line in wrapped), 12)
        return max(len(short_name) + 2, 12)

    def _format_value(self, value: Any, width: int) -> str:
        """Format a value for display based on its type."""
        if value is None:
            return f"{'N/A':>{width}}"
        elif isinstance(value, bool):
            return f"{'Yes' if value else 'No':>{width}}"
        elif isinstance(value, float):
            return _money(value, width)
        elif isinstance(value, int):
            return f"{value:>{width}}"
        return f"{str(value):>{width}}"

    def _is_summable(self, field: str) -> bool:
        # Opening and closing balances are not summed
        return field in FIELD_PATHS and not field.endswith((".opening", ".closing"))

    def render(self, result: PlanResult) -> None:
        """Render a table with the specified fields.

        Args:
            result: PlanResult containing the final projection
        """
        col_widths = {field: self._get_column_width(field) for field in self.fields}

        age_width = 6
        total_width = age_width + 2 + sum(col_widths.values()) + len(self.fields)
        total_width = max(total_width, len(self.title) + 10)

        print()
        print("=" * total_width)
        print(f"{self.title.upper():^{total_width}}")
        print("=" * total_width)
        print()

        columns = [(get_short_name(field), col_widths[field]) for field in self.fields]
        header_lines, sep_line = format_multiline_headers(columns, age_width=age_width)
        for line in header_lines:
            print(line)
        print(sep_line)

        totals = {field: 0.0 for field in self.fields}
        row_count = 0

        for row in self._rows_in_range(result):
            line = f"  {row.age:<{age_width}}"
            for field in self.fields:
                value = get_field_value(row, field)
                line += f" {self._format_value(value, col_widths[field])}"
                if isinstance(value, float) and self._is_summable(field):
                    totals[field] += value
            print(line)
            row_count += 1

        if self.show_totals and row_count > 0:
            print(sep_line)
            total_row = f"  {'TOTAL':<{age_width}}"
            for field in self.fields:
                width = col_widths[field]
                if self._is_summable(field):
                    total_row += f" {_money(totals[field], width)}"
                else:
                    total_row += f" {'':>{width}}"
            print(total_row)

        print()
        print("=" * total_width)
        print()


class JsonRenderer(BaseRenderer):
    """Renderer that prints the result as a JSON document."""

    def render(self, result: PlanResult) -> None:
        data = plan_result_to_dict(result)
        ages = {row.age for row in self._rows_in_range(result)}
        data["rows"] = [r for r in data["rows"] if r["age"] in ages]
        print(json.dumps(data, indent=2))


def create_custom_renderer_from_config(name: str, config: dict, start_age: int = None,
                                       end_age: int = None) -> CustomRenderer:
    """Create a CustomRenderer from a configuration dictionary.

    Args:
        name: The name of the renderer (used as fallback title)
        config: Configuration dict with 'title', 'fields', and optionally 'show_totals'
        start_age: First age to display
        end_age: Last age to display

    Returns:
        A configured CustomRenderer instance
    """
    title = config.get('title', name)
    fields = config.get('fields', [])
    show_totals = config.get('show_totals', True)

    return CustomRenderer(title, fields, start_age, end_age, show_totals)


def get_custom_renderer_factory(name: str, config: dict):
    """Create a factory function for a custom renderer configuration.

    Returns:
        A factory function that creates CustomRenderer instances with optional age range
    """
    def factory(start_age: int = None, end_age: int = None) -> CustomRenderer:
        return create_custom_renderer_from_config(name, config, start_age, end_age)
    return factory


def load_custom_renderers(path: str = CUSTOM_CONFIG_PATH) -> Dict[str, dict]:
    """Load custom renderer configurations from a config file.

    Returns:
        Dictionary mapping renderer names to their configurations
    """
    if not os.path.exists(path):
        return {}

    try:
        with open(path, 'r') as f:
            return json.load(f)
    except (json.JSONDecodeError, IOError) as e:
        print(f"Warning: Could not load custom renderers from {path}: {e}", file=sys.stderr)
        return {}


# Registry mapping renderer names to renderer factories
RENDERER_REGISTRY = {
    'Projection': ProjectionRenderer,
    'Balances': BalancesRenderer,
    'Summary': SummaryRenderer,
    'Json': JsonRenderer,
}

for _name, _config in load_custom_renderers().items():
    RENDERER_REGISTRY[_name] = get_custom_renderer_factory(_name, _config)
