"""Field metadata for YearRow fields.

This module provides descriptions and short names for every YearRow field.
Account fields use dotted paths such as 'tax_free.closing'.
Short names are used as column headers in tables.
"""

from dataclasses import dataclass
from typing import Any, Dict, List

from model.ProjectionData import ACCOUNT_NAMES, YearRow


@dataclass
class FieldInfo:
    """Metadata for a single field."""
    short_name: str  # Column header (unique, concise)
    description: str  # Full description of the field


ACCOUNT_LABELS: Dict[str, str] = {
    'tax_deferred': 'RRSP',
    'tax_free': 'TFSA',
    'taxable': 'NON-R',
}

ACCOUNT_DESCRIPTIONS: Dict[str, str] = {
    'tax_deferred': 'tax-deferred retirement account (RRSP)',
    'tax_free': 'tax-free savings account (TFSA)',
    'taxable': 'taxable non-registered account',
}


def _account_fields() -> Dict[str, FieldInfo]:
    fields = {}
    for account in ACCOUNT_NAMES:
        label = ACCOUNT_LABELS[account]
        desc = ACCOUNT_DESCRIPTIONS[account]
        fields[f"{account}.opening"] = FieldInfo(label, f"Opening balance of the {desc}")
        fields[f"{account}.contribution"] = FieldInfo(f"{label} Contribute", f"Contribution to the {desc}")
        fields[f"{account}.withdrawal"] = FieldInfo(f"{label} Withdraw", f"Withdrawal from the {desc}")
        fields[f"{account}.closing"] = FieldInfo(f"{label} Balance", f"Closing balance of the {desc}")
    return fields


# Field metadata dictionary mapping field paths to their info
FIELD_METADATA: Dict[str, FieldInfo] = {
    "year_index": FieldInfo("Year", "Year index, starting at 0"),
    "age": FieldInfo("Age", "Age during the year"),
    "income": FieldInfo("Income", "Annual income (working years only)"),
    "expense": FieldInfo("Expense", "Inflation-adjusted annual expense"),
    **_account_fields(),
}


def get_short_name(field_name: str) -> str:
    """Get the short name for a field, or the field name if not found."""
    info = FIELD_METADATA.get(field_name)
    return info.short_name if info else field_name


def get_description(field_name: str) -> str:
    """Get the description for a field, or empty string if not found."""
    info = FIELD_METADATA.get(field_name)
    return info.description if info else ""


def get_field_info(field_name: str) -> FieldInfo | None:
    """Get the full FieldInfo for a field, or None if not found."""
    return FIELD_METADATA.get(field_name)


def get_field_value(row: YearRow, field_name: str) -> Any:
    """Resolve a (possibly dotted) field path against a row.

    Returns None for unknown fields.
    """
    value: Any = row
    for part in field_name.split('.'):
        value = getattr(value, part, None)
        if value is None:
            return None
    return value


def wrap_header(text: str, max_width: int) -> List[str]:
    """Wrap a header text into multiple lines to fit within max_width.

    Words are split on spaces and distributed across lines to minimize
    the total number of lines while staying within max_width.

    Args:
        text: The header text to wrap
        max_width: Maximum width per line

    Returns:
        List of strings, each representing a line
    """
    if len(text) <= max_width:
        return [text]

    words = text.split()
    lines = []
    current_line = ""

    for word in words:
        if not current_line:
            current_line = word
        elif len(current_line) + 1 + len(word) <= max_width:
            current_line += " " + word
        else:
            lines.append(current_line)
            current_line = word

    if current_line:
        lines.append(current_line)

    return lines
