"""
Shared utility functions for service modules.
"""
from typing import Any, Optional


def to_int(value: Any) -> Optional[int]:
    """Safely convert a value to int, returning None on failure."""
    if value in (None, ''):
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.replace(',', '').strip()
    try:
        return int(value)
    except (TypeError, ValueError):
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return None


def first_text(*values: Any) -> str:
    """Return the first non-empty value as stripped text."""
    for value in values:
        if value:
            return str(value).strip()
    return ''
