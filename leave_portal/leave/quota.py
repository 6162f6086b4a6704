"""Quota model — leave category parsing and per-user balance arithmetic.

A QuotaSet is a plain ``dict[LeaveCategory, int]`` holding every category with
a non-negative balance. Functions here never mutate their input; deductions
return a fresh mapping so callers always write a full replacement value.
"""

from __future__ import annotations

import re
from typing import Mapping, Union

from leave_portal.common.constants import DEFAULT_QUOTAS, LeaveCategory
from leave_portal.common.exceptions import (
    UnknownLeaveCategoryException,
    ValidationException,
)

QuotaSet = dict[LeaveCategory, int]

_PAREN_CODE = re.compile(r"\(([^)]+)\)")


def extract_category_code(label: str) -> str:
    """Return the short code of a display label.

    "Casual Leave (CL)" → "CL"; without parentheses the first
    whitespace-delimited token is used ("Overtime" → "Overtime").
    """
    match = _PAREN_CODE.search(label)
    if match and match.group(1).strip():
        return match.group(1).strip()
    tokens = label.split()
    return tokens[0] if tokens else ""


def category_key_of(label: Union[str, LeaveCategory]) -> LeaveCategory:
    """Resolve a label (or bare code) to its LeaveCategory.

    Raises UnknownLeaveCategoryException when the extracted code is not one
    of the known categories.
    """
    if isinstance(label, LeaveCategory):
        return label
    code = extract_category_code(label)
    try:
        return LeaveCategory(code.upper())
    except ValueError:
        raise UnknownLeaveCategoryException(code) from None


def default_quotas() -> QuotaSet:
    return dict(DEFAULT_QUOTAS)


def validate_quotas(quotas: Mapping[Union[str, LeaveCategory], int]) -> QuotaSet:
    """Normalise keys to LeaveCategory and enforce completeness / non-negativity."""
    normalised: QuotaSet = {}
    errors: dict[str, list[str]] = {}
    for key, value in quotas.items():
        try:
            category = category_key_of(key)
        except UnknownLeaveCategoryException as exc:
            errors.setdefault("quotas", []).append(f"Unknown leave category '{exc.code}'.")
            continue
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            errors.setdefault(category.value, []).append(
                "Balance must be a non-negative integer."
            )
            continue
        normalised[category] = value

    missing = [c.value for c in LeaveCategory if c not in normalised and c.value not in errors]
    if missing:
        errors.setdefault("quotas", []).append(
            f"Missing balance for: {', '.join(missing)}."
        )
    if errors:
        raise ValidationException(errors)
    return normalised


def has_sufficient_balance(quotas: Mapping[LeaveCategory, int], category: LeaveCategory, days: int) -> bool:
    return quotas.get(category, 0) >= days


def deduct(quotas: Mapping[LeaveCategory, int], category: LeaveCategory, days: int) -> QuotaSet:
    """Return a new QuotaSet with ``days`` taken from ``category``, clamped at 0."""
    updated = dict(quotas)
    updated[category] = max(0, quotas.get(category, 0) - days)
    return updated


def total_remaining(quotas: Mapping[LeaveCategory, int]) -> int:
    return sum(quotas.values())
