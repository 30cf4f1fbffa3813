"""
Inputs Validation

Checks a quarterly draft before it is allowed anywhere near storage.

Rules, applied per category (electricity, water, fuel) and per field
(usage, then amount paid):
- The field must be filled in (not Pending)
- The number must be finite and not negative

DESIGN DECISION: Validation stops at the first failing field and returns a
single message naming the category and field. The form shows one inline
message at a time, so there is nothing to gain from collecting every issue.

IMPORTANT: Validation NEVER silently fixes issues, and it has no side effects.
"""

import math
from typing import Optional, Union

from ecoforecast.models.inputs import (
    FourQuarterFigures,
    Pending,
    Quarter,
    QuarterlyFigures,
    QuarterlyInputs,
    ResourceCategory,
    ResourceField,
    ResourceFigures,
    Valid,
)


def to_number_or_none(value: Union[Pending, Valid]) -> Optional[float]:
    """Unwrap a draft field. Pending has no number."""
    if isinstance(value, Valid):
        return value.value
    return None


def is_valid_non_negative(number: Optional[float]) -> bool:
    """True for a finite number >= 0."""
    return number is not None and math.isfinite(number) and number >= 0


def _check_field(
    category: ResourceCategory,
    field: ResourceField,
    value: Union[Pending, Valid],
) -> Optional[str]:
    name = f"{category.label} {field.label}"

    if isinstance(value, Pending):
        return f"{name} is required."

    if not is_valid_non_negative(value.value):
        return f"{name} must be a number 0 or greater."

    return None


def validate_inputs(record: QuarterlyInputs) -> Optional[str]:
    """
    Validate a quarterly draft.

    Returns:
        None if every field is a finite number >= 0, otherwise the
        message for the first failing field.
    """
    for category in ResourceCategory:
        resource = record.resource(category)
        for field in ResourceField:
            error = _check_field(category, field, resource.get(field))
            if error:
                return error
    return None


def validate_four_quarter_inputs(
    quarters: dict[Quarter, QuarterlyInputs],
) -> Optional[str]:
    """
    Validate four quarterly drafts in order Q1..Q4.

    The message is prefixed with the quarter label, e.g. "Q2: Water usage is required."
    """
    for quarter in Quarter:
        record = quarters.get(quarter)
        if record is None:
            return f"{quarter.label}: inputs are missing."
        error = validate_inputs(record)
        if error:
            return f"{quarter.label}: {error}"
    return None


def to_quarterly_figures(record: QuarterlyInputs) -> QuarterlyFigures:
    """
    Convert a draft that passed validation into storable figures.

    Raises:
        ValueError: If the draft does not pass validation
    """
    error = validate_inputs(record)
    if error:
        raise ValueError(error)

    return QuarterlyFigures(**{
        category.value: ResourceFigures(
            usage=to_number_or_none(record.resource(category).usage),
            amount_paid=to_number_or_none(record.resource(category).amount_paid),
        )
        for category in ResourceCategory
    })


def to_four_quarter_figures(
    quarters: dict[Quarter, QuarterlyInputs],
) -> FourQuarterFigures:
    """
    Convert four validated drafts into storable figures.

    Raises:
        ValueError: If any quarter does not pass validation
    """
    error = validate_four_quarter_inputs(quarters)
    if error:
        raise ValueError(error)

    return FourQuarterFigures(**{
        quarter.value: to_quarterly_figures(quarters[quarter])
        for quarter in Quarter
    })
