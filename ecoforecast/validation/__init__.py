"""Validation package."""

from ecoforecast.validation.validator import (
    is_valid_non_negative,
    to_four_quarter_figures,
    to_number_or_none,
    to_quarterly_figures,
    validate_four_quarter_inputs,
    validate_inputs,
)

__all__ = [
    "is_valid_non_negative",
    "to_four_quarter_figures",
    "to_number_or_none",
    "to_quarterly_figures",
    "validate_four_quarter_inputs",
    "validate_inputs",
]
