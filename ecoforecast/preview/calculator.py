"""
Spend Preview

Derives per-category and total spend from a quarterly draft while the user
is still typing. Unlike validation, the preview tolerates partial input: a
category whose amount paid is missing or unusable shows a placeholder and
adds nothing to the total.
"""

from typing import Optional

from ecoforecast.models.inputs import QuarterlyInputs, ResourceCategory, SpendPreview
from ecoforecast.validation.validator import is_valid_non_negative, to_number_or_none

PLACEHOLDER = "—"


def _category_spend(record: QuarterlyInputs, category: ResourceCategory) -> Optional[float]:
    paid = to_number_or_none(record.resource(category).amount_paid)
    return paid if is_valid_non_negative(paid) else None


def calculate_preview(record: QuarterlyInputs) -> SpendPreview:
    """Compute the spend preview for a draft. Pure; safe to call on every edit."""
    spends = {c: _category_spend(record, c) for c in ResourceCategory}
    total = sum(s for s in spends.values() if s is not None)

    return SpendPreview(
        electricity_spend=spends[ResourceCategory.ELECTRICITY],
        water_spend=spends[ResourceCategory.WATER],
        fuel_spend=spends[ResourceCategory.FUEL],
        total=float(total),
    )


def format_spend(value: Optional[float]) -> str:
    """Display form of a preview value."""
    if value is None:
        return PLACEHOLDER
    return f"${value:.2f}"
