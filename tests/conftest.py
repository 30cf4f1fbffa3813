"""Shared fixtures."""

import pytest

from ecoforecast.config import get_settings
from ecoforecast.models.inputs import (
    QuarterlyInputs,
    ResourceCategory,
    ResourceField,
    parse_field_value,
)
from ecoforecast.services.storage import InMemoryInputsStorage


# electricity {usage 100, paid 50}, water {20, 10}, fuel {5, 15}: total spend 75.00
SAMPLE_VALUES = {
    "electricity": ("100", "50"),
    "water": ("20", "10"),
    "fuel": ("5", "15"),
}

SAMPLE_BODY = {
    "electricity": {"usage": 100, "amountPaid": 50},
    "water": {"usage": 20, "amountPaid": 10},
    "fuel": {"usage": 5, "amountPaid": 15},
}


def build_draft(values: dict) -> QuarterlyInputs:
    """Build a draft from {category: (usage_text, amount_paid_text)}."""
    draft = QuarterlyInputs.empty()
    for category, (usage, paid) in values.items():
        category = ResourceCategory(category)
        draft = draft.with_field(category, ResourceField.USAGE, parse_field_value(usage))
        draft = draft.with_field(category, ResourceField.AMOUNT_PAID, parse_field_value(paid))
    return draft


@pytest.fixture
def sample_draft() -> QuarterlyInputs:
    return build_draft(SAMPLE_VALUES)


@pytest.fixture
def memory_storage() -> InMemoryInputsStorage:
    return InMemoryInputsStorage()


@pytest.fixture
def draft_builder():
    return build_draft


@pytest.fixture
def sample_body() -> dict:
    return {category: dict(figures) for category, figures in SAMPLE_BODY.items()}


@pytest.fixture(autouse=True)
def fresh_settings():
    """Drop cached settings so environment changes do not leak between tests."""
    yield
    get_settings.cache_clear()
