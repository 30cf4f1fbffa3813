"""Tests for draft validation."""

import math

import pytest

from ecoforecast.models.inputs import (
    PENDING,
    Quarter,
    QuarterlyInputs,
    ResourceCategory,
    ResourceField,
    Valid,
)
from ecoforecast.validation import (
    is_valid_non_negative,
    to_four_quarter_figures,
    to_number_or_none,
    to_quarterly_figures,
    validate_four_quarter_inputs,
    validate_inputs,
)


FIELDS = [(c, f) for c in ResourceCategory for f in ResourceField]


class TestHelpers:
    """Tests for the number helpers."""

    def test_to_number_or_none(self):
        """Test unwrapping draft fields."""
        assert to_number_or_none(PENDING) is None
        assert to_number_or_none(Valid(value=3)) == 3.0

    @pytest.mark.parametrize("number", [0, 0.0, 1, 1234.56])
    def test_is_valid_non_negative_accepts(self, number):
        """Test that finite numbers >= 0 pass."""
        assert is_valid_non_negative(number) is True

    @pytest.mark.parametrize("number", [None, -0.01, -5, math.nan, math.inf, -math.inf])
    def test_is_valid_non_negative_rejects(self, number):
        """Test that missing, negative and non-finite numbers fail."""
        assert is_valid_non_negative(number) is False


class TestValidateInputs:
    """Tests for validate_inputs."""

    def test_complete_draft_is_valid(self, sample_draft):
        """Test that all six fields present and >= 0 is valid."""
        assert validate_inputs(sample_draft) is None

    def test_zero_values_are_valid(self, draft_builder):
        """Test that zero is an acceptable figure."""
        draft = draft_builder({c.value: ("0", "0") for c in ResourceCategory})
        assert validate_inputs(draft) is None

    def test_empty_draft_reports_first_field(self):
        """Test that the first field in order is reported."""
        assert validate_inputs(QuarterlyInputs.empty()) == "Electricity usage is required."

    @pytest.mark.parametrize("category,field", FIELDS)
    def test_missing_field_names_category(self, sample_draft, category, field):
        """Test that any missing field is reported with its category."""
        draft = sample_draft.with_field(category, field, PENDING)
        error = validate_inputs(draft)

        assert error == f"{category.label} {field.label} is required."

    @pytest.mark.parametrize("category,field", FIELDS)
    def test_negative_field_names_category(self, sample_draft, category, field):
        """Test that any negative field is reported with its category."""
        draft = sample_draft.with_field(category, field, Valid(value=-1))
        error = validate_inputs(draft)

        assert error == f"{category.label} {field.label} must be a number 0 or greater."

    def test_missing_water_amount_paid_message(self, draft_builder):
        """Test the message for a blank water amount."""
        draft = draft_builder({
            "electricity": ("100", "50"),
            "water": ("20", ""),
            "fuel": ("5", "15"),
        })
        assert validate_inputs(draft) == "Water amount paid is required."

    def test_non_numeric_text_is_rejected(self, draft_builder):
        """Test that text that is not a number is rejected, not dropped."""
        draft = draft_builder({
            "electricity": ("abc", "50"),
            "water": ("20", "10"),
            "fuel": ("5", "15"),
        })
        assert validate_inputs(draft) == "Electricity usage must be a number 0 or greater."

    def test_infinite_value_is_rejected(self, sample_draft):
        """Test that infinity is rejected."""
        draft = sample_draft.with_field(
            ResourceCategory.FUEL, ResourceField.AMOUNT_PAID, Valid(value=math.inf)
        )
        assert validate_inputs(draft) == "Fuel amount paid must be a number 0 or greater."

    def test_first_failure_wins(self, sample_draft):
        """Test category order electricity, water, fuel and usage before amount paid."""
        draft = sample_draft.with_field(
            ResourceCategory.FUEL, ResourceField.USAGE, PENDING
        ).with_field(
            ResourceCategory.WATER, ResourceField.AMOUNT_PAID, PENDING
        ).with_field(
            ResourceCategory.WATER, ResourceField.USAGE, Valid(value=-2)
        )
        assert validate_inputs(draft) == "Water usage must be a number 0 or greater."

    def test_validation_is_pure(self, sample_draft):
        """Test that validation does not change the draft."""
        before = sample_draft.model_copy()
        validate_inputs(sample_draft)
        assert sample_draft == before


class TestFourQuarterValidation:
    """Tests for validate_four_quarter_inputs."""

    def test_all_quarters_valid(self, sample_draft):
        """Test four complete quarters."""
        quarters = {q: sample_draft for q in Quarter}
        assert validate_four_quarter_inputs(quarters) is None

    def test_error_is_prefixed_with_quarter(self, sample_draft):
        """Test that the failing quarter is named."""
        quarters = {q: sample_draft for q in Quarter}
        quarters[Quarter.Q2] = sample_draft.with_field(
            ResourceCategory.WATER, ResourceField.USAGE, PENDING
        )
        assert validate_four_quarter_inputs(quarters) == "Q2: Water usage is required."

    def test_missing_quarter(self, sample_draft):
        """Test that an absent quarter is reported."""
        quarters = {Quarter.Q1: sample_draft, Quarter.Q2: sample_draft, Quarter.Q4: sample_draft}
        assert validate_four_quarter_inputs(quarters) == "Q3: inputs are missing."


class TestConversion:
    """Tests for converting validated drafts into stored figures."""

    def test_to_quarterly_figures(self, sample_draft):
        """Test conversion of a valid draft."""
        result = to_quarterly_figures(sample_draft)

        assert result.electricity.usage == 100.0
        assert result.water.amount_paid == 10.0
        assert result.total_spend == 75.0

    def test_to_quarterly_figures_rejects_invalid(self):
        """Test that an invalid draft cannot be converted."""
        with pytest.raises(ValueError, match="Electricity usage is required."):
            to_quarterly_figures(QuarterlyInputs.empty())

    def test_to_four_quarter_figures(self, sample_draft):
        """Test conversion of four valid drafts."""
        result = to_four_quarter_figures({q: sample_draft for q in Quarter})
        assert result.q4.fuel.amount_paid == 15.0

    def test_to_four_quarter_figures_rejects_invalid(self, sample_draft):
        """Test that one bad quarter blocks the conversion."""
        quarters = {q: sample_draft for q in Quarter}
        quarters[Quarter.Q3] = QuarterlyInputs.empty()
        with pytest.raises(ValueError, match="Q3:"):
            to_four_quarter_figures(quarters)
