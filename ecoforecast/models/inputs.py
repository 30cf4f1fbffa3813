"""
Core Data Models for EcoForecast

These models define the schemas for all data flowing through the system:
1. The editable draft the form works on (QuarterlyInputs)
2. The validated figures that are allowed to be persisted
3. The persisted document (InputsDoc) and its wire format
4. The derived spend preview

DESIGN DECISION: Draft fields are a tagged variant, Pending | Valid(number).
An empty form field is a legitimate state while the user is typing, but it
is never a legitimate state for a stored document. Making the empty state a
type of its own forces validation and preview to handle it explicitly
instead of juggling "" and None.

Persisted models use camelCase aliases on the wire (amountPaid, createdAt)
and snake_case attributes in Python.
"""

import math
from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class ResourceCategory(str, Enum):
    """
    Resource categories tracked per quarter.

    Order matters: validation walks the categories in declaration order.
    """
    ELECTRICITY = "electricity"
    WATER = "water"
    FUEL = "fuel"

    @property
    def label(self) -> str:
        return self.value.title()

    @property
    def usage_hint(self) -> str:
        """Unit shown next to the usage input."""
        return _USAGE_HINTS[self]


_USAGE_HINTS = {
    ResourceCategory.ELECTRICITY: "kWh",
    ResourceCategory.WATER: "gallons (or liters)",
    ResourceCategory.FUEL: "gallons (or miles)",
}


class ResourceField(str, Enum):
    """The two figures recorded for every category. Values are wire names."""
    USAGE = "usage"
    AMOUNT_PAID = "amountPaid"

    @property
    def attr(self) -> str:
        """Python attribute name on ResourceInput / ResourceFigures."""
        return "usage" if self is ResourceField.USAGE else "amount_paid"

    @property
    def label(self) -> str:
        return "usage" if self is ResourceField.USAGE else "amount paid"


class Period(str, Enum):
    """Shape of a stored document."""
    QUARTERLY = "quarterly"
    FOUR_QUARTER = "four-quarter"


class Quarter(str, Enum):
    Q1 = "q1"
    Q2 = "q2"
    Q3 = "q3"
    Q4 = "q4"

    @property
    def label(self) -> str:
        return self.value.upper()


# =============================================================================
# DRAFT MODELS - what the form edits
# =============================================================================

class Pending(BaseModel):
    """A field the user has not filled in (or has cleared)."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["pending"] = "pending"


class Valid(BaseModel):
    """
    A field holding a parsed number.

    The number is not yet checked: it may be negative or NaN.
    Validation decides whether it can be submitted.
    """
    model_config = ConfigDict(frozen=True)

    kind: Literal["valid"] = "valid"
    value: float


FieldValue = Annotated[Union[Pending, Valid], Field(discriminator="kind")]

PENDING = Pending()


def parse_field_value(raw: Union[str, float, int, None]) -> Union[Pending, Valid]:
    """
    Turn raw form input into a FieldValue.

    Blank text becomes Pending. Anything else is parsed as a float;
    text that is not a number becomes Valid(nan) so that validation
    reports it instead of silently dropping it.
    """
    if raw is None:
        return PENDING
    if isinstance(raw, bool):
        return Valid(value=math.nan)
    if isinstance(raw, (int, float)):
        return Valid(value=float(raw))

    text = raw.strip()
    if not text:
        return PENDING
    try:
        return Valid(value=float(text))
    except ValueError:
        return Valid(value=math.nan)


class ResourceInput(BaseModel):
    """Draft figures for one category."""
    model_config = ConfigDict(frozen=True)

    usage: FieldValue = PENDING
    amount_paid: FieldValue = PENDING

    def get(self, field: ResourceField) -> Union[Pending, Valid]:
        return getattr(self, field.attr)


class QuarterlyInputs(BaseModel):
    """
    The draft record for one quarter.

    Frozen: edits produce a new record via with_field().
    """
    model_config = ConfigDict(frozen=True)

    electricity: ResourceInput = Field(default_factory=ResourceInput)
    water: ResourceInput = Field(default_factory=ResourceInput)
    fuel: ResourceInput = Field(default_factory=ResourceInput)

    @classmethod
    def empty(cls) -> "QuarterlyInputs":
        return cls()

    @classmethod
    def from_figures(cls, figures: "QuarterlyFigures") -> "QuarterlyInputs":
        """Load stored figures back into an editable draft."""
        return cls(**{
            category.value: ResourceInput(
                usage=Valid(value=figures.resource(category).usage),
                amount_paid=Valid(value=figures.resource(category).amount_paid),
            )
            for category in ResourceCategory
        })

    def resource(self, category: ResourceCategory) -> ResourceInput:
        return getattr(self, category.value)

    def with_field(
        self,
        category: ResourceCategory,
        field: ResourceField,
        value: Union[Pending, Valid],
    ) -> "QuarterlyInputs":
        """Return a copy with a single field replaced."""
        updated = self.resource(category).model_copy(update={field.attr: value})
        return self.model_copy(update={category.value: updated})


# =============================================================================
# PERSISTED MODELS - validated figures and stored documents
# =============================================================================

class WireModel(BaseModel):
    """Base for models that cross the API boundary in camelCase."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        str_strip_whitespace=True,
    )


NonNegativeFinite = Annotated[float, Field(ge=0, allow_inf_nan=False)]


class ResourceFigures(WireModel):
    """Validated figures for one category."""

    usage: NonNegativeFinite = Field(
        ...,
        description="Quantity consumed during the quarter"
    )
    amount_paid: NonNegativeFinite = Field(
        ...,
        description="Amount paid for the quarter"
    )


class QuarterlyFigures(WireModel):
    """Validated figures for one quarter, all three categories."""

    electricity: ResourceFigures
    water: ResourceFigures
    fuel: ResourceFigures

    def resource(self, category: ResourceCategory) -> ResourceFigures:
        return getattr(self, category.value)

    @property
    def total_spend(self) -> float:
        return sum(self.resource(c).amount_paid for c in ResourceCategory)


class FourQuarterFigures(WireModel):
    """Validated figures for a full year, one entry per quarter."""

    q1: QuarterlyFigures
    q2: QuarterlyFigures
    q3: QuarterlyFigures
    q4: QuarterlyFigures

    def quarter(self, quarter: Quarter) -> QuarterlyFigures:
        return getattr(self, quarter.value)


class InputsDoc(WireModel):
    """
    A stored submission.

    CRITICAL: id and created_at are assigned by the storage backend on
    insert. Documents are frozen; storage never updates one in place.

    Quarterly documents carry `inputs`; four-quarter documents carry
    `company` and `quarters`.
    """

    id: Optional[str] = Field(
        default=None,
        description="Opaque identifier assigned by storage"
    )
    period: Period = Field(
        default=Period.QUARTERLY,
        description="Document shape"
    )
    year: int = Field(
        ...,
        ge=1,
        le=9999,
        description="Reporting year"
    )
    created_at: Optional[datetime] = Field(
        default=None,
        description="When storage accepted the document (UTC)"
    )
    inputs: Optional[QuarterlyFigures] = None
    company: Optional[str] = Field(
        default=None,
        min_length=1,
        max_length=200,
    )
    quarters: Optional[FourQuarterFigures] = None

    @model_validator(mode='after')
    def validate_shape(self) -> 'InputsDoc':
        """The payload must match the period."""
        if self.period is Period.QUARTERLY:
            if self.inputs is None:
                raise ValueError("Quarterly documents require inputs")
            if self.quarters is not None:
                raise ValueError("Quarterly documents cannot carry quarters")
        else:
            if self.quarters is None:
                raise ValueError("Four-quarter documents require quarters")
            if not self.company:
                raise ValueError("Four-quarter documents require a company")
        return self

    @property
    def total_spend(self) -> float:
        """Sum of amounts paid across every category (and quarter)."""
        if self.inputs is not None:
            return self.inputs.total_spend
        return sum(self.quarters.quarter(q).total_spend for q in Quarter)

    def to_wire(self) -> dict:
        """JSON-ready dict in the API's camelCase format."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# DERIVED MODELS
# =============================================================================

class SpendPreview(BaseModel):
    """
    Per-category and total spend derived from a (possibly partial) draft.

    A category is None when its amount paid is missing or not a usable
    number; it then contributes 0 to the total.
    """
    model_config = ConfigDict(frozen=True)

    electricity_spend: Optional[float] = None
    water_spend: Optional[float] = None
    fuel_spend: Optional[float] = None
    total: float = 0.0

    def for_category(self, category: ResourceCategory) -> Optional[float]:
        return getattr(self, f"{category.value}_spend")
