"""
Request bodies for the inputs API.

Figures are validated by the shared wire models: every usage and amount paid
must be present, finite and 0 or greater.
"""

from typing import Literal, Optional

from pydantic import Field

from ecoforecast.models.inputs import (
    FourQuarterFigures,
    QuarterlyFigures,
    WireModel,
)


class SaveInputsRequest(WireModel):
    """Body of POST /api/inputs."""

    period: Literal["quarterly"] = "quarterly"
    year: Optional[int] = Field(
        default=None,
        ge=1,
        le=9999,
        description="Reporting year, defaults to the current year"
    )
    inputs: QuarterlyFigures


class SaveFourQuarterRequest(WireModel):
    """Body of POST /api/inputs/four-quarter."""

    period: Literal["four-quarter"]
    company: str = Field(..., min_length=1, max_length=200)
    year: int = Field(..., ge=1, le=9999)
    quarters: FourQuarterFigures
