"""
Data Models Package

This package contains all Pydantic models used in EcoForecast.
All data flowing through the system must conform to these schemas.
"""

from ecoforecast.models.inputs import (
    PENDING,
    FieldValue,
    FourQuarterFigures,
    InputsDoc,
    Pending,
    Period,
    Quarter,
    QuarterlyFigures,
    QuarterlyInputs,
    ResourceCategory,
    ResourceField,
    ResourceFigures,
    ResourceInput,
    SpendPreview,
    Valid,
    parse_field_value,
)
from ecoforecast.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Inputs models
    "PENDING",
    "FieldValue",
    "FourQuarterFigures",
    "InputsDoc",
    "Pending",
    "Period",
    "Quarter",
    "QuarterlyFigures",
    "QuarterlyInputs",
    "ResourceCategory",
    "ResourceField",
    "ResourceFigures",
    "ResourceInput",
    "SpendPreview",
    "Valid",
    "parse_field_value",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
