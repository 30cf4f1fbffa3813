"""Spend preview package."""

from ecoforecast.preview.calculator import PLACEHOLDER, calculate_preview, format_spend

__all__ = ["PLACEHOLDER", "calculate_preview", "format_spend"]
