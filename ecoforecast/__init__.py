"""
EcoForecast - Source Package

Collects quarterly utility usage and spend (electricity, water, fuel),
stores each submission, and shows the most recent one back.

DESIGN PRINCIPLES:
1. Validate before anything reaches storage
2. Stored submissions are never edited, only superseded
3. Fail visibly, keep the user's draft on failure
4. Every save is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "EcoForecast Team"
