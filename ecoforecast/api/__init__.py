"""HTTP API package."""

from ecoforecast.api.app import create_app

__all__ = ["create_app"]
