"""Error taxonomy shared by the collaborators and the application layer."""
from __future__ import annotations

from typing import Optional


class SolarGainError(Exception):
    """Base class for recoverable application errors."""


class LocationNotFound(SolarGainError):
    """Geocoder returned no match for the query."""

    def __init__(self, query: str):
        super().__init__(f"Location not found: {query!r}")
        self.query = query


class UpstreamHttpError(SolarGainError):
    """An HTTP collaborator answered with a non-success status or was unreachable."""

    def __init__(self, message: str, status: Optional[int] = None, url: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.url = url


class RateLimited(SolarGainError):
    """Local request budget for the geocoding endpoints is exhausted."""


class ModelTrainingFailure(SolarGainError):
    """Training or inference of the sun-hours model failed."""


class MissingForecast(SolarGainError):
    """An AI prediction was requested before any successful forecast submission."""


__all__ = [
    "SolarGainError",
    "LocationNotFound",
    "UpstreamHttpError",
    "RateLimited",
    "ModelTrainingFailure",
    "MissingForecast",
]
