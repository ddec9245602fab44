"""Geocoding with a shared request budget."""

from .geocoder import Geocoder, OpenMeteoGeocoder, OpenWeatherGeocoder
from .rate_limit import SlidingWindowRateLimiter

__all__ = ["Geocoder", "OpenMeteoGeocoder", "OpenWeatherGeocoder", "SlidingWindowRateLimiter"]
