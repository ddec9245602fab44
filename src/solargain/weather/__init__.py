"""Weather provider interfaces and implementations."""

from .base import ForecastProvider, HistoricalProvider
from .open_meteo import OpenMeteoArchiveProvider, OpenMeteoForecastProvider
from .openweather import OpenWeatherForecastProvider

__all__ = [
    "ForecastProvider",
    "HistoricalProvider",
    "OpenMeteoForecastProvider",
    "OpenMeteoArchiveProvider",
    "OpenWeatherForecastProvider",
]
