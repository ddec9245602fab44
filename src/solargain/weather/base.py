"""Weather provider protocols."""

from __future__ import annotations

from typing import List, Protocol

from solargain.core.models import DailyWeather


class ForecastProvider(Protocol):
    """Interface for fetching a short daily forecast."""

    def get_forecast(self, lat: float, lon: float) -> List[DailyWeather]:
        """Return one :class:`DailyWeather` per forecast day, earliest first.

        ``sun_hours`` is already corrected for provider optimism and clamped to
        the display range (0-12 h).
        """
        ...


class HistoricalProvider(Protocol):
    """Interface for fetching observed daily weather for model training."""

    def get_history(self, lat: float, lon: float, days: int = 180) -> List[DailyWeather]:
        """Return ``days`` days ending yesterday with uncorrected sun hours (0-24 h)."""
        ...


__all__ = ["ForecastProvider", "HistoricalProvider"]
