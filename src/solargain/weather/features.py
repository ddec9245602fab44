"""Normalization between raw daily weather and the sun-hours regression space.

Inputs are scaled into [0, 1]:

* month (0-11) / 11
* day of year (0-based) / 365
* cloudiness (%) / 100
* (temperature + 20) / 60, i.e. -20..40 degC

The target is ``sun_hours / 24``. Model output goes back through
:func:`from_model_output` with the clamp matching the caller: 12 h for the
forecast display, 24 h for historical data.
"""
from __future__ import annotations

import datetime as dt
from typing import Optional

import numpy as np

DEFAULT_TEMPERATURE_C = 10.0
DEFAULT_CLOUDINESS_PCT = 50.0

FORECAST_CORRECTION = 0.6
ARCHIVE_CORRECTION = 1.0
FORECAST_CLAMP_H = 12.0
ARCHIVE_CLAMP_H = 24.0

# Average sun hours per month, Central Europe.
MONTHLY_BASE_SUN_HOURS = (2, 3, 4, 6, 7, 8, 8, 7, 5, 4, 2, 2)

FEATURE_NAMES = ("month", "day_of_year", "cloudiness", "temperature")


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def day_of_year(date: dt.date) -> int:
    """Whole days since Jan 1 of the same year (Jan 1 -> 0)."""
    return date.timetuple().tm_yday - 1


def to_feature_vector(
    date: dt.date,
    temperature: Optional[float] = None,
    cloudiness: Optional[float] = None,
    *,
    default_temperature: float = DEFAULT_TEMPERATURE_C,
    default_cloudiness: float = DEFAULT_CLOUDINESS_PCT,
) -> np.ndarray:
    """Return the four normalized inputs as a float array."""
    temp = default_temperature if temperature is None else float(temperature)
    cloud = default_cloudiness if cloudiness is None else float(cloudiness)
    return np.array(
        [
            _clamp((date.month - 1) / 11, 0.0, 1.0),
            _clamp(day_of_year(date) / 365, 0.0, 1.0),
            _clamp(cloud / 100, 0.0, 1.0),
            _clamp((temp + 20) / 60, 0.0, 1.0),
        ],
        dtype=float,
    )


def to_training_target(sun_hours: float) -> float:
    return float(sun_hours) / 24


def from_model_output(normalized: float, display_clamp_max: float) -> float:
    """Denormalize a model output to hours, clamped to ``[0, display_clamp_max]``."""
    if display_clamp_max not in (FORECAST_CLAMP_H, ARCHIVE_CLAMP_H):
        raise ValueError("display_clamp_max must be 12 or 24")
    return _clamp(float(normalized) * 24, 0.0, float(display_clamp_max))


def derive_sun_hours_from_sunshine_seconds(
    seconds: Optional[float], correction_factor: float, clamp_max: float
) -> float:
    """Convert provider sunshine duration to hours, scaled by ``correction_factor``.

    Forecast sunshine figures run high, so forecasts use
    :data:`FORECAST_CORRECTION`; archive data uses :data:`ARCHIVE_CORRECTION`.
    """
    hours = (float(seconds or 0.0) / 3600) * correction_factor
    return _clamp(hours, 0.0, clamp_max)


def estimate_sun_hours_from_cloudiness(cloudiness_percent: Optional[float], month: int) -> float:
    """Blend the monthly baseline toward 1 h as cloud cover approaches 100 %.

    ``month`` is 0-based. Used when a provider gives no sunshine duration.
    """
    base = MONTHLY_BASE_SUN_HOURS[int(month) % 12]
    cloud = _clamp(DEFAULT_CLOUDINESS_PCT if cloudiness_percent is None else float(cloudiness_percent), 0.0, 100.0)
    frac = cloud / 100
    return _clamp(base * (1 - frac) + frac * 1, 1.0, 12.0)


__all__ = [
    "DEFAULT_TEMPERATURE_C",
    "DEFAULT_CLOUDINESS_PCT",
    "FORECAST_CORRECTION",
    "ARCHIVE_CORRECTION",
    "FORECAST_CLAMP_H",
    "ARCHIVE_CLAMP_H",
    "MONTHLY_BASE_SUN_HOURS",
    "FEATURE_NAMES",
    "day_of_year",
    "to_feature_vector",
    "to_training_target",
    "from_model_output",
    "derive_sun_hours_from_sunshine_seconds",
    "estimate_sun_hours_from_cloudiness",
]
