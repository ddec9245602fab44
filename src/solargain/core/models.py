"""Domain models for solar gain estimation.

Provides data structures with validation for locations, panels, weather days
and the derived energy/AI comparison rows.
"""
from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ValidationError(ValueError):
    """Raised when model inputs violate constraints."""


class Orientation(str, Enum):
    SOUTH = "south"
    SOUTHEAST = "southeast"
    SOUTHWEST = "southwest"
    EAST = "east"
    WEST = "west"
    NORTH = "north"


ORIENTATION_FACTORS = {
    Orientation.SOUTH: 1.0,
    Orientation.SOUTHEAST: 0.9,
    Orientation.SOUTHWEST: 0.9,
    Orientation.EAST: 0.75,
    Orientation.WEST: 0.75,
    Orientation.NORTH: 0.5,
}


@dataclass(frozen=True)
class Location:
    lat: float
    lon: float
    name: str = ""
    country: str = ""
    state: Optional[str] = None

    def __post_init__(self):
        if not (-90.0 <= self.lat <= 90.0):
            raise ValidationError("Latitude must be between -90 and 90 degrees")
        if not (-180.0 <= self.lon <= 180.0):
            raise ValidationError("Longitude must be between -180 and 180 degrees")

    @property
    def display_name(self) -> str:
        if self.name and self.country:
            return f"{self.name}, {self.country}"
        return self.name or f"{self.lat:.4f}, {self.lon:.4f}"


@dataclass(frozen=True)
class Panel:
    area_m2: float
    efficiency: float
    orientation: str = Orientation.SOUTH.value

    def __post_init__(self):
        if math.isnan(self.area_m2) or self.area_m2 <= 0:
            raise ValidationError("area_m2 must be greater than 0")
        if math.isnan(self.efficiency) or not (0.0 <= self.efficiency <= 1.0):
            raise ValidationError("efficiency must be between 0 and 1")
        if isinstance(self.orientation, Orientation):
            object.__setattr__(self, "orientation", self.orientation.value)


@dataclass(frozen=True)
class DailyWeather:
    """One provider day; ``sun_hours`` is already corrected and clamped."""

    date: dt.date
    sun_hours: float
    temperature: Optional[float] = None
    cloudiness: Optional[float] = None
    sunshine_seconds: Optional[float] = None


@dataclass(frozen=True)
class DailyEnergyRecord:
    day: str
    sun_hours: float
    energy: int
    orientation: str
    orientation_factor: float


@dataclass(frozen=True)
class EnergyStats:
    total: int
    average: int
    maximum: int


@dataclass(frozen=True)
class AIComparisonRow:
    day: str
    sun_hours: float
    ai_sun_hours: float

    @property
    def difference(self) -> float:
        return round(self.ai_sun_hours - self.sun_hours, 1)


@dataclass(frozen=True)
class TrainingProgress:
    epoch: int
    total_epochs: int
    loss: float
    val_loss: Optional[float] = None


__all__ = [
    "ValidationError",
    "Orientation",
    "ORIENTATION_FACTORS",
    "Location",
    "Panel",
    "DailyWeather",
    "DailyEnergyRecord",
    "EnergyStats",
    "AIComparisonRow",
    "TrainingProgress",
]
