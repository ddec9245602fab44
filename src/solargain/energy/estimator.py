"""Daily PV energy estimate from panel parameters and per-day sun hours.

The model is deliberately simple: ``area * efficiency * sun_hours *
orientation_factor`` gives kWh per day, reported in Wh.
"""
from __future__ import annotations

import math
from typing import Optional, Sequence

from solargain.core.clock import Clock, SystemClock
from solargain.core.i18n import series_labels, translate
from solargain.core.models import ORIENTATION_FACTORS, DailyEnergyRecord, EnergyStats, Orientation

DEFAULT_SUN_HOURS = (5.0, 6.0, 7.0, 6.0, 5.0)


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round halves away from zero for non-negative values (``round`` uses banker's rounding)."""
    scale = 10 ** ndigits
    return math.floor(value * scale + 0.5) / scale


def orientation_factor(orientation: str | Orientation | None) -> float:
    """Relative yield versus true south; unknown values count as south."""
    try:
        return ORIENTATION_FACTORS[Orientation(orientation)]
    except ValueError:
        return 1.0


def _orientation_value(orientation: str | Orientation | None) -> str:
    if isinstance(orientation, Orientation):
        return orientation.value
    return str(orientation) if orientation is not None else Orientation.SOUTH.value


def estimate(
    area: float,
    efficiency: float,
    orientation: str | Orientation = Orientation.SOUTH,
    sun_hours_series: Optional[Sequence[float]] = None,
    *,
    labels: Optional[Sequence[str]] = None,
    clock: Optional[Clock] = None,
    language: Optional[str] = None,
) -> list[DailyEnergyRecord]:
    """Map a sun-hours series to per-day energy records, order preserved.

    Preconditions (checked by callers, see :class:`~solargain.core.models.Panel`):
    ``area > 0`` and ``0 <= efficiency <= 1``.

    When no series is given (upstream weather unavailable) the fixed
    :data:`DEFAULT_SUN_HOURS` series is used. Missing labels are synthesized
    from ``clock`` starting today.
    """

    factor = orientation_factor(orientation)
    orient = _orientation_value(orientation)

    if not sun_hours_series:
        sun_hours_series = DEFAULT_SUN_HOURS
        labels = None
    if labels is None:
        today = (clock or SystemClock()).today()
        labels = series_labels(today, len(sun_hours_series), language)
    elif len(labels) != len(sun_hours_series):
        raise ValueError("labels must match sun_hours_series length")

    records = []
    for label, hours in zip(labels, sun_hours_series):
        hours = float(hours)
        energy_wh = area * efficiency * hours * factor * 1000
        records.append(
            DailyEnergyRecord(
                day=label,
                sun_hours=round_half_up(hours, 1),
                energy=int(round_half_up(energy_wh)),
                orientation=orient,
                orientation_factor=factor,
            )
        )
    return records


def summarize(records: Sequence[DailyEnergyRecord]) -> EnergyStats:
    """Total, rounded daily average and maximum energy in Wh."""
    if not records:
        return EnergyStats(total=0, average=0, maximum=0)
    total = sum(r.energy for r in records)
    return EnergyStats(
        total=total,
        average=int(round_half_up(total / len(records))),
        maximum=max(r.energy for r in records),
    )


def orientation_label(orientation: str | Orientation, language: Optional[str] = None) -> str:
    value = _orientation_value(orientation)
    key = f"orientation_{value}"
    label = translate(key, language)
    return value if label == key else label


__all__ = [
    "DEFAULT_SUN_HOURS",
    "estimate",
    "summarize",
    "orientation_factor",
    "orientation_label",
    "round_half_up",
]
