"""Historical weather -> trained model -> AI sun-hours comparison."""
from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import numpy as np

from solargain.core.debug import DebugCollector, NullDebugCollector
from solargain.core.errors import ModelTrainingFailure, SolarGainError
from solargain.core.models import AIComparisonRow, DailyWeather
from solargain.energy.estimator import round_half_up
from solargain.weather.base import HistoricalProvider
from solargain.weather.features import (
    ARCHIVE_CLAMP_H,
    FEATURE_NAMES,
    FORECAST_CLAMP_H,
    from_model_output,
    to_feature_vector,
    to_training_target,
)
from .regressor import ProgressCallback, SunHoursRegressor, TrainedModel

DEFAULT_HISTORY_DAYS = 180


def build_training_set(history: Sequence[DailyWeather]) -> Tuple[np.ndarray, np.ndarray]:
    if not history:
        return np.empty((0, len(FEATURE_NAMES))), np.empty(0)
    features = np.vstack([to_feature_vector(d.date, d.temperature, d.cloudiness) for d in history])
    targets = np.array([to_training_target(d.sun_hours) for d in history], dtype=float)
    return features, targets


def history_mae_hours(model: TrainedModel, history: Sequence[DailyWeather]) -> Optional[float]:
    """Mean absolute error in hours of the model over observed days."""
    if not history:
        return None
    features, _ = build_training_set(history)
    predicted = [from_model_output(value, ARCHIVE_CLAMP_H) for value in model.predict_many(features)]
    return float(np.mean([abs(p - d.sun_hours) for p, d in zip(predicted, history)]))


def train_sun_hours_model(
    archive: HistoricalProvider,
    lat: float,
    lon: float,
    *,
    days: int = DEFAULT_HISTORY_DAYS,
    regressor: SunHoursRegressor | None = None,
    on_progress: Optional[ProgressCallback] = None,
    debug: DebugCollector | None = None,
) -> TrainedModel:
    """Fetch ``days`` of history for the location and fit the regressor on it.

    Any upstream or model failure surfaces as :class:`ModelTrainingFailure`.
    """

    debug = debug or NullDebugCollector()
    regressor = regressor or SunHoursRegressor(debug=debug)
    try:
        history = archive.get_history(lat, lon, days)
    except SolarGainError as exc:
        raise ModelTrainingFailure(f"could not load historical weather: {exc}") from exc

    features, targets = build_training_set(history)
    model = regressor.fit(features, targets, on_progress=on_progress)
    debug.emit(
        "ml.trained",
        {
            "days": len(history),
            "n_train": model.n_train,
            "n_validation": model.n_validation,
            "final_loss": model.history[-1].loss if model.history else None,
            "mae_hours": history_mae_hours(model, history),
        },
        ts=history[-1].date if history else None,
    )
    return model


def predict_sun_hours(model: TrainedModel, day: DailyWeather) -> float:
    """Predicted sun hours for one forecast day, clamped to the 0-12 h display range."""
    vector = to_feature_vector(day.date, day.temperature, day.cloudiness)
    return from_model_output(model.predict(vector), FORECAST_CLAMP_H)


def compare_with_forecast(
    model: TrainedModel, forecast: Sequence[DailyWeather], labels: Sequence[str]
) -> List[AIComparisonRow]:
    if len(labels) != len(forecast):
        raise ValueError("labels must match forecast length")
    return [
        AIComparisonRow(
            day=label,
            sun_hours=round_half_up(day.sun_hours, 1),
            ai_sun_hours=round_half_up(predict_sun_hours(model, day), 1),
        )
        for label, day in zip(labels, forecast)
    ]


__all__ = [
    "DEFAULT_HISTORY_DAYS",
    "build_training_set",
    "history_mae_hours",
    "train_sun_hours_model",
    "predict_sun_hours",
    "compare_with_forecast",
]
