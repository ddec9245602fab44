"""AI sun-hours model: training and forecast comparison."""

from .pipeline import compare_with_forecast, train_sun_hours_model
from .regressor import SunHoursRegressor, TrainedModel

__all__ = ["SunHoursRegressor", "TrainedModel", "train_sun_hours_model", "compare_with_forecast"]
