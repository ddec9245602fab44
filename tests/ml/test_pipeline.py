import datetime as dt

import pytest

from solargain.core.debug import ListDebugCollector
from solargain.core.errors import ModelTrainingFailure, UpstreamHttpError
from solargain.core.models import DailyWeather
from solargain.ml.pipeline import (
    build_training_set,
    compare_with_forecast,
    history_mae_hours,
    predict_sun_hours,
    train_sun_hours_model,
)
from solargain.ml.regressor import SunHoursRegressor


def _history(days=90):
    start = dt.date(2025, 4, 1)
    out = []
    for i in range(days):
        cloud = float((i * 37) % 101)
        out.append(
            DailyWeather(
                date=start + dt.timedelta(days=i),
                sun_hours=14.0 * (1 - cloud / 100),
                temperature=10.0 + (i % 15),
                cloudiness=cloud,
                sunshine_seconds=14.0 * (1 - cloud / 100) * 3600,
            )
        )
    return out


class FakeArchive:
    def __init__(self, history=None, error=None):
        self.history = history or []
        self.error = error
        self.calls = []

    def get_history(self, lat, lon, days=180):
        self.calls.append((lat, lon, days))
        if self.error:
            raise self.error
        return self.history


def test_build_training_set_shapes():
    X, y = build_training_set(_history(10))
    assert X.shape == (10, 4)
    assert y.max() <= 14.0 / 24
    empty_X, empty_y = build_training_set([])
    assert empty_X.shape == (0, 4) and empty_y.shape == (0,)


def test_train_and_compare_with_forecast():
    archive = FakeArchive(_history())
    debug = ListDebugCollector()
    model = train_sun_hours_model(
        archive, 50.0, 14.0, days=90, regressor=SunHoursRegressor(epochs=40), debug=debug
    )
    assert archive.calls == [(50.0, 14.0, 90)]
    assert "ml.trained" in debug.stages()
    assert history_mae_hours(model, archive.history) < 4.0

    forecast = [
        DailyWeather(date=dt.date(2025, 7, 1), sun_hours=8.04, temperature=20.0, cloudiness=5.0),
        DailyWeather(date=dt.date(2025, 7, 2), sun_hours=1.0, temperature=None, cloudiness=None),
    ]
    rows = compare_with_forecast(model, forecast, ["Today 1.7.", "Tomorrow 2.7."])
    assert [r.day for r in rows] == ["Today 1.7.", "Tomorrow 2.7."]
    assert rows[0].sun_hours == 8.0
    for row in rows:
        assert 0.0 <= row.ai_sun_hours <= 12.0
        assert row.ai_sun_hours == round(row.ai_sun_hours, 1)
    assert 0.0 <= predict_sun_hours(model, forecast[1]) <= 12.0

    with pytest.raises(ValueError):
        compare_with_forecast(model, forecast, ["only one"])


def test_upstream_failure_becomes_training_failure():
    archive = FakeArchive(error=UpstreamHttpError("archive down", status=502))
    with pytest.raises(ModelTrainingFailure):
        train_sun_hours_model(archive, 0, 0, days=30)


def test_empty_history_is_training_failure():
    with pytest.raises(ModelTrainingFailure):
        train_sun_hours_model(FakeArchive([]), 0, 0, days=30)
