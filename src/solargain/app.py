"""Application layer: wires geocoding, weather, estimation and the AI model.

``SolarGainApp`` owns the only mutable state in the program: the last
accepted submission, the last AI comparison, the request generation counter
and (through the geocoder) the rate limiter.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import List, Optional

import requests

from solargain.core.clock import Clock, SystemClock
from solargain.core.config import ConfigError, RunSettings
from solargain.core.debug import DebugCollector, NullDebugCollector
from solargain.core.errors import MissingForecast, SolarGainError, UpstreamHttpError
from solargain.core.i18n import day_label, translate
from solargain.core.models import (
    AIComparisonRow,
    DailyEnergyRecord,
    DailyWeather,
    EnergyStats,
    Location,
    Panel,
)
from solargain.energy.estimator import estimate, summarize
from solargain.geo.geocoder import Geocoder, OpenMeteoGeocoder, OpenWeatherGeocoder
from solargain.geo.rate_limit import SlidingWindowRateLimiter
from solargain.ml.pipeline import DEFAULT_HISTORY_DAYS, compare_with_forecast, train_sun_hours_model
from solargain.ml.regressor import ProgressCallback, SunHoursRegressor, TrainedModel
from solargain.weather.base import ForecastProvider, HistoricalProvider
from solargain.weather.open_meteo import OpenMeteoArchiveProvider, OpenMeteoForecastProvider
from solargain.weather.openweather import OpenWeatherForecastProvider


@dataclass(frozen=True)
class Submission:
    token: int
    panel: Panel
    records: List[DailyEnergyRecord]
    stats: EnergyStats
    labels: List[str]
    location: Optional[Location] = None
    forecast: Optional[List[DailyWeather]] = None
    warnings: List[str] = field(default_factory=list)
    stale: bool = False

    @property
    def simulated(self) -> bool:
        return self.forecast is None


@dataclass(frozen=True)
class AIPrediction:
    location: Location
    rows: List[AIComparisonRow]
    model: TrainedModel


class SolarGainApp:
    def __init__(
        self,
        geocoder: Geocoder,
        forecast_provider: ForecastProvider,
        archive_provider: HistoricalProvider,
        *,
        regressor: SunHoursRegressor | None = None,
        clock: Clock | None = None,
        language: str = "en",
        history_days: int = DEFAULT_HISTORY_DAYS,
        debug: DebugCollector | None = None,
    ):
        self.geocoder = geocoder
        self.forecast_provider = forecast_provider
        self.archive_provider = archive_provider
        self.debug = debug or NullDebugCollector()
        self.regressor = regressor or SunHoursRegressor(debug=self.debug)
        self.clock = clock or SystemClock()
        self.language = language
        self.history_days = history_days
        self.last_submission: Optional[Submission] = None
        self.last_prediction: Optional[AIPrediction] = None
        self._generation = 0

    def _next_token(self) -> int:
        self._generation += 1
        return self._generation

    def submit(self, panel: Panel, *, city: Optional[str] = None, location: Optional[Location] = None) -> Submission:
        """Geocode, fetch the forecast and estimate energy, in that order.

        Weather or geocoding failures fall back to the simulated series with a
        warning. A result overtaken by a newer submission comes back with
        ``stale=True`` and is not stored.
        """

        if location is None and not (city or "").strip():
            raise ValueError(translate("alert_city_required", self.language))

        token = self._next_token()
        resolved: Optional[Location] = location
        forecast: Optional[List[DailyWeather]] = None
        warnings: List[str] = []
        try:
            if resolved is None:
                resolved = self.geocoder.resolve(city, self.language)
            forecast = self.forecast_provider.get_forecast(resolved.lat, resolved.lon)
            if not forecast:
                raise UpstreamHttpError("forecast provider returned no days")
        except SolarGainError as exc:
            forecast = None
            warnings.append(translate("error_fetching_data", self.language))
            self.debug.emit(
                "submit.fallback",
                {"error": str(exc), "kind": type(exc).__name__, "city": city},
                ts=self.clock.today(),
            )

        if forecast is None:
            records = estimate(
                panel.area_m2, panel.efficiency, panel.orientation, None, clock=self.clock, language=self.language
            )
            labels = [r.day for r in records]
        else:
            labels = [day_label(d.date, i, self.language) for i, d in enumerate(forecast)]
            records = estimate(
                panel.area_m2,
                panel.efficiency,
                panel.orientation,
                [d.sun_hours for d in forecast],
                labels=labels,
            )

        submission = Submission(
            token=token,
            panel=panel,
            records=records,
            stats=summarize(records),
            labels=labels,
            location=resolved,
            forecast=forecast,
            warnings=warnings,
        )
        if token != self._generation:
            self.debug.emit("submit.stale", {"token": token, "current": self._generation}, ts=self.clock.today())
            return replace(submission, stale=True)
        self.last_submission = submission
        return submission

    def train_and_predict(self, on_progress: Optional[ProgressCallback] = None) -> AIPrediction:
        """Train on the submitted location's history and compare with its forecast.

        Requires a previous submission backed by real forecast data. On failure
        :class:`~solargain.core.errors.ModelTrainingFailure` propagates and the
        stored submission is left as it was.
        """

        submission = self.last_submission
        if submission is None or submission.forecast is None or submission.location is None:
            raise MissingForecast(translate("alert_train_first", self.language))

        model = train_sun_hours_model(
            self.archive_provider,
            submission.location.lat,
            submission.location.lon,
            days=self.history_days,
            regressor=self.regressor,
            on_progress=on_progress,
            debug=self.debug,
        )
        rows = compare_with_forecast(model, submission.forecast, submission.labels)
        self.last_prediction = AIPrediction(location=submission.location, rows=rows, model=model)
        return self.last_prediction

    def search(self, query: str, limit: int = 5) -> List[Location]:
        return self.geocoder.search(query, limit=limit, language=self.language)


def build_app(
    settings: RunSettings,
    *,
    debug: DebugCollector | None = None,
    clock: Clock | None = None,
    session: requests.Session | None = None,
    rate_limiter: SlidingWindowRateLimiter | None = None,
) -> SolarGainApp:
    """Composition root: build collaborators from run settings."""

    debug = debug or NullDebugCollector()
    clock = clock or SystemClock()
    session = session or requests.Session()
    rate_limiter = rate_limiter or SlidingWindowRateLimiter()
    common = {"debug": debug, "session": session, "attempts": settings.http_attempts}

    needs_key = settings.geocoder == "openweather" or settings.forecast_source == "openweather"
    if needs_key and not settings.openweather_api_key:
        raise ConfigError("openweather_api_key (or OPENWEATHER_API_KEY) is required for OpenWeatherMap")

    if settings.geocoder == "openweather":
        geocoder = OpenWeatherGeocoder(settings.openweather_api_key, rate_limiter=rate_limiter, **common)
    else:
        geocoder = OpenMeteoGeocoder(rate_limiter=rate_limiter, **common)

    if settings.forecast_source == "openweather":
        forecast = OpenWeatherForecastProvider(
            settings.openweather_api_key, horizon_days=settings.horizon_days, **common
        )
    else:
        forecast = OpenMeteoForecastProvider(horizon_days=settings.horizon_days, **common)

    archive = OpenMeteoArchiveProvider(clock=clock, **common)
    return SolarGainApp(
        geocoder,
        forecast,
        archive,
        regressor=SunHoursRegressor(epochs=settings.epochs, debug=debug),
        clock=clock,
        language=settings.language,
        history_days=settings.history_days,
        debug=debug,
    )


__all__ = ["SolarGainApp", "Submission", "AIPrediction", "build_app"]
