"""Open-Meteo daily forecast and historical archive providers."""

from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional

import pandas as pd
import requests

from solargain.core.clock import Clock, SystemClock
from solargain.core.debug import DebugCollector, NullDebugCollector, ScopedDebugCollector
from solargain.core.errors import UpstreamHttpError
from solargain.core.http import get_json
from solargain.core.models import DailyWeather
from .features import (
    ARCHIVE_CLAMP_H,
    ARCHIVE_CORRECTION,
    FORECAST_CLAMP_H,
    FORECAST_CORRECTION,
    derive_sun_hours_from_sunshine_seconds,
    estimate_sun_hours_from_cloudiness,
)

FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
ARCHIVE_URL = "https://archive-api.open-meteo.com/v1/archive"

_DAILY_VARS = {
    "temperature_2m_mean": "temperature",
    "cloudcover_mean": "cloudiness",
    "sunshine_duration": "sunshine_s",
}


def _optional(value: Any) -> Optional[float]:
    return None if value is None or pd.isna(value) else float(value)


class _OpenMeteoDaily:
    source = "open-meteo"

    def __init__(
        self,
        base_url: str,
        debug: DebugCollector | None = None,
        session: requests.Session | None = None,
        attempts: int = 1,
    ):
        self.base_url = base_url
        self.debug = ScopedDebugCollector(debug or NullDebugCollector(), source=self.source)
        self.session = session or requests.Session()
        self.attempts = attempts

    def _base_params(self, lat: float, lon: float) -> Dict[str, str]:
        return {
            "latitude": f"{float(lat):.4f}",
            "longitude": f"{float(lon):.4f}",
            "daily": ",".join(_DAILY_VARS),
            "timezone": "auto",
        }

    def _parse_daily(self, payload: Dict[str, Any]) -> pd.DataFrame:
        block = payload.get("daily") if isinstance(payload, dict) else None
        if not isinstance(block, dict) or not isinstance(block.get("time"), list):
            raise ValueError("Open-Meteo response missing daily block")
        index = pd.to_datetime(block["time"]).date
        data = {}
        for api_key, col in _DAILY_VARS.items():
            series = block.get(api_key)
            if series is None:
                series = [None] * len(index)
            if not isinstance(series, list) or len(series) != len(index):
                raise ValueError(f"Open-Meteo daily.{api_key} must be a list matching daily.time")
            data[col] = pd.to_numeric(pd.Series(series, dtype="object"), errors="coerce").astype(float).to_numpy()
        df = pd.DataFrame(data, index=pd.Index(index, name="date"))
        return df

    def _fetch(self, params: Dict[str, str]) -> pd.DataFrame:
        payload = get_json(self.session, self.base_url, params, attempts=self.attempts, debug=self.debug)
        try:
            df = self._parse_daily(payload)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise UpstreamHttpError(f"Malformed Open-Meteo response: {exc}", url=self.base_url) from exc
        self._emit_summary(df)
        return df

    def _emit_summary(self, df: pd.DataFrame) -> None:
        payload = {
            "days": int(len(df)),
            "temp_min": _optional(df["temperature"].min()) if not df.empty else None,
            "temp_max": _optional(df["temperature"].max()) if not df.empty else None,
            "cloud_mean": _optional(df["cloudiness"].mean()) if not df.empty else None,
            "missing_sunshine": int(df["sunshine_s"].isna().sum()),
        }
        self.debug.emit("weather.summary", payload, ts=df.index[0] if not df.empty else None)


class OpenMeteoForecastProvider(_OpenMeteoDaily):
    """Daily forecast; keeps the first ``horizon_days`` of a 7-day request."""

    def __init__(
        self,
        base_url: str = FORECAST_URL,
        debug: DebugCollector | None = None,
        session: requests.Session | None = None,
        attempts: int = 1,
        horizon_days: int = 5,
        forecast_days: int = 7,
    ):
        super().__init__(base_url, debug=debug, session=session, attempts=attempts)
        self.horizon_days = horizon_days
        self.forecast_days = max(forecast_days, horizon_days)

    def _build_params(self, lat: float, lon: float) -> Dict[str, str]:
        params = self._base_params(lat, lon)
        params["forecast_days"] = str(self.forecast_days)
        return params

    def get_forecast(self, lat: float, lon: float) -> List[DailyWeather]:
        df = self._fetch(self._build_params(lat, lon)).head(self.horizon_days)
        days: List[DailyWeather] = []
        for date, row in df.iterrows():
            cloud = _optional(row["cloudiness"])
            seconds = _optional(row["sunshine_s"])
            if seconds is None:
                sun_hours = estimate_sun_hours_from_cloudiness(cloud, date.month - 1)
                self.debug.emit("weather.sunshine_fallback", {"cloudiness": cloud}, ts=date)
            else:
                sun_hours = derive_sun_hours_from_sunshine_seconds(seconds, FORECAST_CORRECTION, FORECAST_CLAMP_H)
            days.append(
                DailyWeather(
                    date=date,
                    sun_hours=sun_hours,
                    temperature=_optional(row["temperature"]),
                    cloudiness=cloud,
                    sunshine_seconds=seconds,
                )
            )
        return days


class OpenMeteoArchiveProvider(_OpenMeteoDaily):
    """Observed daily weather ending yesterday (the archive has no data for today)."""

    def __init__(
        self,
        base_url: str = ARCHIVE_URL,
        debug: DebugCollector | None = None,
        session: requests.Session | None = None,
        attempts: int = 1,
        clock: Clock | None = None,
    ):
        super().__init__(base_url, debug=debug, session=session, attempts=attempts)
        self.clock = clock or SystemClock()

    def _build_params(self, lat: float, lon: float, days: int) -> Dict[str, str]:
        end = self.clock.today() - dt.timedelta(days=1)
        start = end - dt.timedelta(days=days)
        params = self._base_params(lat, lon)
        params["start_date"] = start.isoformat()
        params["end_date"] = end.isoformat()
        return params

    def get_history(self, lat: float, lon: float, days: int = 180) -> List[DailyWeather]:
        if days < 1:
            raise ValueError("days must be at least 1")
        df = self._fetch(self._build_params(lat, lon, days))
        return [
            DailyWeather(
                date=date,
                sun_hours=derive_sun_hours_from_sunshine_seconds(
                    _optional(row["sunshine_s"]), ARCHIVE_CORRECTION, ARCHIVE_CLAMP_H
                ),
                temperature=_optional(row["temperature"]),
                cloudiness=_optional(row["cloudiness"]),
                sunshine_seconds=_optional(row["sunshine_s"]),
            )
            for date, row in df.iterrows()
        ]


__all__ = ["OpenMeteoForecastProvider", "OpenMeteoArchiveProvider", "FORECAST_URL", "ARCHIVE_URL"]
