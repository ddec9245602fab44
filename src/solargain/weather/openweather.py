"""OpenWeatherMap 5-day / 3-hour forecast provider.

OpenWeatherMap reports cloud cover but no sunshine duration, so sun hours come
from the monthly cloudiness estimate instead of measured sunshine.
"""

from __future__ import annotations

from typing import Any, Dict, List

import pandas as pd
import requests

from solargain.core.debug import DebugCollector, NullDebugCollector, ScopedDebugCollector
from solargain.core.errors import UpstreamHttpError
from solargain.core.http import get_json
from solargain.core.models import DailyWeather
from .features import estimate_sun_hours_from_cloudiness

FORECAST_URL = "https://api.openweathermap.org/data/2.5/forecast"


class OpenWeatherForecastProvider:
    source = "openweather"

    def __init__(
        self,
        api_key: str,
        base_url: str = FORECAST_URL,
        debug: DebugCollector | None = None,
        session: requests.Session | None = None,
        attempts: int = 1,
        horizon_days: int = 5,
    ):
        if not api_key:
            raise ValueError("OpenWeatherMap requires an API key")
        self.api_key = api_key
        self.base_url = base_url
        self.debug = ScopedDebugCollector(debug or NullDebugCollector(), source=self.source)
        self.session = session or requests.Session()
        self.attempts = attempts
        self.horizon_days = horizon_days

    def _build_params(self, lat: float, lon: float) -> Dict[str, str]:
        return {
            "lat": str(lat),
            "lon": str(lon),
            "appid": self.api_key,
            "units": "metric",
        }

    def _parse_daily(self, payload: Dict[str, Any]) -> pd.DataFrame:
        """Group 3-hourly items into local calendar days (mean cloud/temperature)."""
        items = payload.get("list") if isinstance(payload, dict) else None
        if items is None:
            raise ValueError("OpenWeatherMap response missing list block")
        offset_s = int((payload.get("city") or {}).get("timezone") or 0)
        frame = pd.DataFrame(
            {
                "ts": [item["dt"] for item in items],
                "cloudiness": [(item.get("clouds") or {}).get("all") for item in items],
                "temperature": [(item.get("main") or {}).get("temp") for item in items],
            }
        )
        if frame.empty:
            return pd.DataFrame(columns=["cloudiness", "temperature"], index=pd.Index([], name="date"))
        local = pd.to_datetime(frame["ts"], unit="s", utc=True) + pd.Timedelta(seconds=offset_s)
        frame["date"] = local.dt.date
        for col in ("cloudiness", "temperature"):
            frame[col] = pd.to_numeric(frame[col], errors="coerce").astype(float)
        return frame.groupby("date", sort=True)[["cloudiness", "temperature"]].mean()

    def get_forecast(self, lat: float, lon: float) -> List[DailyWeather]:
        payload = get_json(
            self.session, self.base_url, self._build_params(lat, lon), attempts=self.attempts, debug=self.debug
        )
        try:
            daily = self._parse_daily(payload).head(self.horizon_days)
        except (KeyError, TypeError, ValueError) as exc:
            raise UpstreamHttpError(f"Malformed OpenWeatherMap response: {exc}", url=self.base_url) from exc

        days: List[DailyWeather] = []
        for date, row in daily.iterrows():
            cloud = None if pd.isna(row["cloudiness"]) else float(row["cloudiness"])
            temp = None if pd.isna(row["temperature"]) else float(row["temperature"])
            days.append(
                DailyWeather(
                    date=date,
                    sun_hours=estimate_sun_hours_from_cloudiness(cloud, date.month - 1),
                    temperature=temp,
                    cloudiness=cloud,
                )
            )
        self.debug.emit("weather.summary", {"days": len(days)}, ts=days[0].date if days else None)
        return days


__all__ = ["OpenWeatherForecastProvider", "FORECAST_URL"]
