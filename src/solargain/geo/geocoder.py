"""City name -> coordinates lookups (resolve + autocomplete search).

Two backends share the same surface:

* :class:`OpenMeteoGeocoder` (keyless, default)
* :class:`OpenWeatherGeocoder` (needs an OpenWeatherMap API key, prefers
  ``local_names[language]``)

Every lookup first takes a slot from the shared rate limiter.
"""
from __future__ import annotations

from typing import Any, Iterable, List, Optional, Protocol

import requests

from solargain.core.debug import DebugCollector, NullDebugCollector, ScopedDebugCollector
from solargain.core.errors import LocationNotFound, RateLimited, UpstreamHttpError
from solargain.core.http import get_json
from solargain.core.i18n import DEFAULT_LANGUAGE
from solargain.core.models import Location, ValidationError
from .rate_limit import SlidingWindowRateLimiter

OPEN_METEO_URL = "https://geocoding-api.open-meteo.com/v1/search"
OPENWEATHER_URL = "https://api.openweathermap.org/geo/1.0/direct"

MIN_QUERY_LENGTH = 2


class Geocoder(Protocol):
    def resolve(self, query: str, language: str = DEFAULT_LANGUAGE) -> Location:
        ...

    def search(self, query: str, limit: int = 5, language: str = DEFAULT_LANGUAGE) -> List[Location]:
        ...


class _BaseGeocoder:
    source = "geocoder"

    def __init__(
        self,
        base_url: str,
        rate_limiter: SlidingWindowRateLimiter | None = None,
        debug: DebugCollector | None = None,
        session: requests.Session | None = None,
        attempts: int = 1,
    ):
        self.base_url = base_url
        self.rate_limiter = rate_limiter or SlidingWindowRateLimiter()
        self.debug = ScopedDebugCollector(debug or NullDebugCollector(), source=self.source)
        self.session = session or requests.Session()
        self.attempts = attempts

    def _build_params(self, query: str, limit: int, language: str) -> dict:
        raise NotImplementedError

    def _parse(self, payload: Any, language: str) -> Iterable[Location]:
        raise NotImplementedError

    def _lookup(self, query: str, limit: int, language: str) -> List[Location]:
        if not self.rate_limiter.try_acquire():
            self.debug.emit("geo.rate_limited", {"query": query, "window_s": self.rate_limiter.window_s})
            raise RateLimited("Too many geocoding requests; try again in a minute")
        payload = get_json(
            self.session,
            self.base_url,
            self._build_params(query, limit, language),
            attempts=self.attempts,
            debug=self.debug,
        )
        try:
            return list(self._parse(payload, language))[:limit]
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise UpstreamHttpError(f"Malformed geocoding response: {exc}", url=self.base_url) from exc

    def resolve(self, query: str, language: str = DEFAULT_LANGUAGE) -> Location:
        """Best match for ``query``; raises :class:`LocationNotFound` when nothing matches."""
        query = (query or "").strip()
        if not query:
            raise LocationNotFound(query)
        results = self._lookup(query, 1, language)
        if not results:
            raise LocationNotFound(query)
        return results[0]

    def search(self, query: str, limit: int = 5, language: str = DEFAULT_LANGUAGE) -> List[Location]:
        """Autocomplete suggestions; any failure degrades to an empty list."""
        query = (query or "").strip()
        if len(query) < MIN_QUERY_LENGTH:
            return []
        try:
            return self._lookup(query, limit, language)
        except (RateLimited, UpstreamHttpError) as exc:
            self.debug.emit("geo.search_failed", {"query": query, "error": str(exc)})
            return []


def _location(lat: Any, lon: Any, name: str, country: str, state: Optional[str]) -> Optional[Location]:
    try:
        return Location(lat=float(lat), lon=float(lon), name=name, country=country, state=state)
    except ValidationError:
        return None


class OpenMeteoGeocoder(_BaseGeocoder):
    source = "open-meteo-geocoding"

    def __init__(self, base_url: str = OPEN_METEO_URL, **kwargs):
        super().__init__(base_url, **kwargs)

    def _build_params(self, query: str, limit: int, language: str) -> dict:
        return {"name": query, "count": str(limit), "language": language, "format": "json"}

    def _parse(self, payload: Any, language: str) -> Iterable[Location]:
        for item in (payload or {}).get("results") or []:
            loc = _location(
                item["latitude"],
                item["longitude"],
                item.get("name", ""),
                item.get("country_code") or item.get("country", ""),
                item.get("admin1"),
            )
            if loc is not None:
                yield loc


class OpenWeatherGeocoder(_BaseGeocoder):
    source = "openweather-geocoding"

    def __init__(self, api_key: str, base_url: str = OPENWEATHER_URL, **kwargs):
        if not api_key:
            raise ValueError("OpenWeatherMap requires an API key")
        super().__init__(base_url, **kwargs)
        self.api_key = api_key

    def _build_params(self, query: str, limit: int, language: str) -> dict:
        return {"q": query, "limit": str(limit), "appid": self.api_key}

    def _parse(self, payload: Any, language: str) -> Iterable[Location]:
        if not isinstance(payload, list):
            raise ValueError("expected a list of matches")
        for item in payload:
            local_names = item.get("local_names") or {}
            loc = _location(
                item["lat"],
                item["lon"],
                local_names.get(language) or item.get("name", ""),
                item.get("country", ""),
                item.get("state"),
            )
            if loc is not None:
                yield loc


__all__ = [
    "Geocoder",
    "OpenMeteoGeocoder",
    "OpenWeatherGeocoder",
    "MIN_QUERY_LENGTH",
]
