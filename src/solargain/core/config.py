"""Configuration loader.

Supports YAML and JSON files with optional ``panel``, ``location`` and ``run``
sections. CLI flags override whatever is loaded here.
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .models import Location, Panel, ValidationError


class ConfigError(ValueError):
    """Raised when configuration cannot be parsed into domain models."""


FORECAST_SOURCES = {"open-meteo", "openweather"}
GEOCODERS = {"open-meteo", "openweather"}
LANGUAGES = {"cs", "en"}
API_KEY_ENV = "OPENWEATHER_API_KEY"


@dataclass(frozen=True)
class RunSettings:
    language: str = "en"
    horizon_days: int = 5
    history_days: int = 180
    epochs: int = 100
    forecast_source: str = "open-meteo"
    geocoder: str = "open-meteo"
    openweather_api_key: Optional[str] = None
    http_attempts: int = 1

    def __post_init__(self):
        if self.language not in LANGUAGES:
            raise ConfigError(f"language must be one of {sorted(LANGUAGES)}")
        if self.forecast_source not in FORECAST_SOURCES:
            raise ConfigError(f"forecast_source must be one of {sorted(FORECAST_SOURCES)}")
        if self.geocoder not in GEOCODERS:
            raise ConfigError(f"geocoder must be one of {sorted(GEOCODERS)}")
        for name in ("horizon_days", "history_days", "epochs", "http_attempts"):
            if getattr(self, name) < 1:
                raise ConfigError(f"{name} must be at least 1")

    def with_overrides(self, **overrides: Any) -> "RunSettings":
        """Return a copy where every non-None override replaces the stored value."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


@dataclass(frozen=True)
class AppConfig:
    panel: Optional[Panel] = None
    city: Optional[str] = None
    location: Optional[Location] = None
    run: RunSettings = field(default_factory=RunSettings)


_RUN_INT_KEYS = {"horizon_days", "history_days", "epochs", "http_attempts"}


def _load_raw(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() in {".yaml", ".yml"}:
            raw = yaml.safe_load(text) or {}
        elif path.suffix.lower() == ".json":
            raw = json.loads(text)
        else:
            raise ConfigError(f"Unsupported config extension: {path.suffix}")
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Could not parse {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError("Config root must be a mapping")
    return raw


def _parse_panel(raw: Dict[str, Any]) -> Panel:
    try:
        return Panel(
            area_m2=float(raw["area_m2"]),
            efficiency=float(raw["efficiency"]),
            orientation=str(raw.get("orientation", "south")),
        )
    except KeyError as exc:
        raise ConfigError(f"Missing panel field: {exc}") from exc
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid panel: {exc}") from exc


def _parse_location(raw: Dict[str, Any]) -> tuple[Optional[str], Optional[Location]]:
    city = raw.get("city")
    if "lat" in raw or "lon" in raw:
        try:
            return city, Location(
                lat=float(raw["lat"]),
                lon=float(raw["lon"]),
                name=str(raw.get("name", "")),
                country=str(raw.get("country", "")),
            )
        except KeyError as exc:
            raise ConfigError(f"Missing location field: {exc}") from exc
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid location: {exc}") from exc
    if city is not None and not str(city).strip():
        raise ConfigError("location.city must not be empty")
    return (str(city).strip() if city else None), None


def _parse_run(raw: Dict[str, Any]) -> RunSettings:
    known = {f.name for f in fields(RunSettings)}
    unknown = set(raw) - known
    if unknown:
        raise ConfigError(f"Unknown run fields: {sorted(unknown)}")
    values: Dict[str, Any] = {}
    for key, val in raw.items():
        if val is None:
            continue
        if key in _RUN_INT_KEYS:
            try:
                values[key] = int(val)
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"run.{key} must be an integer") from exc
        else:
            values[key] = str(val)
    if not values.get("openweather_api_key"):
        values["openweather_api_key"] = os.environ.get(API_KEY_ENV) or None
    return RunSettings(**values)


def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = raw.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigError(f"{name} section must be a mapping")
    return section


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load an :class:`AppConfig`; ``None`` yields defaults plus environment."""
    if path is None:
        return AppConfig(run=_parse_run({}))
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    raw = _load_raw(path)
    panel_raw = _section(raw, "panel")
    try:
        panel = _parse_panel(panel_raw) if panel_raw else None
        city, location = _parse_location(_section(raw, "location"))
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc
    return AppConfig(panel=panel, city=city, location=location, run=_parse_run(_section(raw, "run")))


__all__ = [
    "ConfigError",
    "RunSettings",
    "AppConfig",
    "load_config",
    "API_KEY_ENV",
]
