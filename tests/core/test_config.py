import json
from pathlib import Path

import pytest

from solargain.core.config import API_KEY_ENV, ConfigError, RunSettings, load_config


def test_load_yaml_full(tmp_path: Path, monkeypatch):
    monkeypatch.delenv(API_KEY_ENV, raising=False)
    cfg = tmp_path / "config.yaml"
    cfg.write_text(
        "panel:\n"
        "  area_m2: 10\n"
        "  efficiency: 0.2\n"
        "  orientation: east\n"
        "location:\n"
        "  city: Praha\n"
        "run:\n"
        "  language: cs\n"
        "  epochs: '50'\n"
        "  http_attempts: 3\n"
    )
    loaded = load_config(cfg)
    assert loaded.panel.area_m2 == 10
    assert loaded.panel.orientation == "east"
    assert loaded.city == "Praha"
    assert loaded.location is None
    assert loaded.run.language == "cs"
    assert loaded.run.epochs == 50
    assert loaded.run.http_attempts == 3
    assert loaded.run.history_days == 180
    assert loaded.run.openweather_api_key is None


def test_load_json_with_coordinates(tmp_path: Path):
    cfg = tmp_path / "config.json"
    cfg.write_text(json.dumps({"location": {"lat": 50.08, "lon": 14.42, "name": "Home"}}))
    loaded = load_config(cfg)
    assert loaded.panel is None
    assert loaded.location.name == "Home"
    assert loaded.location.lat == pytest.approx(50.08)


def test_api_key_from_environment(monkeypatch):
    monkeypatch.setenv(API_KEY_ENV, "secret")
    assert load_config(None).run.openweather_api_key == "secret"


@pytest.mark.parametrize(
    "body",
    [
        "run:\n  language: de\n",
        "run:\n  epochs: many\n",
        "run:\n  epochs: 0\n",
        "run:\n  bogus: 1\n",
        "panel:\n  area_m2: 0\n  efficiency: 0.2\n",
        "panel:\n  efficiency: 0.2\n",
        "location:\n  lat: 95\n  lon: 0\n",
        "- just\n- a list\n",
        "location:\n- Praha\n",
        "run: fast\n",
        "panel: big\n",
    ],
)
def test_invalid_configs_raise(tmp_path: Path, body):
    cfg = tmp_path / "config.yaml"
    cfg.write_text(body)
    with pytest.raises(ConfigError):
        load_config(cfg)


def test_missing_and_unsupported_files(tmp_path: Path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "missing.yaml")
    other = tmp_path / "config.toml"
    other.write_text("x = 1")
    with pytest.raises(ConfigError):
        load_config(other)


def test_with_overrides_skips_none():
    base = RunSettings(language="cs", epochs=20)
    updated = base.with_overrides(language=None, epochs=5, geocoder="openweather")
    assert updated.language == "cs"
    assert updated.epochs == 5
    assert updated.geocoder == "openweather"
    with pytest.raises(ConfigError):
        base.with_overrides(forecast_source="pvgis")
