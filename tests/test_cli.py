import datetime as dt
import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from solargain import __version__, cli
from solargain.app import SolarGainApp
from solargain.core.clock import FixedClock
from solargain.core.errors import LocationNotFound, UpstreamHttpError
from solargain.core.models import DailyWeather, Location
from solargain.ml.regressor import SunHoursRegressor

runner = CliRunner()

TODAY = dt.date(2025, 10, 18)
PRAHA = Location(lat=50.08, lon=14.42, name="Praha", country="CZ")


class DummyGeocoder:
    def resolve(self, query, language="en"):
        if query == "Atlantis":
            raise LocationNotFound(query)
        return PRAHA

    def search(self, query, limit=5, language="en"):
        return [PRAHA, Location(lat=49.2, lon=16.6, name="Brno", country="CZ", state="South Moravian")][:limit]


class DummyForecast:
    def get_forecast(self, lat, lon):
        return [
            DailyWeather(date=TODAY + dt.timedelta(days=i), sun_hours=h, temperature=12.0, cloudiness=c)
            for i, (h, c) in enumerate([(6.0, 20.0), (3.0, 70.0), (9.5, 5.0)])
        ]


class DummyArchive:
    def __init__(self, fail=False):
        self.fail = fail

    def get_history(self, lat, lon, days=180):
        if self.fail:
            raise UpstreamHttpError("archive down", status=502)
        start = TODAY - dt.timedelta(days=days)
        return [
            DailyWeather(
                date=start + dt.timedelta(days=i),
                sun_hours=10.0 * (1 - ((i * 7) % 100) / 100),
                temperature=12.0,
                cloudiness=float((i * 7) % 100),
            )
            for i in range(days)
        ]


@pytest.fixture
def patched(monkeypatch):
    seen = {}

    def fake_app(settings, debug, archive=None):
        seen["settings"] = settings
        return SolarGainApp(
            DummyGeocoder(),
            DummyForecast(),
            archive or DummyArchive(),
            regressor=SunHoursRegressor(epochs=settings.epochs, debug=debug),
            clock=FixedClock(TODAY),
            language=settings.language,
            history_days=settings.history_days,
            debug=debug,
        )

    monkeypatch.setattr(cli, "default_app", fake_app)
    return seen


def test_help_exits_zero():
    res = runner.invoke(cli.app, ["--help"])
    assert res.exit_code == 0
    for command in ("estimate", "train", "search"):
        assert command in res.stdout


def test_version():
    res = runner.invoke(cli.app, ["--version"])
    assert res.exit_code == 0
    assert __version__ in res.stdout


def test_estimate_prints_records_and_writes_json(patched, tmp_path):
    out = tmp_path / "out.json"
    debug_path = tmp_path / "debug.jsonl"
    res = runner.invoke(
        cli.app,
        [
            "estimate",
            "--city", "Praha",
            "--area", "10",
            "--efficiency", "0.2",
            "--output", str(out),
            "--debug", str(debug_path),
        ],
    )
    assert res.exit_code == 0, res.output
    assert "Praha, CZ" in res.stdout
    assert "Today 18.10." in res.stdout
    assert "37000 Wh" in res.stdout

    payload = json.loads(out.read_text())
    assert [row["energy"] for row in payload["rows"]] == [12000, 6000, 19000]
    assert payload["simulated"] is False
    assert payload["stats"]["maximum"] == 19000
    assert debug_path.exists()


def test_estimate_uses_config_and_writes_csv(patched, tmp_path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text(
        "panel:\n  area_m2: 10\n  efficiency: 0.2\n  orientation: west\n"
        "location:\n  city: Praha\n"
        "run:\n  language: cs\n"
    )
    out = tmp_path / "out.csv"
    res = runner.invoke(cli.app, ["estimate", "--config", str(cfg), "--format", "csv", "--output", str(out)])
    assert res.exit_code == 0, res.output
    assert "Dnes 18.10." in res.stdout
    assert patched["settings"].language == "cs"
    lines = out.read_text().splitlines()
    assert lines[0] == "day,sun_hours,energy,orientation,orientation_factor"
    assert lines[1].endswith(",9000,west,0.75")


def test_estimate_fallback_prints_warning(patched):
    res = runner.invoke(cli.app, ["estimate", "--city", "Atlantis", "--area", "10", "--efficiency", "0.2"])
    assert res.exit_code == 0, res.output
    assert "Using simulated data" in res.output
    assert "14000" in res.stdout


@pytest.mark.parametrize(
    "args,message",
    [
        (["--city", "Praha", "--area", "0", "--efficiency", "0.2"], "Enter valid panel area"),
        (["--city", "Praha", "--area", "10", "--efficiency", "1.5"], "Enter valid efficiency"),
        (["--city", "Praha", "--area", "10"], "Enter valid efficiency"),
        (["--area", "10", "--efficiency", "0.2"], "Enter city or coordinates"),
        (["--lat", "50", "--area", "10", "--efficiency", "0.2"], "--lat and --lon"),
    ],
)
def test_estimate_input_errors(patched, args, message):
    res = runner.invoke(cli.app, ["estimate", *args])
    assert res.exit_code == 1
    assert message in res.output


def test_estimate_rejects_unknown_format(patched):
    res = runner.invoke(cli.app, ["estimate", "--city", "Praha", "--area", "1", "--efficiency", "0.1", "-f", "xml"])
    assert res.exit_code == 1


def test_train_prints_comparison(patched, tmp_path):
    out = tmp_path / "ai.json"
    res = runner.invoke(
        cli.app,
        [
            "train",
            "--lat", "50.08",
            "--lon", "14.42",
            "--area", "10",
            "--efficiency", "0.2",
            "--history-days", "40",
            "--epochs", "10",
            "--output", str(out),
        ],
    )
    assert res.exit_code == 0, res.output
    assert "Training model: 10/10" in res.stdout
    assert "Comparison: Actual vs. AI Prediction" in res.stdout
    assert patched["settings"].history_days == 40
    payload = json.loads(out.read_text())
    assert [row["sun_hours"] for row in payload["rows"]] == [6.0, 3.0, 9.5]
    assert all(0.0 <= row["ai_sun_hours"] <= 12.0 for row in payload["rows"])


def test_train_after_fallback_asks_for_forecast_first(patched):
    res = runner.invoke(cli.app, ["train", "--city", "Atlantis", "--area", "10", "--efficiency", "0.2"])
    assert res.exit_code == 1
    assert "First calculate energy prediction" in res.output


def test_train_failure_exits_with_localized_error(monkeypatch, patched):
    dummy_app = cli.default_app
    monkeypatch.setattr(cli, "default_app", lambda settings, debug: dummy_app(settings, debug, DummyArchive(fail=True)))
    res = runner.invoke(
        cli.app,
        ["train", "--city", "Praha", "--area", "10", "--efficiency", "0.2", "--language", "cs", "--epochs", "2"],
    )
    assert res.exit_code == 1
    assert "Nepodařilo se natrénovat AI model" in res.output


def test_search_lists_matches(patched):
    res = runner.invoke(cli.app, ["search", "Pra", "--limit", "2"])
    assert res.exit_code == 0, res.output
    assert "Praha, CZ" in res.stdout
    assert "Brno, CZ (South Moravian)" in res.stdout


def test_bad_config_exits_one(tmp_path: Path, patched):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("run:\n  language: de\n")
    res = runner.invoke(cli.app, ["estimate", "--config", str(cfg), "--city", "Praha"])
    assert res.exit_code == 1
    assert "language" in res.output


def test_non_mapping_config_section_exits_one(tmp_path: Path, patched):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("location:\n- Praha\n")
    res = runner.invoke(cli.app, ["estimate", "--config", str(cfg), "--area", "10", "--efficiency", "0.2"])
    assert res.exit_code == 1
    assert "location section must be a mapping" in res.output
