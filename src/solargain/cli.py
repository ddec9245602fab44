"""Command line entrypoint for solargain.

Commands:

* ``estimate``: geocode a city, fetch its forecast and print daily energy.
* ``train``: same as ``estimate``, then train the AI sun-hours model on the
  location's history and print the forecast vs. AI comparison.
* ``search``: autocomplete city names.
"""
from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional, Tuple

import pandas as pd
import typer

from solargain import __version__
from solargain.app import SolarGainApp, Submission, build_app
from solargain.core.config import AppConfig, ConfigError, RunSettings, load_config
from solargain.core.debug import DebugCollector, NullDebugCollector, build_debug_collector
from solargain.core.errors import MissingForecast, ModelTrainingFailure
from solargain.core.i18n import translate
from solargain.core.models import Location, Panel, TrainingProgress, ValidationError
from solargain.energy.estimator import orientation_label

app = typer.Typer(add_completion=False, help="Solar panel energy estimator CLI")

OUTPUT_FORMATS = {"json", "csv"}


def default_app(settings: RunSettings, debug: DebugCollector) -> SolarGainApp:
    """Factory separated for easy monkeypatching in tests."""

    return build_app(settings, debug=debug)


def _exit_with_error(msg: str) -> None:
    typer.echo(f"Error: {msg}", err=True)
    raise typer.Exit(code=1)


def _load(config: Optional[Path]) -> AppConfig:
    try:
        return load_config(config)
    except ConfigError as exc:
        _exit_with_error(str(exc))


def _settings(cfg: AppConfig, **overrides) -> RunSettings:
    try:
        return cfg.run.with_overrides(**overrides)
    except ConfigError as exc:
        _exit_with_error(str(exc))


def _panel(
    cfg: AppConfig,
    area: Optional[float],
    efficiency: Optional[float],
    orientation: Optional[str],
    language: str,
) -> Panel:
    base = cfg.panel
    area = area if area is not None else (base.area_m2 if base else None)
    efficiency = efficiency if efficiency is not None else (base.efficiency if base else None)
    orientation = orientation or (base.orientation if base else "south")
    if area is None or area <= 0:
        _exit_with_error(translate("alert_area_invalid", language))
    if efficiency is None:
        _exit_with_error(translate("alert_efficiency_invalid", language))
    try:
        return Panel(area_m2=area, efficiency=efficiency, orientation=orientation.lower())
    except ValidationError as exc:
        key = "alert_area_invalid" if "area" in str(exc) else "alert_efficiency_invalid"
        _exit_with_error(translate(key, language))


def _target(
    cfg: AppConfig,
    city: Optional[str],
    lat: Optional[float],
    lon: Optional[float],
    language: str,
) -> Tuple[Optional[str], Optional[Location]]:
    if (lat is None) != (lon is None):
        _exit_with_error("--lat and --lon must be given together")
    if lat is not None:
        try:
            return None, Location(lat=lat, lon=lon, name=city or "")
        except ValidationError as exc:
            _exit_with_error(str(exc))
    if city and city.strip():
        return city.strip(), None
    if cfg.location is not None:
        return None, cfg.location
    if cfg.city:
        return cfg.city, None
    _exit_with_error(translate("alert_city_required", language))


def _open_debug(path: Optional[Path]):
    return build_debug_collector(path) if path else NullDebugCollector()


def _close_debug(collector) -> None:
    close = getattr(collector, "close", None)
    if close is not None:
        close()


def _check_format(format: str) -> str:
    fmt = format.lower()
    if fmt not in OUTPUT_FORMATS:
        _exit_with_error("format must be json or csv")
    return fmt


def _records_frame(submission: Submission) -> pd.DataFrame:
    return pd.DataFrame([asdict(r) for r in submission.records])


def _echo_submission(submission: Submission, language: str) -> None:
    for warning in submission.warnings:
        typer.echo(f"{translate('warning', language)}: {warning}", err=True)
    if submission.location is not None:
        typer.echo(f"{translate('location', language)}: {submission.location.display_name}")
    typer.echo(_records_frame(submission).to_string(index=False))
    stats = submission.stats
    typer.echo(
        f"{translate('total_energy', language)}: {stats.total} Wh | "
        f"{translate('average_per_day', language)}: {stats.average} Wh | "
        f"{translate('maximum', language)}: {stats.maximum} Wh"
    )


def _write_output(path: Path, fmt: str, frame: pd.DataFrame, meta: dict) -> None:
    if fmt == "json":
        payload = dict(meta)
        payload["rows"] = frame.to_dict(orient="records")
        path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    else:
        frame.to_csv(path, index=False)
    typer.echo(f"Wrote results to {path}")


def _submission_meta(submission: Submission, language: str) -> dict:
    loc = submission.location
    return {
        "location": None if loc is None else {"name": loc.display_name, "lat": loc.lat, "lon": loc.lon},
        "orientation": orientation_label(submission.panel.orientation, language),
        "simulated": submission.simulated,
        "warnings": list(submission.warnings),
        "stats": asdict(submission.stats),
    }


def _submit(
    config: Optional[Path],
    city: Optional[str],
    lat: Optional[float],
    lon: Optional[float],
    area: Optional[float],
    efficiency: Optional[float],
    orientation: Optional[str],
    debug_collector: DebugCollector,
    **overrides,
) -> Tuple[SolarGainApp, Submission, str]:
    cfg = _load(config)
    settings = _settings(cfg, **overrides)
    language = settings.language
    panel = _panel(cfg, area, efficiency, orientation, language)
    target_city, location = _target(cfg, city, lat, lon, language)
    try:
        solar = default_app(settings, debug_collector)
    except ConfigError as exc:
        _exit_with_error(str(exc))
    submission = solar.submit(panel, city=target_city, location=location)
    return solar, submission, language


@app.command()
def estimate(
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, help="YAML/JSON config file"),
    city: Optional[str] = typer.Option(None, help="City to geocode"),
    lat: Optional[float] = typer.Option(None, help="Latitude (skips geocoding)"),
    lon: Optional[float] = typer.Option(None, help="Longitude (skips geocoding)"),
    area: Optional[float] = typer.Option(None, help="Panel area in m²"),
    efficiency: Optional[float] = typer.Option(None, help="Panel efficiency 0-1"),
    orientation: Optional[str] = typer.Option(None, help="south, southeast, southwest, east, west or north"),
    language: Optional[str] = typer.Option(None, help="Output language: cs or en"),
    forecast_source: Optional[str] = typer.Option(None, help="open-meteo or openweather"),
    geocoder: Optional[str] = typer.Option(None, help="open-meteo or openweather"),
    format: str = typer.Option("json", "--format", "-f", help="Output format: json or csv"),
    output: Optional[Path] = typer.Option(None, help="Write records to this file"),
    debug: Optional[Path] = typer.Option(None, help="Write debug events (.json = single document, else JSONL)"),
):
    """Estimate daily panel energy for the forecast horizon."""

    fmt = _check_format(format)
    debug_collector = _open_debug(debug)
    try:
        _, submission, lang = _submit(
            config,
            city,
            lat,
            lon,
            area,
            efficiency,
            orientation,
            debug_collector,
            language=language,
            forecast_source=forecast_source,
            geocoder=geocoder,
        )
        _echo_submission(submission, lang)
        if output:
            _write_output(output, fmt, _records_frame(submission), _submission_meta(submission, lang))
    finally:
        _close_debug(debug_collector)
    if debug:
        typer.echo(f"Debug events -> {debug}")


@app.command()
def train(
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, help="YAML/JSON config file"),
    city: Optional[str] = typer.Option(None, help="City to geocode"),
    lat: Optional[float] = typer.Option(None, help="Latitude (skips geocoding)"),
    lon: Optional[float] = typer.Option(None, help="Longitude (skips geocoding)"),
    area: Optional[float] = typer.Option(None, help="Panel area in m²"),
    efficiency: Optional[float] = typer.Option(None, help="Panel efficiency 0-1"),
    orientation: Optional[str] = typer.Option(None, help="south, southeast, southwest, east, west or north"),
    language: Optional[str] = typer.Option(None, help="Output language: cs or en"),
    forecast_source: Optional[str] = typer.Option(None, help="open-meteo or openweather"),
    geocoder: Optional[str] = typer.Option(None, help="open-meteo or openweather"),
    history_days: Optional[int] = typer.Option(None, help="Days of history to train on"),
    epochs: Optional[int] = typer.Option(None, help="Boosting rounds"),
    format: str = typer.Option("json", "--format", "-f", help="Output format: json or csv"),
    output: Optional[Path] = typer.Option(None, help="Write the AI comparison to this file"),
    debug: Optional[Path] = typer.Option(None, help="Write debug events (.json = single document, else JSONL)"),
):
    """Estimate energy, then train the AI model and compare its sun hours with the forecast."""

    fmt = _check_format(format)
    debug_collector = _open_debug(debug)
    try:
        solar, submission, lang = _submit(
            config,
            city,
            lat,
            lon,
            area,
            efficiency,
            orientation,
            debug_collector,
            language=language,
            forecast_source=forecast_source,
            geocoder=geocoder,
            history_days=history_days,
            epochs=epochs,
        )
        _echo_submission(submission, lang)

        step = max(1, solar.regressor.epochs // 10)

        def report(progress: TrainingProgress) -> None:
            if progress.epoch % step == 0 or progress.epoch == progress.total_epochs:
                val = "" if progress.val_loss is None else f" val_loss={progress.val_loss:.5f}"
                typer.echo(
                    f"{translate('training_model', lang)}: {progress.epoch}/{progress.total_epochs}"
                    f" loss={progress.loss:.5f}{val}"
                )

        try:
            prediction = solar.train_and_predict(on_progress=report)
        except MissingForecast as exc:
            _exit_with_error(str(exc))
        except ModelTrainingFailure as exc:
            _exit_with_error(f"{translate('error_training_model', lang)}: {exc}")

        frame = pd.DataFrame(
            [
                {"day": r.day, "sun_hours": r.sun_hours, "ai_sun_hours": r.ai_sun_hours, "difference": r.difference}
                for r in prediction.rows
            ]
        )
        typer.echo(translate("comparison_title", lang))
        typer.echo(frame.to_string(index=False))
        if output:
            meta = _submission_meta(submission, lang)
            meta["epochs"] = len(prediction.model.history)
            _write_output(output, fmt, frame, meta)
    finally:
        _close_debug(debug_collector)
    if debug:
        typer.echo(f"Debug events -> {debug}")


@app.command()
def search(
    query: str = typer.Argument(..., help="City name prefix"),
    limit: int = typer.Option(5, min=1, max=20, help="Maximum number of suggestions"),
    language: Optional[str] = typer.Option(None, help="Result language: cs or en"),
    geocoder: Optional[str] = typer.Option(None, help="open-meteo or openweather"),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, help="YAML/JSON config file"),
    debug: Optional[Path] = typer.Option(None, help="Write debug events (.json = single document, else JSONL)"),
):
    """Suggest locations matching QUERY."""

    cfg = _load(config)
    settings = _settings(cfg, language=language, geocoder=geocoder)
    debug_collector = _open_debug(debug)
    try:
        try:
            solar = default_app(settings, debug_collector)
        except ConfigError as exc:
            _exit_with_error(str(exc))
        matches: List[Location] = solar.search(query, limit=limit)
    finally:
        _close_debug(debug_collector)

    if not matches:
        typer.echo("No matches")
        return
    for loc in matches:
        state = f" ({loc.state})" if loc.state else ""
        typer.echo(f"{loc.display_name}{state}\t{loc.lat:.4f}\t{loc.lon:.4f}")


def _print_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def version_callback(
    version: bool = typer.Option(
        False, "--version", callback=_print_version, is_eager=True, help="Show version and exit"
    ),
):
    """Solar panel energy estimator with an AI sun-hours model."""


def main() -> None:  # pragma: no cover - thin wrapper for console_script
    app()


__all__ = ["app", "main", "default_app"]


if __name__ == "__main__":  # pragma: no cover
    main()
