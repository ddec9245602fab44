"""Czech/English string tables and date label helpers."""
from __future__ import annotations

import datetime as dt

DEFAULT_LANGUAGE = "en"

TRANSLATIONS = {
    "cs": {
        "today": "Dnes",
        "tomorrow": "Zítra",
        "weekdays": ["Po", "Út", "St", "Čt", "Pá", "So", "Ne"],
        "warning": "Upozornění",
        "error_fetching_data": "Nepodařilo se načíst data o počasí. Používám simulovaná data.",
        "error_training_model": "Nepodařilo se natrénovat AI model",
        "alert_area_invalid": "Zadejte platnou plochu panelu (větší než 0)",
        "alert_efficiency_invalid": "Zadejte platnou účinnost (0-1)",
        "alert_city_required": "Zadejte město nebo použijte souřadnice",
        "alert_train_first": "Nejprve vypočítejte predikci energie pomocí formuláře",
        "location": "Lokace",
        "total_energy": "Celková energie",
        "average_per_day": "Průměr/den",
        "maximum": "Maximum",
        "training_model": "Trénování modelu",
        "comparison_title": "Porovnání: Skutečnost vs. AI Predikce",
        "orientation_south": "Jih",
        "orientation_southeast": "Jihovýchod",
        "orientation_southwest": "Jihozápad",
        "orientation_east": "Východ",
        "orientation_west": "Západ",
        "orientation_north": "Sever",
    },
    "en": {
        "today": "Today",
        "tomorrow": "Tomorrow",
        "weekdays": ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"],
        "warning": "Warning",
        "error_fetching_data": "Failed to load weather data. Using simulated data.",
        "error_training_model": "Failed to train AI model",
        "alert_area_invalid": "Enter valid panel area (greater than 0)",
        "alert_efficiency_invalid": "Enter valid efficiency (0-1)",
        "alert_city_required": "Enter city or coordinates",
        "alert_train_first": "First calculate energy prediction using the form",
        "location": "Location",
        "total_energy": "Total energy",
        "average_per_day": "Average/day",
        "maximum": "Maximum",
        "training_model": "Training model",
        "comparison_title": "Comparison: Actual vs. AI Prediction",
        "orientation_south": "South",
        "orientation_southeast": "Southeast",
        "orientation_southwest": "Southwest",
        "orientation_east": "East",
        "orientation_west": "West",
        "orientation_north": "North",
    },
}


def _table(language: str | None) -> dict:
    return TRANSLATIONS.get(language or DEFAULT_LANGUAGE, TRANSLATIONS[DEFAULT_LANGUAGE])


def translate(key: str, language: str | None = None) -> str:
    """Return the localized string, or the key itself when unknown."""
    value = _table(language).get(key)
    return value if isinstance(value, str) else key


def day_label(day: dt.date, index: int, language: str | None = None) -> str:
    """Label for the ``index``-th day of a series: Today/Tomorrow/weekday + ``d.m.``."""
    table = _table(language)
    if index == 0:
        prefix = table["today"]
    elif index == 1:
        prefix = table["tomorrow"]
    else:
        prefix = table["weekdays"][day.weekday()]
    return f"{prefix} {day.day}.{day.month}."


def series_labels(start: dt.date, count: int, language: str | None = None) -> list[str]:
    return [day_label(start + dt.timedelta(days=i), i, language) for i in range(count)]


__all__ = ["DEFAULT_LANGUAGE", "TRANSLATIONS", "translate", "day_label", "series_labels"]
