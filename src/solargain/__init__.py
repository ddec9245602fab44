"""Solar panel energy estimation with weather forecasts and an AI sun-hours model."""

__version__ = "0.1.0"

__all__ = ["__version__"]
