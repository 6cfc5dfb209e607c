"""Weather retrieval, timezone normalization and caching for city forecasts."""

__version__ = "0.1.0"
