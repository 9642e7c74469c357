"""Weather lookup client for OpenWeatherMap current conditions and forecasts."""

__version__ = "0.1.0"
