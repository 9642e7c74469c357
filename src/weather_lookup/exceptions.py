"""Application exception classes."""

from __future__ import annotations


class WeatherLookupError(Exception):
    """Base class for classified weather lookup failures."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ConfigurationError(WeatherLookupError):
    """Raised when configuration is invalid or the provider credential is missing."""


class LocationNotFoundError(WeatherLookupError):
    """Raised when a city lookup matched no provider location."""


class AuthenticationError(WeatherLookupError):
    """Raised when the provider rejects the configured credential."""


class ProviderError(WeatherLookupError):
    """Raised for any other provider failure, with status/body metadata."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: str | None = None,
        category: str = "http",
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.body = body
        self.category = category


class JournalError(Exception):
    """Raised when writing to journal files fails."""
