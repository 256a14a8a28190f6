"""Weather port — abstract interface for the content provider.

Core modules depend on this protocol, never on a specific weather API.
"""

from __future__ import annotations

from typing import Protocol


class WeatherError(Exception):
    """Raised when any weather provider operation fails.

    The message is safe to show to the end user.
    """


class WeatherPort(Protocol):
    """Abstract weather interface used by core modules."""

    async def fetch(self, location: str) -> str: ...

    async def fetch_weekly(self, location: str) -> str: ...
