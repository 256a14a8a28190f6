"""
SkyCast — Notification Dispatcher.

Turns one subscriber + fetched weather into one delivered message.
Every failure is caught here and converted into a log line or a
user-visible notice, so a single subscriber can never break a batch.

This module is provider-agnostic: it depends on WeatherPort and
NotificationPort protocols, not on specific implementations.
"""

from __future__ import annotations

import asyncio
import logging
import random
from enum import Enum
from typing import TYPE_CHECKING

from skycast.core.messages import (
    PARSE_MODE,
    Occasion,
    compose_error_notice,
    compose_notification,
)
from skycast.ports.weather_port import WeatherError

if TYPE_CHECKING:
    from skycast.data.models import Subscriber
    from skycast.ports.notification_port import NotificationPort
    from skycast.ports.weather_port import WeatherPort

logger = logging.getLogger(__name__)


class DeliveryResult(str, Enum):
    """Outcome of one dispatch attempt."""

    SENT = "sent"
    ERROR_NOTICE_SENT = "error_notice_sent"
    SKIPPED = "skipped"
    FAILED = "failed"


class NotificationDispatcher:
    """Fetch weather for a subscriber and deliver the formatted notification."""

    def __init__(
        self,
        weather: WeatherPort,
        notifier: NotificationPort,
        fetch_timeout: float = 10.0,
        rng: random.Random | None = None,
    ) -> None:
        self._weather = weather
        self._notifier = notifier
        self._fetch_timeout = fetch_timeout
        self._rng = rng or random.Random()

    async def deliver(
        self,
        subscriber: Subscriber,
        occasion: Occasion,
        weekday: int,
    ) -> DeliveryResult:
        """Deliver one notification. Never raises.

        Personal deliveries turn a fetch failure into an error notice;
        broadcasts log and skip instead.
        """
        user_id = subscriber.subscriber_id
        if not subscriber.location:
            logger.warning("Subscriber %d has no city set, skipping %s", user_id, occasion.value)
            return DeliveryResult.SKIPPED

        try:
            content = await self._fetch(subscriber.location)
        except WeatherError as exc:
            logger.warning("Weather fetch failed for subscriber %d: %s", user_id, exc)
            if occasion is not Occasion.PERSONAL:
                return DeliveryResult.SKIPPED
            notice = compose_error_notice(subscriber, str(exc))
            if await self._send(user_id, notice, "error notice"):
                return DeliveryResult.ERROR_NOTICE_SENT
            return DeliveryResult.FAILED

        text = compose_notification(subscriber, content, occasion, weekday, self._rng)
        if await self._send(user_id, text, f"{occasion.value} notification"):
            logger.info("Sent %s notification to subscriber %d", occasion.value, user_id)
            return DeliveryResult.SENT
        return DeliveryResult.FAILED

    async def _fetch(self, location: str) -> str:
        """Fetch with a timeout; any provider failure surfaces as WeatherError."""
        try:
            return await asyncio.wait_for(self._weather.fetch(location), self._fetch_timeout)
        except asyncio.TimeoutError as exc:
            raise WeatherError(
                f"The weather service did not answer within {self._fetch_timeout:g} seconds."
            ) from exc
        except WeatherError:
            raise
        except Exception as exc:
            raise WeatherError(f"Unexpected weather provider error: {exc}") from exc

    async def _send(self, user_id: int, text: str, what: str) -> bool:
        try:
            await self._notifier.send_message(user_id, text, parse_mode=PARSE_MODE)
        except Exception as exc:
            logger.error("Failed to send %s to subscriber %d: %s", what, user_id, exc)
            return False
        return True
