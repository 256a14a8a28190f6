"""
SkyCast — Data Models.

One Subscriber record per Telegram chat. Records are created lazily on
first interaction and persisted in the JSON subscriber store.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from skycast.core.timeutil import is_valid_time_format, normalize_time


class DisplayMode(str, Enum):
    """Presentation toggle — affects generated text only, never scheduling."""

    STANDARD = "standard"
    AFFECTIONATE = "affectionate"


class PendingInput(str, Enum):
    """Two-step prompt in progress for a subscriber."""

    IDLE = "idle"
    AWAITING_LOCATION = "awaiting_location"
    AWAITING_TIME = "awaiting_time"


@dataclass
class Subscriber:
    """A bot user with their notification preferences."""

    subscriber_id: int
    location: str | None = None
    delivery_time: str | None = None      # HH:MM, local clock
    display_mode: DisplayMode = DisplayMode.STANDARD
    pending_input: PendingInput = PendingInput.IDLE

    @property
    def is_affectionate(self) -> bool:
        return self.display_mode is DisplayMode.AFFECTIONATE

    def to_dict(self) -> dict:
        return {
            "subscriber_id": self.subscriber_id,
            "location": self.location,
            "delivery_time": self.delivery_time,
            "display_mode": self.display_mode.value,
            "pending_input": self.pending_input.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Subscriber:
        """Build a Subscriber from its persisted form.

        Raises KeyError/ValueError/TypeError on malformed data, including a
        stored delivery_time that fails validation.
        """
        subscriber_id = data["subscriber_id"]
        if not isinstance(subscriber_id, int) or isinstance(subscriber_id, bool):
            raise TypeError(f"subscriber_id must be an integer, got {subscriber_id!r}")

        location = data.get("location")
        if location is not None and not isinstance(location, str):
            raise TypeError(f"location must be a string, got {location!r}")

        delivery_time = data.get("delivery_time")
        if delivery_time is not None and (
            not isinstance(delivery_time, str) or not is_valid_time_format(delivery_time)
        ):
            raise ValueError(f"Invalid stored delivery_time: {delivery_time!r}")

        return cls(
            subscriber_id=subscriber_id,
            location=location,
            delivery_time=normalize_time(delivery_time) if delivery_time is not None else None,
            display_mode=DisplayMode(data.get("display_mode") or DisplayMode.STANDARD.value),
            pending_input=PendingInput(data.get("pending_input") or PendingInput.IDLE.value),
        )
