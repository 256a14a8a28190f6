"""Two-step prompts layered on top of subscriber records.

A subscriber is Idle, AwaitingLocation or AwaitingTime. A bare /city or
/time command moves them into the awaiting state; their next free-text
message answers the prompt. Commands with an inline argument bypass the
prompt and always end in Idle.

No Telegram types here — the bot maps InteractionOutcome to replies.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from skycast.core.timeutil import normalize_time
from skycast.data.models import DisplayMode, PendingInput, Subscriber

if TYPE_CHECKING:
    from skycast.data.store import SubscriberStore

logger = logging.getLogger(__name__)


class InteractionOutcome(str, Enum):
    PROMPT_LOCATION = "prompt_location"
    PROMPT_TIME = "prompt_time"
    LOCATION_SET = "location_set"
    TIME_SET = "time_set"
    EMPTY_LOCATION = "empty_location"
    INVALID_TIME = "invalid_time"
    CANCELLED = "cancelled"
    NOT_PENDING = "not_pending"


@dataclass
class InteractionResult:
    outcome: InteractionOutcome
    subscriber: Subscriber


async def request_location(store: SubscriberStore, subscriber_id: int) -> InteractionResult:
    """Bare /city: wait for the next message to be a city name."""
    sub = await store.update(subscriber_id, pending_input=PendingInput.AWAITING_LOCATION)
    return InteractionResult(InteractionOutcome.PROMPT_LOCATION, sub)


async def request_time(store: SubscriberStore, subscriber_id: int) -> InteractionResult:
    """Bare /time: wait for the next message to be an HH:MM time."""
    sub = await store.update(subscriber_id, pending_input=PendingInput.AWAITING_TIME)
    return InteractionResult(InteractionOutcome.PROMPT_TIME, sub)


async def set_location(store: SubscriberStore, subscriber_id: int, text: str) -> InteractionResult:
    """Validate and store a city; any pending prompt is cleared."""
    city = text.strip()
    if not city:
        sub = await store.update(subscriber_id, pending_input=PendingInput.IDLE)
        return InteractionResult(InteractionOutcome.EMPTY_LOCATION, sub)

    sub = await store.update(subscriber_id, location=city, pending_input=PendingInput.IDLE)
    logger.info("Subscriber %d set city: %s", subscriber_id, city)
    return InteractionResult(InteractionOutcome.LOCATION_SET, sub)


async def set_time(store: SubscriberStore, subscriber_id: int, text: str) -> InteractionResult:
    """Validate and store a delivery time; any pending prompt is cleared."""
    try:
        when = normalize_time(text)
    except ValueError:
        sub = await store.update(subscriber_id, pending_input=PendingInput.IDLE)
        logger.info("Subscriber %d sent an invalid time: %r", subscriber_id, text)
        return InteractionResult(InteractionOutcome.INVALID_TIME, sub)

    sub = await store.update(subscriber_id, delivery_time=when, pending_input=PendingInput.IDLE)
    logger.info("Subscriber %d set notification time: %s", subscriber_id, when)
    return InteractionResult(InteractionOutcome.TIME_SET, sub)


async def handle_free_text(store: SubscriberStore, subscriber_id: int, text: str) -> InteractionResult:
    """Interpret a plain message as the answer to a pending prompt.

    Invalid answers keep the subscriber in the awaiting state (re-prompt).
    Returns NOT_PENDING when no prompt is open.
    """
    sub = await store.get_or_default(subscriber_id)

    if sub.pending_input is PendingInput.AWAITING_LOCATION:
        city = text.strip()
        if not city:
            return InteractionResult(InteractionOutcome.EMPTY_LOCATION, sub)
        return await set_location(store, subscriber_id, city)

    if sub.pending_input is PendingInput.AWAITING_TIME:
        try:
            normalize_time(text)
        except ValueError:
            return InteractionResult(InteractionOutcome.INVALID_TIME, sub)
        return await set_time(store, subscriber_id, text)

    return InteractionResult(InteractionOutcome.NOT_PENDING, sub)


async def cancel_pending(store: SubscriberStore, subscriber_id: int) -> InteractionResult:
    sub = await store.update(subscriber_id, pending_input=PendingInput.IDLE)
    return InteractionResult(InteractionOutcome.CANCELLED, sub)


async def set_display_mode(
    store: SubscriberStore, subscriber_id: int, mode: DisplayMode,
) -> Subscriber:
    sub = await store.update(subscriber_id, display_mode=mode)
    logger.info("Subscriber %d switched to %s mode", subscriber_id, mode.value)
    return sub
