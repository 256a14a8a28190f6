"""Tests for skycast.core.interaction — the /city and /time prompts."""

import pytest

from skycast.core.interaction import (
    InteractionOutcome,
    cancel_pending,
    handle_free_text,
    request_location,
    request_time,
    set_display_mode,
    set_location,
    set_time,
)
from skycast.data.models import DisplayMode, PendingInput, Subscriber


class TestLocationPrompt:
    @pytest.mark.asyncio
    async def test_bare_city_command_awaits_location(self, store):
        result = await request_location(store, 1)
        assert result.outcome is InteractionOutcome.PROMPT_LOCATION
        assert (await store.get(1)).pending_input is PendingInput.AWAITING_LOCATION

    @pytest.mark.asyncio
    async def test_empty_answer_keeps_waiting(self, store):
        await request_location(store, 1)

        result = await handle_free_text(store, 1, "   ")

        assert result.outcome is InteractionOutcome.EMPTY_LOCATION
        sub = await store.get(1)
        assert sub.pending_input is PendingInput.AWAITING_LOCATION
        assert sub.location is None

    @pytest.mark.asyncio
    async def test_answer_sets_location_and_returns_to_idle(self, store):
        await request_location(store, 1)

        result = await handle_free_text(store, 1, "  Springfield ")

        assert result.outcome is InteractionOutcome.LOCATION_SET
        sub = await store.get(1)
        assert sub.location == "Springfield"
        assert sub.pending_input is PendingInput.IDLE

    @pytest.mark.asyncio
    async def test_inline_city_bypasses_prompt(self, store):
        await request_time(store, 1)

        result = await set_location(store, 1, "Oslo")

        assert result.outcome is InteractionOutcome.LOCATION_SET
        sub = await store.get(1)
        assert sub.location == "Oslo"
        assert sub.pending_input is PendingInput.IDLE

    @pytest.mark.asyncio
    async def test_inline_empty_city_is_rejected(self, store):
        await store.put(Subscriber(subscriber_id=1, location="Oslo"))

        result = await set_location(store, 1, "  ")

        assert result.outcome is InteractionOutcome.EMPTY_LOCATION
        assert (await store.get(1)).location == "Oslo"


class TestTimePrompt:
    @pytest.mark.asyncio
    async def test_bare_time_command_awaits_time(self, store):
        result = await request_time(store, 1)
        assert result.outcome is InteractionOutcome.PROMPT_TIME
        assert (await store.get(1)).pending_input is PendingInput.AWAITING_TIME

    @pytest.mark.asyncio
    async def test_invalid_answer_keeps_waiting(self, store):
        await request_time(store, 1)

        result = await handle_free_text(store, 1, "25:00")

        assert result.outcome is InteractionOutcome.INVALID_TIME
        sub = await store.get(1)
        assert sub.pending_input is PendingInput.AWAITING_TIME
        assert sub.delivery_time is None

    @pytest.mark.asyncio
    async def test_answer_is_normalized(self, store):
        await request_time(store, 1)

        result = await handle_free_text(store, 1, "7:05")

        assert result.outcome is InteractionOutcome.TIME_SET
        sub = await store.get(1)
        assert sub.delivery_time == "07:05"
        assert sub.pending_input is PendingInput.IDLE

    @pytest.mark.asyncio
    async def test_inline_invalid_time_keeps_previous(self, store):
        await store.put(Subscriber(subscriber_id=1, delivery_time="08:00"))

        result = await set_time(store, 1, "8pm")

        assert result.outcome is InteractionOutcome.INVALID_TIME
        sub = await store.get(1)
        assert sub.delivery_time == "08:00"
        assert sub.pending_input is PendingInput.IDLE

    @pytest.mark.asyncio
    async def test_inline_time_sets_value(self, store):
        result = await set_time(store, 1, "21:30")
        assert result.outcome is InteractionOutcome.TIME_SET
        assert result.subscriber.delivery_time == "21:30"


class TestFreeTextAndCancel:
    @pytest.mark.asyncio
    async def test_idle_text_is_not_pending(self, store):
        result = await handle_free_text(store, 1, "hello")
        assert result.outcome is InteractionOutcome.NOT_PENDING
        assert await store.get(1) is None

    @pytest.mark.asyncio
    async def test_cancel_returns_to_idle(self, store):
        await request_location(store, 1)

        result = await cancel_pending(store, 1)

        assert result.outcome is InteractionOutcome.CANCELLED
        assert (await store.get(1)).pending_input is PendingInput.IDLE
        follow_up = await handle_free_text(store, 1, "Oslo")
        assert follow_up.outcome is InteractionOutcome.NOT_PENDING


class TestDisplayMode:
    @pytest.mark.asyncio
    async def test_switch_keeps_settings(self, store):
        await store.put(Subscriber(subscriber_id=1, location="Oslo", delivery_time="08:00"))

        sub = await set_display_mode(store, 1, DisplayMode.AFFECTIONATE)

        assert sub.is_affectionate
        assert sub.location == "Oslo"
        assert sub.delivery_time == "08:00"
        sub = await set_display_mode(store, 1, DisplayMode.STANDARD)
        assert not sub.is_affectionate
