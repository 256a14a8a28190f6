"""Tests for skycast.bot.telegram_bot — Telegram bot handlers.

Tests the command handlers, the prompt flow, and authorization.
The weather provider is mocked; subscribers live in a temp-file store.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from skycast.bot.telegram_bot import (
    cmd_cancel,
    cmd_city,
    cmd_forecast,
    cmd_help,
    cmd_start,
    cmd_std,
    cmd_time,
    cmd_weather,
    handle_text,
)
from skycast.config import settings
from skycast.core import messages
from skycast.data.models import DisplayMode, PendingInput, Subscriber
from skycast.ports.weather_port import WeatherError


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_update(text="", chat_id=12345):
    """Create a mock Update with a text message in a private chat."""
    update = MagicMock()
    update.message.text = text
    update.effective_user.id = chat_id
    update.effective_chat.id = chat_id
    update.message.reply_text = AsyncMock()
    return update


def _make_context(store, args=None, weather=None):
    """Create a mock context with the store and weather port in bot_data."""
    context = MagicMock()
    context.args = args or []
    context.bot.send_chat_action = AsyncMock()
    context.bot_data = {"store": store, "weather": weather or AsyncMock()}
    return context


def _replies(update) -> list[str]:
    return [c.args[0] for c in update.message.reply_text.call_args_list]


# ---------------------------------------------------------------------------
# /start and /help
# ---------------------------------------------------------------------------


class TestStartAndHelp:
    @pytest.mark.asyncio
    async def test_start_sends_welcome_and_hint(self, store):
        update = _make_update("/start")
        await cmd_start(update, _make_context(store))

        assert _replies(update) == [messages.WELCOME_TEXT, messages.START_HINT_TEXT]
        first, second = update.message.reply_text.call_args_list
        assert first.kwargs["parse_mode"] == messages.PARSE_MODE
        assert "parse_mode" not in second.kwargs

    @pytest.mark.asyncio
    async def test_start_resets_affectionate_mode(self, store):
        await store.put(Subscriber(12345, location="Oslo", display_mode=DisplayMode.AFFECTIONATE))

        await cmd_start(_make_update("/start"), _make_context(store))

        sub = await store.get(12345)
        assert sub.display_mode is DisplayMode.STANDARD
        assert sub.location == "Oslo"

    @pytest.mark.asyncio
    async def test_start_does_not_create_record(self, store):
        await cmd_start(_make_update("/start"), _make_context(store))
        assert await store.get(12345) is None

    @pytest.mark.asyncio
    async def test_help_depends_on_mode(self, store):
        update = _make_update("/help")
        await cmd_help(update, _make_context(store))
        assert _replies(update) == [messages.HELP_TEXT_STANDARD]

        await store.put(Subscriber(12345, display_mode=DisplayMode.AFFECTIONATE))
        update = _make_update("/help")
        await cmd_help(update, _make_context(store))
        assert _replies(update) == [messages.HELP_TEXT_AFFECTIONATE]


# ---------------------------------------------------------------------------
# /city, /time and the prompt flow
# ---------------------------------------------------------------------------


class TestCityCommand:
    @pytest.mark.asyncio
    async def test_inline_city(self, store):
        update = _make_update("/city New York")
        await cmd_city(update, _make_context(store, args=["New", "York"]))

        sub = await store.get(12345)
        assert sub.location == "New York"
        assert "New York" in _replies(update)[0]

    @pytest.mark.asyncio
    async def test_bare_city_prompts_then_free_text_answers(self, store):
        update = _make_update("/city")
        await cmd_city(update, _make_context(store))
        assert _replies(update) == [messages.PROMPT_LOCATION_TEXT]

        update = _make_update("")
        await handle_text(update, _make_context(store))
        assert _replies(update) == [messages.EMPTY_LOCATION_TEXT]
        assert (await store.get(12345)).pending_input is PendingInput.AWAITING_LOCATION

        update = _make_update("Springfield")
        await handle_text(update, _make_context(store))
        sub = await store.get(12345)
        assert sub.location == "Springfield"
        assert sub.pending_input is PendingInput.IDLE


class TestTimeCommand:
    @pytest.mark.asyncio
    async def test_inline_time(self, store):
        update = _make_update("/time 7:30")
        await cmd_time(update, _make_context(store, args=["7:30"]))

        assert (await store.get(12345)).delivery_time == "07:30"
        assert "07:30" in _replies(update)[0]

    @pytest.mark.asyncio
    async def test_inline_invalid_time(self, store):
        update = _make_update("/time 25:00")
        await cmd_time(update, _make_context(store, args=["25:00"]))

        assert _replies(update) == [messages.INVALID_TIME_TEXT]
        assert (await store.get(12345)).delivery_time is None

    @pytest.mark.asyncio
    async def test_bare_time_prompts_and_invalid_answer_reprompts(self, store):
        await cmd_time(_make_update("/time"), _make_context(store))

        update = _make_update("noon")
        await handle_text(update, _make_context(store))

        assert _replies(update) == [messages.INVALID_TIME_TEXT]
        assert (await store.get(12345)).pending_input is PendingInput.AWAITING_TIME

    @pytest.mark.asyncio
    async def test_cancel_leaves_prompt(self, store):
        await cmd_time(_make_update("/time"), _make_context(store))

        update = _make_update("/cancel")
        await cmd_cancel(update, _make_context(store))

        assert _replies(update) == [messages.CANCELLED_TEXT]
        assert (await store.get(12345)).pending_input is PendingInput.IDLE


# ---------------------------------------------------------------------------
# Free text and display mode
# ---------------------------------------------------------------------------


class TestFreeText:
    @pytest.mark.asyncio
    async def test_unknown_text(self, store):
        update = _make_update("hello")
        await handle_text(update, _make_context(store))
        assert _replies(update) == [messages.UNKNOWN_TEXT]

    @pytest.mark.asyncio
    async def test_secret_code_enables_affectionate_mode(self, store):
        update = _make_update(settings.AFFECTIONATE_CODE)
        await handle_text(update, _make_context(store))

        assert _replies(update) == [messages.AFFECTIONATE_ON_TEXT]
        assert (await store.get(12345)).display_mode is DisplayMode.AFFECTIONATE

    @pytest.mark.asyncio
    async def test_std_switches_back(self, store):
        await store.put(Subscriber(12345, display_mode=DisplayMode.AFFECTIONATE))

        update = _make_update("/std")
        await cmd_std(update, _make_context(store))

        assert _replies(update) == [messages.STANDARD_ON_TEXT]
        assert (await store.get(12345)).display_mode is DisplayMode.STANDARD


# ---------------------------------------------------------------------------
# /weather and /forecast
# ---------------------------------------------------------------------------


class TestWeatherCommands:
    @pytest.mark.asyncio
    async def test_unknown_user_must_set_up(self, store):
        update = _make_update("/weather")
        await cmd_weather(update, _make_context(store))
        assert _replies(update) == [messages.SETUP_REQUIRED_TEXT]

    @pytest.mark.asyncio
    async def test_missing_city(self, store):
        await store.put(Subscriber(12345, delivery_time="08:00"))
        update = _make_update("/weather")
        await cmd_weather(update, _make_context(store))
        assert _replies(update) == [messages.NO_LOCATION_TEXT]

    @pytest.mark.asyncio
    async def test_current_weather(self, store):
        await store.put(Subscriber(12345, location="Oslo"))
        weather = AsyncMock()
        weather.fetch = AsyncMock(return_value="Sunny, 21°C")
        update = _make_update("/weather")
        context = _make_context(store, weather=weather)

        await cmd_weather(update, context)

        weather.fetch.assert_awaited_once_with("Oslo")
        context.bot.send_chat_action.assert_awaited_once()
        assert "Sunny, 21°C" in _replies(update)[0]

    @pytest.mark.asyncio
    async def test_weekly_forecast(self, store):
        await store.put(Subscriber(12345, location="Oslo"))
        weather = AsyncMock()
        weather.fetch_weekly = AsyncMock(return_value="Monday: rain")
        update = _make_update("/forecast")

        await cmd_forecast(update, _make_context(store, weather=weather))

        weather.fetch_weekly.assert_awaited_once_with("Oslo")
        assert "Monday: rain" in _replies(update)[0]

    @pytest.mark.asyncio
    async def test_fetch_failure_is_reported(self, store):
        await store.put(Subscriber(12345, location="Atlantis"))
        weather = AsyncMock()
        weather.fetch = AsyncMock(side_effect=WeatherError("City not found"))
        update = _make_update("/weather")

        await cmd_weather(update, _make_context(store, weather=weather))

        assert "City not found" in _replies(update)[0]


# ---------------------------------------------------------------------------
# Tests for authorization
# ---------------------------------------------------------------------------


class TestAuthorization:
    @pytest.mark.asyncio
    async def test_unauthorized_user_is_ignored(self, store):
        update = _make_update("/start", chat_id=99999)

        with patch.object(settings, "ALLOWED_USER_IDS", [12345]):
            await cmd_start(update, _make_context(store))

        update.message.reply_text.assert_not_called()

    @pytest.mark.asyncio
    async def test_authorized_user_gets_response(self, store):
        update = _make_update("/start", chat_id=12345)

        with patch.object(settings, "ALLOWED_USER_IDS", [12345]):
            await cmd_start(update, _make_context(store))

        assert update.message.reply_text.call_count == 2

    @pytest.mark.asyncio
    async def test_empty_allow_list_is_public(self, store):
        update = _make_update("/help", chat_id=42)

        with patch.object(settings, "ALLOWED_USER_IDS", []):
            await cmd_help(update, _make_context(store))

        update.message.reply_text.assert_called_once()
