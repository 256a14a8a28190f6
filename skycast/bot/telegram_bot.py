"""
SkyCast — Telegram Bot.

Telegram is the only user interface. Commands and plain text mutate
subscriber preferences through the SubscriberStore; the SchedulerLoop tick runs
on the JobQueue alongside polling and pushes scheduled forecasts.

Bare /city and /time open a two-step prompt; the next plain message is
routed through the interaction state machine before generic handling.
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable, Coroutine

from telegram import BotCommand, Update
from telegram.constants import ChatAction
from telegram.ext import (
    Application,
    ApplicationBuilder,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from skycast.config import settings
from skycast.core import interaction, messages
from skycast.core.interaction import InteractionOutcome, InteractionResult
from skycast.data.models import DisplayMode
from skycast.ports.weather_port import WeatherError

if TYPE_CHECKING:
    from skycast.data.store import SubscriberStore
    from skycast.ports.notification_port import NotificationPort
    from skycast.ports.weather_port import WeatherPort

logger = logging.getLogger(__name__)

BOT_COMMANDS = [
    ("start", "start using the bot"),
    ("help", "show the list of commands"),
    ("city", "set your city (e.g. /city London)"),
    ("time", "set the notification time (e.g. /time 08:00)"),
    ("weather", "current weather"),
    ("forecast", "weekly forecast"),
    ("cancel", "cancel the current prompt"),
]


# ---------------------------------------------------------------------------
# Security: silent-ignore decorator
# ---------------------------------------------------------------------------


def authorized_only(
    func: Callable[..., Coroutine[Any, Any, None]],
) -> Callable[..., Coroutine[Any, Any, None]]:
    """Decorator that silently ignores users outside ALLOWED_USER_IDS.

    An empty ALLOWED_USER_IDS list leaves the bot open to everyone.
    """

    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        allowed = settings.ALLOWED_USER_IDS
        user = update.effective_user
        if allowed and (user is None or user.id not in allowed):
            uid = user.id if user else "unknown"
            logger.warning("Unauthorized access attempt from user_id=%s", uid)
            return  # Silent ignore
        return await func(update, context)

    return wrapper


def _store(context: ContextTypes.DEFAULT_TYPE) -> SubscriberStore:
    return context.bot_data["store"]


def _chat_id(update: Update) -> int:
    return update.effective_chat.id


async def _reply(update: Update, text: str) -> None:
    await update.message.reply_text(text, parse_mode=messages.PARSE_MODE)


# ---------------------------------------------------------------------------
# Interaction outcomes -> replies
# ---------------------------------------------------------------------------


async def _reply_for(update: Update, result: InteractionResult) -> None:
    outcome = result.outcome
    if outcome is InteractionOutcome.PROMPT_LOCATION:
        await _reply(update, messages.PROMPT_LOCATION_TEXT)
    elif outcome is InteractionOutcome.PROMPT_TIME:
        await _reply(update, messages.PROMPT_TIME_TEXT)
    elif outcome is InteractionOutcome.LOCATION_SET:
        await _reply(update, messages.compose_location_set(result.subscriber))
    elif outcome is InteractionOutcome.TIME_SET:
        await _reply(update, messages.compose_time_set(result.subscriber))
    elif outcome is InteractionOutcome.EMPTY_LOCATION:
        await _reply(update, messages.EMPTY_LOCATION_TEXT)
    elif outcome is InteractionOutcome.INVALID_TIME:
        await _reply(update, messages.INVALID_TIME_TEXT)
    elif outcome is InteractionOutcome.CANCELLED:
        await _reply(update, messages.CANCELLED_TEXT)
    else:
        await _reply(update, messages.UNKNOWN_TEXT)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


@authorized_only
async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start — welcome message, always in standard mode."""
    store = _store(context)
    subscriber = await store.get(_chat_id(update))
    if subscriber is not None and subscriber.is_affectionate:
        await interaction.set_display_mode(store, subscriber.subscriber_id, DisplayMode.STANDARD)

    await _reply(update, messages.WELCOME_TEXT)
    await update.message.reply_text(messages.START_HINT_TEXT)


@authorized_only
async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help — list available commands."""
    subscriber = await _store(context).get(_chat_id(update))
    if subscriber is not None and subscriber.is_affectionate:
        await _reply(update, messages.HELP_TEXT_AFFECTIONATE)
    else:
        await _reply(update, messages.HELP_TEXT_STANDARD)


@authorized_only
async def cmd_city(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /city [name] — set directly, or prompt for the name."""
    store = _store(context)
    arg = " ".join(context.args or [])
    if arg.strip():
        result = await interaction.set_location(store, _chat_id(update), arg)
    else:
        result = await interaction.request_location(store, _chat_id(update))
    await _reply_for(update, result)


@authorized_only
async def cmd_time(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /time [HH:MM] — set directly, or prompt for the time."""
    store = _store(context)
    arg = " ".join(context.args or [])
    if arg.strip():
        result = await interaction.set_time(store, _chat_id(update), arg)
    else:
        result = await interaction.request_time(store, _chat_id(update))
    await _reply_for(update, result)


@authorized_only
async def cmd_cancel(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /cancel — leave any pending prompt."""
    result = await interaction.cancel_pending(_store(context), _chat_id(update))
    await _reply_for(update, result)


@authorized_only
async def cmd_std(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /std — switch back to standard mode."""
    await interaction.set_display_mode(_store(context), _chat_id(update), DisplayMode.STANDARD)
    await _reply(update, messages.STANDARD_ON_TEXT)


async def _weather_command(
    update: Update,
    context: ContextTypes.DEFAULT_TYPE,
    weekly: bool,
) -> None:
    chat_id = _chat_id(update)
    subscriber = await _store(context).get(chat_id)
    if subscriber is None:
        await _reply(update, messages.SETUP_REQUIRED_TEXT)
        return
    if not subscriber.location:
        await _reply(update, messages.NO_LOCATION_TEXT)
        return

    weather: WeatherPort = context.bot_data["weather"]
    await context.bot.send_chat_action(chat_id=chat_id, action=ChatAction.TYPING)
    try:
        if weekly:
            content = await weather.fetch_weekly(subscriber.location)
        else:
            content = await weather.fetch(subscriber.location)
    except WeatherError as exc:
        logger.error("Weather request failed for chat %d: %s", chat_id, exc)
        await _reply(update, messages.compose_fetch_failed(str(exc), "forecast" if weekly else "weather"))
        return

    if weekly:
        await _reply(update, messages.compose_weekly_forecast(subscriber, content))
    else:
        await _reply(update, messages.compose_current_weather(subscriber, content))


@authorized_only
async def cmd_weather(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /weather — current weather for the stored city."""
    await _weather_command(update, context, weekly=False)


@authorized_only
async def cmd_forecast(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /forecast — weekly forecast for the stored city."""
    await _weather_command(update, context, weekly=True)


# ---------------------------------------------------------------------------
# Message handlers
# ---------------------------------------------------------------------------


@authorized_only
async def handle_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle plain text — secret code, then pending prompt, then fallback."""
    text = update.message.text or ""
    store = _store(context)
    chat_id = _chat_id(update)

    if text.strip() == settings.AFFECTIONATE_CODE:
        await interaction.set_display_mode(store, chat_id, DisplayMode.AFFECTIONATE)
        await _reply(update, messages.AFFECTIONATE_ON_TEXT)
        return

    result = await interaction.handle_free_text(store, chat_id, text)
    await _reply_for(update, result)


# ---------------------------------------------------------------------------
# Application wiring
# ---------------------------------------------------------------------------


async def _post_init(app: Application) -> None:
    """Publish the command menu once the bot is connected."""
    try:
        await app.bot.set_my_commands([BotCommand(name, desc) for name, desc in BOT_COMMANDS])
        logger.info("Bot command menu updated")
    except Exception as exc:
        logger.error("Failed to set bot commands: %s", exc)


def build_app(
    weather: WeatherPort | None = None,
    notifier: NotificationPort | None = None,
    store: SubscriberStore | None = None,
) -> Application:
    """Build and configure the Telegram Application with all handlers.

    Args:
        weather: Weather port implementation. Defaults to OpenWeatherClient.
        notifier: Notification port implementation. Defaults to TelegramNotifier
                  (created from the bot instance after app is built).
        store: Subscriber store. Defaults to the JSON file at DATA_PATH.
    """
    from skycast.core.dispatcher import NotificationDispatcher
    from skycast.core.scheduler import SchedulerLoop

    app = (
        ApplicationBuilder()
        .token(settings.TELEGRAM_BOT_TOKEN)
        .post_init(_post_init)
        .build()
    )

    # Wire default adapters if not provided
    if weather is None:
        from skycast.integrations.openweather import OpenWeatherClient
        weather = OpenWeatherClient(
            settings.OPENWEATHER_API_KEY,
            timeout=settings.FETCH_TIMEOUT_SECONDS,
            lang=settings.WEATHER_LANG,
            units=settings.WEATHER_UNITS,
        )

    if notifier is None:
        from skycast.adapters.telegram_notifier import TelegramNotifier
        notifier = TelegramNotifier(app.bot)

    if store is None:
        from skycast.data.store import SubscriberStore
        store = SubscriberStore.load(settings.DATA_PATH)

    dispatcher = NotificationDispatcher(
        weather, notifier, fetch_timeout=settings.FETCH_TIMEOUT_SECONDS,
    )
    scheduler = SchedulerLoop(
        store,
        dispatcher,
        broadcast_times=settings.BROADCAST_TIMES,
        interval=settings.TICK_SECONDS,
    )

    # Store ports in bot_data for handler access
    app.bot_data["weather"] = weather
    app.bot_data["notifier"] = notifier
    app.bot_data["store"] = store
    app.bot_data["scheduler"] = scheduler

    # Commands
    app.add_handler(CommandHandler("start", cmd_start))
    app.add_handler(CommandHandler("help", cmd_help))
    app.add_handler(CommandHandler("city", cmd_city))
    app.add_handler(CommandHandler("time", cmd_time))
    app.add_handler(CommandHandler("weather", cmd_weather))
    app.add_handler(CommandHandler("forecast", cmd_forecast))
    app.add_handler(CommandHandler("cancel", cmd_cancel))
    app.add_handler(CommandHandler("std", cmd_std))

    # Text messages (non-command)
    app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handle_text))

    # Delivery scheduler, driven by the bot's JobQueue
    scheduler.schedule(app.job_queue)

    logger.info("Telegram bot application built with %d handlers", len(app.handlers[0]))
    return app


def main() -> None:
    """Entry point: build the app and start polling."""
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info("Starting SkyCast bot...")
    app = build_app()
    app.run_polling()


if __name__ == "__main__":
    main()
