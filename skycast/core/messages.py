"""Notification and reply texts.

All outgoing texts are Telegram MarkdownV2. Dynamic parts (city names,
weather summaries, error messages) must go through escape_markdown_v2();
the static templates below are already escaped.
"""

from __future__ import annotations

import random
from enum import Enum

from skycast.data.models import Subscriber

PARSE_MODE = "MarkdownV2"

_MARKDOWN_V2_SPECIALS = set("_*[]()~`>#+-=|{}.!\\")


class Occasion(str, Enum):
    """Why a notification is being sent."""

    PERSONAL = "personal"
    BROADCAST_MIDDAY = "broadcast_midday"
    BROADCAST_EVENING = "broadcast_evening"


def escape_markdown_v2(text: str) -> str:
    """Backslash-escape every MarkdownV2 special character."""
    return "".join(f"\\{ch}" if ch in _MARKDOWN_V2_SPECIALS else ch for ch in text)


# ---------------------------------------------------------------------------
# Greetings (indexed by weekday, Monday == 0)
# ---------------------------------------------------------------------------

_MORNING_GREETINGS = (
    "Good morning, sunshine! ✨\nA new week begins, and I know you'll handle everything!",
    "Good morning! 🌸\nIt's Tuesday! A perfect day to move mountains!",
    "Good morning, sunshine! 💫\nMidweek is the time for small joys!",
    "Good morning, gorgeous! 🌿\nThursday is almost Friday! You're doing great!",
    "Good morning! 🎉\nFriday is here! The weekend is ahead!",
    "Good morning! ☀️\nFinally Saturday! Time for rest and nice things!",
    "Good morning! 🌤️\nSunday is the perfect day to treat yourself!",
)

_NOON_GREETINGS = (
    "Good afternoon! 🌤️\nI hope the first half of Monday went well!",
    "Good afternoon! ☀️\nTuesday is in full swing! How is your day going?",
    "Good afternoon! 🌈\nMidweek is the time for a little break and a tasty lunch!",
    "Have a lovely day! 🌻\nThursday is almost Friday! Hang in there!",
    "Good afternoon! 🎉\nFriday, what a wonderful day! The weekend is close!",
    "Have a wonderful day! 🍹\nI hope your Saturday is full of pleasant moments!",
    "Good afternoon! 🌞\nSunday is for resting and getting ready for the new week!",
)

_EVENING_GREETINGS = (
    "Good evening! 🌙\nThe first day of the week is almost behind you! Well done!",
    "Good evening! 🌆\nHow was your Tuesday? Productive and full of smiles, I hope!",
    "Good evening! ✨\nThe middle of the week is behind you! You're on your way to the weekend!",
    "Have a nice evening! 🌟\nTomorrow is Friday! Not long to go now!",
    "Have a wonderful evening! 🥂\nThe weekend has started! Time to relax!",
    "Good evening! 🎭\nI hope your Saturday was full of lovely events!",
    "Have a calm evening! 🌠\nA new week is ahead! Time to get in a productive mood!",
)

_CUTE_MESSAGES = (
    "You are wonderful! Don't forget to smile today! 💕",
    "Your smile can brighten even the cloudiest day! 💖",
    "Don't let anyone spoil your mood today! You deserve only happiness! ✨",
    "Today is a great day to start something new! I believe in you! 🌟",
    "Remember that you are special and amazing! 💫",
    "Even on an ordinary day it's important to find moments of happiness! 🌸",
    "Your energy and positivity inspire everyone around you! Keep it up! 💝",
    "I hope pleasant surprises await you today! 🎁",
    "May this day bring you lots of joy and success! 🌈",
    "You are stronger than you think! Today is a day of new possibilities! ⭐",
)

_GOOD_DAY_WISHES = (
    "Have a wonderful day! 💫",
    "May today be full of positivity! 🌈",
    "Have a good and productive day! ✨",
    "May this day be filled with pleasant moments! 💖",
    "May your day be as lovely as you are! 🌸",
    "I'm sure everything will work out for you today! 💪",
    "Good luck today and have a light mood! 🍀",
    "May every hour of this day bring you something good! ⏰",
    "Have a great mood all day long! 🌞",
    "May everything go according to plan today! 📝",
)

_STANDARD_HEADERS = {
    Occasion.PERSONAL: "🌅 *Morning weather forecast*",
    Occasion.BROADCAST_MIDDAY: "🕛 *Afternoon weather forecast*",
    Occasion.BROADCAST_EVENING: "🌆 *Evening weather forecast*",
}


def greeting_for(occasion: Occasion, weekday: int) -> str:
    """Affectionate-mode greeting for an occasion and weekday (Monday == 0)."""
    table = {
        Occasion.PERSONAL: _MORNING_GREETINGS,
        Occasion.BROADCAST_MIDDAY: _NOON_GREETINGS,
        Occasion.BROADCAST_EVENING: _EVENING_GREETINGS,
    }[occasion]
    return table[weekday % 7]


def _format_greeting(greeting: str) -> str:
    headline, _, rest = greeting.partition("\n")
    return f"*{escape_markdown_v2(headline)}*\n{escape_markdown_v2(rest)}"


def compose_notification(
    subscriber: Subscriber,
    content: str,
    occasion: Occasion,
    weekday: int,
    rng: random.Random | None = None,
) -> str:
    """Build the scheduled notification text for one subscriber."""
    rng = rng or random
    city = escape_markdown_v2(subscriber.location or "")
    body = escape_markdown_v2(content)

    if not subscriber.is_affectionate:
        return f"{_STANDARD_HEADERS[occasion]}\n\n🌦 *Weather in {city}*\n\n{body}"

    parts = [
        _format_greeting(greeting_for(occasion, weekday)),
        f"🌦 *Weather in {city}*",
        body,
        escape_markdown_v2(rng.choice(_CUTE_MESSAGES)),
    ]
    # Only the morning notification ends with a good-day wish.
    if occasion is Occasion.PERSONAL:
        parts.append(escape_markdown_v2(rng.choice(_GOOD_DAY_WISHES)))
    return "\n\n".join(parts)


def compose_error_notice(subscriber: Subscriber, error: str) -> str:
    """User-visible notice that a scheduled fetch failed."""
    detail = escape_markdown_v2(error)
    if subscriber.is_affectionate:
        return f"Good morning\\! Unfortunately, I couldn't get the weather data: {detail}"
    return f"❌ *Error*: Couldn't get the weather data: {detail}"


# ---------------------------------------------------------------------------
# On-demand replies
# ---------------------------------------------------------------------------


def compose_current_weather(subscriber: Subscriber, content: str) -> str:
    city = escape_markdown_v2(subscriber.location or "")
    body = escape_markdown_v2(content)
    if subscriber.is_affectionate:
        return f"💖 *Just for you, the weather in {city}*\n\n{body}"
    return f"🌦️ *Weather in {city}*\n\n{body}"


def compose_weekly_forecast(subscriber: Subscriber, content: str) -> str:
    city = escape_markdown_v2(subscriber.location or "")
    body = escape_markdown_v2(content)
    if subscriber.is_affectionate:
        return (
            f"✨ *Weekly forecast for {city}*\n\n"
            f"I prepared a detailed forecast just for you:\n\n{body}"
        )
    return f"🗓 *Weekly forecast for {city}*\n\n{body}"


def compose_fetch_failed(error: str, what: str = "weather") -> str:
    return (
        f"❌ *Couldn't get the {what}:*\n{escape_markdown_v2(error)}\n\n"
        "Check the city name or try again later\\."
    )


def compose_location_set(subscriber: Subscriber) -> str:
    city = escape_markdown_v2(subscriber.location or "")
    lead = "Now you can" if subscriber.is_affectionate else "You can"
    return (
        f"🌆 *City set:* {city}\n\n"
        f"{lead}:\n"
        "• Get the current weather with /weather\n"
        "• Set a daily notification time with /time \\[HH:MM\\]"
    )


def compose_time_set(subscriber: Subscriber) -> str:
    when = escape_markdown_v2(subscriber.delivery_time or "")
    if subscriber.is_affectionate:
        return (
            f"⏰ *Notification time set:* {when}\n\n"
            "Every day at this time I'll send you the weather forecast and a sweet message\\! 💖"
        )
    return (
        f"⏰ *Notification time set:* {when}\n\n"
        "Every day at this time you'll receive the current weather forecast\\."
    )


WELCOME_TEXT = (
    "📱 *Welcome to SkyCast\\!*\n\n"
    "I'm your personal weather assistant\\! "
    "Every day I'll send you a fresh weather forecast at the time you choose\\.\n\n"
    "*What I can do:*\n"
    "• 🌦️ Send a daily forecast for your city\n"
    "• 🕒 Deliver it automatically at your chosen time\n"
    "• 🔍 Show the forecast on request at any time\n\n"
    "*Getting started:*\n"
    "1️⃣ Set your city with /city \\[city\\] \\(e\\.g\\. /city London\\)\n"
    "2️⃣ Set your daily notification time: /time \\[HH:MM\\] \\(e\\.g\\. /time 08:00\\)\n"
    "3️⃣ Done\\! I'll send the forecast on schedule\n\n"
    "*Other commands:*\n"
    "/weather \\- current weather\n"
    "/forecast \\- weekly forecast\n"
    "/help \\- list all commands"
)

START_HINT_TEXT = (
    "👉 Please start by setting your city:\n/city London\n(replace London with your city)"
)

HELP_TEXT_STANDARD = (
    "🌟 *Available commands:*\n\n"
    "/start \\- start using the bot\n"
    "/help \\- show this message\n"
    "/city \\[name\\] \\- set your city \\(e\\.g\\. /city London\\)\n"
    "/time \\[HH:MM\\] \\- set the notification time \\(e\\.g\\. /time 08:00\\)\n"
    "/weather \\- current weather\n"
    "/forecast \\- weekly forecast\n"
    "/cancel \\- cancel the current prompt"
)

HELP_TEXT_AFFECTIONATE = (
    "✨ *Available commands:*\n\n"
    "/start \\- start using the bot\n"
    "/help \\- show this message\n"
    "/city \\[name\\] \\- set your city \\(e\\.g\\. /city London\\)\n"
    "/time \\[HH:MM\\] \\- set your daily notification time \\(e\\.g\\. /time 08:00\\)\n"
    "/weather \\- current weather\n"
    "/forecast \\- weekly forecast\n"
    "/std \\- switch back to standard mode\n"
    "/cancel \\- cancel the current prompt 💖"
)

PROMPT_LOCATION_TEXT = "🏙 Which city should I use? Send me its name\\."
PROMPT_TIME_TEXT = "⏰ When should I send the daily forecast? Send a time as HH:MM, e\\.g\\. 08:00\\."
EMPTY_LOCATION_TEXT = "🚫 The city name can't be empty\\. Please send a city name, e\\.g\\. London\\."
INVALID_TIME_TEXT = "⚠️ Invalid time format\\. Use HH:MM, for example 08:00\\."
CANCELLED_TEXT = "👌 Cancelled\\."
NO_LOCATION_TEXT = (
    "⚠️ *City not set*\n\n"
    "Please use /city \\[city\\] so I can show you the weather forecast\\."
)
SETUP_REQUIRED_TEXT = "⚠️ *Setup required*\n\nPlease set up the bot with /city \\[city\\]\\."
AFFECTIONATE_ON_TEXT = (
    "💕 *Affectionate mode activated\\!*\n\n"
    "From now on I'll send you sweet messages and wishes\\. "
    "Your personal assistant is always here for you\\!"
)
STANDARD_ON_TEXT = "🔄 Standard mode activated\\. I'll only send informative weather messages\\."
UNKNOWN_TEXT = "I only understand commands\\. Use /help to see the list of available commands\\."
