"""
SkyCast — Entry Point.

Single entry point: `python main.py` starts the Telegram bot and the
notification scheduler.
"""

import logging

from skycast.config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

from skycast.bot.telegram_bot import main

if __name__ == "__main__":
    main()
