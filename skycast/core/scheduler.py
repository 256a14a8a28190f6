"""
SkyCast — Notification Scheduler.

Personal delivery: every tick, subscribers whose delivery_time equals the
current local "HH:MM" get their weather notification.

Broadcasts: at fixed times of day (midday and evening by default) every
subscriber with a city gets a broadcast notification, regardless of their
personal schedule. A subscriber whose broadcast was sent in a tick is not
sent a personal notification in the same tick; if the broadcast was not
delivered they go through the personal path as usual.

Ticks run on python-telegram-bot's JobQueue, first aligned to the next
minute boundary. Missed minutes (downtime, overrunning ticks) are not replayed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Callable

from skycast.core.dispatcher import DeliveryResult
from skycast.core.messages import Occasion
from skycast.core.timeutil import format_hhmm, seconds_until_next_minute

if TYPE_CHECKING:
    from telegram.ext import ContextTypes, Job, JobQueue

    from skycast.core.dispatcher import NotificationDispatcher
    from skycast.data.store import SubscriberStore

logger = logging.getLogger(__name__)

JOB_NAME = "skycast-scheduler"

_BROADCAST_OCCASIONS = (Occasion.BROADCAST_MIDDAY, Occasion.BROADCAST_EVENING)


@dataclass
class TickReport:
    """What one tick did — used for logging and by tests."""

    minute: str
    broadcast: Occasion | None = None
    broadcast_results: dict[int, DeliveryResult] = field(default_factory=dict)
    personal_results: dict[int, DeliveryResult] = field(default_factory=dict)
    duplicate: bool = False


class SchedulerLoop:
    """Per-minute delivery tick, driven by the bot's JobQueue."""

    def __init__(
        self,
        store: SubscriberStore,
        dispatcher: NotificationDispatcher,
        broadcast_times: list[str] | tuple[str, ...] = ("12:00", "18:00"),
        interval: float = 60.0,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        if len(broadcast_times) > len(_BROADCAST_OCCASIONS):
            raise ValueError(
                f"At most {len(_BROADCAST_OCCASIONS)} broadcast times are supported"
            )
        self._store = store
        self._dispatcher = dispatcher
        # First configured time is the midday broadcast, the second the evening one.
        self._broadcasts = dict(zip(broadcast_times, _BROADCAST_OCCASIONS))
        self._interval = interval
        self._clock = clock
        self._last_minute: str | None = None
        self._job: Job | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._job is not None and not self._job.removed

    def schedule(self, job_queue: JobQueue) -> Job:
        """Register the repeating tick, starting on the next minute boundary."""
        if self.running:
            return self._job
        first = seconds_until_next_minute(self._clock())
        self._job = job_queue.run_repeating(
            self.run_job,
            interval=self._interval,
            first=first,
            name=JOB_NAME,
        )
        logger.info(
            "Scheduler registered: tick every %gs from +%.1fs, broadcasts at %s",
            self._interval, first, ", ".join(self._broadcasts) or "none",
        )
        return self._job

    def unschedule(self) -> None:
        """Cancel the repeating tick; a tick already running finishes."""
        if self._job is not None:
            self._job.schedule_removal()
            self._job = None
        logger.info("Scheduler stopped")

    async def run_job(self, context: ContextTypes.DEFAULT_TYPE) -> None:
        """JobQueue callback: one tick, errors logged so the job keeps firing."""
        try:
            await self.run_tick()
        except Exception:
            logger.exception("Unexpected error in scheduler tick")

    # ------------------------------------------------------------------
    # One tick
    # ------------------------------------------------------------------

    async def run_tick(self, now: datetime | None = None) -> TickReport:
        """Evaluate every subscriber against the current minute once."""
        now = now or self._clock()
        minute = format_hhmm(now)
        weekday = now.weekday()
        report = TickReport(minute=minute)

        day_minute = now.strftime("%Y-%m-%d ") + minute
        if day_minute == self._last_minute:
            logger.debug("Minute %s already processed, skipping tick", minute)
            report.duplicate = True
            return report
        self._last_minute = day_minute

        subscribers = await self._store.all()
        logger.debug("Tick %s: %d subscribers", minute, len(subscribers))

        covered: set[int] = set()
        occasion = self._broadcasts.get(minute)
        if occasion is not None:
            report.broadcast = occasion
            logger.info("Broadcast time %s (%s)", minute, occasion.value)
            for subscriber in subscribers:
                if not subscriber.location:
                    continue
                result = await self._dispatcher.deliver(subscriber, occasion, weekday)
                report.broadcast_results[subscriber.subscriber_id] = result
                if result is DeliveryResult.SENT:
                    covered.add(subscriber.subscriber_id)

        for subscriber in subscribers:
            if subscriber.delivery_time != minute:
                continue
            if subscriber.subscriber_id in covered:
                logger.info(
                    "Subscriber %d already covered by the %s broadcast",
                    subscriber.subscriber_id, minute,
                )
                continue
            if not subscriber.location:
                logger.info(
                    "Subscriber %d is due at %s but has no city set",
                    subscriber.subscriber_id, minute,
                )
                report.personal_results[subscriber.subscriber_id] = DeliveryResult.SKIPPED
                continue
            report.personal_results[subscriber.subscriber_id] = await self._dispatcher.deliver(
                subscriber, Occasion.PERSONAL, weekday,
            )

        return report
