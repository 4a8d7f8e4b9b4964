"""
Launch gate and loop pacing for the vaccination slot bot

Handles the wait up to the slot release instant with sub-second accuracy.
"""
import asyncio
import math
import random
import logging
from datetime import datetime, timedelta
from typing import Optional
from dateutil import parser as date_parser
import pytz

from .config import ConfigError

logger = logging.getLogger(__name__)


class LaunchGate:
    """
    Two-phase wait until the slot release instant.

    Phase one sleeps coarsely until ``buffer_seconds`` before the target, which
    is when the OTP and captcha should be obtained. Phase two uses a combination
    of short sleeps and a busy-wait to start the search on time.

    BookingFlow calls the phases separately, logging in and solving the captcha
    between them. ``await_launch`` runs them back to back for callers with
    nothing to do in between.
    """

    def __init__(self, timezone: str = "Asia/Kolkata", buffer_seconds: int = 300):
        self.tz = pytz.timezone(timezone)
        self.buffer_seconds = buffer_seconds

    def now(self) -> datetime:
        """Get current time in configured timezone"""
        return datetime.now(self.tz)

    def parse_start_time(self, text: str) -> datetime:
        """
        Parse a start time.

        ``HH:MM:SS`` is taken as today in the configured timezone; anything else
        must be a full date and time.
        """
        text = (text or "").strip()
        try:
            clock = datetime.strptime(text, "%H:%M:%S").time()
        except ValueError:
            clock = None

        if clock is not None:
            return self.tz.localize(datetime.combine(self.now().date(), clock))

        try:
            dt = date_parser.parse(text)
        except (ValueError, OverflowError):
            raise ConfigError(f"Illegal start time format: {text!r} (expected HH:MM:SS)")

        if dt.tzinfo is None:
            dt = self.tz.localize(dt)
        return dt

    def time_until(self, target: datetime) -> timedelta:
        """Get timedelta until target"""
        now = datetime.now(self.tz)
        if target.tzinfo is None:
            target = self.tz.localize(target)
        return target - now

    async def wait_for_buffer(self, target: datetime) -> None:
        """
        Sleep until ``buffer_seconds`` before the target.

        Raises:
            ConfigError: if the target is already in the past
        """
        remaining = self.time_until(target).total_seconds()
        if remaining < 0:
            raise ConfigError("Start time must be in the future")

        if remaining <= self.buffer_seconds:
            return

        wake_at = target - timedelta(seconds=self.buffer_seconds)
        logger.info(
            f"OTP will be requested {self.buffer_seconds / 60:g} minutes before start time. "
            f"Sleeping for {math.ceil((remaining - self.buffer_seconds) / 60)} minutes"
        )

        while True:
            left = self.time_until(wake_at).total_seconds()
            if left <= 0:
                break
            logger.debug(f"Waking up in {self.format_countdown(wake_at)}")
            await asyncio.sleep(min(left, 30))

    async def wait_until(self, target: datetime) -> None:
        """Wait until the target time with high precision."""
        if target.tzinfo is None:
            target = self.tz.localize(target)

        logger.info(f"Slot booking will start exactly at {target.strftime('%H:%M:%S')}")

        while True:
            remaining = (target - datetime.now(self.tz)).total_seconds()

            if remaining <= 0:
                break

            # Use different strategies based on remaining time
            if remaining > 60:
                await asyncio.sleep(30)
            elif remaining > 5:
                await asyncio.sleep(1)
            elif remaining > 0.5:
                await asyncio.sleep(0.1)
            elif remaining > 0.01:
                await asyncio.sleep(0.001)
            else:
                # Under 10ms: busy-wait for precision
                while (target - datetime.now(self.tz)).total_seconds() > 0:
                    pass
                break

        logger.info("Target time reached!")

    async def await_launch(self, target: datetime) -> None:
        """Run both wait phases back to back"""
        await self.wait_for_buffer(target)
        await self.wait_until(target)

    def format_countdown(self, target: datetime) -> str:
        """Format remaining time as human-readable string"""
        delta = self.time_until(target)
        return format_duration(delta)


def format_duration(delta: timedelta) -> str:
    total_seconds = int(delta.total_seconds())

    if total_seconds < 0:
        return "NOW!"

    days = total_seconds // 86400
    hours = (total_seconds % 86400) // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60

    parts = []
    if days > 0:
        parts.append(f"{days}d")
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    parts.append(f"{seconds}s")

    return " ".join(parts)


class JitteredDelay:
    """
    Random pause between loop iterations.

    Keeps requests from lining up into synchronized bursts.
    """

    def __init__(self, min_ms: int, max_ms: int, rng: Optional[random.Random] = None):
        if min_ms > max_ms:
            raise ValueError(f"min_ms ({min_ms}) must not exceed max_ms ({max_ms})")
        self.min_ms = min_ms
        self.max_ms = max_ms
        self._rng = rng or random.Random()

    def next_delay(self) -> float:
        """Next delay in seconds"""
        return self._rng.uniform(self.min_ms, self.max_ms) / 1000

    async def wait(self) -> float:
        delay = self.next_delay()
        await asyncio.sleep(delay)
        return delay
