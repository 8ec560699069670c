"""Usage limits for the summary endpoint."""

import logging
import math
import time
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Dict, Mapping, Optional

from pompey import config

log = logging.getLogger("pompey.ratelimit")


@dataclass
class RateDecision:
    allowed: bool
    message: Optional[str] = None


@dataclass
class _Window:
    count: int
    reset_at: float


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


class UsageLimiter:
    """Per-client fixed window plus a global daily counter.

    A client's window opens on its first request and lasts ``window_seconds``.
    The daily counter resets when ``today()`` returns a new date.
    """

    def __init__(self, per_client: int = config.RATE_LIMIT_PER_CLIENT,
                 window_seconds: float = config.RATE_LIMIT_WINDOW_SECONDS,
                 daily_limit: int = config.DAILY_LIMIT,
                 clock: Callable[[], float] = time.time,
                 today: Callable[[], date] = _utc_today):
        self.per_client = per_client
        self.window_seconds = window_seconds
        self.daily_limit = daily_limit
        self._clock = clock
        self._today = today
        self._windows: Dict[str, _Window] = {}
        self._daily_count = 0
        self._daily_date = today()

    @property
    def daily_count(self) -> int:
        return self._daily_count

    def _roll_day(self) -> None:
        today = self._today()
        if today != self._daily_date:
            self._daily_date = today
            self._daily_count = 0
            # Expired windows are no longer needed
            now = self._clock()
            self._windows = {k: w for k, w in self._windows.items() if w.reset_at > now}

    def check(self, client: str) -> RateDecision:
        """Count a request from ``client`` if allowed."""
        self._roll_day()
        now = self._clock()

        if self._daily_count >= self.daily_limit:
            log.warning("Daily summary limit reached (%d).", self.daily_limit)
            return RateDecision(False, "Daily limit reached. Try again tomorrow.")

        window = self._windows.get(client)
        if window is not None and now < window.reset_at:
            if window.count >= self.per_client:
                minutes_left = math.ceil((window.reset_at - now) / 60)
                log.info("Rate limit hit for %s (%d min left).", client, minutes_left)
                return RateDecision(False, f"Rate limit exceeded. Try again in {minutes_left} minutes.")
            window.count += 1
        else:
            self._windows[client] = _Window(count=1, reset_at=now + self.window_seconds)

        self._daily_count += 1
        return RateDecision(True)


def client_identity(headers: Mapping[str, str], peer: Optional[str] = None) -> str:
    forwarded_for = headers.get("X-Forwarded-For")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    real_ip = headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()
    return peer or "unknown"
