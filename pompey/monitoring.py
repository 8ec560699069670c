"""Health monitoring for feed sources."""

import logging
from datetime import datetime, timezone
from typing import Dict, Optional

log = logging.getLogger("pompey.monitoring")


class HealthMonitor:
    """Tracks consecutive fetch failures per source and flags persistent outages."""

    def __init__(self, alert_threshold: int = 5):
        self.alert_threshold = alert_threshold
        self._consecutive_failures: Dict[str, int] = {}
        self._alerted: Dict[str, bool] = {}
        self._last_error: Dict[str, str] = {}
        self._last_success: Dict[str, datetime] = {}

    def record_success(self, source: str) -> None:
        prev = self._consecutive_failures.get(source, 0)
        if prev > 0:
            log.info("%s: recovered after %d consecutive failure(s).", source, prev)
        self._consecutive_failures[source] = 0
        self._alerted[source] = False
        self._last_error.pop(source, None)
        self._last_success[source] = datetime.now(timezone.utc)

    def record_failure(self, source: str, error: Optional[BaseException] = None) -> bool:
        """Record a failure. Returns True if alert threshold was just crossed."""
        count = self._consecutive_failures.get(source, 0) + 1
        self._consecutive_failures[source] = count
        if error is not None:
            self._last_error[source] = f"{type(error).__name__}: {error}"

        if count >= self.alert_threshold and not self._alerted.get(source, False):
            self._alerted[source] = True
            log.error("ALERT: %s has failed %d times in a row.", source, count)
            return True
        return False

    def get_failures(self, source: str) -> int:
        return self._consecutive_failures.get(source, 0)

    def get_status(self) -> Dict[str, int]:
        return dict(self._consecutive_failures)

    def snapshot(self) -> Dict[str, Dict[str, object]]:
        out: Dict[str, Dict[str, object]] = {}
        for source, count in self._consecutive_failures.items():
            last_ok = self._last_success.get(source)
            out[source] = {
                "failures": count,
                "alerted": self._alerted.get(source, False),
                "lastError": self._last_error.get(source),
                "lastSuccess": last_ok.isoformat() if last_ok else None,
            }
        return out
