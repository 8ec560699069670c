import asyncio
import logging
from types import SimpleNamespace

import pytest
from pompey.feeds import FeedError, fetch_all_news
from pompey.models import FeedSource
from pompey.monitoring import HealthMonitor

BBC = FeedSource("BBC Sport", "https://bbc.example", "https://bbc.example/rss")
THE72 = FeedSource("The72", "https://the72.example", "https://the72.example/rss")


@pytest.fixture
def monitor():
    return HealthMonitor(alert_threshold=3)


class FlakyTransport:
    """Fails the listed urls until they are removed from ``down``."""

    def __init__(self, *down):
        self.down = set(down)

    async def fetch_entries(self, url):
        if url in self.down:
            raise FeedError(f"{url} status=503")
        return [SimpleNamespace(title="Play Up Pompey", link=url + "/1", summary="",
                                description="", content=None,
                                published_parsed=None, updated_parsed=None)]


def _poll(monitor, transport, times=1):
    for _ in range(times):
        asyncio.run(fetch_all_news([BBC, THE72], transport, monitor))


class TestHealthMonitor:
    def test_initial_state_empty(self, monitor):
        assert monitor.get_status() == {}
        assert monitor.snapshot() == {}
        assert monitor.get_failures("unknown") == 0

    def test_alert_once_per_outage(self, monitor):
        assert [monitor.record_failure("The72") for _ in range(4)] == [False, False, True, False]
        assert monitor.snapshot()["The72"]["alerted"] is True

    def test_snapshot_after_recovery(self, monitor):
        for _ in range(3):
            monitor.record_failure("The72", FeedError("status=503"))
        monitor.record_success("The72")
        snap = monitor.snapshot()["The72"]
        assert snap["failures"] == 0
        assert snap["alerted"] is False
        assert snap["lastError"] is None
        assert snap["lastSuccess"] is not None

    def test_snapshot_keeps_last_error(self, monitor):
        monitor.record_failure("The72", TimeoutError("slow"))
        monitor.record_failure("The72", FeedError("status=503"))
        snap = monitor.snapshot()["The72"]
        assert snap["failures"] == 2
        assert snap["lastError"] == "FeedError: status=503"
        assert snap["lastSuccess"] is None


class TestMonitorFedByAggregation:
    def test_alert_after_repeated_polls(self, monitor, caplog):
        transport = FlakyTransport(THE72.rss_url)
        with caplog.at_level(logging.ERROR, logger="pompey.monitoring"):
            _poll(monitor, transport, times=2)
            assert monitor.get_failures("The72") == 2
            assert not monitor.snapshot()["The72"]["alerted"]
            assert "ALERT" not in caplog.text

            _poll(monitor, transport)
        assert monitor.get_status() == {"BBC Sport": 0, "The72": 3}
        assert monitor.snapshot()["The72"]["alerted"]
        assert caplog.text.count("ALERT: The72") == 1

    def test_no_repeat_alert_while_still_down(self, monitor, caplog):
        transport = FlakyTransport(THE72.rss_url)
        with caplog.at_level(logging.ERROR, logger="pompey.monitoring"):
            _poll(monitor, transport, times=5)
        assert monitor.get_failures("The72") == 5
        assert caplog.text.count("ALERT: The72") == 1

    def test_recovery_clears_outage(self, monitor):
        transport = FlakyTransport(THE72.rss_url)
        _poll(monitor, transport, times=3)
        transport.down.clear()
        _poll(monitor, transport)
        snap = monitor.snapshot()
        assert snap["The72"]["failures"] == 0
        assert snap["The72"]["alerted"] is False
        assert snap["The72"]["lastError"] is None

    def test_new_outage_alerts_again(self, monitor, caplog):
        transport = FlakyTransport(THE72.rss_url)
        _poll(monitor, transport, times=3)
        transport.down.clear()
        _poll(monitor, transport)
        transport.down.add(BBC.rss_url)
        with caplog.at_level(logging.ERROR, logger="pompey.monitoring"):
            _poll(monitor, transport, times=3)
        assert "ALERT: BBC Sport" in caplog.text
        assert "ALERT: The72" not in caplog.text
