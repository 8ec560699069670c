"""Centralized configuration for Pompey News."""

import os
import logging
from typing import List
from zoneinfo import ZoneInfo

from pompey.models import Category, FeedSource

log = logging.getLogger("pompey.config")

# =========================
# Environment
# =========================
APP_ENV: str = os.getenv("APP_ENV", "development")
HOST: str = os.getenv("HOST", "0.0.0.0")
PORT: int = int(os.getenv("PORT", "8080"))

# =========================
# Access gate
# =========================
SITE_PASSWORD: str = os.environ.get("SITE_PASSWORD", "")
AUTH_COOKIE_NAME: str = "pompey-auth"
AUTH_COOKIE_VALUE: str = "authenticated"
AUTH_COOKIE_MAX_AGE: int = 60 * 60 * 24 * 30

# =========================
# Feeds
# =========================
USER_AGENT: str = "PompeyNews/1.0"
FEED_FETCH_TIMEOUT: float = float(os.getenv("FEED_FETCH_TIMEOUT", "10"))
DEDUPE_PREFIX_LENGTH: int = int(os.getenv("DEDUPE_PREFIX_LENGTH", "50"))
NEWS_CACHE_SECONDS: float = float(os.getenv("NEWS_CACHE_SECONDS", "300"))
SOURCE_ALERT_THRESHOLD: int = int(os.getenv("SOURCE_ALERT_THRESHOLD", "5"))

# Optional extra sources
PFC_YOUTUBE_CHANNEL_ID: str = os.getenv("PFC_YOUTUBE_CHANNEL_ID", "")
PFC_BLUESKY_HANDLE: str = os.getenv("PFC_BLUESKY_HANDLE", "")

# =========================
# Football data
# =========================
FOOTBALL_DATA_API_KEY: str = os.environ.get("FOOTBALL_DATA_API_KEY", "")
FOOTBALL_DATA_BASE_URL: str = "https://api.football-data.org/v4"
PORTSMOUTH_TEAM_ID: int = 389
CHAMPIONSHIP_ID: int = 2016
FOOTBALL_CACHE_SECONDS: float = float(os.getenv("FOOTBALL_CACHE_SECONDS", "3600"))
FOOTBALL_FETCH_TIMEOUT: float = float(os.getenv("FOOTBALL_FETCH_TIMEOUT", "10"))

# =========================
# Summary
# =========================
ANTHROPIC_API_KEY: str = os.environ.get("ANTHROPIC_API_KEY", "")
ANTHROPIC_API_URL: str = "https://api.anthropic.com/v1/messages"
SUMMARY_MODEL: str = os.getenv("SUMMARY_MODEL", "claude-3-5-haiku-latest")
SUMMARY_MAX_TOKENS: int = int(os.getenv("SUMMARY_MAX_TOKENS", "600"))
SUMMARY_MAX_HEADLINES: int = 15
SUMMARY_TIMEOUT: float = float(os.getenv("SUMMARY_TIMEOUT", "30"))

# =========================
# Usage limits (summary endpoint)
# =========================
RATE_LIMIT_PER_CLIENT: int = int(os.getenv("RATE_LIMIT_PER_CLIENT", "10"))
RATE_LIMIT_WINDOW_SECONDS: float = float(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "3600"))
DAILY_LIMIT: int = int(os.getenv("DAILY_LIMIT", "100"))

# =========================
# Display
# =========================
UK_TZ: ZoneInfo = ZoneInfo("Europe/London")
SECOND_TZ: ZoneInfo = ZoneInfo(os.getenv("SECOND_TIMEZONE", "America/Los_Angeles"))
SECOND_TZ_LABEL: str = os.getenv("SECOND_TIMEZONE_LABEL", "PST")


# Add/remove sources here to customize the feed
NEWS_SOURCES: List[FeedSource] = [
    FeedSource(
        name="BBC Sport",
        url="https://www.bbc.co.uk/sport/football/teams/portsmouth",
        rss_url="https://feeds.bbci.co.uk/sport/football/teams/portsmouth/rss.xml",
    ),
    FeedSource(
        name="The News Portsmouth",
        url="https://www.portsmouth.co.uk",
        rss_url="https://www.portsmouth.co.uk/sport/football/portsmouth-fc/rss",
    ),
    FeedSource(
        name="Football League World",
        url="https://footballleagueworld.co.uk",
        rss_url="https://footballleagueworld.co.uk/category/portsmouth/feed/",
    ),
    FeedSource(
        name="The72",
        url="https://www.the72.co.uk",
        rss_url="https://www.the72.co.uk/tag/portsmouth/feed/",
    ),
]


def build_feed_sources() -> List[FeedSource]:
    """All configured sources: the news feeds plus any optional official/social feeds."""
    sources = list(NEWS_SOURCES)
    if PFC_YOUTUBE_CHANNEL_ID:
        sources.append(FeedSource(
            name="Portsmouth FC YouTube",
            url=f"https://www.youtube.com/channel/{PFC_YOUTUBE_CHANNEL_ID}",
            rss_url=f"https://www.youtube.com/feeds/videos.xml?channel_id={PFC_YOUTUBE_CHANNEL_ID}",
            category=Category.OFFICIAL,
        ))
    if PFC_BLUESKY_HANDLE:
        sources.append(FeedSource(
            name=f"@{PFC_BLUESKY_HANDLE}",
            url=f"https://bsky.app/profile/{PFC_BLUESKY_HANDLE}",
            rss_url=f"https://bsky.app/profile/{PFC_BLUESKY_HANDLE}/rss",
            category=Category.SOCIAL,
        ))
    return sources


def is_production() -> bool:
    return APP_ENV.lower() == "production"


def validate_required_env() -> None:
    """Validate environment at startup. Missing optional keys only disable features."""
    if is_production() and not SITE_PASSWORD:
        raise EnvironmentError("SITE_PASSWORD must be set when APP_ENV=production")
    if not SITE_PASSWORD:
        log.warning("SITE_PASSWORD not set: any password unlocks the site.")
    if not FOOTBALL_DATA_API_KEY:
        log.warning("FOOTBALL_DATA_API_KEY not set: fixtures, results and table disabled.")
    if not ANTHROPIC_API_KEY:
        log.warning("ANTHROPIC_API_KEY not set: news summary disabled.")
