import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional, Sequence
from urllib.parse import urljoin

import aiohttp
import feedparser

from pompey import config
from pompey.models import Category, FeedSource, NewsItem
from pompey.monitoring import HealthMonitor
from pompey.utils import strip_html_to_text, title_key, truncate_text

log = logging.getLogger("pompey.feeds")

DESCRIPTION_MAX = 300


class FeedError(Exception):
    """Feed could not be fetched or parsed."""


class FeedTransport:
    """Fetches a feed URL over HTTP and returns its parsed entries."""

    def __init__(self, session: Optional[aiohttp.ClientSession] = None,
                 timeout: float = config.FEED_FETCH_TIMEOUT,
                 user_agent: str = config.USER_AGENT):
        self.timeout = timeout
        self.user_agent = user_agent
        self._session = session
        self._owns_session = session is None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def fetch_entries(self, url: str) -> List[Any]:
        sess = await self._ensure_session()
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        async with sess.get(url, headers={"User-Agent": self.user_agent}, timeout=timeout) as resp:
            if resp.status != 200:
                raise FeedError(f"HTTP {resp.status} for {url}")
            body = await resp.read()

        feed = feedparser.parse(body)
        entries = getattr(feed, "entries", None) or []
        if getattr(feed, "bozo", False) and not entries:
            raise FeedError(f"Malformed feed at {url}: {getattr(feed, 'bozo_exception', '')}")
        return list(entries)


# =========================
# Entry -> NewsItem
# =========================

def _entry_html(entry: Any) -> str:
    content = getattr(entry, "content", None)
    if content and isinstance(content, list) and len(content) > 0:
        v = getattr(content[0], "value", None)
        if v:
            return str(v)
    return str(getattr(entry, "summary", "") or getattr(entry, "description", "") or "")


def _published_dt(entry: Any, fallback: datetime) -> datetime:
    st = getattr(entry, "published_parsed", None) or getattr(entry, "updated_parsed", None)
    if st:
        try:
            return datetime(*st[:6], tzinfo=timezone.utc)
        except (TypeError, ValueError):
            return fallback
    return fallback


def _image_url(entry: Any, base_url: str) -> str:
    for m in getattr(entry, "media_thumbnail", None) or []:
        url = m.get("url") if isinstance(m, dict) else None
        if url:
            return urljoin(base_url, url)
    for m in getattr(entry, "media_content", None) or []:
        if not isinstance(m, dict):
            continue
        medium = m.get("medium", "")
        mtype = m.get("type", "")
        if m.get("url") and (medium == "image" or mtype.startswith("image/")):
            return urljoin(base_url, m["url"])
    for enc in getattr(entry, "enclosures", None) or []:
        if not isinstance(enc, dict):
            continue
        href = enc.get("href") or enc.get("url")
        if href and str(enc.get("type", "")).startswith("image/"):
            return urljoin(base_url, href)
    return ""


def entry_to_item(entry: Any, source: FeedSource, fetched_at: datetime) -> NewsItem:
    title = str(getattr(entry, "title", "") or "").strip() or "Untitled"
    link = str(getattr(entry, "link", "") or "").strip() or "#"

    description = strip_html_to_text(_entry_html(entry))
    thumbnail = None
    # Only videos get a thumbnail
    if source.category == Category.OFFICIAL:
        thumbnail = _image_url(entry, source.url) or None

    return NewsItem(
        title=title,
        link=link,
        source=source.name,
        source_url=source.url,
        pub_date=_published_dt(entry, fetched_at),
        category=source.category,
        description=truncate_text(description, DESCRIPTION_MAX) or None,
        thumbnail=thumbnail,
    )


async def fetch_feed(source: FeedSource, transport: FeedTransport) -> List[NewsItem]:
    """Fetch one source. Raises on network or parse failure."""
    entries = await transport.fetch_entries(source.rss_url)
    fetched_at = datetime.now(timezone.utc)
    return [entry_to_item(e, source, fetched_at) for e in entries]


# =========================
# Aggregation
# =========================

def merge(batches: Iterable[Sequence[NewsItem]]) -> List[NewsItem]:
    """Concatenate batches and sort newest first. Equal timestamps keep merge order."""
    items: List[NewsItem] = []
    for batch in batches:
        items.extend(batch)
    return sorted(items, key=lambda i: i.pub_date, reverse=True)


def dedupe(items: Iterable[NewsItem], prefix_length: int = config.DEDUPE_PREFIX_LENGTH) -> List[NewsItem]:
    """Keep the first item for each lower-cased title prefix.

    The prefix match is a heuristic: distinct stories with a long shared
    opening can be merged, and reworded copies of one story survive.
    """
    seen = set()
    out = []
    for item in items:
        key = title_key(item.title, prefix_length)
        if key in seen:
            continue
        seen.add(key)
        out.append(item)
    return out


async def fetch_all_news(sources: Optional[Sequence[FeedSource]] = None,
                         transport: Optional[FeedTransport] = None,
                         monitor: Optional[HealthMonitor] = None,
                         prefix_length: int = config.DEDUPE_PREFIX_LENGTH) -> List[NewsItem]:
    """Fetch every source concurrently and return one deduplicated list, newest first.

    A failing source contributes no items; the failure is logged and
    recorded on ``monitor``. This never raises for a feed failure.
    """
    if sources is None:
        sources = config.build_feed_sources()
    if not sources:
        return []

    own_transport = transport is None
    if transport is None:
        transport = FeedTransport()
    try:
        results = await asyncio.gather(
            *(fetch_feed(s, transport) for s in sources),
            return_exceptions=True,
        )
    finally:
        if own_transport:
            await transport.close()

    batches: List[List[NewsItem]] = []
    for source, result in zip(sources, results):
        if isinstance(result, Exception):
            log.warning("Failed to fetch %s: %s", source.name, result)
            if monitor is not None:
                monitor.record_failure(source.name, result)
            continue
        if isinstance(result, BaseException):
            raise result
        if monitor is not None:
            monitor.record_success(source.name)
        batches.append(result)

    items = dedupe(merge(batches), prefix_length)
    log.info("Aggregated %d item(s) from %d/%d source(s).", len(items), len(batches), len(sources))
    return items


def filter_by_category(items: Iterable[NewsItem], category: Category) -> List[NewsItem]:
    category = Category(category)
    return [i for i in items if i.category == category]


def headlines_for_summary(items: Iterable[NewsItem], limit: int = config.SUMMARY_MAX_HEADLINES) -> List[str]:
    return [f'"{i.title}" ({i.source})' for i in filter_by_category(items, Category.NEWS)[:limit]]


def relative_time(ts: datetime, now: Optional[datetime] = None) -> str:
    if now is None:
        now = datetime.now(timezone.utc)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    diff_mins = int((now - ts).total_seconds() // 60)
    diff_hours = diff_mins // 60
    diff_days = diff_hours // 24

    if diff_mins < 1:
        return "just now"
    if diff_mins < 60:
        return f"{diff_mins}m ago"
    if diff_hours < 24:
        return f"{diff_hours}h ago"
    if diff_days < 7:
        return f"{diff_days}d ago"
    local = ts.astimezone(config.UK_TZ)
    return f"{local.day} {local.strftime('%b')}"
