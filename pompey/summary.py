"""LLM news summary and story clustering via the Anthropic Messages API."""

import asyncio
import json
import logging
import re
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence

import aiohttp

from pompey import config
from pompey.models import StoryCluster, SummaryData

log = logging.getLogger("pompey.summary")

ANTHROPIC_VERSION = "2023-06-01"

TRANSFER_FOCUS = (
    "\n\nIMPORTANT: It's transfer window time! Pay special attention to any transfer news - "
    "signings, rumors, departures. For any player mentioned in transfer context, include their "
    "name and position abbreviation (GK, CB, RB, LB, CDM, CM, CAM, RW, LW, ST, CF)."
)

PROMPT_TEMPLATE = """You are a Portsmouth FC fan analyzing the latest Pompey news. Based on these headlines:

{headlines}

Provide a JSON response with:
1. "summary": A 2-3 sentence summary of the key Pompey news right now. Casual but informed tone.{focus}
2. "clusters": An array of story clusters where multiple headlines cover the same topic (e.g., same transfer rumor, same match). Each cluster has "topic" (brief label) and "indices" (array of headline numbers that overlap). Only include clusters with 2+ headlines. Empty array if no overlaps.

Example response format:
{{"summary": "Your summary here...", "clusters": [{{"topic": "Smith transfer rumor", "indices": [1, 4, 7]}}, {{"topic": "Derby result", "indices": [2, 5]}}]}}

Respond with only valid JSON, no other text."""

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")


def is_transfer_window(now: Optional[datetime] = None) -> bool:
    """January or June-August."""
    month = (now or datetime.now(timezone.utc)).month
    return month == 1 or 6 <= month <= 8


def build_prompt(headlines: Sequence[str], transfer_window: bool) -> str:
    numbered = "\n".join(f"{i + 1}. {h}" for i, h in enumerate(headlines))
    return PROMPT_TEMPLATE.format(headlines=numbered, focus=TRANSFER_FOCUS if transfer_window else "")


def parse_clusters(raw: Any, headline_count: int) -> List[StoryCluster]:
    if not isinstance(raw, list):
        return []
    out = []
    for c in raw:
        if not isinstance(c, dict):
            continue
        topic = str(c.get("topic") or "").strip()
        indices = []
        for i in c.get("indices") or []:
            if isinstance(i, int) and not isinstance(i, bool) and 1 <= i <= headline_count and i not in indices:
                indices.append(i)
        if topic and len(indices) >= 2:
            out.append(StoryCluster(topic=topic, indices=indices))
    return out


def parse_reply(raw_text: str, headline_count: int, generated_at: str) -> SummaryData:
    """Model reply -> SummaryData. A reply that isn't JSON is used as the summary itself."""
    text = _FENCE_RE.sub("", raw_text.strip())
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        return SummaryData(summary=raw_text.strip() or None, clusters=[], generated_at=generated_at)
    if not isinstance(parsed, dict):
        return SummaryData(summary=raw_text.strip() or None, clusters=[], generated_at=generated_at)
    summary = parsed.get("summary")
    return SummaryData(
        summary=str(summary) if summary else None,
        clusters=parse_clusters(parsed.get("clusters"), headline_count),
        generated_at=generated_at,
    )


class SummaryGenerator:
    def __init__(self, api_key: str = config.ANTHROPIC_API_KEY,
                 session: Optional[aiohttp.ClientSession] = None,
                 model: str = config.SUMMARY_MODEL,
                 max_tokens: int = config.SUMMARY_MAX_TOKENS,
                 max_headlines: int = config.SUMMARY_MAX_HEADLINES,
                 api_url: str = config.ANTHROPIC_API_URL,
                 timeout: float = config.SUMMARY_TIMEOUT):
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.max_headlines = max_headlines
        self.api_url = api_url
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def _complete(self, prompt: str) -> Optional[str]:
        sess = await self._ensure_session()
        headers = {
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }
        payload = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        async with sess.post(self.api_url, json=payload, headers=headers, timeout=timeout) as resp:
            if resp.status != 200:
                body = await resp.text()
                raise RuntimeError(f"Anthropic API status={resp.status} body={body[:300]}")
            data = await resp.json()
        if not isinstance(data, dict):
            return None
        for block in data.get("content") or []:
            if isinstance(block, dict) and block.get("type") == "text":
                return block.get("text")
        return None

    async def generate(self, headlines: Sequence[str], now: Optional[datetime] = None) -> SummaryData:
        now = now or datetime.now(timezone.utc)
        generated_at = now.isoformat()
        empty = SummaryData(summary=None, clusters=[], generated_at=generated_at)

        if not self.enabled or not headlines:
            return empty

        selected = list(headlines)[: self.max_headlines]
        prompt = build_prompt(selected, is_transfer_window(now))
        try:
            raw_text = await self._complete(prompt)
        except (aiohttp.ClientError, asyncio.TimeoutError, RuntimeError, ValueError) as e:
            log.error("Summary generation failed: %s", e)
            return empty

        if not raw_text:
            return empty
        return parse_reply(raw_text, len(selected), generated_at)
