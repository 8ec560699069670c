import re
from datetime import datetime
from typing import List, Optional

from bs4 import BeautifulSoup


def truncate_text(text: str, limit: int) -> str:
    text = text or ""
    if len(text) > limit:
        return text[: max(0, limit - 3)] + "..."
    return text


def strip_html_to_text(raw_html: str) -> str:
    text = BeautifulSoup(raw_html or "", "html.parser").get_text(" ")
    return re.sub(r"\s+", " ", text).strip()


def title_key(title: str, length: int = 50) -> str:
    """Normalized title prefix used for duplicate detection."""
    return (title or "").lower()[:length]


def ordinal(n: int) -> str:
    suffixes = ["th", "st", "nd", "rd"]
    v = n % 100
    if 11 <= v <= 13:
        return f"{n}th"
    return f"{n}{suffixes[n % 10] if n % 10 < 4 else 'th'}"


def parse_form(raw: Optional[str]) -> List[str]:
    """football-data form string ("W,D,L") -> ["W", "D", "L"]."""
    if not raw:
        return []
    return [p.strip().upper() for p in raw.split(",") if p.strip().upper() in ("W", "D", "L")]


def parse_iso(value: str) -> datetime:
    """Parse an ISO-8601 string, accepting the trailing "Z" used by web APIs."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)
