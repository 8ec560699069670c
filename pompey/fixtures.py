"""Fixtures, results and league table from football-data.org."""

import asyncio
import logging
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

import aiohttp

from pompey import config
from pompey.models import Fixture, Result, Standing
from pompey.utils import parse_form, parse_iso

log = logging.getLogger("pompey.fixtures")

# Upcoming matches across every competition, cups included; the first few are shown.
FIXTURE_FETCH_LIMIT = 5


class FootballDataClient:
    def __init__(self, api_key: str = config.FOOTBALL_DATA_API_KEY,
                 session: Optional[aiohttp.ClientSession] = None,
                 base_url: str = config.FOOTBALL_DATA_BASE_URL,
                 team_id: int = config.PORTSMOUTH_TEAM_ID,
                 competition_id: int = config.CHAMPIONSHIP_ID,
                 timeout: float = config.FOOTBALL_FETCH_TIMEOUT):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.team_id = team_id
        self.competition_id = competition_id
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

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """GET a JSON document. Returns None on any failure."""
        if not self.enabled:
            return None
        sess = await self._ensure_session()
        url = f"{self.base_url}{path}"
        try:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            async with sess.get(url, params=params, headers={"X-Auth-Token": self.api_key},
                                timeout=timeout) as resp:
                if resp.status != 200:
                    body = await resp.text()
                    log.warning("Football API error status=%s path=%s body=%s", resp.status, path, body[:300])
                    return None
                data = await resp.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            log.warning("Football API request failed path=%s: %s", path, e)
            return None
        if not isinstance(data, dict):
            log.warning("Football API returned unexpected payload for %s", path)
            return None
        return data

    # ---- raw -> models ----

    def _venue(self, match: Dict[str, Any]) -> str:
        return "home" if match["homeTeam"]["id"] == self.team_id else "away"

    def _to_fixture(self, match: Dict[str, Any], table: Dict[int, Standing]) -> Fixture:
        venue = self._venue(match)
        opponent_id = match["awayTeam"]["id"] if venue == "home" else match["homeTeam"]["id"]
        opponent = table.get(opponent_id)
        return Fixture(
            id=match["id"],
            home_team=match["homeTeam"]["name"],
            away_team=match["awayTeam"]["name"],
            home_crest=match["homeTeam"].get("crest") or "",
            away_crest=match["awayTeam"].get("crest") or "",
            date=match["utcDate"],
            competition=(match.get("competition") or {}).get("name", ""),
            venue=venue,
            opponent_position=opponent.position if opponent else None,
            opponent_form=list(opponent.form) if opponent else [],
        )

    def _to_result(self, match: Dict[str, Any]) -> Optional[Result]:
        full_time = (match.get("score") or {}).get("fullTime") or {}
        home, away = full_time.get("home"), full_time.get("away")
        if home is None or away is None:
            return None
        venue = self._venue(match)
        ours, theirs = (home, away) if venue == "home" else (away, home)
        outcome = "W" if ours > theirs else "D" if ours == theirs else "L"
        return Result(
            id=match["id"],
            home_team=match["homeTeam"]["name"],
            away_team=match["awayTeam"]["name"],
            home_crest=match["homeTeam"].get("crest") or "",
            away_crest=match["awayTeam"].get("crest") or "",
            date=match["utcDate"],
            home_score=int(home),
            away_score=int(away),
            venue=venue,
            result=outcome,
        )

    @staticmethod
    def _to_standing(row: Dict[str, Any]) -> Standing:
        team = row.get("team") or {}
        return Standing(
            position=int(row["position"]),
            team_id=int(team["id"]),
            team=team.get("shortName") or team.get("name", ""),
            crest=team.get("crest") or "",
            played=int(row.get("playedGames", 0)),
            won=int(row.get("won", 0)),
            drawn=int(row.get("draw", 0)),
            lost=int(row.get("lost", 0)),
            goals_for=int(row.get("goalsFor", 0)),
            goals_against=int(row.get("goalsAgainst", 0)),
            goal_difference=int(row.get("goalDifference", 0)),
            points=int(row.get("points", 0)),
            form=parse_form(row.get("form")),
        )

    # ---- public ----

    async def fetch_standings(self) -> List[Standing]:
        data = await self._get(f"/competitions/{self.competition_id}/standings")
        if not data:
            return []
        for block in data.get("standings") or []:
            if block.get("type", "TOTAL") == "TOTAL":
                try:
                    return [self._to_standing(r) for r in block.get("table") or []]
                except (KeyError, TypeError, ValueError) as e:
                    log.warning("Invalid standings row: %s", e)
                    return []
        return []

    async def fetch_fixtures(self, limit: int = 3,
                             standings: Optional[List[Standing]] = None) -> List[Fixture]:
        data = await self._get(
            f"/teams/{self.team_id}/matches",
            params={"status": "SCHEDULED", "limit": str(max(limit, FIXTURE_FETCH_LIMIT))},
        )
        if not data:
            return []
        if standings is None:
            standings = await self.fetch_standings()
        table = {s.team_id: s for s in standings}
        try:
            matches = sorted(data.get("matches") or [], key=lambda m: m["utcDate"])
            return [self._to_fixture(m, table) for m in matches[:limit]]
        except (KeyError, TypeError) as e:
            log.warning("Invalid fixture payload: %s", e)
            return []

    async def fetch_results(self, limit: int = 5) -> List[Result]:
        data = await self._get(
            f"/teams/{self.team_id}/matches",
            params={"status": "FINISHED", "competitions": str(self.competition_id)},
        )
        if not data:
            return []
        try:
            matches = sorted(data.get("matches") or [], key=lambda m: m["utcDate"], reverse=True)
            results = [self._to_result(m) for m in matches]
        except (KeyError, TypeError) as e:
            log.warning("Invalid results payload: %s", e)
            return []
        return [r for r in results if r is not None][:limit]


def team_standing(standings: List[Standing], team_id: int = config.PORTSMOUTH_TEAM_ID) -> Optional[Standing]:
    for s in standings:
        if s.team_id == team_id:
            return s
    return None


def format_fixture_time(iso_date: str, tz: ZoneInfo) -> str:
    """Kick-off in ``tz`` as "3:00 PM"."""
    local = parse_iso(iso_date).astimezone(tz)
    hour = local.hour % 12 or 12
    return f"{hour}:{local.minute:02d} {'AM' if local.hour < 12 else 'PM'}"


def format_fixture_date(iso_date: str, tz: ZoneInfo = config.UK_TZ) -> str:
    """Match day as "Sat 18 Oct"."""
    local = parse_iso(iso_date).astimezone(tz)
    return f"{local.strftime('%a')} {local.day} {local.strftime('%b')}"


def short_team_name(name: str) -> str:
    for suffix in (" FC", " AFC"):
        if name.endswith(suffix):
            return name[: -len(suffix)]
    return name
