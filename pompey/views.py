"""Home page view state: one closed set of tabs, each selecting one kind of view."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Union

from pompey import config
from pompey.feeds import filter_by_category
from pompey.fixtures import team_standing
from pompey.models import Category, Fixture, NewsItem, Result, Standing


class Tab(str, Enum):
    NEWS = "news"
    OFFICIAL = "official"
    SOCIAL = "social"
    TABLE = "table"
    STATS = "stats"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Tab":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.NEWS

    @property
    def label(self) -> str:
        return TAB_LABELS[self]


TAB_LABELS: Dict[Tab, str] = {
    Tab.NEWS: "News",
    Tab.OFFICIAL: "Official",
    Tab.SOCIAL: "Social",
    Tab.TABLE: "Table",
    Tab.STATS: "Stats",
}


@dataclass
class PageData:
    items: List[NewsItem]
    fixtures: List[Fixture] = field(default_factory=list)
    results: List[Result] = field(default_factory=list)
    standings: List[Standing] = field(default_factory=list)


@dataclass(frozen=True)
class FeedView:
    tab: Tab
    items: List[NewsItem]
    empty_message: str


@dataclass(frozen=True)
class TableView:
    standings: List[Standing]
    highlight_team_id: int


@dataclass(frozen=True)
class StatsView:
    standing: Optional[Standing]
    results: List[Result]

    @property
    def record(self) -> Dict[str, int]:
        out = {"W": 0, "D": 0, "L": 0}
        for r in self.results:
            out[r.result] += 1
        return out


View = Union[FeedView, TableView, StatsView]


def _feed(tab: Tab, category: Category, empty_message: str) -> Callable[[PageData], View]:
    def select(data: PageData) -> View:
        return FeedView(tab=tab, items=filter_by_category(data.items, category), empty_message=empty_message)
    return select


def _table(data: PageData) -> View:
    return TableView(standings=list(data.standings), highlight_team_id=config.PORTSMOUTH_TEAM_ID)


def _stats(data: PageData) -> View:
    return StatsView(standing=team_standing(data.standings), results=list(data.results))


_SELECTORS: Dict[Tab, Callable[[PageData], View]] = {
    Tab.NEWS: _feed(Tab.NEWS, Category.NEWS, "No news articles available right now."),
    Tab.OFFICIAL: _feed(Tab.OFFICIAL, Category.OFFICIAL, "No official content available right now."),
    Tab.SOCIAL: _feed(Tab.SOCIAL, Category.SOCIAL, "No social posts available right now."),
    Tab.TABLE: _table,
    Tab.STATS: _stats,
}

_missing = set(Tab) - set(_SELECTORS)
if _missing or set(Tab) - set(TAB_LABELS):
    raise RuntimeError(f"Tabs without a view: {sorted(t.value for t in _missing)}")


def select_view(tab: Tab, data: PageData) -> View:
    return _SELECTORS[tab](data)


def tab_counts(data: PageData) -> Dict[Tab, Optional[int]]:
    """Item counts shown on feed tabs; None for tabs without a count."""
    counts: Dict[Tab, Optional[int]] = {}
    for tab in Tab:
        view = select_view(tab, data)
        counts[tab] = len(view.items) if isinstance(view, FeedView) else None
    return counts
