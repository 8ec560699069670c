from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class Category(str, Enum):
    NEWS = "news"
    OFFICIAL = "official"
    SOCIAL = "social"


@dataclass(frozen=True)
class FeedSource:
    name: str
    url: str
    rss_url: str
    category: Category = Category.NEWS


@dataclass(frozen=True)
class NewsItem:
    title: str
    link: str
    source: str
    source_url: str
    pub_date: datetime  # UTC, aware
    category: Category
    description: Optional[str] = None
    thumbnail: Optional[str] = None  # videos only

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "link": self.link,
            "source": self.source,
            "sourceUrl": self.source_url,
            "pubDate": self.pub_date.isoformat(),
            "description": self.description,
            "category": self.category.value,
            "thumbnail": self.thumbnail,
        }


@dataclass(frozen=True)
class Fixture:
    id: int
    home_team: str
    away_team: str
    home_crest: str
    away_crest: str
    date: str  # ISO string
    competition: str
    venue: str  # "home" | "away"
    opponent_position: Optional[int] = None
    opponent_form: List[str] = field(default_factory=list)

    @property
    def opponent(self) -> str:
        return self.away_team if self.venue == "home" else self.home_team


@dataclass(frozen=True)
class Result:
    id: int
    home_team: str
    away_team: str
    home_crest: str
    away_crest: str
    date: str
    home_score: int
    away_score: int
    venue: str
    result: str  # "W" | "D" | "L"

    @property
    def opponent_crest(self) -> str:
        return self.away_crest if self.venue == "home" else self.home_crest


@dataclass(frozen=True)
class Standing:
    position: int
    team_id: int
    team: str
    crest: str
    played: int
    won: int
    drawn: int
    lost: int
    goals_for: int
    goals_against: int
    goal_difference: int
    points: int
    form: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class StoryCluster:
    topic: str
    indices: List[int]

    def to_dict(self) -> Dict[str, Any]:
        return {"topic": self.topic, "indices": list(self.indices)}


@dataclass(frozen=True)
class SummaryData:
    summary: Optional[str]
    clusters: List[StoryCluster]
    generated_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary,
            "clusters": [c.to_dict() for c in self.clusters],
            "generatedAt": self.generated_at,
        }
