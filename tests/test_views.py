from datetime import datetime, timezone

import pytest

from pompey.models import Category, NewsItem, Result, Standing
from pompey.views import FeedView, PageData, StatsView, Tab, TableView, select_view, tab_counts


def _item(title, category):
    return NewsItem(title=title, link="#", source="S", source_url="https://s.example",
                    pub_date=datetime(2025, 10, 18, tzinfo=timezone.utc), category=category)


def _result(outcome):
    return Result(1, "Portsmouth FC", "Leeds United FC", "", "", "2025-10-04T14:00:00Z", 1, 0, "home", outcome)


PFC_ROW = Standing(14, 389, "Portsmouth", "", 10, 4, 1, 5, 12, 14, -2, 13)


@pytest.fixture
def data():
    return PageData(
        items=[_item("n1", Category.NEWS), _item("o1", Category.OFFICIAL), _item("n2", Category.NEWS)],
        results=[_result("W"), _result("W"), _result("L")],
        standings=[Standing(1, 341, "Leeds", "", 10, 8, 1, 1, 20, 5, 15, 25), PFC_ROW],
    )


class TestTabParse:
    @pytest.mark.parametrize("raw,tab", [
        ("news", Tab.NEWS), ("OFFICIAL", Tab.OFFICIAL), (" social ", Tab.SOCIAL),
        ("table", Tab.TABLE), ("stats", Tab.STATS), ("bogus", Tab.NEWS), (None, Tab.NEWS),
    ])
    def test_parse(self, raw, tab):
        assert Tab.parse(raw) is tab

    def test_every_tab_has_label(self):
        assert [t.label for t in Tab] == ["News", "Official", "Social", "Table", "Stats"]


class TestSelectView:
    def test_every_tab_selects_a_view(self, data):
        for tab in Tab:
            assert select_view(tab, data) is not None

    def test_feed_tabs_filter_by_category(self, data):
        view = select_view(Tab.NEWS, data)
        assert isinstance(view, FeedView)
        assert [i.title for i in view.items] == ["n1", "n2"]
        social = select_view(Tab.SOCIAL, data)
        assert social.items == []
        assert social.empty_message == "No social posts available right now."

    def test_table(self, data):
        view = select_view(Tab.TABLE, data)
        assert isinstance(view, TableView)
        assert view.highlight_team_id == 389
        assert len(view.standings) == 2

    def test_stats(self, data):
        view = select_view(Tab.STATS, data)
        assert isinstance(view, StatsView)
        assert view.standing == PFC_ROW
        assert view.record == {"W": 2, "D": 0, "L": 1}


class TestTabCounts:
    def test_counts_feed_tabs_only(self, data):
        counts = tab_counts(data)
        assert counts[Tab.NEWS] == 2
        assert counts[Tab.OFFICIAL] == 1
        assert counts[Tab.SOCIAL] == 0
        assert counts[Tab.TABLE] is None
        assert counts[Tab.STATS] is None
