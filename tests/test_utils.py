from datetime import datetime, timezone

import pytest
from pompey.utils import (
    truncate_text,
    strip_html_to_text,
    title_key,
    ordinal,
    parse_form,
    parse_iso,
)


# ── truncate_text ──────────────────────────────────────────────

class TestTruncateText:
    def test_short_text_unchanged(self):
        assert truncate_text("hello", 10) == "hello"

    def test_exact_limit(self):
        assert truncate_text("hello", 5) == "hello"

    def test_truncates_with_ellipsis(self):
        result = truncate_text("hello world", 8)
        assert result == "hello..."
        assert len(result) == 8

    def test_none_input(self):
        assert truncate_text(None, 5) == ""


# ── strip_html_to_text ────────────────────────────────────────

class TestStripHtmlToText:
    def test_simple_html(self):
        assert strip_html_to_text("<p>Hello <b>world</b></p>") == "Hello world"

    def test_collapses_whitespace(self):
        assert strip_html_to_text("line1<br/>\n\n  line2") == "line1 line2"

    def test_html_entities(self):
        assert strip_html_to_text("Fish &amp; chips") == "Fish & chips"

    def test_none_input(self):
        assert strip_html_to_text(None) == ""


# ── title_key ─────────────────────────────────────────────────

class TestTitleKey:
    def test_lowercases_and_truncates(self):
        assert title_key("POMPEY " * 20) == ("pompey " * 20)[:50]

    def test_short_title(self):
        assert title_key("Play Up Pompey") == "play up pompey"

    def test_none(self):
        assert title_key(None) == ""


# ── ordinal ───────────────────────────────────────────────────

@pytest.mark.parametrize("n,expected", [
    (1, "1st"), (2, "2nd"), (3, "3rd"), (4, "4th"), (11, "11th"), (12, "12th"),
    (13, "13th"), (21, "21st"), (22, "22nd"), (24, "24th"), (101, "101st"), (113, "113th"),
])
def test_ordinal(n, expected):
    assert ordinal(n) == expected


# ── parse_form / parse_iso ────────────────────────────────────

class TestParseForm:
    def test_splits(self):
        assert parse_form("W,D,L,w") == ["W", "D", "L", "W"]

    def test_ignores_junk(self):
        assert parse_form("W,,X, L") == ["W", "L"]

    def test_empty(self):
        assert parse_form(None) == []


def test_parse_iso_z_suffix():
    assert parse_iso("2025-10-18T14:00:00Z") == datetime(2025, 10, 18, 14, 0, tzinfo=timezone.utc)
