"""HTML rendering for the home and login pages."""

import html as htmlmod
import json
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, get_args

from pompey import config
from pompey.feeds import relative_time
from pompey.fixtures import format_fixture_date, format_fixture_time, short_team_name
from pompey.models import Category, Fixture, NewsItem, Result
from pompey.utils import ordinal
from pompey.views import FeedView, PageData, StatsView, Tab, TableView, View, select_view, tab_counts

STYLE = """
body{margin:0;font-family:system-ui,sans-serif;background:#f8fafc;color:#0f172a}
header{background:#001489;color:#fff;padding:24px 16px}
header h1{margin:0;font-size:24px}header h1 span{color:#bba14f}
header p{margin:4px 0 0;color:#bfdbfe;font-size:14px}
main{max-width:768px;margin:0 auto;padding:24px 16px}
.card{display:block;padding:16px;background:#fff;border:1px solid #e2e8f0;border-radius:8px;margin-bottom:12px;color:inherit;text-decoration:none}
.card:hover{border-color:#001489}.meta{margin-top:8px;font-size:14px;color:#64748b}
.meta b{color:#001489}.desc{margin-top:8px;font-size:14px;color:#475569}
.thumb{width:100%;border-radius:6px;margin-bottom:12px}
.tabs{display:flex;gap:8px;margin-bottom:16px;overflow-x:auto}
.tabs a{padding:8px 16px;border-radius:8px;background:#f1f5f9;color:#475569;text-decoration:none;font-size:14px}
.tabs a.active{background:#001489;color:#fff}.count{margin-left:8px;font-size:12px}
.status{display:flex;justify-content:space-between;font-size:14px;color:#64748b;margin-bottom:16px}
.strip{display:flex;gap:12px;overflow-x:auto;padding-bottom:8px;margin-bottom:16px}
.fixture{padding:12px;background:#fff;border:1px solid #e2e8f0;border-radius:8px;min-width:200px;font-size:14px}
.form{padding:12px;background:#f1f5f9;border:1px solid #e2e8f0;border-radius:8px;min-width:140px;font-size:12px}
.W{color:#16a34a}.D{color:#d97706}.L{color:#dc2626}
.summary{padding:16px;background:#fff;border:1px solid #bba14f;border-radius:8px;margin-bottom:16px}
.gen{float:right;padding:4px 12px;font-size:13px;border:0;border-radius:6px;background:#1e3a8a;color:#fff;cursor:pointer}.gen:disabled{opacity:.6}
.empty{text-align:center;padding:48px 0;color:#64748b}
table{width:100%;border-collapse:collapse;background:#fff;font-size:14px}
th,td{padding:6px 8px;border-bottom:1px solid #e2e8f0;text-align:right}
th:nth-child(2),td:nth-child(2){text-align:left}tr.us{background:#eef2ff;font-weight:600}
footer{border-top:1px solid #e2e8f0;margin-top:32px;padding:24px 16px;text-align:center;font-size:14px;color:#64748b}
"""

SUMMARY_SCRIPT = """
<script>
(function(){
  var box=document.getElementById('summary');if(!box)return;
  var btn=box.querySelector('button'),out=box.querySelector('.out'),err=box.querySelector('.err');
  var headlines=JSON.parse(box.getAttribute('data-headlines')),done=false;
  btn.addEventListener('click',function(){
    btn.disabled=true;btn.textContent='Generating...';err.textContent='';
    out.textContent='Analyzing headlines...';
    fetch('/api/summary',{method:'POST',headers:{'Content-Type':'application/json'},
      body:JSON.stringify({headlines:headlines})})
    .then(function(r){return r.json().then(function(d){
      if(!r.ok)throw new Error(d.error||'Failed to generate summary');return d;});})
    .then(function(d){done=true;out.textContent=d.summary||'No summary available.';
      box.querySelectorAll('.cluster').forEach(function(n){n.remove();});
      (d.clusters||[]).forEach(function(c){var s=document.createElement('div');
        s.className='meta cluster';s.textContent=c.topic+' ('+c.indices.length+' stories)';box.appendChild(s);});})
    .catch(function(e){out.textContent='';err.textContent=e.message||'Something went wrong';})
    .then(function(){btn.disabled=false;btn.textContent=done?'Refresh':'Generate';});
  });
})();
</script>
"""


def esc(value: object) -> str:
    return htmlmod.escape(str(value), quote=True)


def _layout(title: str, body: str) -> str:
    return (
        "<!DOCTYPE html><html lang='en'><head><meta charset='utf-8'>"
        "<meta name='viewport' content='width=device-width, initial-scale=1'>"
        f"<title>{esc(title)}</title><style>{STYLE}</style></head><body>"
        "<header><div style='max-width:768px;margin:0 auto'>"
        "<h1><span>&#9875;</span> Pompey News</h1>"
        "<p>Portsmouth FC news from across the web</p></div></header>"
        f"<main>{body}</main>"
        "<footer>News aggregated from official sources. Play Up Pompey!</footer>"
        "</body></html>"
    )


# =========================
# Cards
# =========================

def news_card(item: NewsItem, now: datetime) -> str:
    is_video = item.category == Category.OFFICIAL and bool(item.thumbnail)
    is_social = item.category == Category.SOCIAL

    parts = [f"<a class='card' href='{esc(item.link)}' target='_blank' rel='noopener noreferrer'>"]
    if is_video:
        parts.append(f"<img class='thumb' src='{esc(item.thumbnail)}' alt=''>")
    if is_social:
        # Post text is the title for social items
        parts.append(f"<p style='white-space:pre-wrap;margin:0'>{esc(item.title)}</p>")
    else:
        parts.append(f"<h2 style='font-size:16px;margin:0'>{esc(item.title)}</h2>")
    parts.append(
        f"<div class='meta'><b>{esc(item.source)}</b> &middot; "
        f"<time datetime='{esc(item.pub_date.isoformat())}'>{esc(relative_time(item.pub_date, now))}</time></div>"
    )
    if item.description and not is_video and not is_social:
        parts.append(f"<p class='desc'>{esc(item.description)}</p>")
    parts.append("</a>")
    return "".join(parts)


def _form_dots(form: List[str]) -> str:
    return "".join(f"<span class='{esc(r)}'>&#9679;</span>" for r in form[:5])


def fixture_card(fixture: Fixture) -> str:
    is_home = fixture.venue == "home"
    home = esc(short_team_name(fixture.home_team))
    away = esc(short_team_name(fixture.away_team))
    if is_home:
        home = f"<b>{home}</b>"
    else:
        away = f"<b>{away}</b>"
    parts = [
        "<div class='fixture'>",
        f"<div class='meta' style='margin:0 0 4px'>{esc(format_fixture_date(fixture.date))}</div>",
        f"<div>{home} vs {away}</div>",
    ]
    if fixture.opponent_position:
        opponent = esc(fixture.opponent.split(" ")[0])
        parts.append(
            f"<div class='meta'>{opponent}: {esc(ordinal(fixture.opponent_position))} "
            f"{_form_dots(fixture.opponent_form)}</div>"
        )
    uk = format_fixture_time(fixture.date, config.UK_TZ)
    other = format_fixture_time(fixture.date, config.SECOND_TZ)
    parts.append(f"<div class='meta'>UK {esc(uk)} &middot; {esc(config.SECOND_TZ_LABEL)} {esc(other)}</div>")
    parts.append("</div>")
    return "".join(parts)


def results_card(results: List[Result]) -> str:
    # Oldest first so the most recent sits next to the fixtures
    rows = [
        f"<div><span class='{esc(r.result)}'><b>{esc(r.result)}</b></span> "
        f"{esc(r.home_score)}-{esc(r.away_score)}</div>"
        for r in reversed(results[:5])
    ]
    return "<div class='form'><div style='margin-bottom:8px'>Recent Form</div>" + "".join(rows) + "</div>"


def fixtures_strip(fixtures: List[Fixture], results: List[Result]) -> str:
    if not fixtures and not results:
        return ""
    cards = []
    if results:
        cards.append(results_card(results))
    cards.extend(fixture_card(f) for f in fixtures)
    return "<h3 style='font-size:13px;color:#64748b;text-transform:uppercase'>Upcoming Fixtures</h3>" \
        f"<div class='strip'>{''.join(cards)}</div>"


# =========================
# Views
# =========================

def _render_feed(view: FeedView, now: datetime) -> str:
    if not view.items:
        return f"<div class='empty'><p>{esc(view.empty_message)}</p></div>"
    return "".join(news_card(i, now) for i in view.items)


def _render_table(view: TableView, now: datetime) -> str:
    if not view.standings:
        return "<div class='empty'><p>League table unavailable right now.</p></div>"
    rows = []
    for s in view.standings:
        cls = " class='us'" if s.team_id == view.highlight_team_id else ""
        rows.append(
            f"<tr{cls}><td>{s.position}</td><td>{esc(s.team)}</td><td>{s.played}</td>"
            f"<td>{s.won}</td><td>{s.drawn}</td><td>{s.lost}</td>"
            f"<td>{s.goal_difference:+d}</td><td>{s.points}</td></tr>"
        )
    return (
        "<table><thead><tr><th>#</th><th>Team</th><th>P</th><th>W</th><th>D</th><th>L</th>"
        "<th>GD</th><th>Pts</th></tr></thead><tbody>" + "".join(rows) + "</tbody></table>"
    )


def _render_stats(view: StatsView, now: datetime) -> str:
    s = view.standing
    if s is None and not view.results:
        return "<div class='empty'><p>Season stats unavailable right now.</p></div>"
    parts = ["<div class='summary'>"]
    if s is not None:
        parts.append(f"<h2 style='margin:0 0 8px;font-size:18px'>{esc(ordinal(s.position))} in the Championship</h2>")
        parts.append(
            f"<div class='meta'>Played {s.played} &middot; W{s.won} D{s.drawn} L{s.lost} &middot; "
            f"GF {s.goals_for} GA {s.goals_against} ({s.goal_difference:+d}) &middot; {s.points} pts</div>"
        )
    if view.results:
        rec = view.record
        parts.append(
            f"<div class='meta'>Last {len(view.results)}: {rec['W']}W {rec['D']}D {rec['L']}L "
            f"{_form_dots([r.result for r in view.results])}</div>"
        )
    parts.append("</div>")
    return "".join(parts)


_RENDERERS: Dict[type, Callable[..., str]] = {
    FeedView: _render_feed,
    TableView: _render_table,
    StatsView: _render_stats,
}

if set(get_args(View)) - set(_RENDERERS):
    raise RuntimeError("Every view type needs a renderer")


def render_view(view: View, now: datetime) -> str:
    return _RENDERERS[type(view)](view, now)


def tab_bar(active: Tab, counts: Dict[Tab, Optional[int]]) -> str:
    links = []
    for tab in Tab:
        cls = " class='active'" if tab == active else ""
        count = counts.get(tab)
        badge = f"<span class='count'>{count}</span>" if count is not None else ""
        links.append(f"<a{cls} href='/?tab={tab.value}'>{esc(tab.label)}{badge}</a>")
    return f"<nav class='tabs'>{''.join(links)}</nav>"


def summary_panel(headlines: List[str], enabled: bool) -> str:
    if not enabled or not headlines:
        return ""
    data = esc(json.dumps(headlines))
    return (
        f"<div class='summary' id='summary' data-headlines='{data}'>"
        "<div class='meta' style='margin:0 0 8px'><b>The Latest</b> "
        "<button type='button' class='gen'>Generate</button></div>"
        "<p class='err' style='margin:0;color:#dc2626'></p>"
        "<p class='out' style='margin:0'>Click &quot;Generate&quot; to get an AI summary "
        "and group related stories.</p></div>"
        + SUMMARY_SCRIPT
    )


def render_page(data: PageData, active: Tab, headlines: List[str],
                summary_enabled: bool, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    updated = now.astimezone(config.UK_TZ).strftime("%H:%M")
    body = "".join([
        summary_panel(headlines, summary_enabled),
        f"<div class='status'><span>{len(data.items)} items</span><span>Updated {esc(updated)}</span></div>",
        fixtures_strip(data.fixtures, data.results),
        tab_bar(active, tab_counts(data)),
        render_view(select_view(active, data), now),
    ])
    return _layout("Pompey News", body)


def render_login(error: Optional[str] = None) -> str:
    err = f"<p class='L' style='font-size:14px'>{esc(error)}</p>" if error else ""
    body = (
        "<div class='summary' style='max-width:360px;margin:48px auto'>"
        "<h2 style='margin-top:0;font-size:18px'>Enter password</h2>"
        "<form method='post' action='/login'>"
        "<input type='password' name='password' autofocus "
        "style='width:100%;padding:8px;box-sizing:border-box;margin-bottom:12px'>"
        "<button type='submit' style='width:100%;padding:8px;background:#001489;color:#fff;"
        "border:0;border-radius:6px'>Enter</button></form>"
        f"{err}</div>"
    )
    return _layout("Pompey News - Login", body)
