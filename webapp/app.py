"""aiohttp application: pages, JSON API and the shared collaborators behind them."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import AsyncIterator, List, Optional, Tuple

import aiohttp
from aiohttp import web

from pompey import config
from pompey.cache import TTLCache
from pompey.feeds import FeedTransport, fetch_all_news, filter_by_category, headlines_for_summary
from pompey.fixtures import FootballDataClient
from pompey.models import Category, FeedSource, Fixture, NewsItem, Result, Standing
from pompey.monitoring import HealthMonitor
from pompey.ratelimit import UsageLimiter, client_identity
from pompey.summary import SummaryGenerator
from pompey.views import PageData, Tab
from webapp.auth import check_password, set_auth_cookie, auth_middleware
from webapp.render import render_login, render_page

log = logging.getLogger("pompey.web")


@dataclass
class Services:
    transport: FeedTransport
    football: FootballDataClient
    summarizer: SummaryGenerator
    sources: List[FeedSource] = field(default_factory=config.build_feed_sources)
    limiter: UsageLimiter = field(default_factory=UsageLimiter)
    monitor: HealthMonitor = field(default_factory=lambda: HealthMonitor(config.SOURCE_ALERT_THRESHOLD))
    news_cache: TTLCache = field(default_factory=lambda: TTLCache(config.NEWS_CACHE_SECONDS))
    football_cache: TTLCache = field(default_factory=lambda: TTLCache(config.FOOTBALL_CACHE_SECONDS))
    site_password: str = config.SITE_PASSWORD

    @classmethod
    def from_session(cls, session: aiohttp.ClientSession) -> "Services":
        return cls(
            transport=FeedTransport(session=session),
            football=FootballDataClient(session=session),
            summarizer=SummaryGenerator(session=session),
        )


SERVICES = web.AppKey("services", Services)


# =========================
# Data loading
# =========================

async def load_news(svc: Services) -> List[NewsItem]:
    return await svc.news_cache.get_or_load(
        "news", lambda: fetch_all_news(svc.sources, svc.transport, svc.monitor)
    )


async def _fetch_football(svc: Services) -> Tuple[List[Fixture], List[Result], List[Standing]]:
    standings = await svc.football.fetch_standings()
    fixtures, results = await asyncio.gather(
        svc.football.fetch_fixtures(standings=standings),
        svc.football.fetch_results(),
    )
    return fixtures, results, standings


async def load_football(svc: Services) -> Tuple[List[Fixture], List[Result], List[Standing]]:
    if not svc.football.enabled:
        return [], [], []
    return await svc.football_cache.get_or_load("football", lambda: _fetch_football(svc))


# =========================
# Pages
# =========================

async def home(request: web.Request) -> web.Response:
    svc = request.app[SERVICES]
    tab = Tab.parse(request.query.get("tab"))
    items, (fixtures, results, standings) = await asyncio.gather(load_news(svc), load_football(svc))
    data = PageData(items=items, fixtures=fixtures, results=results, standings=standings)
    page = render_page(
        data, tab,
        headlines=headlines_for_summary(items),
        summary_enabled=svc.summarizer.enabled,
    )
    return web.Response(text=page, content_type="text/html")


async def login_page(request: web.Request) -> web.Response:
    return web.Response(text=render_login(), content_type="text/html")


async def login_form(request: web.Request) -> web.StreamResponse:
    svc = request.app[SERVICES]
    form = await request.post()
    if check_password(str(form.get("password", "")), svc.site_password):
        resp = web.Response(status=302, headers={"Location": "/"})
        set_auth_cookie(resp)
        return resp
    log.info("Failed login from %s", client_identity(request.headers, request.remote))
    return web.Response(text=render_login("Incorrect password"), content_type="text/html", status=401)


# =========================
# API
# =========================

async def _json_body(request: web.Request) -> dict:
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


async def api_login(request: web.Request) -> web.Response:
    svc = request.app[SERVICES]
    body = await _json_body(request)
    if check_password(str(body.get("password") or ""), svc.site_password):
        resp = web.json_response({"success": True})
        set_auth_cookie(resp)
        return resp
    log.info("Failed login from %s", client_identity(request.headers, request.remote))
    return web.json_response({"error": "Incorrect password"}, status=401)


async def api_summary(request: web.Request) -> web.Response:
    svc = request.app[SERVICES]

    decision = svc.limiter.check(client_identity(request.headers, request.remote))
    if not decision.allowed:
        return web.json_response({"error": decision.message}, status=429)

    if not svc.summarizer.enabled:
        return web.json_response({"error": "API key not configured"}, status=500)

    body = await _json_body(request)
    headlines = body.get("headlines")
    if not isinstance(headlines, list) or not headlines:
        return web.json_response({"error": "No headlines provided"}, status=400)

    data = await svc.summarizer.generate([str(h) for h in headlines])
    return web.json_response({"summary": data.summary, "clusters": [c.to_dict() for c in data.clusters]})


async def api_news(request: web.Request) -> web.Response:
    svc = request.app[SERVICES]
    items = await load_news(svc)
    raw = request.query.get("category")
    if raw:
        try:
            items = filter_by_category(items, Category(raw))
        except ValueError:
            return web.json_response({"error": f"Unknown category: {raw}"}, status=400)
    return web.json_response({"count": len(items), "items": [i.to_dict() for i in items]})


async def api_health(request: web.Request) -> web.Response:
    svc = request.app[SERVICES]
    return web.json_response({
        "sources": [s.name for s in svc.sources],
        "failures": svc.monitor.snapshot(),
        "summaryUsageToday": svc.limiter.daily_count,
    })


# =========================
# App factory
# =========================

async def _services_ctx(app: web.Application) -> AsyncIterator[None]:
    session = aiohttp.ClientSession()
    app[SERVICES] = Services.from_session(session)
    log.info("Serving %d feed source(s).", len(app[SERVICES].sources))
    yield
    await session.close()


def create_app(services: Optional[Services] = None) -> web.Application:
    app = web.Application(middlewares=[auth_middleware])
    if services is None:
        app.cleanup_ctx.append(_services_ctx)
    else:
        app[SERVICES] = services

    app.router.add_get("/", home)
    app.router.add_get("/login", login_page)
    app.router.add_post("/login", login_form)
    app.router.add_post("/api/login", api_login)
    app.router.add_post("/api/summary", api_summary)
    app.router.add_get("/api/news", api_news)
    app.router.add_get("/api/health", api_health)
    return app
