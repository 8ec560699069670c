import asyncio
import json
from datetime import datetime, timezone

from aiohttp import web
from aiohttp.test_utils import TestServer

from pompey.summary import (
    SummaryGenerator,
    build_prompt,
    is_transfer_window,
    parse_clusters,
    parse_reply,
)

HEADLINES = [
    '"Pompey close in on striker" (BBC Sport)',
    '"Striker set for Fratton Park medical" (The News Portsmouth)',
    '"Mousinho previews Leeds clash" (The72)',
]
OCTOBER = datetime(2025, 10, 18, 12, 0, tzinfo=timezone.utc)
JANUARY = datetime(2026, 1, 10, 12, 0, tzinfo=timezone.utc)


class TestTransferWindow:
    def test_months(self):
        windows = [m for m in range(1, 13) if is_transfer_window(datetime(2025, m, 15))]
        assert windows == [1, 6, 7, 8]


class TestBuildPrompt:
    def test_numbers_headlines(self):
        prompt = build_prompt(HEADLINES, transfer_window=False)
        assert '1. "Pompey close in on striker" (BBC Sport)' in prompt
        assert "3. " in prompt
        assert "transfer window" not in prompt

    def test_transfer_focus(self):
        prompt = build_prompt(HEADLINES, transfer_window=True)
        assert "transfer window time" in prompt
        assert "GK, CB" in prompt


class TestParseReply:
    def test_valid_json(self):
        raw = json.dumps({"summary": "Busy week.", "clusters": [{"topic": "Striker", "indices": [1, 2]}]})
        data = parse_reply(raw, 3, "now")
        assert data.summary == "Busy week."
        assert [(c.topic, c.indices) for c in data.clusters] == [("Striker", [1, 2])]

    def test_fenced_json(self):
        raw = '```json\n{"summary": "Fenced", "clusters": []}\n```'
        assert parse_reply(raw, 3, "now").summary == "Fenced"

    def test_invalid_json_becomes_summary(self):
        data = parse_reply("Pompey are flying this week.", 3, "now")
        assert data.summary == "Pompey are flying this week."
        assert data.clusters == []

    def test_empty_summary_is_none(self):
        assert parse_reply('{"summary": "", "clusters": []}', 3, "now").summary is None


class TestParseClusters:
    def test_drops_single_and_out_of_range(self):
        raw = [
            {"topic": "One", "indices": [1]},
            {"topic": "Range", "indices": [2, 9]},
            {"topic": "Good", "indices": [1, 3, 3]},
            {"indices": [1, 2]},
            "junk",
        ]
        clusters = parse_clusters(raw, 3)
        assert [(c.topic, c.indices) for c in clusters] == [("Good", [1, 3])]

    def test_not_a_list(self):
        assert parse_clusters({"topic": "x"}, 3) == []


class TestSummaryGenerator:
    def test_no_api_key(self):
        data = asyncio.run(SummaryGenerator(api_key="").generate(HEADLINES, now=OCTOBER))
        assert data.summary is None and data.clusters == []
        assert data.generated_at == OCTOBER.isoformat()

    def test_no_headlines(self):
        data = asyncio.run(SummaryGenerator(api_key="key").generate([], now=OCTOBER))
        assert data.summary is None

    def _serve(self, reply, status=200, seen=None):
        async def messages(request):
            if seen is not None:
                seen["headers"] = {k.lower(): v for k, v in request.headers.items()}
                seen["body"] = await request.json()
            if status != 200:
                return web.json_response({"error": {"message": "overloaded"}}, status=status)
            return web.json_response({"content": [{"type": "text", "text": reply}]})

        app = web.Application()
        app.router.add_post("/v1/messages", messages)
        return TestServer(app)

    def _generate(self, server_kwargs, headlines=HEADLINES, now=OCTOBER):
        async def run():
            async with self._serve(**server_kwargs) as server:
                gen = SummaryGenerator(api_key="key", api_url=str(server.make_url("/v1/messages")))
                try:
                    return await gen.generate(headlines, now=now)
                finally:
                    await gen.close()
        return asyncio.run(run())

    def test_calls_messages_api(self):
        seen = {}
        reply = json.dumps({"summary": "Striker saga.", "clusters": [{"topic": "Striker", "indices": [1, 2]}]})
        data = self._generate({"reply": reply, "seen": seen}, now=JANUARY)
        assert data.summary == "Striker saga."
        assert data.clusters[0].indices == [1, 2]
        assert seen["headers"]["x-api-key"] == "key"
        assert seen["body"]["model"] == "claude-3-5-haiku-latest"
        assert seen["body"]["max_tokens"] == 600
        assert "transfer window time" in seen["body"]["messages"][0]["content"]

    def test_limits_headlines(self):
        seen = {}
        many = [f"Headline {i}" for i in range(1, 30)]
        self._generate({"reply": "{}", "seen": seen}, headlines=many)
        prompt = seen["body"]["messages"][0]["content"]
        assert "15. Headline 15" in prompt
        assert "16. Headline 16" not in prompt

    def test_api_error_returns_empty(self):
        data = self._generate({"reply": "", "status": 529})
        assert data.summary is None and data.clusters == []
