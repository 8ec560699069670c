import asyncio

from pompey.cache import TTLCache


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


def _counting_loader(calls, value="v"):
    async def load():
        calls.append(1)
        await asyncio.sleep(0)
        return f"{value}{len(calls)}"
    return load


class TestTTLCache:
    def test_get_or_load_caches(self):
        clock = FakeClock()
        cache = TTLCache(300, clock=clock)
        calls = []

        async def run():
            a = await cache.get_or_load("news", _counting_loader(calls))
            b = await cache.get_or_load("news", _counting_loader(calls))
            return a, b

        assert asyncio.run(run()) == ("v1", "v1")
        assert len(calls) == 1

    def test_reloads_after_ttl(self):
        clock = FakeClock()
        cache = TTLCache(300, clock=clock)
        calls = []
        asyncio.run(cache.get_or_load("news", _counting_loader(calls)))
        clock.now += 300
        assert cache.get("news") is None
        assert asyncio.run(cache.get_or_load("news", _counting_loader(calls))) == "v2"

    def test_concurrent_misses_share_one_load(self):
        cache = TTLCache(300, clock=FakeClock())
        calls = []

        async def run():
            loader = _counting_loader(calls)
            return await asyncio.gather(*(cache.get_or_load("k", loader) for _ in range(5)))

        assert asyncio.run(run()) == ["v1"] * 5
        assert len(calls) == 1

    def test_invalidate(self):
        cache = TTLCache(300, clock=FakeClock())
        cache.set("a", 1)
        cache.set("b", 2)
        cache.invalidate("a")
        assert cache.get("a") is None
        assert cache.get("b") == 2
        cache.invalidate()
        assert cache.get("b") is None
