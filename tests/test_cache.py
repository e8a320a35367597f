from app.core.cache import TTLCache


class FakeTimer:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_get_and_set() -> None:
    cache = TTLCache()
    cache.set("pokemon:pikachu", {"id": 25})

    assert cache.get("pokemon:pikachu") == {"id": 25}
    assert cache.get("pokemon:eevee") is None
    assert len(cache) == 1


def test_entries_expire_after_their_ttl() -> None:
    timer = FakeTimer()
    cache = TTLCache(default_ttl=300, timer=timer)
    cache.set("short", 1, ttl=10)
    cache.set("default", 2)

    timer.now += 10
    assert cache.get("short") == 1

    timer.now += 1
    assert cache.get("short") is None
    assert cache.get("default") == 2
    # Expired entries are evicted on read
    assert len(cache) == 1

    timer.now += 300
    assert cache.get("default") is None
    assert len(cache) == 0


def test_set_refreshes_ttl() -> None:
    timer = FakeTimer()
    cache = TTLCache(default_ttl=60, timer=timer)
    cache.set("key", "old")

    timer.now += 50
    cache.set("key", "new")
    timer.now += 50

    assert cache.get("key") == "new"


def test_delete_and_clear() -> None:
    cache = TTLCache()
    cache.set("a", 1)
    cache.set("b", 2)

    cache.delete("a")
    cache.delete("missing")
    assert cache.get("a") is None
    assert cache.get("b") == 2

    cache.clear()
    assert len(cache) == 0


def test_writes_drop_expired_entries_that_are_never_read() -> None:
    timer = FakeTimer()
    cache = TTLCache(default_ttl=300, timer=timer)
    cache.set("pokemon:25", "pikachu")
    cache.set("pokemon:pikachu", "pikachu")

    timer.now += 301
    cache.set("pokemon:eevee", "eevee")

    assert len(cache) == 1
    assert cache.get("pokemon:eevee") == "eevee"
