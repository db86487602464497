import threading

from speechsearch.cache import QueryCache, cache_key


def test_cache_key_ignores_case_and_outer_whitespace():
    assert cache_key("SERPAPI", "Cats") == cache_key("SERPAPI", "  cATS \n")
    assert cache_key("SERPAPI", "cats") == "search:SERPAPI:cats"
    assert cache_key("SERPAPI", "cats") != cache_key("GOOGLE", "cats")


def test_entry_expires_after_ttl(clock):
    c = QueryCache(ttl_sec=300, clock=clock)
    c.set("k", {"a": 1})
    clock.advance(299)
    assert c.get("k") == {"a": 1}
    clock.advance(1)
    assert c.get("k") is None
    assert len(c) == 0


def test_reads_do_not_extend_ttl(clock):
    c = QueryCache(ttl_sec=10, clock=clock)
    c.set("k", "v")
    for _ in range(9):
        clock.advance(1)
        assert c.get("k") == "v"
    clock.advance(1)
    assert c.get("k") is None


def test_per_entry_ttl_and_last_writer_wins(clock):
    c = QueryCache(ttl_sec=300, clock=clock)
    c.set("short", 1, ttl=5)
    c.set("k", "first")
    c.set("k", "second")
    clock.advance(6)
    assert c.get("short") is None
    assert c.get("k") == "second"


def test_capacity_evicts_least_recently_used(clock):
    c = QueryCache(capacity=2, ttl_sec=300, clock=clock)
    c.set("a", 1)
    c.set("b", 2)
    c.get("a")
    c.set("c", 3)
    assert c.get("b") is None
    assert c.get("a") == 1
    assert c.get("c") == 3


def test_purge_expired(clock):
    c = QueryCache(ttl_sec=10, clock=clock)
    c.set("old", 1)
    clock.advance(5)
    c.set("new", 2)
    clock.advance(6)
    assert c.purge_expired() == 1
    assert len(c) == 1
    assert c.get("new") == 2


def test_concurrent_writers():
    c = QueryCache(capacity=10_000, ttl_sec=300)

    def writer(n):
        for i in range(500):
            c.set(f"{n}:{i}", i)
            c.get(f"{n}:{i}")

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(c) == 8 * 500
