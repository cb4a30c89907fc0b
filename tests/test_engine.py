import pytest

from docsearch.cache.stores import CacheStore, MemoryCacheStore
from docsearch.search.engine import (
    SearchEngine,
    SearchUnavailableError,
    make_cache_key,
)
from docsearch.search.matcher import SortBy


class RecordingCache(CacheStore):
    def __init__(self) -> None:
        self.calls = []

    def get(self, key):
        self.calls.append(("get", key))
        return None

    def set(self, key, value, ttl):
        self.calls.append(("set", key, ttl))

    def delete(self, key):
        self.calls.append(("delete", key))

    def clear(self):
        self.calls.append(("clear",))


class BrokenCache(CacheStore):
    def get(self, key):
        raise OSError("disk gone")

    def set(self, key, value, ttl):
        raise OSError("disk gone")

    def delete(self, key):
        raise OSError("disk gone")

    def clear(self):
        raise OSError("disk gone")


@pytest.fixture()
def engine(db, clock):
    conn, lock = db
    return SearchEngine(conn, lock, MemoryCacheStore(clock=clock), cache_ttl=300)


def test_blank_query_touches_neither_cache_nor_store():
    cache = RecordingCache()
    engine = SearchEngine(None, None, cache)
    page = engine.search("", SortBy.DATE, 3, 7)
    assert page.total == 0
    assert page.results == []
    assert page.fromCache is False
    assert page.page == 3
    assert page.limit == 7
    assert cache.calls == []


def test_miss_stores_page_with_ttl(db, add_doc):
    conn, lock = db
    add_doc(conn, lock, "doc.txt", "searchable words")
    cache = RecordingCache()
    engine = SearchEngine(conn, lock, cache, cache_ttl=42)
    page = engine.search("searchable")
    key = make_cache_key("searchable", SortBy.RELEVANCE, 1, 10)
    assert page.total == 1
    assert cache.calls == [("get", key), ("set", key, 42)]


def test_second_identical_search_hits_cache(engine, db, add_doc):
    conn, lock = db
    add_doc(conn, lock, "doc.txt", "searchable words")
    first = engine.search("searchable")
    # Rows added after caching are invisible until the entry expires.
    add_doc(conn, lock, "later.txt", "searchable as well")
    second = engine.search("searchable")
    assert first.fromCache is False
    assert second.fromCache is True
    assert second.model_dump(exclude={"searchTime", "fromCache"}) == first.model_dump(
        exclude={"searchTime", "fromCache"}
    )


def test_expired_entry_is_recomputed(engine, db, add_doc, clock):
    conn, lock = db
    add_doc(conn, lock, "doc.txt", "searchable words")
    engine.search("searchable")
    add_doc(conn, lock, "later.txt", "searchable as well")
    clock.advance(301)
    page = engine.search("searchable")
    assert page.fromCache is False
    assert page.total == 2


def test_cache_key_ignores_case_but_not_inner_spacing():
    assert make_cache_key(" Hello World ", SortBy.DATE, 1, 10) == make_cache_key(
        "hello world", SortBy.DATE, 1, 10
    )
    # Substring mode matches the literal query, so spacing changes results.
    assert make_cache_key("hello   world", SortBy.DATE, 1, 10) != make_cache_key(
        "hello world", SortBy.DATE, 1, 10
    )
    assert make_cache_key("hello", SortBy.DATE, 1, 10) != make_cache_key(
        "hello", SortBy.RELEVANCE, 1, 10
    )
    assert make_cache_key("hello", SortBy.DATE, 1, 10) != make_cache_key(
        "hello", SortBy.DATE, 2, 10
    )
    assert make_cache_key("hello", SortBy.DATE, 1, 10).startswith("search:")


def test_broken_cache_degrades_to_direct_search(db, add_doc):
    conn, lock = db
    add_doc(conn, lock, "doc.txt", "searchable words")
    engine = SearchEngine(conn, lock, BrokenCache())
    first = engine.search("searchable")
    second = engine.search("searchable")
    assert first.total == second.total == 1
    assert second.fromCache is False


def test_store_failure_is_not_an_empty_result(db):
    conn, lock = db
    engine = SearchEngine(conn, lock, MemoryCacheStore())
    conn.close()
    with pytest.raises(SearchUnavailableError):
        engine.search("searchable")
    with pytest.raises(SearchUnavailableError):
        engine.suggestions("searchable")


def test_preview_is_bounded_and_highlighted(db, add_doc):
    conn, lock = db
    text = "lorem " * 200 + "needle " + "ipsum " * 200
    add_doc(conn, lock, "long.txt", text)
    engine = SearchEngine(conn, lock, MemoryCacheStore(), max_preview_len=100)
    result = engine.search("needle").results[0]
    plain = result.preview.replace("<mark>", "").replace("</mark>", "")
    assert len(plain) <= 100 + 2 * len("...")
    assert result.preview.startswith("...")
    assert result.preview.endswith("...")
    assert "<mark>needle</mark>" in result.preview


def test_total_pages_matches_total(db, add_doc):
    conn, lock = db
    for idx in range(7):
        add_doc(conn, lock, f"d{idx}.txt", "abc content")
    engine = SearchEngine(conn, lock, MemoryCacheStore())
    page = engine.search("abc", page=2, page_size=3)
    assert page.total == 7
    assert page.totalPages == 3
    assert len(page.results) == 3


def test_cache_hit_echoes_query_as_sent(engine, db, add_doc):
    conn, lock = db
    add_doc(conn, lock, "doc.txt", "searchable words")
    first = engine.search("SEARCHABLE")
    second = engine.search("searchable")
    assert first.query == "SEARCHABLE"
    assert second.fromCache is True
    assert second.query == "searchable"
    assert second.total == first.total == 1


def test_spacing_variants_are_cached_separately(db, add_doc):
    conn, lock = db
    add_doc(conn, lock, "doc.txt", "a  b")
    engine = SearchEngine(conn, lock, MemoryCacheStore())
    assert engine.search("a  b").total == 1
    spaced = engine.search("a b")
    assert spaced.fromCache is False
    assert spaced.total == 0


@pytest.mark.parametrize("query", ["abc", "content"])
def test_page_past_storage_range_is_empty_with_real_total(db, add_doc, query):
    conn, lock = db
    for idx in range(3):
        add_doc(conn, lock, f"d{idx}.txt", "abc content")
    engine = SearchEngine(conn, lock, MemoryCacheStore())
    page = engine.search(query, page=10**19, page_size=10)
    assert page.results == []
    assert page.total == 3
    assert page.totalPages == 1
    assert page.page == 10**19
