import hashlib
import json
import logging
import math
import sqlite3
import threading
import time
from typing import Any, List, Optional

from docsearch.cache.stores import CacheStore
from docsearch.core.logging import log_search
from docsearch.models.schemas import SearchResponse, SearchResult
from docsearch.search.classifier import classify
from docsearch.search.matcher import SortBy, find_page
from docsearch.search.snippets import DEFAULT_PREVIEW_LEN, extract_snippet, highlight
from docsearch.search.suggestions import DEFAULT_SUGGESTION_LIMIT, mine_suggestions

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = 300
CACHE_KEY_PREFIX = "search:"
_CACHE_EXCLUDE = {"searchTime", "fromCache"}


class SearchUnavailableError(RuntimeError):
    """The document store could not answer; distinct from an empty result."""


def make_cache_key(query: str, sort_by: SortBy, page: int, page_size: int) -> str:
    normalized = query.strip().lower()
    content = json.dumps([normalized, SortBy(sort_by).value, page, page_size])
    return CACHE_KEY_PREFIX + hashlib.sha256(content.encode("utf-8")).hexdigest()


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


class SearchEngine:
    """Cached search and suggestion entry point shared by request handlers."""

    def __init__(
        self,
        conn,
        lock: threading.Lock,
        cache: CacheStore,
        cache_ttl: int = DEFAULT_CACHE_TTL,
        max_preview_len: int = DEFAULT_PREVIEW_LEN,
    ) -> None:
        self._conn = conn
        self._lock = lock
        self._cache = cache
        self._cache_ttl = cache_ttl
        self._max_preview_len = max_preview_len

    def search(
        self,
        query: str,
        sort_by: SortBy = SortBy.RELEVANCE,
        page: int = 1,
        page_size: int = 10,
    ) -> SearchResponse:
        start = time.perf_counter()
        sort_by = SortBy(sort_by)
        raw = (query or "").strip()
        if not raw or page < 1 or page_size < 1:
            return SearchResponse(
                query=raw,
                sort=sort_by,
                results=[],
                total=0,
                page=page,
                limit=page_size,
                totalPages=0,
                searchTime=0.0,
                fromCache=False,
            )

        key = make_cache_key(raw, sort_by, page, page_size)
        cached = self._cache_get(key)
        if cached is not None:
            # Entries are shared across letter case; echo the query as sent.
            response = SearchResponse(
                **{**cached, "query": raw},
                searchTime=_elapsed_ms(start),
                fromCache=True,
            )
            log_search("cache_hit", key=key[:20], total=response.total)
            return response

        classification = classify(raw)
        offset = (page - 1) * page_size
        try:
            rows, total = find_page(
                self._conn, self._lock, raw, classification, sort_by, page_size, offset
            )
        except sqlite3.Error as e:
            logger.error("Search failed | strategy=%s | %s", classification.strategy.value, e)
            raise SearchUnavailableError("Document store unavailable") from e

        response = SearchResponse(
            query=raw,
            sort=sort_by,
            results=[self._to_result(row, raw) for row in rows],
            total=total,
            page=page,
            limit=page_size,
            totalPages=math.ceil(total / page_size),
            searchTime=0.0,
            fromCache=False,
        )
        self._cache_set(key, response.model_dump(mode="json", exclude=_CACHE_EXCLUDE))
        response.searchTime = _elapsed_ms(start)
        log_search(
            "cache_miss",
            key=key[:20],
            strategy=classification.strategy.value,
            total=total,
            search_ms=response.searchTime,
        )
        return response

    def suggestions(self, query: str, limit: int = DEFAULT_SUGGESTION_LIMIT) -> List[str]:
        try:
            return mine_suggestions(self._conn, self._lock, query, limit)
        except sqlite3.Error as e:
            logger.error("Suggestions failed | %s", e)
            raise SearchUnavailableError("Document store unavailable") from e

    def _to_result(self, row: dict[str, Any], query: str) -> SearchResult:
        snippet = extract_snippet(row["content_text"], query, self._max_preview_len)
        return SearchResult(
            documentId=row["id"],
            filename=row["filename"],
            originalFilename=row["original_filename"],
            fileSize=row["file_size"],
            fileType=row["file_type"],
            createdAt=row["created_at"],
            score=float(row["score"] or 0.0),
            preview=highlight(snippet, query),
        )

    def _cache_get(self, key: str) -> Optional[dict]:
        try:
            return self._cache.get(key)
        except Exception as e:
            logger.warning("Cache GET failed, treating as miss | key=%s | %s", key[:20], e)
            return None

    def _cache_set(self, key: str, value: dict) -> None:
        try:
            self._cache.set(key, value, self._cache_ttl)
        except Exception as e:
            logger.warning("Cache SET failed | key=%s | %s", key[:20], e)
