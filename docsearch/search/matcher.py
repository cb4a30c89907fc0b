import threading
from enum import Enum
from typing import Any, Dict, List, Sequence, Tuple

from docsearch.db import repo
from docsearch.search.classifier import MatchStrategy, QueryClassification

MIN_SUBSTRING_TOKEN_LEN = 2


class SortBy(str, Enum):
    RELEVANCE = "relevance"
    DATE = "date"


def substring_needles(query: str, tokens: Sequence[str]) -> List[str]:
    needles = [query.lower()]
    if len(tokens) > 1:
        for token in tokens:
            needle = token.lower()
            if len(needle) >= MIN_SUBSTRING_TOKEN_LEN and needle not in needles:
                needles.append(needle)
    return needles


class SubstringMatcher:
    """Literal containment on content or filename; every hit scores 1."""

    def fetch(
        self,
        conn,
        lock: threading.Lock,
        query: str,
        classification: QueryClassification,
        sort_by: SortBy,
        limit: int,
        offset: int,
    ) -> List[dict[str, Any]]:
        # No score exists in this mode, so relevance ordering is date ordering.
        needles = substring_needles(query, classification.tokens)
        return repo.search_substring(conn, lock, needles, limit, offset)

    def page(
        self,
        conn,
        lock: threading.Lock,
        query: str,
        classification: QueryClassification,
        sort_by: SortBy,
        limit: int,
        offset: int,
    ) -> Tuple[List[dict[str, Any]], int]:
        needles = substring_needles(query, classification.tokens)
        return repo.substring_page(conn, lock, needles, limit, offset)


class RelevanceMatcher:
    """Full-text ranking on content, plus filename containment at score 0."""

    def fetch(
        self,
        conn,
        lock: threading.Lock,
        query: str,
        classification: QueryClassification,
        sort_by: SortBy,
        limit: int,
        offset: int,
    ) -> List[dict[str, Any]]:
        return repo.search_relevance(
            conn,
            lock,
            query,
            classification.tokens,
            sort_by == SortBy.DATE,
            limit,
            offset,
        )

    def page(
        self,
        conn,
        lock: threading.Lock,
        query: str,
        classification: QueryClassification,
        sort_by: SortBy,
        limit: int,
        offset: int,
    ) -> Tuple[List[dict[str, Any]], int]:
        return repo.relevance_page(
            conn,
            lock,
            query,
            classification.tokens,
            sort_by == SortBy.DATE,
            limit,
            offset,
        )


MATCHERS: Dict[MatchStrategy, Any] = {
    MatchStrategy.SUBSTRING: SubstringMatcher(),
    MatchStrategy.RELEVANCE: RelevanceMatcher(),
}


def find_page(
    conn,
    lock: threading.Lock,
    query: str,
    classification: QueryClassification,
    sort_by: SortBy,
    limit: int,
    offset: int,
) -> Tuple[List[dict[str, Any]], int]:
    """Rows for one page and the full match count, read under one lock hold."""
    matcher = MATCHERS[classification.strategy]
    return matcher.page(conn, lock, query, classification, sort_by, limit, offset)
