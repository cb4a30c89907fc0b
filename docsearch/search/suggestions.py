import os
import re
import threading
from typing import Any, Iterable, Iterator, List, Sequence

from docsearch.search.classifier import classify
from docsearch.search.matcher import MATCHERS, SortBy

MIN_QUERY_LEN = 2
DEFAULT_SUGGESTION_LIMIT = 5
CANDIDATE_FACTOR = 3
MIN_PHRASE_LEN = 3
MAX_PHRASE_LEN = 50
MIN_FILENAME_PART_LEN = 3

_SENTENCE_SPLIT = re.compile(r"[.!?\n]+")
_FILENAME_SPLIT = re.compile(r"[._\-\s]+")
_PHRASE_STRIP = re.compile(r"[^a-zA-Z0-9\s-]")


def _phrase_indexes(words: Sequence[str], needle: str) -> List[int]:
    hits = [index for index, word in enumerate(words) if needle in word.lower()]
    if hits or " " not in needle:
        return hits
    # Multi-word query: anchor on its first word.
    head = needle.split()[0]
    return [index for index, word in enumerate(words) if head in word.lower()]


def sentence_phrases(text: str, needle: str) -> Iterator[str]:
    for sentence in _SENTENCE_SPLIT.split(text):
        sentence = sentence.strip()
        if not sentence or needle not in sentence.lower():
            continue
        words = sentence.split()
        for index in _phrase_indexes(words, needle):
            window = words[max(0, index - 1) : index + 3]
            phrase = _PHRASE_STRIP.sub("", " ".join(window)).strip()
            if MIN_PHRASE_LEN <= len(phrase) <= MAX_PHRASE_LEN:
                yield phrase


def filename_parts(filename: str, needle: str) -> Iterator[str]:
    stem = os.path.splitext(filename)[0]
    for part in _FILENAME_SPLIT.split(stem):
        if len(part) >= MIN_FILENAME_PART_LEN and needle in part.lower():
            yield part


def _first_seen(items: List[str], limit: int) -> List[str]:
    return list(dict.fromkeys(items))[:limit]


def collect_suggestions(
    candidates: Iterable[dict[str, Any]], query: str, limit: int
) -> List[str]:
    """Gather phrases in scan order until ``limit`` are collected, then dedupe.

    Repeats count toward the limit, so the result may hold fewer than
    ``limit`` items even when more distinct phrases exist further on.
    """
    needle = query.lower()
    raw: List[str] = []
    for doc in candidates:
        sources = (
            sentence_phrases(doc.get("content_text") or "", needle),
            filename_parts(doc.get("original_filename") or "", needle),
        )
        for source in sources:
            for suggestion in source:
                raw.append(suggestion)
                if len(raw) >= limit:
                    return _first_seen(raw, limit)
    return _first_seen(raw, limit)


def mine_suggestions(
    conn,
    lock: threading.Lock,
    query: str,
    limit: int = DEFAULT_SUGGESTION_LIMIT,
) -> List[str]:
    query = (query or "").strip()
    if len(query) < MIN_QUERY_LEN or limit < 1:
        return []
    classification = classify(query)
    candidates = MATCHERS[classification.strategy].fetch(
        conn,
        lock,
        query,
        classification,
        SortBy.RELEVANCE,
        limit * CANDIDATE_FACTOR,
        0,
    )
    return collect_suggestions(candidates, query, limit)
