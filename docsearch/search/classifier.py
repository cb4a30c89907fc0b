from dataclasses import dataclass
from enum import Enum
from typing import Tuple

# FTS ranking drops terms shorter than this, so such queries go to substring matching.
MIN_RELEVANCE_TOKEN_LEN = 4


class MatchStrategy(str, Enum):
    SUBSTRING = "substring"
    RELEVANCE = "relevance"


@dataclass(frozen=True)
class QueryClassification:
    strategy: MatchStrategy
    tokens: Tuple[str, ...]


def tokenize(raw: str) -> Tuple[str, ...]:
    return tuple(token for token in raw.split() if token)


def classify(raw: str) -> QueryClassification:
    tokens = tokenize(raw)
    if len(raw) < MIN_RELEVANCE_TOKEN_LEN or any(
        len(token) < MIN_RELEVANCE_TOKEN_LEN for token in tokens
    ):
        return QueryClassification(MatchStrategy.SUBSTRING, tokens)
    return QueryClassification(MatchStrategy.RELEVANCE, tokens)
