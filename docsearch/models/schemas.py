from typing import List

from pydantic import BaseModel

from docsearch.search.matcher import SortBy


class SearchResult(BaseModel):
    documentId: int
    filename: str
    originalFilename: str
    fileSize: int
    fileType: str
    createdAt: str
    score: float
    preview: str


class SearchResponse(BaseModel):
    query: str
    sort: SortBy
    results: List[SearchResult]
    total: int
    page: int
    limit: int
    totalPages: int
    searchTime: float
    fromCache: bool


class SuggestionsResponse(BaseModel):
    query: str
    suggestions: List[str]


class HealthResponse(BaseModel):
    status: str
    time: str
    store: str
    cacheBackend: str


class MetricsResponse(BaseModel):
    uptimeSeconds: int
    requests: dict
    latencyMs: dict
    errors: dict
    search: dict
    documents: dict
