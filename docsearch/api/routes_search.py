from fastapi import APIRouter, HTTPException, Query, Request

from docsearch.models.schemas import SearchResponse, SuggestionsResponse
from docsearch.search.engine import SearchUnavailableError
from docsearch.search.matcher import SortBy
from docsearch.search.suggestions import DEFAULT_SUGGESTION_LIMIT

router = APIRouter(prefix="/api", tags=["search"])


@router.get("/search", response_model=SearchResponse)
def search_documents(
    request: Request,
    q: str = Query("", alias="q"),
    sort: SortBy = Query(SortBy.RELEVANCE),
    page: int = Query(1),
    limit: int = Query(10),
) -> SearchResponse:
    settings = request.app.state.settings
    engine = request.app.state.search_engine
    limit = min(limit, settings.max_page_size)
    try:
        response = engine.search(q, sort, page, limit)
    except SearchUnavailableError:
        raise HTTPException(status_code=503, detail="Search unavailable")
    if q.strip() and page >= 1 and limit >= 1:
        request.app.state.metrics.record_search(response.fromCache)
    return response


@router.get("/suggestions", response_model=SuggestionsResponse)
def search_suggestions(
    request: Request,
    q: str = Query("", alias="q"),
    limit: int = Query(DEFAULT_SUGGESTION_LIMIT),
) -> SuggestionsResponse:
    engine = request.app.state.search_engine
    try:
        suggestions = engine.suggestions(q, limit)
    except SearchUnavailableError:
        raise HTTPException(status_code=503, detail="Search unavailable")
    return SuggestionsResponse(query=q, suggestions=suggestions)
