from datetime import datetime, timezone

from fastapi import APIRouter, Request

from docsearch.db import repo
from docsearch.models.schemas import HealthResponse

router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("", response_model=HealthResponse)
def health(request: Request) -> HealthResponse:
    store_ok = repo.ping(request.app.state.db, request.app.state.db_lock)
    checked_at = datetime.now(timezone.utc).replace(microsecond=0)
    return HealthResponse(
        status="ok" if store_ok else "degraded",
        time=checked_at.isoformat().replace("+00:00", "Z"),
        store="ok" if store_ok else "unavailable",
        cacheBackend=request.app.state.settings.cache_backend,
    )
