from fastapi import APIRouter, Request

from docsearch.db import repo
from docsearch.models.schemas import MetricsResponse

router = APIRouter(prefix="/api/metrics", tags=["metrics"])


@router.get("", response_model=MetricsResponse)
def metrics(request: Request) -> MetricsResponse:
    metrics_collector = request.app.state.metrics
    conn = request.app.state.db
    lock = request.app.state.db_lock
    snapshot = metrics_collector.snapshot()
    snapshot["documents"] = {"total": repo.count_all_documents(conn, lock)}
    return MetricsResponse(**snapshot)
