"""Health routes - Liveness and configuration checks."""

from datetime import datetime, timezone

from fastapi import APIRouter, Response

from notion_posts.core.config import settings
from notion_posts.schemas.api import HealthResponse

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
def health():
    """
    Health check endpoint for load balancer and Docker health checks.

    Does not call Notion; reports whether a root page is configured.
    """
    return HealthResponse(
        status="healthy",
        environment=settings.ENV,
        root_page_configured=settings.has_root_page,
    )


@router.get("/ready")
def readiness(response: Response):
    """
    Readiness probe - the service can only serve posts once NOTION_PAGE_ID is set.

    Returns 200 if ready, 503 otherwise.
    """
    timestamp = datetime.now(timezone.utc).isoformat()
    if not settings.has_root_page:
        response.status_code = 503
        return {"status": "not_ready", "error": "NOTION_PAGE_ID is not configured", "timestamp": timestamp}
    return {"status": "ready", "timestamp": timestamp}
