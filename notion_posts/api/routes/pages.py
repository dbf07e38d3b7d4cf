"""Page routes - Raw Notion record maps for a single page."""

import httpx
from fastapi import APIRouter, Depends, HTTPException

from notion_posts.api.deps import get_post_service
from notion_posts.core.ids import parse_page_id
from notion_posts.core.logging import get_logger
from notion_posts.ingestion.client import NotionAPIError
from notion_posts.services.post_service import PostService

router = APIRouter(prefix="/pages", tags=["pages"])
log = get_logger("pages_routes")


@router.get("/{page_id}/record-map")
async def get_record_map(page_id: str, service: PostService = Depends(get_post_service)):
    """
    Get the raw record map for a page (blocks, collections, views, query results).

    Accepts a dashed or undashed id, or a Notion page slug ending in one.
    """
    canonical = parse_page_id(page_id)
    if canonical is None:
        raise HTTPException(status_code=400, detail=f"Invalid notion pageId: {page_id!r}")

    try:
        return await service.get_record_map(canonical)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except (NotionAPIError, httpx.HTTPError) as exc:
        log.error(f"Record map fetch failed for {canonical}: {exc}")
        raise HTTPException(status_code=502, detail=f"Notion API request failed: {exc}")
