"""Post routes - Ordered posts assembled from the configured Notion collection."""

import time
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from notion_posts.api.deps import get_post_service
from notion_posts.core.ids import parse_page_id
from notion_posts.core.logging import get_logger
from notion_posts.schemas.api import PostOut, PostsResponse
from notion_posts.services.post_service import PostService

router = APIRouter(prefix="/posts", tags=["posts"])
log = get_logger("posts_routes")


@router.get("", response_model=PostsResponse)
async def get_posts(
    page_id: Optional[str] = Query(None, description="Root collection page (defaults to NOTION_PAGE_ID)"),
    service: PostService = Depends(get_post_service),
):
    """
    Get posts from the root collection page, newest first.

    An empty list means nothing could be fetched, not necessarily that the
    collection is empty; the cause is in the service logs.

    Includes request metadata (request_id, latency_ms).
    """
    start = time.perf_counter()
    request_id = str(uuid.uuid4())

    if page_id is None:
        root = service.settings.NOTION_PAGE_ID
    else:
        root = parse_page_id(page_id)
        if root is None:
            raise HTTPException(status_code=400, detail=f"Invalid notion pageId: {page_id!r}")

    posts = await service.get_posts(root)

    latency_ms = int((time.perf_counter() - start) * 1000)
    log.info(f"request={request_id} page={root} posts={len(posts)} latency_ms={latency_ms}")

    return PostsResponse(
        request_id=request_id,
        api_latency_ms=latency_ms,
        page_id=root,
        count=len(posts),
        data=[PostOut.model_validate(p) for p in posts],
    )
