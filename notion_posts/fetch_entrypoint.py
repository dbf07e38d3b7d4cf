"""Fetch entrypoint - Standalone script for assembling posts once.

Usage:
    python -m notion_posts.fetch_entrypoint                  # Use NOTION_PAGE_ID
    python -m notion_posts.fetch_entrypoint <page id|url>    # Explicit root page
"""

import asyncio
import json
import sys

from notion_posts.core.config import settings
from notion_posts.core.ids import parse_page_id
from notion_posts.core.logging import get_logger
from notion_posts.services.post_service import PostService

logger = get_logger("fetch_entrypoint")


async def fetch_posts(page_id: str) -> list:
    service = PostService.from_settings(settings)
    return await service.get_posts(page_id)


def main(argv=None):
    """Main entry point: print posts as JSON."""
    argv = sys.argv[1:] if argv is None else argv

    raw = argv[0] if argv else settings.NOTION_PAGE_ID
    page_id = parse_page_id(raw) if argv else raw
    if not page_id or not page_id.strip():
        logger.error(f"No usable Notion page id (got {raw!r}); pass one or set NOTION_PAGE_ID")
        sys.exit(1)

    logger.info(f"Fetching posts for {page_id}")
    posts = asyncio.run(fetch_posts(page_id))
    logger.info(f"Fetched {len(posts)} posts")

    print(json.dumps(posts, indent=2, ensure_ascii=False))
    return posts


if __name__ == "__main__":
    main()
