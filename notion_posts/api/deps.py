"""API dependencies"""

from notion_posts.core.config import settings
from notion_posts.services.post_service import PostService


def get_post_service() -> PostService:
    """Post service dependency (built per request; the client holds no connections)"""
    return PostService.from_settings(settings)
