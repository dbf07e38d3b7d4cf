# Services package
from notion_posts.services.post_service import PostAssembler, PostService

__all__ = [
    "PostAssembler",
    "PostService",
]
