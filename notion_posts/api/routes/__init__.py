from notion_posts.api.routes.health import router as health_router
from notion_posts.api.routes.pages import router as pages_router
from notion_posts.api.routes.posts import router as posts_router

__all__ = ["health_router", "pages_router", "posts_router"]
