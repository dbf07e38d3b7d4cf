from contextlib import asynccontextmanager

from fastapi import FastAPI

from notion_posts.api.routes import health_router, pages_router, posts_router
from notion_posts.core.config import settings
from notion_posts.core.logging import get_logger

log = get_logger("app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info(f"Starting application in {settings.ENV.upper()} mode")
    if settings.is_production:
        log.info("Production mode: Debug disabled, docs disabled, stricter logging")
    else:
        log.info("Development mode: Debug enabled, docs available")

    if settings.has_root_page:
        log.info(f"Serving posts from Notion page {settings.NOTION_PAGE_ID}")
    else:
        log.warning("NOTION_PAGE_ID is not set; /posts will return an empty list")

    log.info(
        f"Retry policy: attempts={settings.RETRY_MAX_ATTEMPTS} base_delay={settings.RETRY_INITIAL_DELAY_MS}ms "
        f"batch_size={settings.BATCH_SIZE} batch_delay={settings.BATCH_DELAY_MS}ms"
    )

    yield

    log.info("Application shutdown complete")


app = FastAPI(
    title="Notion Posts",
    description="Ordered blog posts assembled from a Notion collection page",
    version="1.0.0",
    lifespan=lifespan,
    # Disable docs in production
    docs_url="/docs" if settings.docs_enabled else None,
    redoc_url="/redoc" if settings.docs_enabled else None,
    openapi_url="/openapi.json" if settings.docs_enabled else None,
    debug=settings.debug_enabled,
)


app.include_router(posts_router)
app.include_router(pages_router)
app.include_router(health_router)
