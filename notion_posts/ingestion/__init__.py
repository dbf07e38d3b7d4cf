from notion_posts.ingestion.batches import BatchFetcher
from notion_posts.ingestion.client import NotionAPIError, NotionClient
from notion_posts.ingestion.normalizer import normalize
from notion_posts.ingestion.throttle import ThrottledInvoker

__all__ = [
    "BatchFetcher",
    "NotionAPIError",
    "NotionClient",
    "ThrottledInvoker",
    "normalize",
]
