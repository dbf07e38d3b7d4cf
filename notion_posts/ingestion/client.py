"""Notion content API client (unofficial v3 endpoints)."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple

import httpx

from notion_posts.core.logging import get_logger
from notion_posts.ingestion.normalizer import unwrap

log = get_logger("ingestion.notion_client")

COLLECTION_VIEW_TYPES = ("collection_view_page", "collection_view")
RECORD_TABLES = ("block", "collection", "collection_view", "notion_user", "space")


class NotionAPIError(Exception):
    """Non-2xx response from the Notion API."""

    def __init__(self, endpoint: str, status_code: int, body: str = ""):
        self.endpoint = endpoint
        self.status_code = status_code
        self.body = body
        super().__init__(f"Notion API {endpoint} returned HTTP {status_code}: {body[:200]}")


class NotionClient:
    """Stateless client value; every call opens its own short-lived connection.

    Usage:
        client = NotionClient(token_v2=settings.NOTION_TOKEN_V2)
        graph = await client.get_page(page_id)
        blocks = await client.get_blocks([child_id, ...])
    """

    def __init__(
        self,
        base_url: str = "https://www.notion.so/api/v3",
        token_v2: Optional[str] = None,
        active_user: Optional[str] = None,
        timeout: float = 15.0,
        max_page_chunks: int = 10,
        collection_limit: int = 999,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token_v2 = token_v2
        self.active_user = active_user
        self.timeout = timeout
        self.max_page_chunks = max_page_chunks
        self.collection_limit = collection_limit
        self.transport = transport

    @property
    def headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token_v2:
            headers["Cookie"] = f"token_v2={self.token_v2}"
        if self.active_user:
            headers["x-notion-active-user-header"] = self.active_user
        return headers

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------
    async def get_page(self, page_id: str) -> Dict[str, Any]:
        """Fetch a page's record map, including collection query results."""
        async with self._client() as client:
            record_map = await self._load_page_chunks(client, page_id)
            await self._load_collections(client, record_map)
        return record_map

    async def get_blocks(self, block_ids: List[str]) -> Dict[str, Any]:
        """Fetch raw block records for ``block_ids``: ``{"recordMap": {"block": {...}}}``."""
        body = {"requests": [{"table": "block", "id": block_id, "version": -1} for block_id in block_ids]}
        async with self._client() as client:
            data = await self._post(client, "syncRecordValues", body)
        record_map = data.get("recordMap") or {}
        return {"recordMap": {"block": record_map.get("block") or {}}}

    async def get_record_map(self, page_id: Any) -> Dict[str, Any]:
        """Validated single page fetch used by the record-map endpoint."""
        if not isinstance(page_id, str) or not page_id.strip():
            raise ValueError(f'Invalid notion pageId: "{page_id}"')

        record_map = await self.get_page(page_id)
        if not isinstance(record_map, dict):
            raise ValueError(f'Invalid Notion API response for pageId: "{page_id}"')
        return record_map

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------
    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.timeout,
            transport=self.transport,
        )

    async def _post(self, client: httpx.AsyncClient, endpoint: str, body: Dict[str, Any]) -> Dict[str, Any]:
        resp = await client.post(f"/{endpoint}", json=body)
        if resp.status_code >= 400:
            raise NotionAPIError(endpoint, resp.status_code, resp.text)
        try:
            data = resp.json()
        except ValueError:
            # Proxies and maintenance pages answer with HTML
            raise NotionAPIError(endpoint, resp.status_code, "response body is not JSON")
        if not isinstance(data, dict):
            raise NotionAPIError(endpoint, resp.status_code, "response body is not an object")
        return data

    async def _load_page_chunks(self, client: httpx.AsyncClient, page_id: str) -> Dict[str, Any]:
        record_map: Dict[str, Any] = {}
        cursor: Dict[str, Any] = {"stack": []}

        for chunk_number in range(self.max_page_chunks):
            data = await self._post(
                client,
                "loadPageChunk",
                {
                    "pageId": page_id,
                    "limit": 100,
                    "cursor": cursor,
                    "chunkNumber": chunk_number,
                    "verticalColumns": False,
                },
            )
            merge_record_map(record_map, data.get("recordMap") or {})
            cursor = data.get("cursor") or {}
            if not cursor.get("stack"):
                break
        else:
            log.warning(f"Stopped paging {page_id} after {self.max_page_chunks} chunks")

        return record_map

    async def _load_collections(self, client: httpx.AsyncClient, record_map: Dict[str, Any]) -> None:
        collection_query = record_map.setdefault("collection_query", {})

        for collection_id, view_id in _collection_views(record_map.get("block") or {}):
            data = await self._post(
                client,
                "queryCollection",
                {
                    "collection": {"id": collection_id},
                    "collectionView": {"id": view_id},
                    "loader": {
                        "type": "reducer",
                        "reducers": {
                            "collection_group_results": {"type": "results", "limit": self.collection_limit},
                        },
                        "searchQuery": "",
                        "userTimeZone": "UTC",
                    },
                },
            )
            result = data.get("result") or {}
            collection_query.setdefault(collection_id, {})[view_id] = result.get("reducerResults") or {}
            merge_record_map(record_map, data.get("recordMap") or {})


def merge_record_map(target: Dict[str, Any], incoming: Dict[str, Any]) -> None:
    """Merge record tables from ``incoming`` into ``target`` (first write wins)."""
    for table in RECORD_TABLES:
        records = incoming.get(table)
        if not isinstance(records, dict):
            continue
        bucket = target.setdefault(table, {})
        for key, value in records.items():
            bucket.setdefault(key, value)


def _collection_views(blocks: Dict[str, Any]) -> Iterable[Tuple[str, str]]:
    seen = set()
    for wrapper in blocks.values():
        block = unwrap(wrapper)
        if not block or block.get("type") not in COLLECTION_VIEW_TYPES:
            continue
        collection_id = block.get("collection_id")
        if not collection_id:
            continue
        for view_id in block.get("view_ids") or []:
            if (collection_id, view_id) not in seen:
                seen.add((collection_id, view_id))
                yield collection_id, view_id
