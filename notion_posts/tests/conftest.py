"""Shared fixtures: an in-memory Notion client and a sleep that records delays."""

from typing import Any, Dict, List, Optional, Set

import pytest

from notion_posts.ingestion.client import NotionAPIError

ROOT_ID = "0123456789abcdef0123456789abcdef"
ROOT_UUID = "01234567-89ab-cdef-0123-456789abcdef"
COLLECTION_ID = "c0ffee00-0000-0000-0000-000000000001"
VIEW_ID = "feed0000-0000-0000-0000-000000000002"

SCHEMA = {
    "title": {"name": "title", "type": "title"},
    "AbCd": {"name": "date", "type": "date"},
    "slug": {"name": "slug", "type": "text"},
}


def child_uuid(n: int) -> str:
    return f"00000000-0000-0000-0000-{n:012d}"


def page_block(page_id: str, title: str, created_ms: int, full_width: Optional[bool] = None, date: Optional[str] = None):
    block: Dict[str, Any] = {
        "id": page_id,
        "type": "page",
        "created_time": created_ms,
        "properties": {"title": [[title]], "slug": [[title.lower().replace(" ", "-")]]},
    }
    if full_width is not None:
        block["format"] = {"page_full_width": full_width}
    if date:
        block["properties"]["AbCd"] = [["‣", [["d", {"type": "date", "start_date": date}]]]]
    return block


def root_graph(child_ids: List[str], root_type: str = "collection_view_page", nested: bool = True) -> Dict[str, Any]:
    collection = {"id": COLLECTION_ID, "schema": SCHEMA}
    root = {"id": ROOT_UUID, "type": root_type, "collection_id": COLLECTION_ID, "view_ids": [VIEW_ID]}
    return {
        "collection": {COLLECTION_ID: {"role": "reader", "value": collection} if nested else collection},
        "block": {ROOT_UUID: {"role": "reader", "value": root} if nested else root},
        "collection_query": {COLLECTION_ID: {VIEW_ID: {"collection_group_results": {"blockIds": child_ids}}}},
    }


class FakeNotionClient:
    """Serves a fixed root graph and block map; selected batches always fail."""

    def __init__(
        self,
        graph: Optional[Dict[str, Any]] = None,
        blocks: Optional[Dict[str, Any]] = None,
        failing_batches: Optional[Set[int]] = None,
        page_error: Optional[Exception] = None,
    ):
        self.graph = graph or {}
        self.blocks = blocks or {}
        self.failing_batches = failing_batches or set()
        self.page_error = page_error
        self.page_calls: List[str] = []
        self.block_calls: List[List[str]] = []

    async def get_page(self, page_id: str) -> Dict[str, Any]:
        self.page_calls.append(page_id)
        if self.page_error is not None:
            raise self.page_error
        return self.graph

    async def get_blocks(self, block_ids: List[str]) -> Dict[str, Any]:
        self.block_calls.append(list(block_ids))
        batch_number = len({tuple(ids) for ids in self.block_calls})
        if batch_number in self.failing_batches:
            raise NotionAPIError("syncRecordValues", 502, "Bad Gateway")
        return {"recordMap": {"block": {i: {"value": self.blocks[i]} for i in block_ids if i in self.blocks}}}


class RecordingSleep:
    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def sleep():
    return RecordingSleep()
