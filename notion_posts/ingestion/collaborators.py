"""Default page-id enumerator and property extractor.

Both are plain callables; the post assembler accepts any callable with the
same signature, so sites with their own schema conventions can swap them.
"""

from __future__ import annotations

from typing import Any, Awaitable, Dict, List, Mapping, Optional, Protocol, Union

from notion_posts.core.ids import to_uuid
from notion_posts.ingestion.normalizer import unwrap

PostRecord = Dict[str, Any]


class PageIdEnumerator(Protocol):
    def __call__(self, response_graph: Mapping[str, Any]) -> List[Any]: ...


class PropertyExtractor(Protocol):
    def __call__(
        self, page_id: str, blocks: Mapping[str, Any], schema: Mapping[str, Any]
    ) -> Union[Optional[PostRecord], Awaitable[Optional[PostRecord]]]: ...


def _view_block_ids(view: Any) -> List[Any]:
    if not isinstance(view, Mapping):
        return []
    if isinstance(view.get("blockIds"), list):
        return view["blockIds"]
    grouped = view.get("collection_group_results")
    if isinstance(grouped, Mapping) and isinstance(grouped.get("blockIds"), list):
        return grouped["blockIds"]
    return []


def get_all_page_ids(response_graph: Mapping[str, Any], view_id: Optional[str] = None) -> List[Any]:
    """Child page ids of the first collection, in view order, de-duplicated."""
    collection_query = response_graph.get("collection_query")
    if not isinstance(collection_query, Mapping) or not collection_query:
        return []
    views = next(iter(collection_query.values()))
    if not isinstance(views, Mapping):
        return []

    if view_id:
        return list(_view_block_ids(views.get(view_id)))

    page_ids: List[Any] = []
    for view in views.values():
        for block_id in _view_block_ids(view):
            if block_id not in page_ids:
                page_ids.append(block_id)
    return page_ids


def decoration_text(value: Any) -> str:
    """Flatten a rich-text decoration list (``[["text", [marks]], ...]``)."""
    if not isinstance(value, list):
        return ""
    return "".join(part[0] for part in value if isinstance(part, list) and part and isinstance(part[0], str))


def decoration_date(value: Any) -> Optional[Dict[str, Any]]:
    """First ``["d", {...}]`` date mark in a decoration list."""
    if not isinstance(value, list):
        return None
    for part in value:
        if not isinstance(part, list) or len(part) < 2 or not isinstance(part[1], list):
            continue
        for mark in part[1]:
            if isinstance(mark, list) and len(mark) > 1 and mark[0] == "d" and isinstance(mark[1], dict):
                return dict(mark[1])
    return None


def extract_page_properties(
    page_id: str, blocks: Mapping[str, Any], schema: Mapping[str, Any]
) -> Optional[PostRecord]:
    block = unwrap(blocks.get(to_uuid(page_id)))
    if not block or block.get("type") != "page":
        return None

    raw_properties = block.get("properties")
    if not isinstance(raw_properties, Mapping):
        raw_properties = {}

    record: PostRecord = {"id": to_uuid(page_id)}
    for property_id, definition in schema.items():
        if not isinstance(definition, Mapping) or not definition.get("name"):
            continue
        raw = raw_properties.get(property_id)
        if definition.get("type") == "date":
            date = decoration_date(raw)
            record[definition["name"]] = date
            if date and "date" not in record:
                record["date"] = date
        else:
            record[definition["name"]] = decoration_text(raw)
    return record
