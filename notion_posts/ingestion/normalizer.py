"""Response graph normalization.

Notion record wrappers arrive in two shapes depending on API version: the
record itself, or the record nested once under ``value``::

    {"id": "...", "type": "page", ...}             # flat
    {"role": "reader", "value": {"id": "...", ...}}  # nested

Each wrapper is classified exactly once and callers work with the payload.
Only one level of nesting is recognised; anything that is not a mapping is
rejected.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

from notion_posts.core.ids import to_uuid
from notion_posts.core.results import Invalid

ALLOWED_ROOT_TYPES = frozenset({"collection_view_page", "collection_view"})

NO_COLLECTION = "no_collection"
MALFORMED_COLLECTION = "malformed_collection"
MISSING_BLOCK = "missing_block"
WRONG_TYPE = "wrong_type"


@dataclass(frozen=True)
class Flat:
    payload: Dict[str, Any]


@dataclass(frozen=True)
class Nested:
    payload: Dict[str, Any]


Wrapper = Union[Flat, Nested]


@dataclass(frozen=True)
class NormalizedRoot:
    schema: Dict[str, Any]
    root_metadata: Dict[str, Any]


def classify(wrapper: Any) -> Optional[Wrapper]:
    """Resolve a wrapper to ``Nested`` (tried first) or ``Flat``; ``None`` if neither."""
    if not isinstance(wrapper, Mapping):
        return None
    inner = wrapper.get("value")
    if isinstance(inner, Mapping):
        return Nested(dict(inner))
    return Flat(dict(wrapper))


def unwrap(wrapper: Any) -> Optional[Dict[str, Any]]:
    shape = classify(wrapper)
    return shape.payload if shape is not None else None


def normalize(response_graph: Mapping[str, Any], root_page_id: str) -> Union[NormalizedRoot, Invalid]:
    """Pull the collection schema and root block metadata out of a page response."""
    collections = response_graph.get("collection") if isinstance(response_graph, Mapping) else None
    if not isinstance(collections, Mapping) or not collections:
        return Invalid(NO_COLLECTION, "response has no collection records")

    collection = unwrap(next(iter(collections.values())))
    if collection is None:
        return Invalid(MALFORMED_COLLECTION, "collection record is not an object")
    schema = collection.get("schema")
    if not isinstance(schema, Mapping):
        schema = {}

    blocks = response_graph.get("block")
    canonical_id = to_uuid(root_page_id)
    if not isinstance(blocks, Mapping) or blocks.get(canonical_id) is None:
        return Invalid(MISSING_BLOCK, f"no block for page {canonical_id}")

    root = unwrap(blocks[canonical_id])
    if root is None:
        return Invalid(WRONG_TYPE, f"block {canonical_id} is not an object")
    if root.get("type") not in ALLOWED_ROOT_TYPES:
        return Invalid(WRONG_TYPE, f"block {canonical_id} has type {root.get('type')!r}")

    return NormalizedRoot(schema=dict(schema), root_metadata=root)
