"""Notion page identifier helpers."""

from __future__ import annotations

import re
from typing import Any, Optional

_HEX_ID = re.compile(r"[0-9a-f]{32}")
_DASHED_ID = re.compile(r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}")


def to_uuid(page_id: str) -> str:
    """Canonical dashed form of a page id (``8-4-4-4-12``, lowercase).

    Values that are not 32 hex digits once dashes are removed are returned
    stripped but otherwise untouched.
    """
    compact = page_id.strip().replace("-", "").lower()
    if not _HEX_ID.fullmatch(compact):
        return page_id.strip()
    return f"{compact[:8]}-{compact[8:12]}-{compact[12:16]}-{compact[16:20]}-{compact[20:]}"


def parse_page_id(value: Any) -> Optional[str]:
    """Extract a canonical page id from a raw id, slug or Notion URL."""
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip().split("?", 1)[0].split("#", 1)[0].rstrip("/").lower()
    segment = text.rsplit("/", 1)[-1]

    dashed = _DASHED_ID.findall(segment)
    if dashed:
        return dashed[-1]
    # Slugs look like "Some-Title-<32 hex>"
    trailing = re.search(r"([0-9a-f]{32})$", segment)
    if trailing:
        return to_uuid(trailing.group(1))
    if _HEX_ID.fullmatch(segment.replace("-", "")):
        return to_uuid(segment)
    return None
