"""Paced, batched block fetching."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Sequence

from notion_posts.core.ids import to_uuid
from notion_posts.core.logging import get_logger
from notion_posts.core.results import CANCELLED, Cancellation, Failure, Success, is_cancelled
from notion_posts.ingestion.client import NotionClient
from notion_posts.ingestion.throttle import Sleep, ThrottledInvoker

log = get_logger("ingestion.batches")


def chunked(items: Sequence[str], size: int) -> List[List[str]]:
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


class BatchFetcher:
    """Fetches child blocks ``batch_size`` ids at a time, one batch after another.

    A batch that exhausts its retries is logged and left out of the result;
    the remaining batches still run.
    """

    def __init__(
        self,
        client: NotionClient,
        invoker: ThrottledInvoker,
        batch_size: int = 5,
        inter_batch_delay_ms: int = 400,
        sleep: Sleep = asyncio.sleep,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.client = client
        self.invoker = invoker
        self.batch_size = batch_size
        self.inter_batch_delay_ms = inter_batch_delay_ms
        self.sleep = sleep

    async def fetch_in_batches(
        self,
        page_ids: Sequence[str],
        cancellation: Optional[Cancellation] = None,
    ) -> Success[Dict[str, Any]] | Failure:
        blocks: Dict[str, Any] = {}
        batches = chunked(page_ids, self.batch_size)

        for index, batch in enumerate(batches, start=1):
            label = f"getBlocks[{index}/{len(batches)}]"
            if is_cancelled(cancellation):
                log.warning(f"{label}: cancelled with {len(blocks)} blocks fetched")
                return Failure(label, CANCELLED)

            result = await self.invoker.invoke(
                lambda batch=batch: self.client.get_blocks(batch),
                label,
                cancellation,
            )
            if isinstance(result, Success):
                added = self._merge(blocks, result.value)
                log.info(f"{label}: {added}/{len(batch)} blocks")
            elif result.reason == CANCELLED:
                return result
            else:
                log.error(f"{label}: skipping {len(batch)} pages ({result.describe()})")

            await self.sleep(self.inter_batch_delay_ms / 1000)

        return Success(blocks)

    @staticmethod
    def _merge(blocks: Dict[str, Any], response: Any) -> int:
        record_map = response.get("recordMap") if isinstance(response, dict) else None
        incoming = record_map.get("block") if isinstance(record_map, dict) else None
        if not isinstance(incoming, dict):
            return 0

        added = 0
        for block_id, wrapper in incoming.items():
            key = to_uuid(block_id)
            if key not in blocks:
                blocks[key] = wrapper
                added += 1
        return added
