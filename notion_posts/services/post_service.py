"""Post assembly: root page -> child pages -> ordered post records."""

from __future__ import annotations

import asyncio
import inspect
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

from notion_posts.core.config import Settings
from notion_posts.core.ids import to_uuid
from notion_posts.core.logging import get_logger, page_context
from notion_posts.core.results import Cancellation, Failure, Invalid, Success
from notion_posts.ingestion.batches import BatchFetcher
from notion_posts.ingestion.client import NotionClient
from notion_posts.ingestion.collaborators import (
    PageIdEnumerator,
    PostRecord,
    PropertyExtractor,
    extract_page_properties,
    get_all_page_ids,
)
from notion_posts.ingestion.normalizer import NormalizedRoot, normalize, unwrap
from notion_posts.ingestion.throttle import ThrottledInvoker

log = get_logger("post_service")

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def iso_millis(epoch_ms: Any) -> str:
    """Epoch milliseconds -> ``YYYY-MM-DDTHH:MM:SS.sssZ``; unusable input maps to the epoch."""
    try:
        moment = EPOCH + timedelta(milliseconds=float(epoch_ms or 0))
    except (TypeError, ValueError, OverflowError):
        moment = EPOCH
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _parse_moment(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        moment = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def sort_key(record: PostRecord) -> datetime:
    """Explicit ``date.start_date`` when present, otherwise ``createdTime``."""
    date = record.get("date")
    if isinstance(date, dict) and date.get("start_date"):
        moment = _parse_moment(date["start_date"])
        if moment is not None:
            return moment
    return _parse_moment(record.get("createdTime")) or EPOCH


def clean_page_ids(raw_ids: Any) -> List[str]:
    """Drop non-string/blank entries, canonicalize, keep first occurrence order."""
    if raw_ids is None or isinstance(raw_ids, (str, bytes, Mapping)) or not isinstance(raw_ids, Iterable):
        return []
    page_ids: List[str] = []
    seen = set()
    for raw in raw_ids:
        if not isinstance(raw, str) or not raw.strip():
            continue
        page_id = to_uuid(raw)
        if page_id not in seen:
            seen.add(page_id)
            page_ids.append(page_id)
    return page_ids


class PostAssembler:
    """Builds the post list for one root collection page.

    Stages run strictly in order: fetch root, normalize, enumerate children,
    fetch children in batches, extract properties, sort. Each stage reports a
    typed result; ``assemble`` is the only place that turns a failed run into
    an empty list.
    """

    def __init__(
        self,
        client: NotionClient,
        invoker: ThrottledInvoker,
        batch_fetcher: BatchFetcher,
        enumerator: PageIdEnumerator = get_all_page_ids,
        extractor: PropertyExtractor = extract_page_properties,
    ):
        self.client = client
        self.invoker = invoker
        self.batch_fetcher = batch_fetcher
        self.enumerator = enumerator
        self.extractor = extractor

    async def assemble(self, root_page_id: Any, cancellation: Optional[Cancellation] = None) -> List[PostRecord]:
        page = to_uuid(root_page_id) if isinstance(root_page_id, str) else None
        with page_context(page):
            try:
                outcome = await self._collect(root_page_id, cancellation)
            except asyncio.CancelledError:
                raise
            except Exception as exc:  # noqa: BLE001
                log.exception(f"Post assembly failed for {root_page_id!r}: {exc}")
                return []

            if isinstance(outcome, Success):
                return outcome.value
            log.warning(f"No posts for {root_page_id!r}: {outcome.describe()}")
            return []

    async def _collect(
        self, root_page_id: Any, cancellation: Optional[Cancellation]
    ) -> Success[List[PostRecord]] | Failure | Invalid:
        if not isinstance(root_page_id, str) or not root_page_id.strip():
            return Invalid("blank_page_id", "root page id is empty")

        # The API takes the id as given; lookups below use the dashed form
        fetched = await self.invoker.invoke(lambda: self.client.get_page(root_page_id), "getPage", cancellation)
        if not isinstance(fetched, Success):
            return fetched
        response_graph = fetched.value
        page_id = to_uuid(root_page_id)

        normalized = normalize(response_graph, page_id)
        if isinstance(normalized, Invalid):
            return normalized

        child_ids = clean_page_ids(self.enumerator(response_graph))
        if not child_ids:
            return Invalid("no_child_pages", f"collection {page_id} lists no pages")
        log.info(f"Fetching {len(child_ids)} pages for collection {page_id}")

        fetched_blocks = await self.batch_fetcher.fetch_in_batches(child_ids, cancellation)
        if not isinstance(fetched_blocks, Success):
            return fetched_blocks

        posts = await self._build_posts(child_ids, fetched_blocks.value, normalized)
        posts.sort(key=sort_key, reverse=True)
        log.info(f"Assembled {len(posts)}/{len(child_ids)} posts for {page_id}")
        return Success(posts)

    async def _build_posts(
        self, child_ids: List[str], blocks: Dict[str, Any], normalized: NormalizedRoot
    ) -> List[PostRecord]:
        posts: List[PostRecord] = []
        for page_id in child_ids:
            if page_id not in blocks:
                continue

            record = await self._extract(page_id, blocks, normalized.schema)
            if not record:
                continue

            block = unwrap(blocks[page_id]) or {}
            page_format = block.get("format") if isinstance(block.get("format"), dict) else {}
            record["createdTime"] = iso_millis(block.get("created_time"))
            record["fullWidth"] = bool(page_format.get("page_full_width", False))
            posts.append(record)
        return posts

    async def _extract(self, page_id: str, blocks: Dict[str, Any], schema: Dict[str, Any]) -> Optional[PostRecord]:
        try:
            record = self.extractor(page_id, blocks, schema)
            if inspect.isawaitable(record):
                record = await record
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001
            log.warning(f"Property extraction failed for {page_id}: {exc!r}")
            return None
        return dict(record) if isinstance(record, dict) else None


class PostService:
    """Wires configuration into the retrieval pipeline."""

    def __init__(self, settings: Settings, assembler: PostAssembler, client: NotionClient):
        self.settings = settings
        self.assembler = assembler
        self.client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "PostService":
        client = NotionClient(
            base_url=settings.NOTION_API_BASE_URL,
            token_v2=settings.NOTION_TOKEN_V2,
            active_user=settings.NOTION_ACTIVE_USER,
            timeout=settings.NOTION_REQUEST_TIMEOUT_SECONDS,
        )
        invoker = ThrottledInvoker(
            max_attempts=settings.RETRY_MAX_ATTEMPTS,
            initial_delay_ms=settings.RETRY_INITIAL_DELAY_MS,
        )
        fetcher = BatchFetcher(
            client,
            invoker,
            batch_size=settings.BATCH_SIZE,
            inter_batch_delay_ms=settings.BATCH_DELAY_MS,
        )
        return cls(settings, PostAssembler(client, invoker, fetcher), client)

    async def get_posts(self, page_id: Optional[str] = None) -> List[PostRecord]:
        root = page_id if page_id is not None else self.settings.NOTION_PAGE_ID
        cancellation = Cancellation.after(self.settings.NOTION_FETCH_TIMEOUT_SECONDS)
        return await self.assembler.assemble(root, cancellation)

    async def get_record_map(self, page_id: str) -> Dict[str, Any]:
        return await self.client.get_record_map(page_id)
