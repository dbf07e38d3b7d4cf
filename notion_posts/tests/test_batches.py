"""Batch fetcher tests"""

import asyncio

import pytest

from notion_posts.core.results import CANCELLED, Cancellation, Failure, Success
from notion_posts.ingestion.batches import BatchFetcher, chunked
from notion_posts.ingestion.throttle import ThrottledInvoker
from notion_posts.tests.conftest import FakeNotionClient, child_uuid, page_block


@pytest.fixture
def ids():
    return [child_uuid(n) for n in range(1, 13)]


@pytest.fixture
def client(ids):
    return FakeNotionClient(blocks={i: page_block(i, f"Post {i[-2:]}", 1_000) for i in ids})


def make_fetcher(client, sleep, batch_size=5, max_attempts=2):
    invoker = ThrottledInvoker(max_attempts=max_attempts, initial_delay_ms=400, sleep=sleep)
    return BatchFetcher(client, invoker, batch_size=batch_size, inter_batch_delay_ms=400, sleep=sleep)


class TestBatchFetcher:
    """Test batching, pacing and partial failure isolation"""

    @pytest.mark.asyncio
    async def test_twelve_ids_make_three_batches(self, client, ids, sleep):
        """12 ids at batch size 5 -> batches of 5, 5, 2 in order"""
        result = await make_fetcher(client, sleep).fetch_in_batches(ids)

        assert isinstance(result, Success)
        assert [len(batch) for batch in client.block_calls] == [5, 5, 2]
        assert client.block_calls[0] == ids[:5]
        assert client.block_calls[2] == ids[10:]
        assert list(result.value) == ids

    @pytest.mark.asyncio
    async def test_failed_batch_is_skipped(self, ids, sleep):
        """A batch that exhausts retries leaves only its own ids missing"""
        client = FakeNotionClient(
            blocks={i: page_block(i, "Post", 1_000) for i in ids},
            failing_batches={2},
        )
        result = await make_fetcher(client, sleep, max_attempts=2).fetch_in_batches(ids)

        assert isinstance(result, Success)
        assert set(result.value) == set(ids[:5]) | set(ids[10:])
        for missing in ids[5:10]:
            assert missing not in result.value

    @pytest.mark.asyncio
    async def test_delay_after_every_batch(self, client, ids, sleep):
        """Inter-batch delay follows each batch, including the last"""
        await make_fetcher(client, sleep).fetch_in_batches(ids)
        assert sleep.calls == [0.4, 0.4, 0.4]

    @pytest.mark.asyncio
    async def test_empty_id_list(self, client, sleep):
        result = await make_fetcher(client, sleep).fetch_in_batches([])

        assert isinstance(result, Success)
        assert result.value == {}
        assert client.block_calls == []
        assert sleep.calls == []

    @pytest.mark.asyncio
    async def test_single_id(self, client, ids, sleep):
        result = await make_fetcher(client, sleep).fetch_in_batches(ids[:1])

        assert isinstance(result, Success)
        assert list(result.value) == ids[:1]
        assert client.block_calls == [ids[:1]]

    @pytest.mark.asyncio
    async def test_earlier_batches_win_on_duplicate_keys(self, sleep):
        """Keys already merged are never overwritten by later batches"""
        first, second = child_uuid(1), child_uuid(2)

        class OverlappingClient(FakeNotionClient):
            async def get_blocks(self, block_ids):
                self.block_calls.append(list(block_ids))
                tag = len(self.block_calls)
                return {"recordMap": {"block": {first: {"value": {"id": first, "batch": tag}}, second: {"value": {"id": second, "batch": tag}}}}}

        client = OverlappingClient()
        result = await make_fetcher(client, sleep, batch_size=1).fetch_in_batches([first, second])

        assert result.value[first]["value"]["batch"] == 1
        assert result.value[second]["value"]["batch"] == 1

    @pytest.mark.asyncio
    async def test_undashed_keys_are_canonicalized(self, sleep):
        page_id = child_uuid(7)

        class UndashedClient(FakeNotionClient):
            async def get_blocks(self, block_ids):
                return {"recordMap": {"block": {page_id.replace("-", ""): {"value": {"id": page_id}}}}}

        result = await make_fetcher(UndashedClient(), sleep).fetch_in_batches([page_id])
        assert page_id in result.value

    @pytest.mark.asyncio
    async def test_cancelled_before_batch(self, client, ids, sleep):
        """Cancellation is checked before each batch"""
        event = asyncio.Event()

        async def cancel_after_first(seconds):
            sleep.calls.append(seconds)
            event.set()

        invoker = ThrottledInvoker(sleep=sleep)
        fetcher = BatchFetcher(client, invoker, batch_size=5, sleep=cancel_after_first)
        result = await fetcher.fetch_in_batches(ids, Cancellation(event=event))

        assert isinstance(result, Failure)
        assert result.reason == CANCELLED
        assert len(client.block_calls) == 1

    def test_invalid_batch_size(self, client, sleep):
        with pytest.raises(ValueError):
            make_fetcher(client, sleep, batch_size=0)


class TestChunked:
    def test_preserves_order(self):
        assert chunked(["a", "b", "c", "d", "e"], 2) == [["a", "b"], ["c", "d"], ["e"]]

    def test_empty(self):
        assert chunked([], 5) == []
