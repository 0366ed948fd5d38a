"""Unit tests for progressive retrieval through PagedSearch."""

import asyncio
from typing import List

import pytest

from osclient.core.errors import TransportError
from osclient.core.models import SearchResult
from osclient.search.paginator import PagedSearch, Paginator
from tests.fakes import PagedFeedServer, paged_url


async def collect(handle: PagedSearch) -> List[SearchResult]:
    return [page async for page in handle]


class TestProgressiveRetrieval:
    """Tests for page delivery and the combined result."""

    @pytest.mark.asyncio
    async def test_all_pages_emitted(self) -> None:
        server = PagedFeedServer(51, max_page_size=25)
        handle = Paginator(paged_url(), transport=server).search_first_records()

        pages = await collect(handle)
        result = await handle.result()

        assert [page.start_index for page in pages] == [1, 26, 51]
        assert len(result.records) == 51
        assert handle.done()
        assert not handle.cancelled()

    @pytest.mark.asyncio
    async def test_page_order_preserved(self) -> None:
        server = PagedFeedServer(75, max_page_size=25, delays={26: 0.05})
        handle = Paginator(paged_url(), transport=server).search_first_records()

        pages = await collect(handle)

        assert server.completed == [1, 51, 26]
        assert [page.start_index for page in pages] == [1, 26, 51]

    @pytest.mark.asyncio
    async def test_arrival_order(self) -> None:
        server = PagedFeedServer(75, max_page_size=25, delays={26: 0.05})
        handle = Paginator(paged_url(), transport=server).search_first_records(preserve_order=False)

        pages = await collect(handle)
        result = await handle.result()

        assert [page.start_index for page in pages] == [1, 51, 26]
        # the combined result is always in page order
        assert [record.id for record in result.records][25:27] == ["r26", "r27"]

    @pytest.mark.asyncio
    async def test_max_count(self) -> None:
        server = PagedFeedServer(100, max_page_size=25)
        handle = Paginator(paged_url(), transport=server).search_first_records(40)

        result = await handle

        assert len(result.records) == 40
        assert server.counts == [40, 15]

    @pytest.mark.asyncio
    async def test_result_without_iterating(self) -> None:
        handle = Paginator(paged_url(), transport=PagedFeedServer(30, max_page_size=25)).search_first_records()

        result = await handle.result()

        assert len(result.records) == 30

    @pytest.mark.asyncio
    async def test_iterating_after_completion(self) -> None:
        handle = Paginator(paged_url(), transport=PagedFeedServer(10)).search_first_records()
        await handle.result()

        assert len(await collect(handle)) == 1
        assert await collect(handle) == []


class TestResumedSession:
    """Known page size and total skip the probing request."""

    @pytest.mark.asyncio
    async def test_continues_after_base_offset(self) -> None:
        server = PagedFeedServer(51, max_page_size=25)
        paginator = Paginator(
            paged_url(),
            transport=server,
            base_offset=25,
            server_items_per_page=25,
            total_results=51,
        )

        handle = paginator.search_first_records(200)
        pages = await collect(handle)
        result = await handle.result()

        assert server.start_indices == [26, 51]
        assert server.counts == [25, 1]
        assert len(pages) == 2
        assert len(result.records) == 26
        assert result.records[0].id == "r26"

    @pytest.mark.asyncio
    async def test_probe_without_max_count(self) -> None:
        server = PagedFeedServer(51, max_page_size=25)
        paginator = Paginator(paged_url(), transport=server, server_items_per_page=25, total_results=51)

        await paginator.search_first_records().result()

        assert server.start_indices[0] == 1


class TestProgressiveErrors:
    """The first failure ends the search."""

    @pytest.mark.asyncio
    async def test_error_raised_once(self) -> None:
        server = PagedFeedServer(75, max_page_size=25, failures={26})
        handle = Paginator(paged_url(), transport=server).search_first_records()

        pages: List[SearchResult] = []
        with pytest.raises(TransportError):
            async for page in handle:
                pages.append(page)

        assert [page.start_index for page in pages] == [1]
        with pytest.raises(TransportError):
            await handle.result()
        assert handle.done()

    @pytest.mark.asyncio
    async def test_late_pages_discarded(self) -> None:
        server = PagedFeedServer(75, max_page_size=25, failures={26}, delays={51: 0.05})
        handle = Paginator(paged_url(), transport=server).search_first_records(preserve_order=False)

        pages: List[SearchResult] = []
        with pytest.raises(TransportError):
            async for page in handle:
                pages.append(page)
        await asyncio.sleep(0.1)

        assert 51 in server.completed
        assert [page.start_index for page in pages] == [1]

    @pytest.mark.asyncio
    async def test_first_page_failure(self) -> None:
        server = PagedFeedServer(75, max_page_size=25, failures={1})
        handle = Paginator(paged_url(), transport=server).search_first_records()

        with pytest.raises(TransportError):
            await handle.result()
        assert len(server.requests) == 1


class TestCancellation:
    """Tests for cancelling a progressive search."""

    @pytest.mark.asyncio
    async def test_cancel_in_flight_requests(self) -> None:
        server = PagedFeedServer(75, max_page_size=25, delays={26: 1.0, 51: 1.0})
        handle = Paginator(paged_url(), transport=server).search_first_records()

        pages: List[SearchResult] = []
        async for page in handle:
            pages.append(page)
            assert handle.cancel()

        assert len(pages) == 1
        assert handle.cancelled()
        assert not handle.cancel()
        with pytest.raises(asyncio.CancelledError):
            await handle.result()
        await asyncio.sleep(0)
        assert server.completed == [1]

    @pytest.mark.asyncio
    async def test_cancel_before_first_page(self) -> None:
        server = PagedFeedServer(75, max_page_size=25, delays={1: 1.0})
        handle = Paginator(paged_url(), transport=server).search_first_records()
        await asyncio.sleep(0)

        handle.cancel()

        assert await collect(handle) == []
        assert server.completed == []


def test_requires_running_loop() -> None:
    paginator = Paginator(paged_url(), transport=PagedFeedServer(10))

    with pytest.raises(RuntimeError):
        paginator.search_first_records()
