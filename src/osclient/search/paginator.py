"""Paged retrieval of OpenSearch result sets.

The ``Paginator`` learns the page size the server actually uses from the
first response, then requests all further pages concurrently and combines
them in page order. ``Paginator.search_first_records`` returns a
``PagedSearch`` handle for progressive retrieval:

    >>> progress = paginator.search_first_records(100)
    >>> async for page in progress:
    ...     print(len(page.records))
    >>> result = await progress.result()
"""

from __future__ import annotations

import asyncio
import math
from typing import (
    Any,
    AsyncIterator,
    Awaitable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
)

from ..core.models import SearchResult
from ..core.url import Url
from ..formats import FormatRegistry
from ..utils.logging import get_logger
from .search import search
from .transport import Transport

logger = get_logger(__name__)

PageRequest = Tuple[int, int]


def combine_pages(pages: Sequence[SearchResult]) -> SearchResult:
    """Concatenate the records of ``pages``, keeping the paging figures of the first."""
    first = pages[0]
    return SearchResult(
        total_results=first.total_results,
        start_index=first.start_index,
        items_per_page=first.items_per_page,
        query=first.query,
        links=first.links,
        records=[record for page in pages for record in page.records],
    )


async def gather_pages(coroutines: Iterable[Awaitable[SearchResult]]) -> List[SearchResult]:
    """Run page fetches concurrently; on the first failure cancel the rest and re-raise."""
    tasks = [asyncio.ensure_future(c) for c in coroutines]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        raise


class Paginator:
    """Fetch the pages of one search on one Url.

    The server side page size and the total result count are learned from the
    first response and kept for the lifetime of the paginator. Both can be
    passed in to continue an earlier session without probing again.

    Args:
        url: The Url to perform all requests on.
        parameters: Search parameters, apart from paging.
        transport: Transport used for all requests.
        registry: Format parsers for the responses.
        preferred_items_per_page: Upper bound for the page size.
        prefer_start_index: Page with ``startIndex`` (default) or ``startPage``.
        base_offset: Number of records to skip, e.g. those of an earlier session.
        server_items_per_page: Page size known from an earlier session.
        total_results: Result count known from an earlier session.
        search_options: Further keyword arguments for ``search``.
    """

    def __init__(
        self,
        url: Url,
        parameters: Optional[Mapping[str, Any]] = None,
        *,
        transport: Transport,
        registry: Optional[FormatRegistry] = None,
        preferred_items_per_page: Optional[int] = None,
        prefer_start_index: bool = True,
        base_offset: int = 0,
        server_items_per_page: Optional[int] = None,
        total_results: Optional[int] = None,
        search_options: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.url = url
        self.parameters: Dict[str, Any] = dict(parameters or {})
        self.transport = transport
        self.registry = registry
        self.preferred_items_per_page = preferred_items_per_page
        self.prefer_start_index = prefer_start_index
        self.base_offset = base_offset
        self.server_items_per_page = server_items_per_page
        self.total_results = total_results
        self.search_options: Dict[str, Any] = dict(search_options or {})

    def __repr__(self) -> str:
        return (
            f"<Paginator url={self.url.url} page_size={self.get_actual_page_size()} "
            f"total_results={self.total_results}>"
        )

    def _set_paging_value(self, parameters: Dict[str, Any], type: str, value: int) -> None:
        parameter = self.url.get_parameter(type)
        if parameter is None:
            return
        parameters.pop(parameter.name, None)
        parameters[type] = value

    def page_parameters(self, page_index: int = 0, max_count: Optional[int] = None) -> Dict[str, Any]:
        """Search parameters for the given page, including count and paging values.

        Paging values are only added for parameter types the Url declares.
        """
        parameters = dict(self.parameters)
        page_size = self.get_actual_page_size()

        count = None
        if page_size and max_count:
            count = min(max_count, page_size)
        elif page_size:
            count = page_size
        elif max_count:
            count = max_count
        if count is not None:
            self._set_paging_value(parameters, "count", count)

        if self.prefer_start_index:
            offset = 0 if page_size is None else page_size * page_index
            self._set_paging_value(
                parameters, "startIndex", self.base_offset + offset + self.url.index_offset
            )
        else:
            self._set_paging_value(parameters, "startPage", page_index + self.url.page_offset)
        return parameters

    async def fetch_page(self, page_index: int = 0, max_count: Optional[int] = None) -> SearchResult:
        """Fetch a single page and remember the paging figures of the response."""
        parameters = self.page_parameters(page_index, max_count)
        logger.debug("Fetching page", extra={"page_index": page_index, "max_count": max_count})
        result = await search(
            self.url,
            parameters,
            transport=self.transport,
            registry=self.registry,
            **self.search_options,
        )
        if result.total_results is not None:
            self.total_results = result.total_results
        if not self.server_items_per_page and result.items_per_page:
            self.server_items_per_page = result.items_per_page
        return result

    async def fetch_all_pages(self) -> List[SearchResult]:
        """Fetch every page of the result set.

        The first page is fetched alone to learn page size and result count,
        all other pages are then requested at once.
        """
        first_page = await self.fetch_page(0)
        page_count = self.get_page_count() or 0
        logger.info("Fetching all pages", extra={"page_count": page_count, "total_results": self.total_results})
        rest = await gather_pages(self.fetch_page(i) for i in range(1, page_count))
        return [first_page, *rest]

    async def fetch_all_records(self) -> SearchResult:
        """All records of the result set in one ``SearchResult``."""
        return combine_pages(await self.fetch_all_pages())

    def remaining_page_requests(
        self,
        first_page: SearchResult,
        max_count: Optional[int] = None,
        first_index: int = 1,
    ) -> List[PageRequest]:
        """``(page_index, count)`` pairs needed to cover ``max_count`` records.

        The count of the last page is truncated so that no more than
        ``max_count`` records are requested.
        """
        total = first_page.total_results
        page_size = self.get_actual_page_size()
        if total is None or not page_size:
            return []

        if first_page.start_index is not None:
            consumed = max(first_page.start_index - self.url.index_offset, 0)
        else:
            consumed = self.base_offset
        available = max(total - consumed, 0)
        used = min(max_count, available) if max_count else available

        requests = []
        for index in range(first_index, math.ceil(used / page_size)):
            count = page_size
            if page_size * (index + 1) > used:
                count = used - page_size * index
            requests.append((index, count))
        return requests

    async def fetch_first_records(self, max_count: int) -> SearchResult:
        """The first ``max_count`` records of the result set in one ``SearchResult``."""
        first_page = await self.fetch_page(0, max_count)
        if first_page.total_results is None or len(first_page.records) >= first_page.total_results:
            return first_page

        requests = self.remaining_page_requests(first_page, max_count)
        if not requests:
            return first_page
        rest = await gather_pages(self.fetch_page(index, count) for index, count in requests)
        return combine_pages([first_page, *rest])

    def search_first_records(self, max_count: Optional[int] = None, preserve_order: bool = True) -> "PagedSearch":
        """Start a progressive search and return its handle immediately.

        Must be called from a running event loop.

        Args:
            max_count: Maximum number of records, all records when omitted.
            preserve_order: Deliver pages in page order instead of arrival order.
        """
        return PagedSearch(self, max_count, preserve_order)

    def can_resume(self) -> bool:
        """Whether page size and result count are already known."""
        return self.server_items_per_page is not None and self.total_results is not None

    def virtual_first_page(self) -> SearchResult:
        """A record-less page carrying the known paging figures of a resumed session."""
        return SearchResult(
            total_results=self.total_results,
            start_index=self.base_offset + self.url.index_offset,
            items_per_page=self.server_items_per_page,
        )

    def get_actual_page_size(self) -> Optional[int]:
        """The page size used for requests, ``None`` when still unknown."""
        if self.preferred_items_per_page and self.server_items_per_page:
            return min(self.preferred_items_per_page, self.server_items_per_page)
        if self.server_items_per_page:
            return self.server_items_per_page
        if self.preferred_items_per_page:
            return self.preferred_items_per_page

        count_parameter = self.url.get_parameter("count")
        if count_parameter is not None:
            if count_parameter.max_exclusive is not None:
                return int(count_parameter.max_exclusive) - 1
            if count_parameter.max_inclusive:
                return int(count_parameter.max_inclusive)
        return None

    def get_page_count(self) -> Optional[int]:
        """Number of pages, known once the result count is known."""
        if not self.total_results:
            return self.total_results
        page_size = self.get_actual_page_size()
        if not page_size:
            return None
        return math.ceil(self.total_results / page_size)


def _consume_exception(future: asyncio.Future) -> None:
    if not future.cancelled():
        future.exception()


class PagedSearch:
    """Handle on a progressive search started by ``Paginator.search_first_records``.

    Iterate asynchronously to receive the pages as they become available (in
    page order when ``preserve_order`` is set, in arrival order otherwise),
    await ``result()`` for all pages combined in page order. The first failing
    request ends the search: iteration raises the error, ``result()`` raises
    it too, and later results are discarded. ``cancel()`` cancels every request
    still in flight and ends iteration.
    """

    def __init__(self, paginator: Paginator, max_count: Optional[int] = None, preserve_order: bool = True) -> None:
        loop = asyncio.get_running_loop()
        self.paginator = paginator
        self.max_count = max_count
        self.preserve_order = preserve_order
        self._events: asyncio.Queue = asyncio.Queue()
        self._result: asyncio.Future = loop.create_future()
        self._result.add_done_callback(_consume_exception)
        self._tasks: List[asyncio.Task] = []
        self._finished = False
        self._cancelled = False
        self._driver = loop.create_task(self._run())

    def __repr__(self) -> str:
        return f"<PagedSearch requests={len(self._tasks)} finished={self._finished} cancelled={self._cancelled}>"

    def __aiter__(self) -> AsyncIterator[SearchResult]:
        return self._iterate()

    def __await__(self):
        return self.result().__await__()

    async def _iterate(self) -> AsyncIterator[SearchResult]:
        while True:
            kind, payload = await self._events.get()
            if kind == "page":
                yield payload
                continue
            # terminal events stay queued so later iterations end as well
            self._events.put_nowait((kind, payload))
            if kind == "error":
                raise payload
            return

    async def result(self) -> SearchResult:
        """The combined result; raises the search error or ``CancelledError``."""
        return await asyncio.shield(self._result)

    def done(self) -> bool:
        return self._finished

    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> bool:
        """Cancel all requests in flight. Returns ``False`` if the search already ended."""
        if self._finished:
            return False
        self._finished = True
        self._cancelled = True
        logger.info("Progressive search cancelled", extra={"requests": len(self._tasks)})
        for task in self._tasks:
            task.cancel()
        self._driver.cancel()
        self._events.put_nowait(("cancel", None))
        self._result.cancel()
        return True

    def _track(self, coroutine: Awaitable[SearchResult]) -> asyncio.Task:
        task = asyncio.ensure_future(coroutine)
        task.add_done_callback(self._on_request_done)
        self._tasks.append(task)
        return task

    def _on_request_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._fail(error)

    def _emit_page(self, page: SearchResult) -> None:
        self._events.put_nowait(("page", page))

    def _succeed(self, result: SearchResult) -> None:
        if self._finished:
            return
        self._finished = True
        logger.info("Progressive search completed", extra={"records": len(result.records)})
        self._events.put_nowait(("success", result))
        self._result.set_result(result)

    def _fail(self, error: BaseException) -> None:
        if self._finished:
            return
        self._finished = True
        logger.error(f"Progressive search failed: {error}")
        self._events.put_nowait(("error", error))
        self._result.set_exception(error)

    async def _run(self) -> None:
        paginator = self.paginator
        try:
            if paginator.can_resume() and self.max_count:
                first_page = paginator.virtual_first_page()
                requests = paginator.remaining_page_requests(first_page, self.max_count, first_index=0)
                tasks = []
            else:
                first_task = self._track(paginator.fetch_page(0, self.max_count))
                first_page = await first_task
                requests = paginator.remaining_page_requests(first_page, self.max_count)
                tasks = [first_task]

            tasks.extend(self._track(paginator.fetch_page(index, count)) for index, count in requests)

            if self.preserve_order:
                pages = await self._collect_in_order(tasks)
            else:
                pages = await self._collect_as_completed(tasks)
            if pages is None:
                return
            self._succeed(combine_pages(pages) if pages else first_page)
        except asyncio.CancelledError:
            raise
        except Exception as error:
            self._fail(error)
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def _collect_in_order(self, tasks: Sequence[asyncio.Task]) -> Optional[List[SearchResult]]:
        # all requests are in flight already; only the awaiting is sequential
        pages = []
        for task in tasks:
            page = await task
            if self._finished:
                return None
            pages.append(page)
            self._emit_page(page)
        return pages

    async def _collect_as_completed(self, tasks: Sequence[asyncio.Task]) -> Optional[List[SearchResult]]:
        pages: List[Optional[SearchResult]] = [None] * len(tasks)

        async def collect(index: int, task: asyncio.Task) -> None:
            page = await task
            if self._finished:
                return
            pages[index] = page
            self._emit_page(page)

        await asyncio.gather(*(collect(i, t) for i, t in enumerate(tasks)))
        if self._finished:
            return None
        return pages
