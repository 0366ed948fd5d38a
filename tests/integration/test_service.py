"""Integration tests: discovery, searching and pagination over mocked HTTP."""

import httpx
import pytest
import respx

from osclient import Service, discover
from osclient.core.errors import NoCompatibleUrl, ServiceException, TransportError
from osclient.core.models import Suggestion
from tests.fakes import EXCEPTION_REPORT, FakeTransport
from tests.integration.fixtures import DESCRIPTION_URL, DESCRIPTION_XML, TOTAL_RESULTS, mock_catalogue


@pytest.fixture
def catalogue():
    with respx.mock(assert_all_called=False) as router:
        mock_catalogue(router)
        yield router


@pytest.mark.integration
class TestDiscovery:
    """Tests for loading a service from its description URL."""

    @pytest.mark.asyncio
    async def test_discover(self, catalogue) -> None:
        async with await discover(DESCRIPTION_URL) as service:
            assert service.description.short_name == "EO Catalogue"
            assert len(service.description.urls) == 3

        request = catalogue.calls[0].request
        assert "application/opensearchdescription+xml" in request.headers["Accept"]
        assert service.transport.client.is_closed

    @pytest.mark.asyncio
    async def test_description_not_found(self) -> None:
        with respx.mock:
            respx.get(DESCRIPTION_URL).mock(return_value=httpx.Response(404, text="Not Found"))

            with pytest.raises(TransportError) as exc_info:
                await discover(DESCRIPTION_URL)

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_injected_transport_not_closed(self) -> None:
        transport = FakeTransport(lambda request: None)
        service = Service.from_xml(DESCRIPTION_XML, transport=transport)

        await service.close()

        assert service.transport is transport
        assert service.get_description().short_name == "EO Catalogue"


@pytest.mark.integration
class TestServiceSearch:
    """Tests for searches through a discovered service."""

    @pytest.mark.asyncio
    async def test_first_registered_type_used(self, catalogue) -> None:
        async with await discover(DESCRIPTION_URL) as service:
            result = await service.search({"searchTerms": "water", "geo:box": [0, 0, 1, 1]})

        assert result.total_results == TOTAL_RESULTS
        assert [r.id for r in result.records][:2] == ["p1", "p2"]
        sent = catalogue.calls[-1].request
        assert sent.url.path == "/atom"
        assert sent.url.params["bbox"] == "0,0,1,1"

    @pytest.mark.asyncio
    async def test_explicit_type(self, catalogue) -> None:
        async with await discover(DESCRIPTION_URL) as service:
            result = await service.search({"searchTerms": "water"}, type="application/geo+json")

        assert result.records[0].geometry == {"type": "Point", "coordinates": [0, 0]}

    @pytest.mark.asyncio
    async def test_suggestions(self, catalogue) -> None:
        async with await discover(DESCRIPTION_URL) as service:
            result = await service.search({"searchTerms": "wat"}, type="application/x-suggestions+json")

        assert result == [Suggestion(completion="water"), Suggestion(completion="watershed")]

    @pytest.mark.asyncio
    async def test_no_compatible_url(self, catalogue) -> None:
        async with await discover(DESCRIPTION_URL) as service:
            with pytest.raises(NoCompatibleUrl):
                await service.search({"eo:platform": "Sentinel-1"})
            with pytest.raises(NoCompatibleUrl):
                service.get_url({"searchTerms": "water"}, method="POST")

    @pytest.mark.asyncio
    async def test_service_exception(self) -> None:
        with respx.mock:
            respx.get(DESCRIPTION_URL).mock(return_value=httpx.Response(200, text=DESCRIPTION_XML))
            respx.get(host="cat.example.com", path="/atom").mock(
                return_value=httpx.Response(400, text=EXCEPTION_REPORT)
            )

            async with await discover(DESCRIPTION_URL) as service:
                with pytest.raises(ServiceException) as exc_info:
                    await service.search({"searchTerms": "water"})

        assert exc_info.value.locator == "httpAccept"


@pytest.mark.integration
class TestServicePagination:
    """Tests for paginated retrieval through a discovered service."""

    @pytest.mark.asyncio
    async def test_fetch_all_records(self, catalogue) -> None:
        async with await discover(DESCRIPTION_URL) as service:
            paginator = service.get_paginator({"searchTerms": "water"})
            result = await paginator.fetch_all_records()

        assert [r.id for r in result.records] == [f"p{i}" for i in range(1, TOTAL_RESULTS + 1)]
        starts = sorted(int(call.request.url.params["start"]) for call in catalogue.calls[1:])
        assert starts == [1, 11, 21]

    @pytest.mark.asyncio
    async def test_page_size_from_count_bound(self, catalogue) -> None:
        async with await discover(DESCRIPTION_URL) as service:
            paginator = service.get_paginator({"searchTerms": "water"})
            assert paginator.get_actual_page_size() == 10
            await paginator.fetch_page()

        assert catalogue.calls[-1].request.url.params["count"] == "10"

    @pytest.mark.asyncio
    async def test_progressive(self, catalogue) -> None:
        async with await discover(DESCRIPTION_URL) as service:
            handle = service.get_paginator({"searchTerms": "water"}, type="application/geo+json").search_first_records(15)
            pages = [page async for page in handle]
            result = await handle.result()

        assert [len(page.records) for page in pages] == [10, 5]
        assert len(result.records) == 15
