"""High-level access to an OpenSearch service."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence, Union

from ..core.description import Description
from ..core.errors import NoCompatibleUrl, TransportError
from ..core.models import BaseRequest, SearchResult, TransportResponse
from ..core.url import Url
from ..formats import FormatRegistry, default_registry
from ..utils.logging import get_logger
from .paginator import Paginator
from .search import search
from .transport import HttpxTransport, Transport

logger = get_logger(__name__)

DESCRIPTION_TYPE = "application/opensearchdescription+xml"


class Service:
    """An OpenSearch service described by a ``Description``.

    A transport created by the service is closed with it; a transport that
    was passed in belongs to the caller.

    Example:
        >>> async with await discover("https://example.com/opensearch.xml") as service:
        ...     result = await service.search({"searchTerms": "water"})
    """

    def __init__(
        self,
        description: Description,
        transport: Optional[Transport] = None,
        registry: Optional[FormatRegistry] = None,
    ) -> None:
        self.description = description
        self._owns_transport = transport is None
        self.transport = transport or HttpxTransport()
        self.registry = registry or default_registry()

    def __repr__(self) -> str:
        return f"<Service {self.description.short_name!r} transport={self.transport!r}>"

    async def __aenter__(self) -> "Service":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_transport:
            await self.transport.close()

    @classmethod
    def from_xml(
        cls,
        xml: Union[str, bytes],
        transport: Optional[Transport] = None,
        registry: Optional[FormatRegistry] = None,
    ) -> "Service":
        return cls(Description.from_xml(xml), transport, registry)

    def get_description(self) -> Description:
        return self.description

    def get_url(
        self,
        parameters: Optional[Mapping[str, Any]] = None,
        type: Optional[str] = None,
        method: Union[str, Sequence[str], None] = None,
    ) -> Url:
        """The first Url that accepts ``parameters``.

        Without ``type`` the registered response types are tried in
        registration order.

        Raises:
            NoCompatibleUrl: no Url matches.
        """
        types = [type] if type else self.registry.supported_types()
        for candidate in types:
            url = self.description.get_url(parameters, candidate, method)
            if url is not None:
                return url
        raise NoCompatibleUrl(
            f"No compatible URL found for type={type!r}, method={method!r}, "
            f"parameters={sorted(parameters or {})}"
        )

    async def search(
        self,
        parameters: Optional[Mapping[str, Any]] = None,
        type: Optional[str] = None,
        method: Union[str, Sequence[str], None] = None,
        raw: bool = False,
        **options: Any,
    ) -> Union[SearchResult, TransportResponse, Any]:
        """Search on the first compatible Url; ``options`` go to ``search``."""
        url = self.get_url(parameters, type, method)
        logger.info("Searching", extra={"url": url.url, "type": url.type})
        return await search(
            url,
            parameters,
            transport=self.transport,
            registry=self.registry,
            raw=raw,
            **options,
        )

    def get_paginator(
        self,
        parameters: Optional[Mapping[str, Any]] = None,
        type: Optional[str] = None,
        method: Union[str, Sequence[str], None] = None,
        **options: Any,
    ) -> Paginator:
        """A ``Paginator`` on the first compatible Url; ``options`` go to ``Paginator``."""
        url = self.get_url(parameters, type, method)
        return Paginator(url, parameters, transport=self.transport, registry=self.registry, **options)


async def discover(
    url: str,
    transport: Optional[Transport] = None,
    registry: Optional[FormatRegistry] = None,
) -> Service:
    """Fetch the description document at ``url`` and build a ``Service`` from it.

    Raises:
        TransportError: the document could not be retrieved.
    """
    owns_transport = transport is None
    transport = transport or HttpxTransport()
    logger.info("Discovering service", extra={"url": url})
    try:
        response = await transport.send(
            BaseRequest(url=url, headers={"Accept": f"{DESCRIPTION_TYPE}, application/xml;q=0.9"})
        )
        if response.status_code >= 400:
            raise TransportError(
                f"Failed to fetch description {url}: HTTP {response.status_code}",
                status_code=response.status_code,
            )
        description = Description.from_xml(response.text)
    except Exception:
        if owns_transport:
            await transport.close()
        raise

    service = Service(description, transport, registry)
    service._owns_transport = owns_transport
    return service
