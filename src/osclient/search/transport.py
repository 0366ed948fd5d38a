"""HTTP transports.

Search and pagination only depend on the ``Transport`` interface; the
``HttpxTransport`` is the default implementation. Tests and callers with
special needs (proxies, signing, caching) can provide their own.
"""

from abc import ABC, abstractmethod
from typing import Optional

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    RetryError,
)

from ..config.settings import settings
from ..core.errors import TransportError
from ..core.models import BaseRequest, TransportResponse
from ..utils.logging import get_logger

logger = get_logger(__name__)


class Transport(ABC):
    """Sends a ``BaseRequest`` and returns status and body of the response."""

    @abstractmethod
    async def send(self, request: BaseRequest) -> TransportResponse:
        raise NotImplementedError

    async def close(self) -> None:
        """Release resources held by the transport."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"


class HttpxTransport(Transport):
    """Transport backed by ``httpx.AsyncClient``.

    Connection errors and timeouts are retried with exponential backoff;
    HTTP error statuses are returned to the caller untouched.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        max_retries: Optional[int] = None,
    ) -> None:
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=settings.http_timeout,
            limits=httpx.Limits(
                max_keepalive_connections=settings.max_keepalive_connections,
                max_connections=settings.max_connections,
            ),
            headers={"User-Agent": settings.user_agent},
            follow_redirects=True,
        )
        self.max_retries = max_retries or settings.max_retries

    async def _request(self, request: BaseRequest) -> httpx.Response:
        files = None
        if request.multipart is not None:
            files = [(name, (None, value)) for name, value in request.multipart]
        logger.debug("Sending request", extra={"method": request.method, "url": request.url})
        return await self.client.request(
            request.method,
            request.url,
            headers=request.headers or None,
            content=request.body,
            files=files,
        )

    async def send(self, request: BaseRequest) -> TransportResponse:
        retrying = retry(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(
                multiplier=settings.retry_backoff_factor, min=0, max=settings.retry_max_wait
            ),
            retry=retry_if_exception_type((httpx.TransportError,)),
            reraise=True,
        )
        try:
            response = await retrying(self._request)(request)
        except (httpx.TransportError, RetryError) as e:
            logger.error(f"Request failed: {e!r}", extra={"url": request.url})
            raise TransportError(f"Failed to fetch {request.url}: {e}") from e
        return TransportResponse(
            status_code=response.status_code,
            text=response.text,
            headers=dict(response.headers),
        )

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()
