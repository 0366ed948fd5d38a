"""Single search requests."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Union

from ..config.settings import settings
from ..core.errors import TransportError, UnsupportedFormat, UrlTooLong, get_error_from_xml
from ..core.models import SearchResult, TransportResponse
from ..core.url import Url
from ..formats import FormatRegistry, default_registry
from ..utils.logging import get_logger
from .request import create_base_request
from .transport import Transport

logger = get_logger(__name__)


async def search(
    url: Url,
    parameters: Optional[Mapping[str, Any]] = None,
    *,
    transport: Transport,
    registry: Optional[FormatRegistry] = None,
    type: Optional[str] = None,
    raw: bool = False,
    max_url_length: Optional[int] = None,
    drop_empty_parameters: bool = False,
    parse_options: Optional[Dict[str, Any]] = None,
    headers: Optional[Mapping[str, str]] = None,
) -> Union[SearchResult, TransportResponse, Any]:
    """Perform a search on ``url`` and parse the response.

    Args:
        url: The Url to search on.
        parameters: Values keyed by parameter name or type.
        transport: Transport that sends the request.
        registry: Format parsers; the built-in formats when omitted.
        type: Response format, defaults to the Url's MIME type.
        raw: Return the transport response without parsing it.
        max_url_length: Reject requests whose URL is longer than this.
        drop_empty_parameters: Remove parameters without value from the request.
        parse_options: Keyword arguments for the format parser.
        headers: Additional request headers.

    Raises:
        InvalidParameter, MissingMandatoryParameters, UnsupportedEnctype, UrlTooLong:
            before anything is sent.
        ServiceException: the service answered with an OWS ExceptionReport.
        TransportError: the request failed or returned an unparseable error.
        UnsupportedFormat: no parser is registered for the response type.
    """
    base_request = create_base_request(url, parameters or {}, drop_empty_parameters, headers)

    if max_url_length is None:
        max_url_length = settings.max_url_length
    if max_url_length is not None and len(base_request.url) > max_url_length:
        raise UrlTooLong(len(base_request.url), max_url_length)

    response = await transport.send(base_request)

    if response.status_code >= 400:
        error = get_error_from_xml(response.text, status_code=response.status_code)
        if error is None:
            error = TransportError(response.text or f"HTTP {response.status_code}", status_code=response.status_code)
        logger.warning(
            f"Search failed with HTTP {response.status_code}: {error}",
            extra={"url": base_request.url},
        )
        raise error

    if raw:
        return response

    format_type = type or url.type
    format = (registry or default_registry()).get(format_type)
    if format is None:
        raise UnsupportedFormat(format_type)
    return format.parse(response.text, **(parse_options or {}))
