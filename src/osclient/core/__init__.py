"""Request templating model: parameters, URLs, description documents."""

from .description import Description
from .errors import (
    OpenSearchError,
    InvalidParameter,
    MissingMandatoryParameters,
    UnsupportedEnctype,
    UnsupportedFormat,
    UnsupportedGeometry,
    UrlTooLong,
    NoCompatibleUrl,
    ServiceException,
    TransportError,
)
from .models import BaseRequest, Record, SearchResult, Suggestion, TransportResponse
from .parameter import Parameter
from .url import Url

__all__ = [
    "BaseRequest",
    "Description",
    "InvalidParameter",
    "MissingMandatoryParameters",
    "NoCompatibleUrl",
    "OpenSearchError",
    "Parameter",
    "Record",
    "SearchResult",
    "ServiceException",
    "Suggestion",
    "TransportError",
    "TransportResponse",
    "UnsupportedEnctype",
    "UnsupportedFormat",
    "UnsupportedGeometry",
    "Url",
    "UrlTooLong",
]
