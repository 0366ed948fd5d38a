"""OpenSearch discovery client."""

__version__ = "0.1.0"

from .core import (
    Description,
    InvalidParameter,
    MissingMandatoryParameters,
    NoCompatibleUrl,
    OpenSearchError,
    Parameter,
    Record,
    SearchResult,
    ServiceException,
    TransportError,
    UnsupportedEnctype,
    UnsupportedFormat,
    Url,
    UrlTooLong,
)
from .formats import FormatRegistry, default_registry
from .search import (
    HttpxTransport,
    PagedSearch,
    Paginator,
    Service,
    Transport,
    discover,
    search,
)

__all__ = [
    "Description",
    "FormatRegistry",
    "HttpxTransport",
    "InvalidParameter",
    "MissingMandatoryParameters",
    "NoCompatibleUrl",
    "OpenSearchError",
    "PagedSearch",
    "Paginator",
    "Parameter",
    "Record",
    "SearchResult",
    "Service",
    "ServiceException",
    "Transport",
    "TransportError",
    "UnsupportedEnctype",
    "UnsupportedFormat",
    "Url",
    "UrlTooLong",
    "__version__",
    "default_registry",
    "discover",
    "search",
]
