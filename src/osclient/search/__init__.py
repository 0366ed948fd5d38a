"""Request building, transports, searching and pagination."""

from .paginator import PagedSearch, Paginator, combine_pages
from .request import create_base_request
from .search import search
from .service import Service, discover
from .transport import HttpxTransport, Transport

__all__ = [
    "HttpxTransport",
    "PagedSearch",
    "Paginator",
    "Service",
    "Transport",
    "combine_pages",
    "create_base_request",
    "discover",
    "search",
]
