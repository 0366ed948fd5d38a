"""Core models for requests and parsed search results."""

from typing import Optional, List, Dict, Any, Tuple
from pydantic import BaseModel, Field


class Record(BaseModel):
    """A single entry of a search result."""
    id: Optional[str] = None
    properties: Dict[str, Any] = Field(default_factory=dict)
    geometry: Optional[Dict[str, Any]] = None
    bbox: Optional[List[float]] = None


class SearchResult(BaseModel):
    """One page (or a combination of pages) of search results.

    The paging figures are ``None`` when the feed does not state them.
    """

    total_results: Optional[int] = None
    start_index: Optional[int] = None
    items_per_page: Optional[int] = None
    query: Dict[str, Any] = Field(default_factory=dict)
    links: List[Dict[str, Any]] = Field(default_factory=list)
    records: List[Record] = Field(default_factory=list)


class Suggestion(BaseModel):
    """Entry of an OpenSearch Suggestions response."""
    completion: str
    description: Optional[str] = None
    url: Optional[str] = None


class BaseRequest(BaseModel):
    """Transport-agnostic description of an HTTP request.

    ``body`` carries urlencoded form data; ``multipart`` carries the fields of
    a ``multipart/form-data`` body, which the transport encodes itself.
    """

    method: str = "GET"
    url: str
    headers: Dict[str, str] = Field(default_factory=dict)
    body: Optional[str] = None
    multipart: Optional[List[Tuple[str, str]]] = None


class TransportResponse(BaseModel):
    """Status and decoded body of a completed HTTP exchange."""
    status_code: int
    text: str
    headers: Dict[str, str] = Field(default_factory=dict)
