"""OpenSearch description documents."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Union
import xml.etree.ElementTree as ET

from .url import Url
from ..utils.xml import parse_xml, get_elements, get_text
from ..utils.logging import get_logger

logger = get_logger(__name__)

Selector = Union[str, Sequence[str], None]


def _matches(value: str, selector: Selector) -> bool:
    if selector is None:
        return True
    if isinstance(selector, str):
        return value == selector
    return value in selector


class Description:
    """Metadata and search URLs of an OpenSearch service."""

    def __init__(
        self,
        urls: Sequence[Url],
        short_name: Optional[str] = None,
        description: Optional[str] = None,
        **metadata: Any,
    ) -> None:
        self.urls: List[Url] = list(urls)
        self.short_name = short_name
        self.description = description
        self.tags: Optional[str] = metadata.get("tags")
        self.contact: Optional[str] = metadata.get("contact")
        self.long_name: Optional[str] = metadata.get("long_name")
        self.images: List[Dict[str, Any]] = metadata.get("images", [])
        self.queries: List[Dict[str, str]] = metadata.get("queries", [])
        self.developer: Optional[str] = metadata.get("developer")
        self.attribution: Optional[str] = metadata.get("attribution")
        self.syndication_right: Optional[str] = metadata.get("syndication_right")
        self.adult_content: Optional[str] = metadata.get("adult_content")
        self.language: Optional[str] = metadata.get("language")
        self.output_encoding: Optional[str] = metadata.get("output_encoding")
        self.input_encoding: Optional[str] = metadata.get("input_encoding")

    def __repr__(self) -> str:
        return f"<Description short_name={self.short_name!r} urls={len(self.urls)}>"

    def get_urls(
        self,
        parameters: Optional[Mapping[str, Any]] = None,
        type: Selector = None,
        method: Selector = None,
        relation: Optional[str] = None,
    ) -> List[Url]:
        """All URLs matching the MIME type(s), method(s), relation and parameters."""
        urls = [
            url for url in self.urls
            if _matches(url.type, type)
            and _matches(url.method, method)
            and (relation is None or relation in url.relations)
        ]
        if parameters is not None:
            urls = [url for url in urls if url.is_compatible(parameters)]
        return urls

    def get_url(
        self,
        parameters: Optional[Mapping[str, Any]] = None,
        type: Selector = None,
        method: Selector = None,
        relation: Optional[str] = None,
    ) -> Optional[Url]:
        urls = self.get_urls(parameters, type, method, relation)
        return urls[0] if urls else None

    @classmethod
    def from_xml(cls, xml: Union[str, bytes]) -> "Description":
        """Parse an ``OpenSearchDescription`` document."""
        root = parse_xml(xml)
        urls = [Url.from_node(node) for node in get_elements(root, "os", "Url")]

        images = []
        for node in get_elements(root, "os", "Image"):
            images.append({
                "height": _int_or_none(node.get("height")),
                "width": _int_or_none(node.get("width")),
                "type": node.get("type"),
                "url": (node.text or "").strip(),
            })

        queries = []
        for node in get_elements(root, "os", "Query"):
            query = {"role": node.get("role")}
            query.update(node.attrib)
            queries.append(query)

        description = cls(
            urls,
            short_name=get_text(root, "os", "ShortName"),
            description=get_text(root, "os", "Description"),
            tags=get_text(root, "os", "Tags"),
            contact=get_text(root, "os", "Contact"),
            long_name=get_text(root, "os", "LongName"),
            images=images,
            queries=queries,
            developer=get_text(root, "os", "Developer"),
            attribution=get_text(root, "os", "Attribution"),
            syndication_right=get_text(root, "os", "SyndicationRight"),
            adult_content=get_text(root, "os", "AdultContent"),
            language=get_text(root, "os", "Language"),
            output_encoding=get_text(root, "os", "OutputEncoding"),
            input_encoding=get_text(root, "os", "InputEncoding"),
        )
        logger.debug("Parsed description", extra={"short_name": description.short_name, "urls": len(urls)})
        return description


def _int_or_none(value: Optional[str]) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except ValueError:
        return None
