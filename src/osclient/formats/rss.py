"""RSS 2.0 feed parser."""

from __future__ import annotations

from typing import Mapping, Optional, Union

from .base import BaseFeedFormat, parse_int
from ..core.models import Record, SearchResult
from ..utils.xml import parse_xml, get_elements, get_first_element, get_text


class RSSFormat(BaseFeedFormat):
    """Parse ``application/rss+xml`` OpenSearch responses."""

    def parse(
        self,
        text: Union[str, bytes],
        extra_fields: Optional[Mapping[str, str]] = None,
        namespaces: Optional[Mapping[str, str]] = None,
    ) -> SearchResult:
        root = parse_xml(text)
        channel = get_first_element(root, None, "channel")
        records = []
        for node in get_elements(channel, None, "item"):
            record = Record(
                id=get_text(node, "dc", "identifier") or get_text(node, None, "guid"),
                properties={
                    "title": get_text(node, None, "title"),
                    "content": get_text(node, None, "description"),
                    "summary": get_text(node, None, "description"),
                    "links": self.parse_links(node),
                    "media": self.parse_media(node),
                },
            )
            records.append(self.finish_record(node, record, extra_fields, namespaces))

        return SearchResult(
            total_results=parse_int(get_text(channel, "os", "totalResults")),
            start_index=parse_int(get_text(channel, "os", "startIndex")),
            items_per_page=parse_int(get_text(channel, "os", "itemsPerPage")),
            links=self.parse_links(channel) if channel is not None else [],
            records=records,
        )
