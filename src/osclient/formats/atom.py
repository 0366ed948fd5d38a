"""Atom feed parser."""

from __future__ import annotations

from typing import Mapping, Optional, Union

from .base import BaseFeedFormat, parse_datetime, parse_int
from ..core.models import Record, SearchResult
from ..utils.xml import parse_xml, get_elements, get_text


class AtomFormat(BaseFeedFormat):
    """Parse ``application/atom+xml`` OpenSearch responses."""

    def parse(
        self,
        text: Union[str, bytes],
        extra_fields: Optional[Mapping[str, str]] = None,
        namespaces: Optional[Mapping[str, str]] = None,
    ) -> SearchResult:
        root = parse_xml(text)
        records = []
        for node in get_elements(root, "atom", "entry"):
            record = Record(
                id=get_text(node, "dc", "identifier") or get_text(node, "atom", "id"),
                properties={
                    "title": get_text(node, "atom", "title"),
                    "updated": parse_datetime(get_text(node, "atom", "updated")),
                    "content": get_text(node, "atom", "content"),
                    "summary": get_text(node, "atom", "summary"),
                    "links": self.parse_links(node),
                    "media": self.parse_media(node),
                },
            )
            records.append(self.finish_record(node, record, extra_fields, namespaces))

        return SearchResult(
            total_results=parse_int(get_text(root, "os", "totalResults")),
            start_index=parse_int(get_text(root, "os", "startIndex")),
            items_per_page=parse_int(get_text(root, "os", "itemsPerPage")),
            links=self.parse_links(root),
            records=records,
        )
