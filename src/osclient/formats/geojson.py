"""GeoJSON FeatureCollection parser."""

from __future__ import annotations

import json
from typing import Any, Mapping, Optional, Union

from ..core.geometry import box_from_geometry
from ..core.models import Record, SearchResult
from .base import parse_int


def _paging_value(collection: Mapping[str, Any], key: str) -> Optional[int]:
    value = collection.get(key)
    if value is None:
        value = (collection.get("properties") or {}).get(key)
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    return parse_int(str(value))


def _feature_id(feature: Mapping[str, Any], properties: Mapping[str, Any]) -> Optional[str]:
    # numeric ids are valid GeoJSON
    value = feature.get("id", properties.get("id"))
    return str(value) if value is not None else None


class GeoJSONFormat:
    """Parse GeoJSON responses; paging figures may sit at the top level or in ``properties``."""

    def parse(self, text: Union[str, bytes], **options: Any) -> SearchResult:
        """Parse a FeatureCollection.

        Feature properties are kept whole, so feed options such as
        ``extra_fields`` have nothing to add and are ignored.
        """
        collection = json.loads(text)
        records = []
        for feature in collection.get("features", []):
            properties = dict(feature.get("properties") or {})
            geometry = feature.get("geometry")
            bbox = feature.get("bbox")
            if bbox is None and geometry:
                bbox = box_from_geometry(geometry)
            records.append(Record(
                id=_feature_id(feature, properties),
                properties=properties,
                geometry=geometry,
                bbox=bbox,
            ))
        return SearchResult(
            total_results=_paging_value(collection, "totalResults"),
            start_index=_paging_value(collection, "startIndex"),
            items_per_page=_paging_value(collection, "itemsPerPage"),
            links=(collection.get("properties") or {}).get("links", []),
            records=records,
        )
