"""Shared parsing of Atom/RSS entries: GeoRSS/GML geometries, dates, links, media."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Union
import re
import xml.etree.ElementTree as ET

from ..core.geometry import box_from_geometry
from ..core.models import Record
from ..utils.xml import (
    NAMESPACES,
    get_elements,
    get_first_element,
    get_text,
    local_name,
    namespace_of,
)
from ..utils.logging import get_logger

logger = get_logger(__name__)

Geometry = Dict[str, Any]


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; ``None`` when empty or malformed."""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        logger.debug(f"Unparseable date: {value!r}")
        return None


def _floats(text: str) -> List[float]:
    return [float(v) for v in text.split()]


def swap_and_pair(values: List[float]) -> List[List[float]]:
    """Turn a flat ``lat lon lat lon`` list into ``[[lon, lat], ...]``."""
    return [[values[i + 1], values[i]] for i in range(0, len(values) - 1, 2)]


def _child(node: ET.Element, name: str) -> Optional[ET.Element]:
    return node.find(f"{{{namespace_of(node)}}}{name}") if namespace_of(node) else node.find(name)


def _children(node: ET.Element, name: str) -> List[ET.Element]:
    return node.findall(f"{{{namespace_of(node)}}}{name}") if namespace_of(node) else node.findall(name)


def _gml_line(node: ET.Element) -> List[List[float]]:
    pos_list = _child(node, "posList")
    return swap_and_pair(_floats(pos_list.text or "")) if pos_list is not None else []


def _gml_polygon(node: ET.Element) -> List[List[List[float]]]:
    rings = []
    exterior = _child(node, "exterior")
    if exterior is not None and _child(exterior, "LinearRing") is not None:
        rings.append(_gml_line(_child(exterior, "LinearRing")))
    for interior in _children(node, "interior"):
        ring = _child(interior, "LinearRing")
        if ring is not None:
            rings.append(_gml_line(ring))
    return rings


def parse_gml(node: ET.Element) -> Optional[Geometry]:
    """Convert a GML geometry element into a GeoJSON-shaped mapping."""
    name = local_name(node)
    if name == "Point":
        pos = _child(node, "pos")
        values = _floats(pos.text or "") if pos is not None else []
        if len(values) < 2:
            return None
        return {"type": "Point", "coordinates": [values[1], values[0]]}
    if name == "LineString":
        return {"type": "LineString", "coordinates": _gml_line(node)}
    if name == "Polygon":
        return {"type": "Polygon", "coordinates": _gml_polygon(node)}
    if name == "Envelope":
        lower = _child(node, "lowerCorner")
        upper = _child(node, "upperCorner")
        if lower is None or upper is None:
            return None
        (miny, minx), (maxy, maxx) = _floats(lower.text or "")[:2], _floats(upper.text or "")[:2]
        return {
            "type": "Polygon",
            "coordinates": [[[minx, miny], [maxx, miny], [maxx, maxy], [minx, maxy], [minx, miny]]],
        }
    if name in ("MultiSurface", "MultiGeometry"):
        # surfaceMember(s) and geometryMember(s), possibly nested
        polygons = [_gml_polygon(p) for p in node.iter() if local_name(p) == "Polygon"]
        return {"type": "MultiPolygon", "coordinates": polygons}
    return None


class BaseFeedFormat:
    """Helpers shared by the Atom and RSS parsers."""

    def parse_geometry(self, node: ET.Element) -> Optional[Geometry]:
        where = get_first_element(node, "georss", "where")
        if where is not None:
            first = next(iter(where), None)
            return parse_gml(first if first is not None else where)

        point = get_text(node, "georss", "point")
        if point:
            return {"type": "Point", "coordinates": swap_and_pair(_floats(point))[0]}
        line = get_text(node, "georss", "line")
        if line:
            return {"type": "LineString", "coordinates": swap_and_pair(_floats(line))}
        polygon = get_text(node, "georss", "polygon")
        if polygon:
            return {"type": "Polygon", "coordinates": [swap_and_pair(_floats(polygon))]}
        return None

    def parse_box(self, node: ET.Element) -> Optional[List[float]]:
        """GeoRSS boxes are ``lat lon lat lon``; return ``[minx, miny, maxx, maxy]``."""
        box = get_text(node, "georss", "box")
        if box:
            values = _floats(box)
            return [values[1], values[0], values[3], values[2]]
        return None

    def parse_date(self, node: ET.Element) -> Union[datetime, List[Optional[datetime]], None]:
        value = get_text(node, "dc", "date")
        if not value:
            return None
        parts = value.split("/")
        if len(parts) == 1:
            return parse_datetime(value)
        return [parse_datetime(parts[0]), parse_datetime(parts[1])]

    def parse_links(self, node: ET.Element) -> List[Dict[str, str]]:
        links = []
        for link_node in get_elements(node, "atom", "link"):
            link = {"href": link_node.get("href")}
            for attribute in ("rel", "type", "title"):
                if link_node.get(attribute):
                    link[attribute] = link_node.get(attribute)
            links.append(link)
        return links

    def parse_media(self, node: ET.Element) -> List[Dict[str, Optional[str]]]:
        media_nodes = get_elements(node, "media", "content")
        media_nodes += get_elements(get_first_element(node, "media", "group"), "media", "content")
        media = []
        for media_node in media_nodes:
            category = get_first_element(media_node, "media", "category")
            media.append({
                "url": media_node.get("url"),
                "category": category.text if category is not None else None,
                "scheme": category.get("scheme") if category is not None else None,
            })
        return media

    def parse_extra_fields(
        self,
        node: ET.Element,
        extra_fields: Mapping[str, str],
        namespaces: Optional[Mapping[str, str]],
        record: Record,
    ) -> None:
        """Copy additional element texts into the record properties.

        ``extra_fields`` maps a property name to an ElementTree path such as
        ``dc:subject``; prefixes resolve through ``namespaces`` and the
        built-in namespace map.
        """
        ns = {**NAMESPACES, **(namespaces or {})}
        for name, path in extra_fields.items():
            found = node.findall(path, ns)
            if not found:
                record.properties[name] = None
            elif len(found) == 1:
                record.properties[name] = found[0].text
            else:
                record.properties[name] = [element.text for element in found]

    def finish_record(
        self,
        node: ET.Element,
        record: Record,
        extra_fields: Optional[Mapping[str, str]] = None,
        namespaces: Optional[Mapping[str, str]] = None,
    ) -> Record:
        """Attach the spatial and temporal information common to both feed types."""
        box = self.parse_box(node)
        if box:
            record.bbox = box

        geometry = self.parse_geometry(node)
        if geometry:
            record.geometry = geometry
            if not record.bbox:
                record.bbox = box_from_geometry(geometry)

        date = self.parse_date(node)
        if date:
            record.properties["time"] = date

        if extra_fields:
            self.parse_extra_fields(node, extra_fields, namespaces, record)
        return record


def parse_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    match = re.match(r"\s*(-?\d+)", value)
    return int(match.group(1)) if match else None
