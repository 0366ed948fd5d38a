"""GeoJSON geometry helpers: WKT serialization and bounding boxes."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence

from shapely.geometry import shape

from .errors import UnsupportedGeometry

WKT_TYPES = frozenset({
    "Point",
    "LineString",
    "Polygon",
    "MultiPoint",
    "MultiLineString",
    "MultiPolygon",
    "GeometryCollection",
})


def format_number(value: Any) -> str:
    """Render a number the way it is written in URLs: ``1.0`` becomes ``1``."""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _check_types(geometry: Mapping[str, Any]) -> None:
    geometry_type = geometry.get("type")
    if geometry_type not in WKT_TYPES:
        raise UnsupportedGeometry(geometry_type)
    for member in geometry.get("geometries") or []:
        _check_types(member)


def to_wkt(geometry: Mapping[str, Any]) -> str:
    """Serialize a GeoJSON-shaped mapping as Well-Known-Text.

    Geometries without coordinates are written as ``<TYPE> EMPTY``.

    Raises:
        UnsupportedGeometry: the mapping (or a collection member) has a type
            WKT cannot express.
    """
    _check_types(geometry)
    geometry_type = geometry["type"]
    members = "geometries" if geometry_type == "GeometryCollection" else "coordinates"
    if not geometry.get(members):
        return f"{geometry_type.upper()} EMPTY"
    return shape(geometry).wkt


def box_from_positions(positions: Sequence[Sequence[float]]) -> Optional[List[float]]:
    if not positions:
        return None
    xs = [p[0] for p in positions]
    ys = [p[1] for p in positions]
    return [min(xs), min(ys), max(xs), max(ys)]


def box_from_geometry(geometry: Mapping[str, Any]) -> Optional[List[float]]:
    """Bounding box ``[minx, miny, maxx, maxy]`` of a parsed feed geometry."""
    coords = geometry.get("coordinates")
    geometry_type = geometry.get("type")
    if geometry_type == "Point":
        return [coords[0], coords[1], coords[0], coords[1]]
    if geometry_type == "LineString":
        return box_from_positions(coords)
    if geometry_type == "Polygon":
        return box_from_positions(coords[0]) if coords else None
    if geometry_type == "MultiPolygon":
        boxes = [box_from_positions(polygon[0]) for polygon in coords if polygon]
        boxes = [b for b in boxes if b]
        if not boxes:
            return None
        return [
            min(b[0] for b in boxes),
            min(b[1] for b in boxes),
            max(b[2] for b in boxes),
            max(b[3] for b in boxes),
        ]
    return None
