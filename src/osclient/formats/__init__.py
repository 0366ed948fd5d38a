"""Response format parsers, looked up by MIME type through a ``FormatRegistry``."""

from typing import Any, Dict, List, Optional, Protocol

from .atom import AtomFormat
from .geojson import GeoJSONFormat
from .rss import RSSFormat
from .suggestions_json import SuggestionsJSONFormat


class Format(Protocol):
    def parse(self, text: str, **options: Any) -> Any:
        ...


class FormatRegistry:
    """Maps MIME types to format parsers.

    Example:
        >>> registry = FormatRegistry()
        >>> registry.register("application/atom+xml", AtomFormat())
        >>> registry.get("application/atom+xml")
    """

    def __init__(self) -> None:
        self._formats: Dict[str, Format] = {}

    def register(self, type: str, format: Format) -> None:
        self._formats[type] = format

    def get(self, type: Optional[str]) -> Optional[Format]:
        if type is None:
            return None
        return self._formats.get(type)

    def supported_types(self) -> List[str]:
        """Registered MIME types, in registration order."""
        return list(self._formats)

    def __contains__(self, type: str) -> bool:
        return type in self._formats


def default_registry() -> FormatRegistry:
    """A new registry with the built-in Atom, RSS, GeoJSON and Suggestions parsers."""
    registry = FormatRegistry()
    registry.register("application/atom+xml", AtomFormat())
    registry.register("application/rss+xml", RSSFormat())
    registry.register("application/json", GeoJSONFormat())
    registry.register("application/geo+json", GeoJSONFormat())
    registry.register("application/vnd.geo+json", GeoJSONFormat())
    registry.register("application/x-suggestions+json", SuggestionsJSONFormat())
    return registry


__all__ = [
    "AtomFormat",
    "Format",
    "FormatRegistry",
    "GeoJSONFormat",
    "RSSFormat",
    "SuggestionsJSONFormat",
    "default_registry",
]
