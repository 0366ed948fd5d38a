"""Exception taxonomy for the OpenSearch client.

Validation errors (``InvalidParameter``, ``MissingMandatoryParameters``,
``UnsupportedEnctype``, ``UrlTooLong``) are raised before any request is
sent. ``ServiceException`` and ``TransportError`` come back from the network.
"""

from __future__ import annotations

from typing import Iterable, List, Optional
import xml.etree.ElementTree as ET

from ..utils.xml import parse_xml, local_name, namespace_of


class OpenSearchError(Exception):
    """Base class for all errors raised by this package."""


class InvalidParameter(OpenSearchError):
    """A parameter key is known neither by name nor by type."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Invalid parameter '{key}'.")


class MissingMandatoryParameters(OpenSearchError):
    """One or more mandatory parameters were not supplied."""

    def __init__(self, types: Iterable[str]):
        self.types: List[str] = list(types)
        super().__init__(f"Missing mandatory parameters: {', '.join(self.types)}")


class UnsupportedEnctype(OpenSearchError):
    def __init__(self, enctype: str):
        self.enctype = enctype
        super().__init__(f"Unsupported enctype '{enctype}'.")


class UnsupportedFormat(OpenSearchError):
    def __init__(self, type: Optional[str]):
        self.type = type
        super().__init__(f"Could not parse response of type '{type}'.")


class UnsupportedGeometry(OpenSearchError, ValueError):
    def __init__(self, geometry_type: Optional[str]):
        self.geometry_type = geometry_type
        super().__init__(f"Unsupported geometry type '{geometry_type}'.")


class UrlTooLong(OpenSearchError):
    def __init__(self, length: int, maximum: int):
        self.length = length
        self.maximum = maximum
        super().__init__(f"Search URL too long: {length}, maximum: {maximum}")


class NoCompatibleUrl(OpenSearchError):
    """The description offers no URL matching the requested type/method/parameters."""


class TransportError(OpenSearchError):
    """Network failure, or an error response without a parseable body."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class ServiceException(OpenSearchError):
    """Error reported by the service as an OWS ExceptionReport."""

    def __init__(self, message: str, locator: Optional[str] = None, code: Optional[str] = None, status_code: Optional[int] = None):
        self.locator = locator
        self.code = code
        self.status_code = status_code
        super().__init__(message)


def get_error_from_xml(text: str, status_code: Optional[int] = None) -> Optional[ServiceException]:
    """Parse an OWS ExceptionReport into a ``ServiceException``.

    Returns ``None`` when the text is not XML or holds no ``Exception`` element.
    """
    try:
        root = parse_xml(text)
    except ET.ParseError:
        return None

    namespace = namespace_of(root)
    exception_element = next(
        (child for child in root.iter() if local_name(child) == "Exception" and namespace_of(child) == namespace),
        None,
    )
    if exception_element is None:
        return None

    exception_text = None
    for child in exception_element:
        if local_name(child) == "ExceptionText":
            exception_text = (child.text or "").strip()
            break

    code = exception_element.get("exceptionCode")
    return ServiceException(
        exception_text or code or "",
        locator=exception_element.get("locator"),
        code=code,
        status_code=status_code,
    )
