"""ElementTree helpers shared by the description and feed parsers."""

from __future__ import annotations

from typing import List, Optional, Union
import xml.etree.ElementTree as ET


NAMESPACES = {
    "os": "http://a9.com/-/spec/opensearch/1.1/",
    "parameters": "http://a9.com/-/spec/opensearch/extensions/parameters/1.0/",
    "atom": "http://www.w3.org/2005/Atom",
    "georss": "http://www.georss.org/georss",
    "gml": "http://www.opengis.net/gml",
    "dc": "http://purl.org/dc/elements/1.1/",
    "media": "http://search.yahoo.com/mrss/",
}


def parse_xml(text: Union[str, bytes]) -> ET.Element:
    """Parse an XML document and return its root element."""
    if isinstance(text, str):
        text = text.encode("utf-8")
    return ET.fromstring(text)


def qname(prefix: Optional[str], local_name: str) -> str:
    """Build a Clark-notation tag name (``{uri}local``) for a known prefix.

    A ``None`` prefix denotes an element without namespace (plain RSS).
    """
    if prefix is None:
        return local_name
    return f"{{{NAMESPACES.get(prefix, prefix)}}}{local_name}"


def local_name(element: ET.Element) -> str:
    tag = element.tag
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""


def namespace_of(element: ET.Element) -> Optional[str]:
    tag = element.tag
    if isinstance(tag, str) and tag.startswith("{"):
        return tag[1:].split("}", 1)[0]
    return None


def get_elements(node: Optional[ET.Element], prefix: Optional[str], name: str) -> List[ET.Element]:
    """Direct children of ``node`` with the given namespace prefix and name."""
    if node is None:
        return []
    return node.findall(qname(prefix, name))


def get_first_element(node: Optional[ET.Element], prefix: Optional[str], name: str) -> Optional[ET.Element]:
    if node is None:
        return None
    return node.find(qname(prefix, name))


def get_text(node: Optional[ET.Element], prefix: Optional[str], name: str) -> Optional[str]:
    """Text of the first matching child, or ``None`` when there is none."""
    element = get_first_element(node, prefix, name)
    if element is None:
        return None
    return element.text or ""


def get_attribute(node: ET.Element, name: str, prefix: Optional[str] = None, default: Optional[str] = None) -> Optional[str]:
    return node.get(qname(prefix, name) if prefix else name, default)
