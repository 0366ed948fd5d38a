"""Parsed OpenSearch description endpoints (``<Url>`` elements)."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Literal, Mapping, Optional, Sequence, Tuple
from urllib.parse import urlsplit, parse_qsl
import xml.etree.ElementTree as ET

from .errors import InvalidParameter, MissingMandatoryParameters
from .parameter import Parameter, parse_number
from ..utils.xml import get_elements, get_attribute

LookupKind = Literal["name", "type"]
LookupKey = Tuple[LookupKind, str]
SerializedValue = Tuple[str, str, str]

DEFAULT_ENCTYPE = "application/x-www-form-urlencoded"


class Url:
    """A search endpoint: template, HTTP method and typed parameters.

    Caller supplied values may be keyed by parameter name (``q``) or by
    parameter type (``searchTerms``). Both are resolved through a single
    lookup table built at construction time; composite parameters are
    registered under each of their sub-types.
    """

    def __init__(
        self,
        type: str,
        url: str,
        parameters: Optional[Sequence[Parameter]] = None,
        method: str = "GET",
        enctype: str = DEFAULT_ENCTYPE,
        index_offset: int = 1,
        page_offset: int = 1,
        relations: Optional[Sequence[str]] = None,
    ) -> None:
        self.type = type
        self.url = url
        self.method = method
        self.enctype = enctype
        self.index_offset = index_offset
        self.page_offset = page_offset
        self.relations: List[str] = list(relations) if relations else ["results"]
        self.parameters: List[Parameter] = list(parameters or [])
        self._lookup: Dict[LookupKey, Parameter] = {}
        for parameter in self.parameters:
            self._lookup[("name", parameter.name)] = parameter
            for subtype in parameter.types:
                self._lookup[("type", subtype)] = parameter

    def __repr__(self) -> str:
        return f"<Url type={self.type} method={self.method} url={self.url}>"

    def resolve(self, key: str) -> Optional[Parameter]:
        """Find the parameter a value-map key refers to, by type first, then by name."""
        return self._lookup.get(("type", key)) or self._lookup.get(("name", key))

    def has_parameter(self, type: str) -> bool:
        return ("type", type) in self._lookup

    def get_parameter(self, type: str) -> Optional[Parameter]:
        return self._lookup.get(("type", type))

    def _is_missing(self, parameter: Parameter, values: Mapping[str, Any]) -> bool:
        if parameter.name in values:
            return False
        return all(subtype not in values for subtype in parameter.types)

    def get_missing_mandatory_parameters(self, values: Mapping[str, Any]) -> List[Parameter]:
        return [p for p in self.parameters if p.mandatory and self._is_missing(p, values)]

    def get_missing_optional_parameters(self, values: Mapping[str, Any]) -> List[Parameter]:
        return [p for p in self.parameters if not p.mandatory and self._is_missing(p, values)]

    def get_unsupported_parameter_keys(self, values: Mapping[str, Any]) -> List[str]:
        return [key for key in values if self.resolve(key) is None]

    def is_compatible(self, values: Mapping[str, Any]) -> bool:
        """Whether every key is known and no mandatory parameter is missing."""
        return (
            not self.get_unsupported_parameter_keys(values)
            and not self.get_missing_mandatory_parameters(values)
        )

    def validate(self, values: Mapping[str, Any]) -> None:
        unsupported = self.get_unsupported_parameter_keys(values)
        if unsupported:
            raise InvalidParameter(unsupported[0])
        missing = self.get_missing_mandatory_parameters(values)
        if missing:
            raise MissingMandatoryParameters(
                subtype for parameter in missing for subtype in parameter.types
            )

    def serialize_values(self, values: Mapping[str, Any]) -> List[SerializedValue]:
        """Validate ``values`` and serialize them into ``(name, type, value)`` triplets.

        The triplets follow the declaration order of the parameters, one per
        sub-type for composite parameters. Parameters without a value are
        serialized as the empty string.
        """
        self.validate(values)
        serialized: List[SerializedValue] = []
        for parameter in self.parameters:
            for subtype in parameter.types:
                if parameter.name in values:
                    value = parameter.serialize_value(values[parameter.name], subtype)
                elif subtype in values:
                    value = parameter.serialize_value(values[subtype], subtype)
                else:
                    value = ""
                serialized.append((parameter.name, subtype, value))
        return serialized

    @classmethod
    def from_template(
        cls,
        type: str,
        template: str,
        method: str = "GET",
        enctype: str = DEFAULT_ENCTYPE,
        index_offset: int = 1,
        page_offset: int = 1,
        relations: Optional[Sequence[str]] = None,
        extension_parameters: Iterable[Parameter] = (),
    ) -> "Url":
        """Build a Url from its template, merged with extension declarations.

        Parameters declared in both places are combined, the template being
        authoritative for name and type. Parameters only declared through the
        extension are mandatory unless marked optional (``minimum="0"``).
        """
        parameters: List[Parameter] = []
        for name, value in parse_qsl(urlsplit(template).query, keep_blank_values=True):
            parameter = Parameter.from_key_value_pair(name, value)
            if parameter is not None:
                parameters.append(parameter)

        by_name = {p.name: i for i, p in enumerate(parameters)}
        for extension in extension_parameters:
            index = by_name.get(extension.name)
            if index is not None:
                parameters[index] = parameters[index].combined(extension)
            else:
                if extension.mandatory is None:
                    extension = extension.model_copy(update={"mandatory": True})
                by_name[extension.name] = len(parameters)
                parameters.append(extension)

        return cls(
            type, template, parameters,
            method=method,
            enctype=enctype,
            index_offset=index_offset,
            page_offset=page_offset,
            relations=relations,
        )

    @classmethod
    def from_node(cls, node: ET.Element) -> "Url":
        """Build a Url from an ``<os:Url>`` element of a description document."""
        rel = node.get("rel")
        index_offset = parse_number(node.get("indexOffset"))
        page_offset = parse_number(node.get("pageOffset"))
        return cls.from_template(
            node.get("type"),
            node.get("template"),
            method=(get_attribute(node, "method", "parameters") or "GET").upper(),
            enctype=get_attribute(node, "enctype", "parameters") or DEFAULT_ENCTYPE,
            index_offset=1 if index_offset is None else int(index_offset),
            page_offset=1 if page_offset is None else int(page_offset),
            relations=rel.split() if rel else None,
            extension_parameters=[
                Parameter.from_node(child) for child in get_elements(node, "parameters", "Parameter")
            ],
        )
