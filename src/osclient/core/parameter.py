"""Templated OpenSearch parameters and their value serialization.

A parameter is declared either inline in a URL template
(``q={searchTerms}``, ``start={startIndex?}``,
``time={time:start?}/{time:end?}``) or through a ``parameters:Parameter``
element of the OpenSearch parameter extension. Both declarations of the same
parameter are merged with :meth:`Parameter.combined`.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union
import xml.etree.ElementTree as ET

from pydantic import BaseModel, ConfigDict

from .geometry import format_number, to_wkt
from ..utils.xml import get_elements, get_attribute

TYPE_RE = re.compile(r"\{([a-zA-Z:]+)(\??)\}")

Number = Union[int, float]

EO_NUMERIC_TYPES = frozenset({
    "eo:orbitNumber",
    "eo:track",
    "eo:frame",
    "eo:cloudCover",
    "eo:snowCover",
    "eo:startTimeFromAscendingNode",
    "eo:completionTimeFromAscendingNode",
    "eo:illuminationAzimuthAngle",
    "eo:illuminationZenithAngle",
    "eo:illuminationElevationAngle",
    "eo:minimumIncidenceAngle",
    "eo:maximumIncidenceAngle",
    "eo:dopplerFrequency",
    "eo:incidenceAngleVariation",
})

EO_DATE_TYPES = frozenset({
    "eo:availabilityTime",
    "eo:creationDate",
    "eo:modificationDate",
    "eo:processingDate",
})


def parse_number(value: Optional[str]) -> Optional[Number]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError:
        return float(value)


def iso_variants(value: Union[date, datetime]) -> List[str]:
    """ISO-8601 renderings of a date, from most to least precise.

    Order: full (``2000-01-02T01:01:01.000Z``), without milliseconds, without
    timezone, without both. Naive datetimes are taken as UTC.
    """
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    elif value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    base = value.strftime("%Y-%m-%dT%H:%M:%S")
    millis = f".{value.microsecond // 1000:03d}"
    return [f"{base}{millis}Z", f"{base}Z", f"{base}{millis}", base]


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)):
        return format_number(value)
    return str(value)


def _interval_to_string(value: Mapping[str, Any], convert: Callable[[Any], str]) -> str:
    left = None
    right = None
    if "min" in value:
        left = f"[{convert(value['min'])}"
    elif "minInclusive" in value:
        left = f"[{convert(value['minInclusive'])}"
    elif "minExclusive" in value:
        left = f"]{convert(value['minExclusive'])}"

    if "max" in value:
        right = f"{convert(value['max'])}]"
    elif "maxInclusive" in value:
        right = f"{convert(value['maxInclusive'])}]"
    elif "maxExclusive" in value:
        right = f"{convert(value['maxExclusive'])}["

    if left is not None and right is not None:
        return f"{left},{right}"
    return left if left is not None else (right or "")


def eo_value_to_string(value: Any, convert: Callable[[Any], str] = _stringify) -> str:
    """Serialize an EO extension value: a scalar, a ``{v1,v2}`` set or an interval."""
    if isinstance(value, Mapping):
        return _interval_to_string(value, convert)
    if isinstance(value, (list, tuple, set, frozenset)):
        return "{" + ",".join(convert(v) for v in value) + "}"
    return convert(value)


def _optional_types(matches: Sequence[re.Match]) -> Optional[List[str]]:
    """Sub-types marked with ``?`` in a composite slot; ``None`` for single slots."""
    if len(matches) < 2:
        return None
    return [m.group(1) for m in matches if m.group(2) == "?"]


class Parameter(BaseModel):
    """A single OpenSearch URL parameter.

    ``type`` is a list for composite parameters spanning several template
    slots. ``mandatory`` is ``None`` when neither declaration says anything.
    """

    model_config = ConfigDict(frozen=True)

    type: Union[str, List[str]]
    name: str
    mandatory: Optional[bool] = None
    options: Optional[List[Dict[str, Optional[str]]]] = None
    min_exclusive: Optional[Number] = None
    max_exclusive: Optional[Number] = None
    min_inclusive: Optional[Number] = None
    max_inclusive: Optional[Number] = None
    pattern: Optional[str] = None
    optional_types: Optional[List[str]] = None

    @property
    def is_multi(self) -> bool:
        return isinstance(self.type, list)

    @property
    def types(self) -> List[str]:
        """The sub-types of a composite parameter, or ``[type]``."""
        return list(self.type) if isinstance(self.type, list) else [self.type]

    def combined(self, other: "Parameter") -> "Parameter":
        """Return a copy whose unset fields are taken from ``other``."""
        def pick(field: str) -> Any:
            own = getattr(self, field)
            return getattr(other, field) if own is None else own

        return Parameter(
            type=self.type,
            name=self.name,
            mandatory=pick("mandatory"),
            options=pick("options"),
            min_exclusive=pick("min_exclusive"),
            max_exclusive=pick("max_exclusive"),
            min_inclusive=pick("min_inclusive"),
            max_inclusive=pick("max_inclusive"),
            pattern=pick("pattern"),
            optional_types=pick("optional_types"),
        )

    def to_template_value(self) -> str:
        """Re-derive the template slot, e.g. ``{startIndex?}``."""
        if self.optional_types is not None:
            return "/".join(
                f"{{{t}?}}" if t in self.optional_types else f"{{{t}}}" for t in self.types
            )
        marker = "" if self.mandatory else "?"
        return "/".join(f"{{{t}{marker}}}" for t in self.types)

    def serialize_value(self, value: Any, subtype: Optional[str] = None) -> str:
        """Serialize ``value`` into its wire representation.

        For composite parameters ``subtype`` selects the slot to fill: from a
        mapping by key, from a sequence by position. Scalars fill every slot.
        Without ``subtype`` all slots are serialized and joined with ``/``.
        """
        if self.is_multi:
            if subtype is None:
                return "/".join(self.serialize_value(value, t) for t in self.types)
            return self._serialize_typed(self._sub_value(value, subtype), subtype)
        return self._serialize_typed(value, subtype or self.type)

    def _sub_value(self, value: Any, subtype: str) -> Any:
        if isinstance(value, Mapping):
            return value.get(subtype)
        if isinstance(value, (list, tuple)):
            index = self.types.index(subtype)
            return value[index] if index < len(value) else None
        return value

    def _serialize_typed(self, value: Any, type_: str) -> str:
        if value is None:
            return ""
        if type_.startswith("time:"):
            if isinstance(value, (date, datetime)):
                return self._serialize_date(value)
            return _stringify(value)
        if type_ == "geo:box":
            if isinstance(value, (list, tuple)):
                return ",".join(_stringify(v) for v in value)
            return _stringify(value)
        if type_ == "geo:geometry":
            if isinstance(value, Mapping):
                return to_wkt(value)
            return _stringify(value)
        if type_ in EO_NUMERIC_TYPES:
            return eo_value_to_string(value)
        if type_ in EO_DATE_TYPES:
            return eo_value_to_string(value, self._serialize_date_or_value)
        return _stringify(value)

    def _serialize_date_or_value(self, value: Any) -> str:
        if isinstance(value, (date, datetime)):
            return self._serialize_date(value)
        return _stringify(value)

    def _serialize_date(self, value: Union[date, datetime]) -> str:
        variants = iso_variants(value)
        if self.pattern:
            regex = re.compile(self.pattern)
            for candidate in variants:
                if regex.fullmatch(candidate):
                    return candidate
        return variants[0]

    @staticmethod
    def parse_template_value(value: str) -> Optional[List[re.Match]]:
        matches = list(TYPE_RE.finditer(value or ""))
        return matches or None

    @classmethod
    def from_key_value_pair(cls, name: str, value: str) -> Optional["Parameter"]:
        """Parse a query-string pair of a URL template.

        Returns ``None`` when ``value`` holds no placeholder: the pair is a
        literal that stays in the URL as it is.
        """
        matches = cls.parse_template_value(value)
        if matches is None:
            return None
        types = [m.group(1) for m in matches]
        mandatory = any(m.group(2) != "?" for m in matches)
        return cls(
            type=types if len(types) > 1 else types[0],
            name=name,
            mandatory=mandatory,
            optional_types=_optional_types(matches),
        )

    @classmethod
    def from_node(cls, node: ET.Element) -> "Parameter":
        """Build a parameter from a ``parameters:Parameter`` element."""
        name = node.get("name")
        matches = cls.parse_template_value(node.get("value", ""))
        if matches is None:
            type_: Union[str, List[str]] = name
        else:
            types = [m.group(1) for m in matches]
            type_ = types if len(types) > 1 else types[0]

        minimum = node.get("minimum")
        mandatory = None if minimum is None else minimum != "0"

        options = None
        option_nodes = get_elements(node, "parameters", "Option")
        if option_nodes:
            options = [
                {"label": get_attribute(option, "label"), "value": get_attribute(option, "value")}
                for option in option_nodes
            ]

        return cls(
            type=type_,
            name=name,
            mandatory=mandatory,
            options=options,
            min_exclusive=parse_number(node.get("minExclusive")),
            max_exclusive=parse_number(node.get("maxExclusive")),
            min_inclusive=parse_number(node.get("minInclusive")),
            max_inclusive=parse_number(node.get("maxInclusive")),
            pattern=node.get("pattern"),
        )
