"""Build transport-agnostic requests from a Url and parameter values."""

from __future__ import annotations

import re
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote, urlencode, urlsplit, urlunsplit

from ..core.errors import UnsupportedEnctype
from ..core.models import BaseRequest
from ..core.url import Url

FORM_URLENCODED = "application/x-www-form-urlencoded"
MULTIPART = "multipart/form-data"

# characters kept readable in substituted values (dates, boxes, intervals, sets)
SAFE_CHARS = ":,/[]{}"

SLOT_RE = re.compile(r"\{([a-zA-Z:]+)(\??)\}")


def _drop_empty_query_parameters(url: str) -> str:
    parts = urlsplit(url)
    query = "&".join(
        pair for pair in parts.query.split("&")
        if pair and not pair.endswith("=")
    )
    return urlunsplit(parts._replace(query=query))


def create_base_request(
    url: Url,
    parameter_values: Mapping[str, Any],
    drop_empty_parameters: bool = False,
    headers: Optional[Mapping[str, str]] = None,
) -> BaseRequest:
    """Validate and serialize ``parameter_values`` into a ``BaseRequest``.

    GET requests substitute the values into the URL template; optional slots
    left without a value become empty. POST requests send the values as form
    data encoded per the Url's ``enctype``.

    Raises:
        InvalidParameter: a key is not known to ``url``.
        MissingMandatoryParameters: a mandatory parameter has no value.
        UnsupportedEnctype: POST with an enctype other than urlencoded/multipart.
    """
    serialized = url.serialize_values(parameter_values)
    request_headers: Dict[str, str] = dict(headers or {})

    if url.method == "GET":
        values: Dict[str, str] = {}
        for _, type_, value in serialized:
            values.setdefault(type_, quote(value, safe=SAFE_CHARS))

        def fill(match: re.Match) -> str:
            type_, optional = match.group(1), match.group(2)
            if type_ in values:
                return values[type_]
            return "" if optional else match.group(0)

        # substituted values are never scanned for slots
        url_string = SLOT_RE.sub(fill, url.url)

        if drop_empty_parameters:
            url_string = _drop_empty_query_parameters(url_string)

        return BaseRequest(method=url.method, url=url_string, headers=request_headers)

    pairs = [
        (name, value) for name, _, value in serialized
        if not (drop_empty_parameters and value == "")
    ]
    enctype = url.enctype or FORM_URLENCODED
    if enctype == FORM_URLENCODED:
        request_headers["Content-Type"] = enctype
        return BaseRequest(method=url.method, url=url.url, headers=request_headers, body=urlencode(pairs, quote_via=quote))
    if enctype == MULTIPART:
        # the transport sets Content-Type together with the multipart boundary
        return BaseRequest(method=url.method, url=url.url, headers=request_headers, multipart=pairs)
    raise UnsupportedEnctype(enctype)
