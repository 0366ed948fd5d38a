"""Mocked catalogue service shared by the integration tests."""

import json

import httpx

from tests.fakes import atom_feed

DESCRIPTION_URL = "http://cat.example.com/opensearch.xml"
TOTAL_RESULTS = 23
MAX_PAGE_SIZE = 10

DESCRIPTION_XML = """<?xml version="1.0" encoding="UTF-8"?>
<OpenSearchDescription xmlns="http://a9.com/-/spec/opensearch/1.1/"
    xmlns:parameters="http://a9.com/-/spec/opensearch/extensions/parameters/1.0/">
  <ShortName>EO Catalogue</ShortName>
  <Description>Earth observation products.</Description>
  <Url type="application/atom+xml"
       template="http://cat.example.com/atom?q={searchTerms?}&amp;start={startIndex?}&amp;count={count?}&amp;bbox={geo:box?}">
    <parameters:Parameter name="count" value="{count}" minimum="0" maxInclusive="10"/>
  </Url>
  <Url type="application/geo+json"
       template="http://cat.example.com/json?q={searchTerms?}&amp;start={startIndex?}&amp;count={count?}"/>
  <Url type="application/x-suggestions+json" rel="suggestions"
       template="http://cat.example.com/suggest?q={searchTerms}"/>
</OpenSearchDescription>"""


def _page_bounds(request: httpx.Request):
    start = int(request.url.params.get("start") or 1)
    count = min(int(request.url.params.get("count") or MAX_PAGE_SIZE), MAX_PAGE_SIZE)
    first = start - 1
    return start, range(first, min(first + count, TOTAL_RESULTS))


def atom_page(request: httpx.Request) -> httpx.Response:
    start, indices = _page_bounds(request)
    text = atom_feed([f"p{i + 1}" for i in indices], TOTAL_RESULTS, start, MAX_PAGE_SIZE)
    return httpx.Response(200, text=text, headers={"Content-Type": "application/atom+xml"})


def geojson_page(request: httpx.Request) -> httpx.Response:
    start, indices = _page_bounds(request)
    collection = {
        "type": "FeatureCollection",
        "properties": {"totalResults": TOTAL_RESULTS, "startIndex": start, "itemsPerPage": MAX_PAGE_SIZE},
        "features": [
            {"type": "Feature", "id": f"p{i + 1}", "geometry": {"type": "Point", "coordinates": [i, i]}, "properties": {}}
            for i in indices
        ],
    }
    return httpx.Response(200, json=collection)


def suggestions(request: httpx.Request) -> httpx.Response:
    term = request.url.params.get("q")
    return httpx.Response(200, json=[term, [f"{term}er", f"{term}ershed"]])


def mock_catalogue(router) -> None:
    """Register the catalogue routes on a respx router."""
    router.get(DESCRIPTION_URL).mock(return_value=httpx.Response(200, text=DESCRIPTION_XML))
    router.get(host="cat.example.com", path="/atom").mock(side_effect=atom_page)
    router.get(host="cat.example.com", path="/json").mock(side_effect=geojson_page)
    router.get(host="cat.example.com", path="/suggest").mock(side_effect=suggestions)
