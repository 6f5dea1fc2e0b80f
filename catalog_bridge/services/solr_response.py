"""Builders for Solr JSON responses written with ``json.nl=arrarr``.

With that named-list style every Solr NamedList arrives as a list of
``[name, value]`` pairs, which keeps term order intact.
"""

from typing import Any

from catalog_bridge.exceptions import DecodeError
from catalog_bridge.models import RecordCollection, SearchRecord, Spellcheck, Terms


def _pairs(value: Any) -> list[tuple[str, Any]]:
    if not isinstance(value, list):
        return []
    return [
        (str(entry[0]), entry[1])
        for entry in value
        if isinstance(entry, list) and len(entry) == 2
    ]


def build_spellcheck(payload: dict[str, Any]) -> Spellcheck:
    block = payload.get("spellcheck") or {}
    params = (payload.get("responseHeader") or {}).get("params") or {}
    query = params.get("spellcheck.q") or params.get("q") or ""
    if isinstance(query, list):
        query = query[0] if query else ""
    # Only term entries carry a dict; correctlySpelled/collation are scalars.
    terms = [
        (term, info)
        for term, info in _pairs(block.get("suggestions"))
        if isinstance(info, dict)
    ]
    return Spellcheck(query=str(query), terms=terms)


def build_facets(payload: dict[str, Any]) -> dict[str, list[tuple[str, int]]]:
    fields = ((payload.get("facet_counts") or {}).get("facet_fields")) or {}
    if isinstance(fields, list):
        fields = dict(_pairs(fields))
    return {name: [(v, int(c)) for v, c in _pairs(values)] for name, values in fields.items()}


def build_record_collection(payload: Any, source_identifier: str | None = None) -> RecordCollection:
    if not isinstance(payload, dict) or not isinstance(payload.get("response"), dict):
        raise DecodeError("Solr response has no response block", str(payload)[:200])

    response = payload["response"]
    qtime = (payload.get("responseHeader") or {}).get("QTime")
    return RecordCollection(
        total=int(response.get("numFound", 0)),
        offset=int(response.get("start", 0)),
        records=[
            SearchRecord(data=doc, source_identifier=source_identifier)
            for doc in response.get("docs") or []
        ],
        spellcheck=build_spellcheck(payload),
        facets=build_facets(payload),
        qtime=qtime if isinstance(qtime, int) else None,
        source_identifier=source_identifier,
    )


def build_terms(payload: Any) -> Terms:
    if not isinstance(payload, dict):
        raise DecodeError("Solr terms response is not an object", str(payload)[:200])
    block = payload.get("terms") or {}
    if isinstance(block, list):
        block = dict(_pairs(block))
    return Terms(data={field: [(t, int(c)) for t, c in _pairs(values)] for field, values in block.items()})
