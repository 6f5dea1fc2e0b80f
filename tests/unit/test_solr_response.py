import pytest

from catalog_bridge.exceptions import DecodeError
from catalog_bridge.services.solr_response import (
    build_facets,
    build_record_collection,
    build_spellcheck,
    build_terms,
)


class TestBuildRecordCollection:
    def test_full_response(self):
        payload = {
            "responseHeader": {"status": 0, "QTime": 12, "params": {"q": "gatsby"}},
            "response": {"numFound": 40, "start": 20, "docs": [{"id": "a"}, {"id": "b"}]},
        }
        collection = build_record_collection(payload, "Solr")
        assert collection.total == 40
        assert collection.offset == 20
        assert collection.qtime == 12
        assert [r.id for r in collection.records] == ["a", "b"]
        assert collection.records[0].source_identifier == "Solr"
        assert collection.spellcheck.query == "gatsby"
        assert collection.spellcheck.terms == []

    def test_missing_response_block(self):
        with pytest.raises(DecodeError):
            build_record_collection({"responseHeader": {}})
        with pytest.raises(DecodeError):
            build_record_collection(["not", "an", "object"])

    def test_missing_qtime(self):
        collection = build_record_collection({"response": {"docs": []}})
        assert collection.qtime is None
        assert collection.total == 0


class TestBuildSpellcheck:
    def test_skips_scalar_entries(self):
        payload = {
            "responseHeader": {"params": {"spellcheck.q": "teh", "q": "ignored"}},
            "spellcheck": {
                "suggestions": [
                    ["teh", {"numFound": 1, "suggestion": ["the"]}],
                    ["correctlySpelled", False],
                    ["collation", "the"],
                ]
            },
        }
        spellcheck = build_spellcheck(payload)
        assert spellcheck.query == "teh"
        assert spellcheck.terms == [("teh", {"numFound": 1, "suggestion": ["the"]})]

    def test_no_block(self):
        assert build_spellcheck({}).terms == []


class TestBuildFacets:
    def test_arrarr_facets(self):
        payload = {"facet_counts": {"facet_fields": [["format", [["Book", 10], ["Map", 2]]]]}}
        assert build_facets(payload) == {"format": [("Book", 10), ("Map", 2)]}

    def test_object_facets(self):
        payload = {"facet_counts": {"facet_fields": {"format": [["Book", 10]]}}}
        assert build_facets(payload) == {"format": [("Book", 10)]}


class TestBuildTerms:
    def test_terms(self):
        terms = build_terms({"terms": {"author": [["austen", 4], ["austin", 1]]}})
        assert terms.get("author") == [("austen", 4), ("austin", 1)]

    def test_named_list_terms(self):
        terms = build_terms({"terms": [["author", [["austen", 4]]]]})
        assert terms.get("author") == [("austen", 4)]

    def test_not_an_object(self):
        with pytest.raises(DecodeError):
            build_terms("oops")
