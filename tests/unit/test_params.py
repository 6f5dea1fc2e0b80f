from catalog_bridge.params import ParamBag, Query


class TestParamBag:
    def test_set_replaces_all_prior_values(self):
        bag = ParamBag()
        bag.add("wt", "xml")
        bag.add("wt", "php")
        bag.set("wt", "json")
        assert bag.get("wt") == ["json"]

    def test_add_appends(self):
        bag = ParamBag({"fq": "format:Book"})
        bag.add("fq", "language:English")
        assert bag.get("fq") == ["format:Book", "language:English"]

    def test_scalar_conversion(self):
        bag = ParamBag({"rows": 0, "spellcheck": True, "terms.lower.incl": False})
        assert bag.get("rows") == ["0"]
        assert bag.get("spellcheck") == ["true"]
        assert bag.get("terms.lower.incl") == ["false"]

    def test_get_missing_returns_none(self):
        bag = ParamBag()
        assert bag.get("q") is None
        assert bag.get_first("q") is None
        assert bag.get_first("q", "*:*") == "*:*"

    def test_get_returns_a_copy(self):
        bag = ParamBag({"fq": ["a"]})
        bag.get("fq").append("b")
        assert bag.get("fq") == ["a"]

    def test_merge_with_appends_other_values(self):
        bag = ParamBag({"q": "*:*", "fq": "a"})
        bag.merge_with(ParamBag({"fq": ["b", "c"], "hl": "true"}))
        assert bag.get("fq") == ["a", "b", "c"]
        assert bag.get("hl") == ["true"]
        assert bag.get("q") == ["*:*"]

    def test_copy_is_independent(self):
        bag = ParamBag({"q": "x"})
        clone = bag.copy()
        clone.set("q", "y")
        assert bag.get("q") == ["x"]
        assert clone == ParamBag({"q": "y"})

    def test_remove_and_contains(self):
        bag = ParamBag({"q": "x"})
        assert "q" in bag
        bag.remove("q")
        assert not bag.has("q")
        bag.remove("q")

    def test_query_params_keep_insertion_order(self):
        bag = ParamBag()
        bag.set("service", "holds")
        bag.set("patronId", "P1")
        bag.add("fq", ["a", "b"])
        assert bag.to_query_params() == [
            ("service", "holds"),
            ("patronId", "P1"),
            ("fq", "a"),
            ("fq", "b"),
        ]


class TestQuery:
    def test_blank_query_matches_everything(self):
        assert Query().solr_query == "*:*"
        assert Query("   ").solr_query == "*:*"

    def test_all(self):
        assert Query.all().string == "*:*"

    def test_params_become_param_bag(self):
        query = Query("dickens", params={"qf": "title"})
        assert query.to_param_bag().get("qf") == ["title"]
