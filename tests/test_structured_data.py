"""Tests for the JSON-LD tree and its visitors."""

import json

import pytest

from geo_analyzer.crawlers import structured_data as sd


def _nodes(*blocks):
    return [sd.parse_block(json.dumps(block)) for block in blocks]


class TestTree:
    def test_tagged_variants(self):
        node = sd.to_tree({"@type": "Thing", "list": [1, "a"], "n": None})
        assert isinstance(node, sd.JsonObject)
        assert isinstance(node.get("list"), sd.JsonArray)
        assert isinstance(node.get("n"), sd.JsonScalar)
        assert not node.has("n")
        assert not node.has("missing")

    def test_type_may_be_list(self):
        node = sd.to_tree({"@type": ["Organization", "LocalBusiness"]})
        assert node.types == ["Organization", "LocalBusiness"]

    def test_invalid_json_raises_value_error(self):
        with pytest.raises(ValueError):
            sd.parse_block("{not json")


class TestCollectTypes:
    def test_counts_nested_and_graph_entries(self):
        nodes = _nodes(
            {"@graph": [
                {"@type": "WebSite"},
                {"@type": "Organization", "address": {"@type": "PostalAddress"}},
            ]},
            [{"@type": "WebSite"}],
        )
        assert sd.collect_types(nodes) == {"WebSite": 2, "Organization": 1, "PostalAddress": 1}

    def test_ignores_scalars(self):
        assert sd.collect_types(_nodes("text", 5)) == {}


class TestSearchAction:
    def test_single_action(self):
        nodes = _nodes({"@type": "WebSite", "potentialAction": {"@type": "SearchAction"}})
        assert sd.has_search_action(nodes)

    def test_action_list(self):
        nodes = _nodes({"@type": "WebSite", "potentialAction": [{"@type": "ReadAction"}, {"@type": "SearchAction"}]})
        assert sd.has_search_action(nodes)

    def test_action_outside_website(self):
        nodes = _nodes({"@type": "Organization", "potentialAction": {"@type": "SearchAction"}})
        assert not sd.has_search_action(nodes)


class TestTypeSpecificFields:
    def test_local_business_subtype(self):
        nodes = _nodes({
            "@type": "Restaurant",
            "name": "Zur Post",
            "telephone": "+49 2933 1234",
            "openingHoursSpecification": [{"@type": "OpeningHoursSpecification"}],
        })
        assert sd.local_business_fields(nodes) == {
            "name": True, "address": False, "telephone": True, "hours": True,
        }

    def test_blank_values_do_not_count(self):
        nodes = _nodes({"@type": "LocalBusiness", "name": "  ", "address": {}})
        fields = sd.local_business_fields(nodes)
        assert fields["name"] is False
        assert fields["address"] is False

    def test_product_offer(self):
        nodes = _nodes({
            "@type": "Product",
            "offers": [{"@type": "Offer", "price": "19.90", "priceCurrency": "EUR"}],
        })
        assert sd.product_fields(nodes) == {"offer": True, "price": True, "currency": True}

    def test_product_aggregate_offer_low_price(self):
        nodes = _nodes({"@type": "Product", "offers": {"@type": "AggregateOffer", "lowPrice": 5}})
        assert sd.product_fields(nodes) == {"offer": True, "price": True, "currency": False}

    def test_product_without_offer(self):
        assert sd.product_fields(_nodes({"@type": "Product"})) == {
            "offer": False, "price": False, "currency": False,
        }

    def test_article(self):
        nodes = _nodes({"@type": "BlogPosting", "author": {"@type": "Person", "name": "B. Z."}})
        assert sd.article_fields(nodes) == {"author": True, "date_published": False}
