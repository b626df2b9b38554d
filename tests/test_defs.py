"""Tests for rename rules, service definitions and naming helpers."""

import pytest

from stitchgraph.core.defs import RenameRule, ServiceDef, namespace_rules
from stitchgraph.core.utils import map_typenames, to_pascal_case


def test_rename_rule_matches_whole_name():
    rule = RenameRule("type", "Customer", "Catalog{name}")
    assert rule.apply("Customer") == "CatalogCustomer"
    assert rule.apply("CustomerAddress") is None
    assert rule.apply("Order") is None


def test_rename_rule_pascal_case_placeholder():
    rule = RenameRule("root_field", r".*", "Catalog{Name}")
    assert rule.apply("customer") == "CatalogCustomer"
    assert rule.apply("customer_by_id") == "CatalogCustomerById"


def test_rename_rule_rejects_unknown_target():
    with pytest.raises(ValueError):
        RenameRule("field", ".*", "{name}")


def test_namespace_rules_all_names():
    rules = namespace_rules("Catalog")
    assert [r.target for r in rules] == ["type", "root_field"]
    assert rules[0].apply("Customer") == "CatalogCustomer"
    assert rules[1].apply("customer") == "CatalogCustomer"


def test_namespace_rules_selected_names():
    rules = namespace_rules("Catalog", types=["Customer"], root_fields=["customer"])
    type_rules = [r for r in rules if r.target == "type"]
    assert type_rules[0].apply("Customer") == "CatalogCustomer"
    assert type_rules[0].apply("Address") is None


def test_service_def_rules_from_namespace():
    assert ServiceDef("catalog", "http://catalog").rename_rules() == []

    service = ServiceDef("catalog", "http://catalog", namespace="Catalog", rename_root_fields=())
    rules = service.rename_rules()
    assert [r.target for r in rules] == ["type"]


def test_to_pascal_case():
    assert to_pascal_case("customer") == "Customer"
    assert to_pascal_case("customerById") == "CustomerById"
    assert to_pascal_case("order_items") == "OrderItems"


def test_map_typenames_nested():
    data = {"a": {"__typename": "Customer", "items": [{"__typename": "Order", "id": 1}]}}
    result = map_typenames(data, lambda name: "X" + name)
    assert result == {"a": {"__typename": "XCustomer", "items": [{"__typename": "XOrder", "id": 1}]}}
    assert data["a"]["__typename"] == "Customer"
