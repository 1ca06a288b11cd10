"""
Structured data (JSON-LD) as an explicit tree.

Parsed JSON is converted into JsonObject / JsonArray / JsonScalar nodes and
walked by a small recursive visitor. Everything type-specific (LocalBusiness
NAP, Product offers, Article authorship) reads the tree, never raw dicts.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Iterator, Union


@dataclass(frozen=True)
class JsonScalar:
    value: Any = None

    def is_present(self) -> bool:
        if self.value is None:
            return False
        if isinstance(self.value, str):
            return bool(self.value.strip())
        return True


@dataclass(frozen=True)
class JsonArray:
    items: tuple["JsonNode", ...] = ()

    def is_present(self) -> bool:
        return any(item.is_present() for item in self.items)


@dataclass(frozen=True)
class JsonObject:
    fields: dict[str, "JsonNode"] = field(default_factory=dict)

    def is_present(self) -> bool:
        return bool(self.fields)

    def get(self, key: str) -> "JsonNode":
        return self.fields.get(key, JsonScalar(None))

    def has(self, key: str) -> bool:
        return self.get(key).is_present()

    @property
    def types(self) -> list[str]:
        """Values of @type, which may be a string or a list of strings."""
        node = self.get("@type")
        if isinstance(node, JsonScalar) and isinstance(node.value, str):
            return [node.value]
        if isinstance(node, JsonArray):
            return [
                item.value for item in node.items
                if isinstance(item, JsonScalar) and isinstance(item.value, str)
            ]
        return []


JsonNode = Union[JsonObject, JsonArray, JsonScalar]


# Subtypes that count as the base type for completeness checks
LOCAL_BUSINESS_TYPES = {
    "LocalBusiness", "Restaurant", "Store", "ProfessionalService", "MedicalBusiness",
    "LegalService", "HomeAndConstructionBusiness", "AutomotiveBusiness",
    "FinancialService", "FoodEstablishment", "HealthAndBeautyBusiness", "Dentist",
}
ARTICLE_TYPES = {"Article", "NewsArticle", "BlogPosting", "TechArticle", "Report"}
ORGANIZATION_TYPES = {"Organization", "Corporation"} | LOCAL_BUSINESS_TYPES


def to_tree(value: Any) -> JsonNode:
    """Convert json.loads output into tagged nodes."""
    if isinstance(value, dict):
        return JsonObject({str(k): to_tree(v) for k, v in value.items()})
    if isinstance(value, list):
        return JsonArray(tuple(to_tree(v) for v in value))
    return JsonScalar(value)


def parse_block(raw: str) -> JsonNode:
    """Parse one <script type="application/ld+json"> body. Raises ValueError."""
    return to_tree(json.loads(raw))


def iter_objects(node: JsonNode) -> Iterator[JsonObject]:
    """Depth-first walk yielding every object in the tree, outermost first."""
    if isinstance(node, JsonObject):
        yield node
        for child in node.fields.values():
            yield from iter_objects(child)
    elif isinstance(node, JsonArray):
        for child in node.items:
            yield from iter_objects(child)


def collect_types(nodes: list[JsonNode]) -> dict[str, int]:
    """Histogram of @type occurrences across all nesting levels."""
    histogram: dict[str, int] = {}
    for node in nodes:
        for obj in iter_objects(node):
            for type_name in obj.types:
                histogram[type_name] = histogram.get(type_name, 0) + 1
    return histogram


def objects_of_type(nodes: list[JsonNode], names: set[str]) -> list[JsonObject]:
    return [
        obj
        for node in nodes
        for obj in iter_objects(node)
        if names.intersection(obj.types)
    ]


def has_search_action(nodes: list[JsonNode]) -> bool:
    """WebSite entity with a potentialAction of type SearchAction."""
    for website in objects_of_type(nodes, {"WebSite"}):
        action = website.get("potentialAction")
        candidates = action.items if isinstance(action, JsonArray) else (action,)
        for candidate in candidates:
            if isinstance(candidate, JsonObject) and "SearchAction" in candidate.types:
                return True
    return False


def local_business_fields(nodes: list[JsonNode]) -> dict[str, bool]:
    """NAP + hours, satisfied if any LocalBusiness entity carries the field."""
    result = {"name": False, "address": False, "telephone": False, "hours": False}
    for obj in objects_of_type(nodes, LOCAL_BUSINESS_TYPES):
        result["name"] |= obj.has("name")
        result["address"] |= obj.has("address")
        result["telephone"] |= obj.has("telephone")
        result["hours"] |= obj.has("openingHours") or obj.has("openingHoursSpecification")
    return result


def product_fields(nodes: list[JsonNode]) -> dict[str, bool]:
    result = {"offer": False, "price": False, "currency": False}
    for product in objects_of_type(nodes, {"Product"}):
        offers = product.get("offers")
        if not offers.is_present():
            continue
        result["offer"] = True
        offer_objects = list(iter_objects(offers))
        result["price"] |= any(o.has("price") or o.has("lowPrice") for o in offer_objects)
        result["currency"] |= any(o.has("priceCurrency") for o in offer_objects)
    return result


def article_fields(nodes: list[JsonNode]) -> dict[str, bool]:
    result = {"author": False, "date_published": False}
    for article in objects_of_type(nodes, ARTICLE_TYPES):
        result["author"] |= article.has("author")
        result["date_published"] |= article.has("datePublished")
    return result
