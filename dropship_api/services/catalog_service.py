"""Product catalog queries.

``build_product_query`` turns raw list parameters into a store query and is
shared by the generic listing, the category slug route and the fixed category
shortcuts. It never touches the store.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from bson import ObjectId
from fastapi.encoders import jsonable_encoder
from pymongo import ASCENDING, DESCENDING

from dropship_api.core.errors import InvalidCategoryError, InvalidIdError, NotFoundError

logger = logging.getLogger(__name__)

# URL slug -> category label stored on product documents
CATEGORY_MAP: Dict[str, str] = {
    "clothing": "Clothing",
    "traditional-wear": "Traditional Wear",
    "footwear": "Footwear",
    "accessories": "Accessories",
}

SORT_OPTIONS: Dict[str, List[Tuple[str, int]]] = {
    "price-asc": [("price", ASCENDING)],
    "price-desc": [("price", DESCENDING)],
    "name-asc": [("name", ASCENDING)],
    "name-desc": [("name", DESCENDING)],
}

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True)
class ProductQuery:
    """A store-ready product listing query.

    ``sort`` is None for featured (natural) order; ``limit`` 0 means no limit.
    """

    filter: Dict[str, Any] = field(default_factory=dict)
    sort: Optional[List[Tuple[str, int]]] = None
    skip: int = 0
    limit: int = 0
    page: int = 1


def parse_int(value: Any) -> Optional[int]:
    """Parse the leading integer of ``value`` ("3abc" -> 3), or None if there is none."""
    if value is None:
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    match = _LEADING_INT.match(str(value))
    if not match:
        return None
    return int(match.group(1))


def resolve_category(slug: Optional[str]) -> str:
    """Map a URL slug to its category label."""
    label = CATEGORY_MAP.get((slug or "").lower())
    if label is None:
        raise InvalidCategoryError("Invalid category")
    return label


def build_product_query(params: Mapping[str, Any], category: Optional[str] = None) -> ProductQuery:
    """Build the listing query from raw ``limit``/``page``/``sort`` parameters.

    Invalid numbers fall back to their defaults instead of failing: a bad
    ``limit`` means no limit, a bad ``page`` means the first page.
    """
    limit = max(0, parse_int(params.get("limit")) or 0)
    page = max(1, parse_int(params.get("page")) or 1)
    skip = (page - 1) * limit if limit else 0

    sort = SORT_OPTIONS.get(params.get("sort") or "")
    query_filter = {"category": category} if category else {}

    return ProductQuery(filter=query_filter, sort=sort, skip=skip, limit=limit, page=page)


def serialize_product(doc: dict) -> dict:
    """Product documents pass through as-is, with ObjectIds rendered as strings."""
    return jsonable_encoder(doc, custom_encoder={ObjectId: str})


async def list_products(products, query: ProductQuery) -> List[dict]:
    cursor = products.find(query.filter)
    if query.sort:
        cursor = cursor.sort(query.sort)
    if query.skip:
        cursor = cursor.skip(query.skip)
    if query.limit:
        cursor = cursor.limit(query.limit)
    docs = await cursor.to_list(length=None)
    logger.debug(f"Product query {query} returned {len(docs)} documents")
    return [serialize_product(doc) for doc in docs]


async def get_product(products, product_id: str) -> dict:
    if not ObjectId.is_valid(product_id):
        raise InvalidIdError("Invalid id")
    doc = await products.find_one({"_id": ObjectId(product_id)})
    if doc is None:
        raise NotFoundError("Not found")
    return serialize_product(doc)
