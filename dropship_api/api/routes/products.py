"""Product catalog routes.

Route order matters: the category routes are registered before ``/{product_id}``
so that ``/products/footwear`` is not read as a product id.
"""

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query

from dropship_api.db.mongo import ReadyStore
from dropship_api.services.catalog_service import (
    CATEGORY_MAP,
    build_product_query,
    get_product,
    list_products,
    resolve_category,
)

router = APIRouter()


class ListParams:
    """Raw list parameters, parsed leniently by the query builder and never rejected."""

    def __init__(
        self,
        limit: Optional[str] = Query(None, description="Page size; 0 or absent means no limit"),
        page: Optional[str] = Query(None, description="1-based page number"),
        sort: Optional[str] = Query(None, description="price-asc, price-desc, name-asc or name-desc"),
    ):
        self.limit = limit
        self.page = page
        self.sort = sort

    def as_dict(self) -> dict:
        return {"limit": self.limit, "page": self.page, "sort": self.sort}


Params = Annotated[ListParams, Depends()]


@router.get("", response_model=List[dict])
async def list_all_products(store: ReadyStore, params: Params):
    """List all products."""
    return await list_products(store.products, build_product_query(params.as_dict()))


@router.get("/category/{slug}", response_model=List[dict])
async def list_products_by_slug(slug: str, store: ReadyStore, params: Params):
    """List products of the category named by a URL slug."""
    category = resolve_category(slug)
    return await list_products(store.products, build_product_query(params.as_dict(), category))


def _category_endpoint(label: str):
    async def list_category(store: ReadyStore, params: Params):
        return await list_products(store.products, build_product_query(params.as_dict(), label))

    list_category.__doc__ = f"List {label} products."
    return list_category


# Fixed category shortcuts: /products/clothing, /products/footwear, ...
for _slug, _label in CATEGORY_MAP.items():
    router.add_api_route(
        f"/{_slug}",
        _category_endpoint(_label),
        methods=["GET"],
        response_model=List[dict],
        name=f"list_{_slug.replace('-', '_')}_products",
    )


@router.get("/{product_id}", response_model=dict)
async def get_single_product(product_id: str, store: ReadyStore):
    """Get a single product by id."""
    return await get_product(store.products, product_id)
