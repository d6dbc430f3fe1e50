# Overview: Service-layer operations for products and categories; validates payloads and delegates to the catalog store.

# backend/cashier/services/catalog_service.py
"""
Catalog service.

Routes hand raw JSON payloads to these functions. Validation runs against
the ORM column metadata (the same rules apply whatever storage backend is
active), then the store performs the write.

Category references are checked here: a product can only be created or
moved into a category that exists. Orphans only appear when a category is
deleted later.
"""
from __future__ import annotations

from ..errors import NotFoundError
from ..models import Category, Product
from ..records import CategoryRecord, ProductRecord
from ..storage.base import CatalogStore
from ..validation import (
    CATEGORY_POLICY,
    PRODUCT_POLICY,
    enforce_rules_product,
    is_storable_int,
    validate_for_create,
    validate_for_update,
)


def _ensure_storable(kind: str, record_id: int) -> None:
    # Ids past the 64-bit column range cannot exist in either backend
    if not is_storable_int(record_id):
        raise NotFoundError(f"{kind} id {record_id} not found")


def _require_category(catalog: CatalogStore, category_id: int | None) -> None:
    if category_id is None:
        return
    try:
        catalog.find_category(category_id)
    except NotFoundError:
        raise NotFoundError(f"category id {category_id} not found") from None


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------

def list_products(
    catalog: CatalogStore,
    *,
    name: str | None = None,
    active: bool | None = None,
) -> list[ProductRecord]:
    name = name.strip() if name else None
    return catalog.list_products(name=name or None, active=active)


def get_product(catalog: CatalogStore, product_id: int) -> ProductRecord:
    _ensure_storable("product", product_id)
    return catalog.find_product(product_id)


def create_product(catalog: CatalogStore, payload: dict) -> ProductRecord:
    fields = validate_for_create(model=Product, payload=payload, policy=PRODUCT_POLICY)
    enforce_rules_product(fields)
    _require_category(catalog, fields.get("category_id"))
    return catalog.create_product(fields)


def update_product(catalog: CatalogStore, product_id: int, payload: dict) -> ProductRecord:
    patch = validate_for_update(model=Product, payload=payload, policy=PRODUCT_POLICY)
    enforce_rules_product(patch)
    # Unknown product wins over unknown category
    _ensure_storable("product", product_id)
    catalog.find_product(product_id)
    _require_category(catalog, patch.get("category_id"))
    return catalog.update_product(product_id, patch)


def delete_product(catalog: CatalogStore, product_id: int) -> None:
    _ensure_storable("product", product_id)
    catalog.delete_product(product_id)


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

def list_categories(catalog: CatalogStore) -> list[CategoryRecord]:
    return catalog.list_categories()


def get_category(catalog: CatalogStore, category_id: int) -> CategoryRecord:
    _ensure_storable("category", category_id)
    return catalog.find_category(category_id)


def create_category(catalog: CatalogStore, payload: dict) -> CategoryRecord:
    fields = validate_for_create(model=Category, payload=payload, policy=CATEGORY_POLICY)
    return catalog.create_category(fields)


def update_category(catalog: CatalogStore, category_id: int, payload: dict) -> CategoryRecord:
    patch = validate_for_update(model=Category, payload=payload, policy=CATEGORY_POLICY)
    _ensure_storable("category", category_id)
    return catalog.update_category(category_id, patch)


def delete_category(catalog: CatalogStore, category_id: int) -> None:
    """Products that referenced the category keep their category_id."""
    _ensure_storable("category", category_id)
    catalog.delete_category(category_id)
