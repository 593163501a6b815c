# backend/carwash/services/products_service.py
"""
Products Service

Shop products with decimal-comma prices and integer stock. Deleting a
product only deactivates it, so past orders keep their lines.
"""
from __future__ import annotations

from ..models import Product
from ..validation import ModelValidationPolicy
from . import catalog_common

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "price", "stock", "image_url", "is_visible", "is_active"},
    required_on_create={"name", "price"},
)


def list_products(*, public_only: bool = False, search: str | None = None) -> list[Product]:
    return catalog_common.list_items(Product, public_only=public_only, search=search)


def get_product(product_id: int) -> Product:
    return catalog_common.get_item(Product, product_id, "Product")


def create_product(payload: dict, actor_id: int | None = None) -> Product:
    return catalog_common.create_item(Product, PRODUCT_POLICY, payload, actor_id=actor_id)


def update_product(product_id: int, payload: dict, actor_id: int | None = None) -> Product:
    return catalog_common.update_item(Product, PRODUCT_POLICY, product_id, payload, "Product", actor_id=actor_id)


def delete_product(product_id: int, actor_id: int | None = None) -> Product:
    return catalog_common.soft_delete_item(Product, product_id, "Product", actor_id=actor_id)


def toggle_visibility(product_id: int, actor_id: int | None = None) -> Product:
    return catalog_common.toggle_visibility(Product, product_id, "Product", actor_id=actor_id)


def set_image(product_id: int, image_url: str, actor_id: int | None = None) -> Product:
    return catalog_common.set_image(Product, product_id, image_url, "Product", actor_id=actor_id)
