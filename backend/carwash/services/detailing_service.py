# backend/carwash/services/detailing_service.py
"""
Wash/detailing services catalog (the bookable offerings).
"""
from __future__ import annotations

from ..models import Service
from ..validation import ModelValidationPolicy
from . import catalog_common

SERVICE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "price", "duration_minutes", "image_url", "is_visible", "is_active"},
    required_on_create={"name", "price", "duration_minutes"},
)


def list_services(*, public_only: bool = False, search: str | None = None) -> list[Service]:
    return catalog_common.list_items(Service, public_only=public_only, search=search)


def get_service(service_id: int) -> Service:
    return catalog_common.get_item(Service, service_id, "Service")


def create_service(payload: dict, actor_id: int | None = None) -> Service:
    return catalog_common.create_item(Service, SERVICE_POLICY, payload, actor_id=actor_id)


def update_service(service_id: int, payload: dict, actor_id: int | None = None) -> Service:
    return catalog_common.update_item(Service, SERVICE_POLICY, service_id, payload, "Service", actor_id=actor_id)


def delete_service(service_id: int, actor_id: int | None = None) -> Service:
    return catalog_common.soft_delete_item(Service, service_id, "Service", actor_id=actor_id)


def toggle_visibility(service_id: int, actor_id: int | None = None) -> Service:
    return catalog_common.toggle_visibility(Service, service_id, "Service", actor_id=actor_id)


def set_image(service_id: int, image_url: str, actor_id: int | None = None) -> Service:
    return catalog_common.set_image(Service, service_id, image_url, "Service", actor_id=actor_id)
