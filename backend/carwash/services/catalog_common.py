# Overview: Shared CRUD operations for catalog tables (products and wash services).

from __future__ import annotations

from ..extensions import db
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    enforce_rules_catalog_item,
    validate_payload,
)
from . import audit_service
from .audit_service import AuditAction
from carwash.time_utils import utcnow


def list_items(model, *, include_inactive: bool = True, public_only: bool = False,
               search: str | None = None) -> list:
    """
    Full collection ordered by name. `search` is a case-insensitive substring
    match over name and description, applied after fetching.
    """
    query = db.session.query(model)
    if public_only:
        query = query.filter(model.is_active.is_(True), model.is_visible.is_(True))
    elif not include_inactive:
        query = query.filter(model.is_active.is_(True))
    items = query.order_by(model.name.asc(), model.id.asc()).all()

    if search:
        needle = search.strip().lower()
        items = [i for i in items if needle in i.name.lower() or needle in (i.description or "").lower()]
    return items


def get_item(model, item_id: int, label: str):
    item = db.session.get(model, item_id)
    if not item:
        raise NotFoundError(f"{label} not found")
    return item


def create_item(model, policy: ModelValidationPolicy, payload: dict, actor_id: int | None = None):
    patch = validate_payload(model=model, payload=payload, policy=policy, partial=False)
    enforce_rules_catalog_item(patch)

    item = model(**patch)
    db.session.add(item)
    db.session.flush()
    audit_service.record(actor_id, AuditAction.INSERT, model.__tablename__, item.id,
                         data=item.to_dict(), commit=False)
    db.session.commit()
    return item


def update_item(model, policy: ModelValidationPolicy, item_id: int, payload: dict, label: str,
                actor_id: int | None = None):
    item = get_item(model, item_id, label)
    patch = validate_payload(model=model, payload=payload, policy=policy, partial=True)
    enforce_rules_catalog_item(patch)

    for key, value in patch.items():
        setattr(item, key, value)
    item.updated_at = utcnow()
    audit_service.record(actor_id, AuditAction.UPDATE, model.__tablename__, item.id,
                         data={k: item.to_dict().get(k) for k in patch}, commit=False)
    db.session.commit()
    return item


def soft_delete_item(model, item_id: int, label: str, actor_id: int | None = None):
    """Mark inactive and hidden; rows are kept for order/appointment history."""
    item = get_item(model, item_id, label)
    item.is_active = False
    item.is_visible = False
    item.updated_at = utcnow()
    audit_service.record(actor_id, AuditAction.DELETE, model.__tablename__, item.id, commit=False)
    db.session.commit()
    return item


def toggle_visibility(model, item_id: int, label: str, actor_id: int | None = None):
    item = get_item(model, item_id, label)
    item.is_visible = not item.is_visible
    item.updated_at = utcnow()
    audit_service.record(actor_id, AuditAction.UPDATE, model.__tablename__, item.id,
                         data={"is_visible": item.is_visible}, commit=False)
    db.session.commit()
    return item


def set_image(model, item_id: int, image_url: str, label: str, actor_id: int | None = None):
    item = get_item(model, item_id, label)
    item.image_url = image_url
    item.updated_at = utcnow()
    audit_service.record(actor_id, AuditAction.UPDATE, model.__tablename__, item.id,
                         data={"image_url": image_url}, commit=False)
    db.session.commit()
    return item
