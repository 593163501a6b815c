# Overview: Service-layer operations for roles.

from __future__ import annotations

from ..extensions import db
from ..models import Role, Profile
from ..validation import ModelValidationPolicy, ValidationError, ConflictError, NotFoundError, validate_payload
from carwash.time_utils import utcnow

ROLE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "is_active"},
    required_on_create={"name"},
)

SYSTEM_ROLE_DELETE_MESSAGE = "Los roles del sistema no pueden ser eliminados"


class SystemRoleError(ValueError):
    """Operation not allowed on a system role."""


def list_roles(search: str | None = None) -> list[Role]:
    roles = db.session.query(Role).order_by(Role.name.asc()).all()
    if search:
        needle = search.strip().lower()
        roles = [r for r in roles if needle in r.name.lower() or needle in (r.description or "").lower()]
    return roles


def get_role(role_id: int) -> Role:
    role = db.session.get(Role, role_id)
    if not role:
        raise NotFoundError("Role not found")
    return role


def _ensure_name_free(name: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Role).filter(db.func.lower(Role.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(Role.id != exclude_id)
    if query.first():
        raise ConflictError("A role with this name already exists")


def create_role(payload: dict) -> Role:
    """Roles created through the panel are never system roles."""
    patch = validate_payload(model=Role, payload=payload, policy=ROLE_POLICY, partial=False)
    _ensure_name_free(patch["name"])

    role = Role(
        name=patch["name"],
        description=patch.get("description"),
        is_active=patch.get("is_active", True),
        is_system=False,
    )
    db.session.add(role)
    db.session.commit()
    return role


def update_role(role_id: int, payload: dict) -> Role:
    role = get_role(role_id)
    patch = validate_payload(model=Role, payload=payload, policy=ROLE_POLICY, partial=True)
    if "name" in patch:
        _ensure_name_free(patch["name"], exclude_id=role.id)

    for key, value in patch.items():
        setattr(role, key, value)
    role.updated_at = utcnow()
    db.session.commit()
    return role


def toggle_active(role_id: int) -> Role:
    role = get_role(role_id)
    role.is_active = not role.is_active
    role.updated_at = utcnow()
    db.session.commit()
    return role


def delete_role(role: Role) -> None:
    """
    Hard delete a non-system role.

    System roles are rejected before any statement is issued. Roles still
    assigned to profiles cannot be deleted.
    """
    if role.is_system:
        raise SystemRoleError(SYSTEM_ROLE_DELETE_MESSAGE)

    in_use = db.session.query(Profile.id).filter_by(role_id=role.id).first()
    if in_use:
        raise ConflictError("Role is assigned to one or more users")

    db.session.delete(role)
    db.session.commit()


def delete_role_by_id(role_id: int) -> None:
    delete_role(get_role(role_id))
