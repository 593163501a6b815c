# Overview: Service-layer operations for permission; encapsulates business logic and database work.

"""
Permission resolution, catalog seeding and the role-permission matrix.

DESIGN PRINCIPLES:
- Fail closed: deny by default, require an explicit grant
- One role per profile; an inactive profile or role grants nothing
- The matrix is edited as a diff and saved statement by statement
"""

from __future__ import annotations

import logging

from ..extensions import db
from ..models import Profile, Role, RolePermission, Permission
from ..permissions import (
    PERMISSION_DEFINITIONS,
    DEFAULT_ROLE_PERMISSIONS,
    get_permission_definition,
    validate_permission_code,
)
from ..validation import ValidationError, NotFoundError
from .saga import Saga

logger = logging.getLogger(__name__)


def get_user_permissions(user_id: int) -> set[str]:
    """
    Flattened permission codes for a user.

    Returns an empty set when the user has no profile, the profile is
    inactive, it has no role, or the role is inactive.
    """
    profile = db.session.query(Profile).filter_by(user_id=user_id).first()
    if not profile or not profile.is_active or profile.role_id is None:
        return set()

    role = db.session.get(Role, profile.role_id)
    if not role or not role.is_active:
        return set()

    rows = (
        db.session.query(Permission.code)
        .join(RolePermission, RolePermission.permission_id == Permission.id)
        .filter(RolePermission.role_id == role.id)
        .all()
    )
    return {code for (code,) in rows}


def user_has_permission(user_id: int, permission_code: str) -> bool:
    return permission_code in get_user_permissions(user_id)


def initialize_permissions() -> int:
    """
    Initialize all permission definitions in database.

    Idempotent: Safe to run multiple times.
    """
    created_count = 0

    for code, *_ in PERMISSION_DEFINITIONS:
        existing = db.session.query(Permission).filter_by(code=code).first()
        if existing:
            continue
        db.session.add(Permission(**get_permission_definition(code)))
        created_count += 1

    db.session.commit()
    return created_count


def assign_default_role_permissions() -> int:
    """
    Link default roles to their default permissions.

    Idempotent: skips links that already exist and roles not yet created.
    """
    created_count = 0

    for role_name, permission_codes in DEFAULT_ROLE_PERMISSIONS.items():
        role = db.session.query(Role).filter_by(name=role_name).first()
        if not role:
            continue

        for code in permission_codes:
            permission = db.session.query(Permission).filter_by(code=code).first()
            if not permission:
                continue
            existing = db.session.query(RolePermission).filter_by(
                role_id=role.id,
                permission_id=permission.id,
            ).first()
            if existing:
                continue
            db.session.add(RolePermission(role_id=role.id, permission_id=permission.id))
            created_count += 1

    db.session.commit()
    return created_count


def list_permissions() -> list[Permission]:
    """Permission catalog ordered by module, then action."""
    return (
        db.session.query(Permission)
        .order_by(Permission.module.asc(), Permission.action.asc())
        .all()
    )


def list_permissions_grouped() -> dict[str, list[dict]]:
    grouped: dict[str, list[dict]] = {}
    for permission in list_permissions():
        grouped.setdefault(permission.module, []).append(permission.to_dict())
    return grouped


def list_assignments(active_roles_only: bool = True) -> dict:
    """
    Current matrix: {role_id: [permission_id, ...]} plus the roles shown.
    """
    roles_query = db.session.query(Role)
    if active_roles_only:
        roles_query = roles_query.filter(Role.is_active.is_(True))
    roles = roles_query.order_by(Role.name.asc()).all()
    role_ids = [r.id for r in roles]

    matrix = {role_id: [] for role_id in role_ids}
    if role_ids:
        for link in db.session.query(RolePermission).filter(RolePermission.role_id.in_(role_ids)).all():
            matrix[link.role_id].append(link.permission_id)

    return {
        "roles": [r.to_dict() for r in roles],
        "assignments": {str(role_id): sorted(ids) for role_id, ids in matrix.items()},
    }


def _normalize_changes(pending_changes: dict) -> list[tuple[int, int, bool]]:
    """{role_id: {permission_id: bool}} -> sorted [(role_id, permission_id, grant)]."""
    if not isinstance(pending_changes, dict):
        raise ValidationError("changes must be an object keyed by role id")

    flat = []
    for raw_role_id, per_permission in pending_changes.items():
        if not isinstance(per_permission, dict):
            raise ValidationError("each role entry must map permission ids to booleans")
        try:
            role_id = int(raw_role_id)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid role id: {raw_role_id}")
        for raw_permission_id, grant in per_permission.items():
            try:
                permission_id = int(raw_permission_id)
            except (TypeError, ValueError):
                raise ValidationError(f"Invalid permission id: {raw_permission_id}")
            if not isinstance(grant, bool):
                raise ValidationError("grant flags must be booleans")
            flat.append((role_id, permission_id, grant))
    return sorted(flat)


def save_role_permission_changes(pending_changes: dict) -> dict:
    """
    Apply a batch diff to the role-permission matrix.

    Every change is its own insert/delete statement and commit. If one
    fails, the already-applied changes are undone in reverse order and
    SagaError is raised.

    Entries that already match the stored state are skipped.
    """
    changes = _normalize_changes(pending_changes)

    role_ids = {role_id for role_id, _, _ in changes}
    permission_ids = {permission_id for _, permission_id, _ in changes}
    known_roles = {r.id for r in db.session.query(Role).filter(Role.id.in_(role_ids)).all()} if role_ids else set()
    known_permissions = (
        {p.id for p in db.session.query(Permission).filter(Permission.id.in_(permission_ids)).all()}
        if permission_ids else set()
    )
    missing_roles = role_ids - known_roles
    if missing_roles:
        raise NotFoundError(f"Role {min(missing_roles)} not found")
    missing_permissions = permission_ids - known_permissions
    if missing_permissions:
        raise NotFoundError(f"Permission {min(missing_permissions)} not found")

    saga = Saga("save_role_permissions", on_failure=db.session.rollback)
    granted = revoked = 0

    for role_id, permission_id, grant in changes:
        existing = db.session.query(RolePermission).filter_by(
            role_id=role_id, permission_id=permission_id
        ).first()
        if grant and existing is None:
            saga.step(
                f"grant:{role_id}:{permission_id}",
                _grant_action(role_id, permission_id),
                _revoke_action(role_id, permission_id),
            )
            granted += 1
        elif not grant and existing is not None:
            saga.step(
                f"revoke:{role_id}:{permission_id}",
                _revoke_action(role_id, permission_id),
                _grant_action(role_id, permission_id),
            )
            revoked += 1

    saga.run()
    logger.info("Role permissions saved: %d granted, %d revoked", granted, revoked)
    return {"granted": granted, "revoked": revoked}


def _grant_action(role_id: int, permission_id: int):
    def action(_ctx):
        db.session.add(RolePermission(role_id=role_id, permission_id=permission_id))
        db.session.commit()
    return action


def _revoke_action(role_id: int, permission_id: int):
    def action(_ctx):
        db.session.query(RolePermission).filter_by(
            role_id=role_id, permission_id=permission_id
        ).delete()
        db.session.commit()
    return action


def _resolve_names(role_name: str, permission_code: str) -> tuple[Role, Permission]:
    if not validate_permission_code(permission_code):
        raise ValueError(f"Unknown permission code {permission_code}")
    role = db.session.query(Role).filter_by(name=role_name).first()
    if not role:
        raise ValueError(f"Role {role_name} not found")
    permission = db.session.query(Permission).filter_by(code=permission_code).first()
    if not permission:
        raise ValueError(f"Permission {permission_code} not seeded; run `flask system init-permissions`")
    return role, permission


def grant_permission_to_role(role_name: str, permission_code: str) -> bool:
    """Grant by names (CLI helper). Returns False if already granted."""
    role, permission = _resolve_names(role_name, permission_code)

    existing = db.session.query(RolePermission).filter_by(
        role_id=role.id, permission_id=permission.id
    ).first()
    if existing:
        return False

    db.session.add(RolePermission(role_id=role.id, permission_id=permission.id))
    db.session.commit()
    return True


def revoke_permission_from_role(role_name: str, permission_code: str) -> bool:
    """Revoke by names (CLI helper). Returns False if it was not granted."""
    role, permission = _resolve_names(role_name, permission_code)

    deleted = db.session.query(RolePermission).filter_by(
        role_id=role.id, permission_id=permission.id
    ).delete()
    db.session.commit()
    return bool(deleted)
