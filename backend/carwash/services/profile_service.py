# Overview: Service-layer operations for profiles; snapshot loading and the users admin panel.

from __future__ import annotations

from ..extensions import db
from ..models import Profile, Role, User
from ..validation import ModelValidationPolicy, ValidationError, ConflictError, NotFoundError, validate_payload
from . import permission_service
from carwash.time_utils import utcnow

PROFILE_POLICY = ModelValidationPolicy(
    writable_fields={"first_name", "last_name", "national_id", "phone", "role_id", "is_active"},
)

# What a signed-in user may change on their own profile
SELF_SERVICE_POLICY = ModelValidationPolicy(
    writable_fields={"first_name", "last_name", "national_id", "phone"},
)


def load_snapshot(user_id: int) -> dict:
    """
    Profile + role + flattened permission codes for one user.

    This is the payload cached on the session at every session-change
    event. Profile and role are loaded together; permissions come from the
    get_user_permissions aggregation.
    """
    profile = (
        db.session.query(Profile)
        .outerjoin(Role, Profile.role_id == Role.id)
        .filter(Profile.user_id == user_id)
        .first()
    )
    return {
        "profile": profile.to_dict(include_role=False) if profile else None,
        "role": profile.role.to_dict() if profile and profile.role else None,
        "permissions": sorted(permission_service.get_user_permissions(user_id)),
    }


def get_profile(user_id: int) -> Profile:
    profile = db.session.query(Profile).filter_by(user_id=user_id).first()
    if not profile:
        raise NotFoundError("Profile not found")
    return profile


def list_profiles(search: str | None = None) -> list[dict]:
    """
    All profiles with role and e-mail, most recently updated first.

    `search` is a case-insensitive substring match over name, DNI, phone,
    e-mail and role name, applied to the fetched collection.
    """
    rows = (
        db.session.query(Profile, User)
        .join(User, Profile.user_id == User.id)
        .order_by(db.func.coalesce(Profile.updated_at, Profile.created_at).desc(), Profile.id.desc())
        .all()
    )
    items = []
    for profile, user in rows:
        data = profile.to_dict()
        data["email"] = user.email
        items.append(data)

    if search:
        needle = search.strip().lower()
        items = [
            item for item in items
            if needle in " ".join(str(v) for v in (
                item["first_name"], item["last_name"], item["national_id"] or "",
                item["phone"] or "", item["email"], (item["role"] or {}).get("name", ""),
            )).lower()
        ]
    return items


def update_profile(profile_id: int, payload: dict, policy: ModelValidationPolicy = PROFILE_POLICY) -> Profile:
    """Patch profile fields (including role assignment under the admin policy)."""
    profile = db.session.get(Profile, profile_id)
    if not profile:
        raise NotFoundError("Profile not found")

    patch = validate_payload(model=Profile, payload=payload, policy=policy, partial=True)

    if "role_id" in patch and patch["role_id"] is not None:
        role = db.session.get(Role, patch["role_id"])
        if not role:
            raise ValidationError("role_id does not reference an existing role")

    if patch.get("national_id") is not None:
        _ensure_national_id_free(patch["national_id"], exclude_profile_id=profile.id)

    for key, value in patch.items():
        setattr(profile, key, value)
    profile.updated_at = utcnow()
    db.session.commit()
    return profile


def update_own_profile(user_id: int, payload: dict) -> Profile:
    """Self-service edit: personal data only, never role or active flag."""
    profile = get_profile(user_id)
    return update_profile(profile.id, payload, policy=SELF_SERVICE_POLICY)


def change_role(profile_id: int, role_id: int | None) -> Profile:
    return update_profile(profile_id, {"role_id": role_id})


def set_active(profile_id: int, is_active: bool) -> Profile:
    """
    Activate/deactivate a profile. Deactivation also blocks login and
    revokes the user's open sessions.
    """
    from . import session_service

    profile = db.session.get(Profile, profile_id)
    if not profile:
        raise NotFoundError("Profile not found")

    profile.is_active = bool(is_active)
    profile.updated_at = utcnow()
    if profile.user:
        profile.user.is_active = bool(is_active)
    db.session.commit()

    if not is_active:
        session_service.revoke_all_user_sessions(profile.user_id, reason="Profile deactivated")
    return profile


def toggle_active(profile_id: int) -> Profile:
    profile = db.session.get(Profile, profile_id)
    if not profile:
        raise NotFoundError("Profile not found")
    return set_active(profile_id, not profile.is_active)


def deactivate(profile_id: int) -> Profile:
    """Soft delete: profiles are never removed."""
    return set_active(profile_id, False)


def _ensure_national_id_free(national_id: int, exclude_profile_id: int | None = None) -> None:
    query = db.session.query(Profile).filter(Profile.national_id == national_id)
    if exclude_profile_id is not None:
        query = query.filter(Profile.id != exclude_profile_id)
    if query.first():
        raise ConflictError("A profile with this DNI already exists")
