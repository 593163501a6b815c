# Overview: Flask API routes for admin operations; users, roles, the permission matrix and audit.

from flask import Blueprint, request, jsonify, g

from ..decorators import current_snapshot, require_access, require_auth, require_permission
from ..gates import visibility_gate
from ..permissions.oracle import PermissionOracle
from ..services import audit_service
from ..services import auth_service
from ..services import permission_service
from ..services import profile_service
from ..services import role_service
from ..services.auth_service import PasswordValidationError
from ..services.role_service import SystemRoleError
from ..services.saga import SagaError
from ..validation import ValidationError, ConflictError, NotFoundError


admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


# -- Panel --

# (tab, permission that shows it), in display order
ADMIN_PANEL_TABS = [
    ("products", "productos.ver_listado"),
    ("services", "servicios.ver_listado"),
    ("users", "usuarios.ver_listado"),
    ("turnos", "turnos.ver_listado"),
    ("pedidos", "pedidos.ver_listado"),
    ("roles", "roles.ver_listado"),
    ("permissions", "roles.asignar_permisos"),
]

# Any listing permission opens the panel
ADMIN_PANEL_PERMISSIONS = [code for tab, code in ADMIN_PANEL_TABS if code.endswith(".ver_listado")]

# (module, tab) tried in order for the initial tab
DEFAULT_TAB_ORDER = [
    ("productos", "products"),
    ("servicios", "services"),
    ("usuarios", "users"),
    ("turnos", "turnos"),
    ("pedidos", "pedidos"),
    ("roles", "roles"),
]


@admin_bp.get("/panel")
@require_access(permissions=ADMIN_PANEL_PERMISSIONS)
def admin_panel():
    """
    Back-office landing: the tabs this user can open and the one to start on.

    Anonymous callers get 401 with the login redirect; signed-in users
    without any listing permission get the access-denied view (403).
    """
    snapshot = current_snapshot()
    oracle = PermissionOracle(snapshot)

    tabs = [tab for tab, code in ADMIN_PANEL_TABS if visibility_gate(snapshot, tab, permission=code)]
    default_tab = next((tab for module, tab in DEFAULT_TAB_ORDER if oracle.can_access(module)), "products")
    return jsonify({"tabs": tabs, "default_tab": default_tab, "role": snapshot.role})


# -- Users --

@admin_bp.get("/users")
@require_auth
@require_permission("usuarios.ver_listado")
def list_users():
    """All profiles with role and e-mail. Query: q (substring filter)."""
    items = profile_service.list_profiles(search=request.args.get("q"))
    return jsonify({"items": items, "count": len(items)})


@admin_bp.post("/users")
@require_auth
@require_permission("usuarios.crear")
def create_user():
    data = request.get_json(silent=True) or {}
    role_id = data.get("role_id")

    role_name = None
    if role_id is not None:
        try:
            role_name = role_service.get_role(int(role_id)).name
        except (TypeError, ValueError):
            return jsonify({"error": "role_id must be an integer"}), 400
        except NotFoundError as e:
            return jsonify({"error": str(e)}), 404

    try:
        user = auth_service.register_user(
            email=data.get("email"),
            password=data.get("password"),
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            national_id=data.get("national_id"),
            phone=data.get("phone"),
            role_name=role_name,
        )
    except (ValidationError, PasswordValidationError) as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409

    return jsonify({**user.profile.to_dict(), "email": user.email}), 201


@admin_bp.patch("/users/<int:profile_id>")
@require_auth
@require_permission("usuarios.editar")
def update_user(profile_id: int):
    """Edit profile fields, including role_id."""
    try:
        profile = profile_service.update_profile(profile_id, request.get_json(silent=True) or {})
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    return jsonify(profile.to_dict())


@admin_bp.post("/users/<int:profile_id>/toggle-active")
@require_auth
@require_permission("usuarios.editar")
def toggle_user(profile_id: int):
    try:
        profile = profile_service.toggle_active(profile_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(profile.to_dict())


@admin_bp.delete("/users/<int:profile_id>")
@require_auth
@require_permission("usuarios.eliminar")
def deactivate_user(profile_id: int):
    """Soft delete."""
    if profile_id == getattr(g.current_user.profile, "id", None):
        return jsonify({"error": "You cannot deactivate your own account"}), 400
    try:
        profile = profile_service.deactivate(profile_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(profile.to_dict())


# -- Roles --

@admin_bp.get("/roles")
@require_auth
@require_permission("roles.ver_listado")
def list_roles():
    roles = role_service.list_roles(search=request.args.get("q"))
    return jsonify({"items": [r.to_dict() for r in roles], "count": len(roles)})


@admin_bp.post("/roles")
@require_auth
@require_permission("roles.crear")
def create_role():
    try:
        role = role_service.create_role(request.get_json(silent=True) or {})
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    return jsonify(role.to_dict()), 201


@admin_bp.put("/roles/<int:role_id>")
@require_auth
@require_permission("roles.editar")
def update_role(role_id: int):
    try:
        role = role_service.update_role(role_id, request.get_json(silent=True) or {})
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    return jsonify(role.to_dict())


@admin_bp.post("/roles/<int:role_id>/toggle-active")
@require_auth
@require_permission("roles.editar")
def toggle_role(role_id: int):
    try:
        role = role_service.toggle_active(role_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(role.to_dict())


@admin_bp.delete("/roles/<int:role_id>")
@require_auth
@require_permission("roles.eliminar")
def delete_role(role_id: int):
    try:
        role_service.delete_role_by_id(role_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except SystemRoleError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    return jsonify({"ok": True})


# -- Permission matrix --

@admin_bp.get("/permissions")
@require_auth
@require_permission("roles.ver_listado")
def list_permissions():
    """Permission catalog grouped by module."""
    return jsonify({"modules": permission_service.list_permissions_grouped()})


@admin_bp.get("/role-permissions")
@require_auth
@require_permission("roles.ver_listado")
def list_role_permissions():
    return jsonify(permission_service.list_assignments())


@admin_bp.put("/role-permissions")
@require_auth
@require_permission("roles.asignar_permisos")
def save_role_permissions():
    """
    Save the pending-changes map: {"changes": {role_id: {permission_id: bool}}}.

    Open sessions keep their cached permissions until they refresh.
    """
    data = request.get_json(silent=True) or {}
    try:
        result = permission_service.save_role_permission_changes(data.get("changes") or {})
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except SagaError as e:
        return jsonify({
            "error": "Could not save permission changes",
            "failed_step": e.failed_step,
            "rolled_back": e.fully_compensated,
        }), 500
    return jsonify({**result, **permission_service.list_assignments()})


# -- Audit --

@admin_bp.get("/audit")
@require_auth
@require_permission("auditoria.ver_listado")
def list_audit():
    """Filters: user_id, date_from, date_to, action, table."""
    try:
        entries = audit_service.query_entries(
            user_id=request.args.get("user_id", type=int),
            date_from=request.args.get("date_from"),
            date_to=request.args.get("date_to"),
            action=request.args.get("action"),
            table_name=request.args.get("table"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    items = audit_service.enrich_entries(entries)
    return jsonify({"items": items, "count": len(items)})
