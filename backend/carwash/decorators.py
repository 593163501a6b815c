# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import request, jsonify, g, current_app, redirect

from .gates import RouteAction, RouteState, evaluate_route
from .permissions.oracle import PermissionOracle, PermissionSnapshot
from .services import session_service
from .services.session_service import SessionEvent


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def _is_authenticated() -> bool:
    # g can outlive a request when an app context is already pushed
    token = g.get("auth_token")
    return token is not None and token == bearer_token() and hasattr(g, "snapshot")


def _establish_context(token: str) -> bool:
    """Populate g from a valid session. Returns False for a bad token."""
    context = session_service.validate_session(token)
    if not context:
        return False

    if context.session.snapshot is None:
        context.snapshot = session_service.reload_snapshot(context.session, SessionEvent.TOKEN_REFRESHED)

    g.auth_token = token
    g.current_user = context.user
    g.session_context = context
    g.snapshot = context.snapshot
    g.oracle = PermissionOracle(context.snapshot)
    return True


def current_snapshot() -> PermissionSnapshot:
    """Snapshot for this request; anonymous when no valid token was sent."""
    if _is_authenticated():
        return g.snapshot
    token = bearer_token()
    if token and _establish_context(token):
        return g.snapshot
    return PermissionSnapshot.anonymous()


def _log_denied(required, missing) -> None:
    current_app.logger.warning(
        "PERMISSION_DENIED user=%s path=%s method=%s required=%s missing=%s ip=%s",
        g.current_user.id, request.path, request.method,
        ",".join(required), ",".join(missing), request.remote_addr,
    )


def require_auth(f):
    """
    Require a valid session.

    Sets on flask.g:
    - g.current_user: the authenticated User
    - g.snapshot: the session's cached PermissionSnapshot
    - g.oracle: PermissionOracle over that snapshot
    - g.session_context: the full SessionContext
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        if not _establish_context(token):
            return jsonify({"error": "Invalid or expired token"}), 401

        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """Require a specific permission (use after @require_auth)."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if not g.oracle.has_permission(permission_code):
                _log_denied([permission_code], [permission_code])
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": permission_code,
                    "message": f"Se requiere el permiso: {permission_code}",
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_any_permission(*permission_codes):
    """Require any of the specified permissions."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if not g.oracle.has_any_permission(permission_codes):
                _log_denied(permission_codes, permission_codes)
                return jsonify({
                    "error": "Permission denied",
                    "required_permissions": list(permission_codes),
                    "message": f"Se requiere al menos uno de estos permisos: {', '.join(permission_codes)}",
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_all_permissions(*permission_codes):
    """Require all of the specified permissions."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            missing = g.oracle.missing_permissions(permission_codes)
            if missing:
                _log_denied(permission_codes, missing)
                return jsonify({
                    "error": "Permission denied",
                    "required_permissions": list(permission_codes),
                    "missing_permissions": missing,
                    "message": f"Se requieren todos estos permisos: {', '.join(permission_codes)}",
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def decision_response(decision):
    """Map a RouteDecision onto an HTTP response (None means: proceed)."""
    if decision.state == RouteState.AUTHORIZED:
        return None

    body = decision.to_dict()
    if decision.state == RouteState.LOADING:
        return jsonify(body), 503
    if decision.state == RouteState.UNAUTHENTICATED:
        body["error"] = "Authentication required"
        return jsonify(body), 401
    if decision.action == RouteAction.ACCESS_DENIED:
        body["error"] = "Access denied"
        return jsonify(body), 403

    # Redirect with replace semantics: 303 so the target is fetched with GET
    return redirect(decision.redirect_to, code=303)


def require_access(
    permission: str | None = None,
    permissions=(),
    require_all: bool = False,
    redirect_to: str = "/",
    show_access_denied: bool = True,
    allow_unguarded: bool = False,
):
    """
    Route gate for a whole endpoint. Authenticates on its own, so it does
    not need @require_auth in front of it.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            snapshot = current_snapshot()
            decision = evaluate_route(
                snapshot,
                permission=permission,
                permissions=permissions,
                require_all=require_all,
                redirect_to=redirect_to,
                show_access_denied=show_access_denied,
                allow_unguarded=allow_unguarded,
            )
            if decision.state == RouteState.UNAUTHORIZED:
                _log_denied(decision.required_permissions, decision.missing_permissions)

            response = decision_response(decision)
            if response is not None:
                return response
            return f(*args, **kwargs)

        return decorated_function
    return decorator
