# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/carwash/routes/auth.py
"""
Authentication API routes

- Self-registration creates a customer profile with the default role
- Login returns the bearer token plus the permission snapshot
- Refresh/password updates rebuild the snapshot cached on the session
- /profile is the self-service view and edit of the signed-in user
- access-check evaluates the route gate for the front end
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, bearer_token, current_snapshot
from ..errors import describe_error
from ..gates import evaluate_route
from ..services import auth_service
from ..services import booking_service
from ..services import order_service
from ..services import profile_service
from ..services import session_service
from ..services.auth_service import PasswordValidationError
from ..services.session_service import SessionEvent
from ..validation import ValidationError, ConflictError, NotFoundError


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _session_payload(session, token=None) -> dict:
    snapshot = session.snapshot or {}
    payload = {
        "profile": snapshot.get("profile"),
        "role": snapshot.get("role"),
        "permissions": snapshot.get("permissions") or [],
        "session": session.to_dict(),
    }
    if token is not None:
        payload["token"] = token
    return payload


@auth_bp.post("/register")
def register_route():
    """
    Customer self-registration.

    Body: email, password, first_name, last_name, national_id (DNI), phone
    """
    data = request.get_json(silent=True) or {}

    try:
        user = auth_service.register_user(
            email=data.get("email"),
            password=data.get("password"),
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            national_id=data.get("national_id"),
            phone=data.get("phone"),
        )
    except PasswordValidationError as e:
        return jsonify({"error": str(e), **describe_error("weak password")}), 400
    except ValidationError as e:
        return jsonify({"error": str(e), **describe_error(str(e))}), 400
    except ConflictError as e:
        return jsonify({"error": str(e), **describe_error(str(e), "23505")}), 409
    except NotFoundError:
        current_app.logger.exception("Default customer role missing; run `flask system init`")
        return jsonify({"error": "Registration is not available"}), 500

    return jsonify({
        "user": user.to_dict(),
        "profile": user.profile.to_dict(),
        "message": "Registration successful",
    }), 201


@auth_bp.post("/login")
def login_route():
    """
    Authenticate and create a session token (LOGIN event).

    Token must be included in Authorization header for protected routes.
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        user = auth_service.authenticate(email, password)
        if not user:
            current_app.logger.warning("LOGIN_FAILED email=%s ip=%s", email, request.remote_addr)
            return jsonify({"error": "Invalid login credentials", **describe_error("invalid login credentials")}), 401

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )

        return jsonify({
            "user": user.to_dict(),
            **_session_payload(session, token),
            "message": "Login successful",
        }), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    """Revoke session token (LOGOUT event)."""
    token = bearer_token()
    if not token:
        return jsonify({"error": "Authorization header required"}), 401

    if not session_service.revoke_session(token, reason="User logout"):
        return jsonify({"error": "Invalid or expired token"}), 401

    return jsonify({"message": "Logout successful"}), 200


@auth_bp.post("/validate")
@require_auth
def validate_route():
    """
    Return the identity and the snapshot cached on this session.

    The snapshot is NOT reloaded here; use /refresh for that.
    """
    return jsonify({
        "user": g.current_user.to_dict(),
        **_session_payload(g.session_context.session),
        "message": "Token is valid",
    }), 200


@auth_bp.post("/refresh")
def refresh_route():
    """TOKEN_REFRESHED: rebuild the snapshot and extend the session."""
    token = bearer_token()
    if not token:
        return jsonify({"error": "Authorization header required"}), 401

    context = session_service.refresh_session(token)
    if not context:
        return jsonify({"error": "Invalid or expired token"}), 401

    return jsonify({
        "user": context.user.to_dict(),
        **_session_payload(context.session),
        "message": "Session refreshed",
    }), 200


@auth_bp.post("/password-reset/request")
def password_reset_request_route():
    """
    Request a reset link. Always answers with the same message so the
    endpoint does not reveal which addresses are registered.
    """
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    if not email:
        return jsonify({"error": "email required"}), 400

    message, token = auth_service.request_password_reset(email)
    if token is not None:
        # Delivery is handled by the mail collaborator
        current_app.logger.info("Password reset token issued")
    return jsonify({"message": message}), 200


@auth_bp.post("/password-reset/confirm")
def password_reset_confirm_route():
    data = request.get_json(silent=True) or {}
    token = data.get("token")
    password = data.get("password")
    if not token or not password:
        return jsonify({"error": "token and password required"}), 400

    try:
        auth_service.reset_password(token, password)
    except PasswordValidationError as e:
        return jsonify({"error": str(e), **describe_error("weak password")}), 400
    except ValidationError as e:
        return jsonify({"error": str(e), **describe_error(str(e))}), 400

    return jsonify({"message": "Password updated"}), 200


@auth_bp.post("/password")
@require_auth
def update_password_route():
    """Change password for the signed-in user (PASSWORD_UPDATED event)."""
    data = request.get_json(silent=True) or {}
    password = data.get("password")
    if not password:
        return jsonify({"error": "password required"}), 400

    try:
        auth_service.update_password(g.current_user.id, password)
    except PasswordValidationError as e:
        return jsonify({"error": str(e), **describe_error(str(e))}), 400

    session_service.reload_snapshot(g.session_context.session, SessionEvent.PASSWORD_UPDATED)
    return jsonify({"message": "Password updated"}), 200


@auth_bp.get("/profile")
@require_auth
def get_profile_route():
    """Profile page: own profile plus booking and order history."""
    user = g.current_user
    try:
        profile = profile_service.get_profile(user.id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    appointments = booking_service.list_for_client(user.id)
    orders = order_service.list_for_client(user.id)
    return jsonify({
        "user": user.to_dict(),
        "profile": profile.to_dict(),
        "appointments": [a.to_dict() for a in appointments],
        "orders": [o.to_dict() for o in orders],
    }), 200


@auth_bp.patch("/profile")
@require_auth
def update_profile_route():
    """
    Self-service profile edit.

    Body: any of first_name, last_name, national_id, phone. Role and
    active flag are admin-only. The session snapshot is reloaded so the
    new profile data shows up on the next request.
    """
    try:
        profile = profile_service.update_own_profile(g.current_user.id, request.get_json(silent=True) or {})
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e), **describe_error(str(e))}), 400
    except ConflictError as e:
        return jsonify({"error": str(e), **describe_error(str(e), "23505")}), 409

    session_service.reload_snapshot(g.session_context.session, SessionEvent.PROFILE_UPDATED)
    return jsonify({"profile": profile.to_dict(), "message": "Profile updated"}), 200


@auth_bp.post("/access-check")
def access_check_route():
    """
    Evaluate the route gate for a page.

    Body: permission | permissions + require_all, redirect_to,
    show_access_denied. Works without a token (the answer is then the
    login redirect).
    """
    data = request.get_json(silent=True) or {}
    permission = data.get("permission")
    permissions = data.get("permissions") or []
    redirect_to = data.get("redirect_to") or "/"
    if permission is not None and not isinstance(permission, str):
        return jsonify({"error": "permission must be a string"}), 400
    if not isinstance(permissions, list) or not all(isinstance(code, str) for code in permissions):
        return jsonify({"error": "permissions must be a list of strings"}), 400
    if not isinstance(redirect_to, str):
        return jsonify({"error": "redirect_to must be a string"}), 400

    decision = evaluate_route(
        current_snapshot(),
        permission=permission,
        permissions=permissions,
        require_all=bool(data.get("require_all", False)),
        redirect_to=redirect_to,
        show_access_denied=bool(data.get("show_access_denied", True)),
    )
    return jsonify(decision.to_dict()), 200
