# Overview: Backend error translation to localized {title, description} pairs and JSON error handlers.

from __future__ import annotations

from flask import current_app, jsonify
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from werkzeug.exceptions import HTTPException

from .validation import ValidationError, ConflictError, NotFoundError


MESSAGES = {
    "auth.invalid_credentials": "Credenciales de inicio de sesión inválidas",
    "auth.email_not_confirmed": "El correo electrónico no ha sido confirmado",
    "auth.user_already_registered": "El usuario ya está registrado",
    "auth.user_not_found": "Usuario no encontrado",
    "auth.invalid_email": "Correo electrónico inválido",
    "auth.email_already_exists": "Este correo electrónico ya está registrado",
    "auth.invalid_password": "Contraseña inválida",
    "auth.weak_password": "La contraseña es demasiado débil",
    "auth.password_must_be_different": "La nueva contraseña debe ser diferente a la contraseña anterior",
    "auth.rate_limit": "Se ha excedido el límite de envíos de correo. Intenta más tarde",
    "auth.signup_disabled": "El registro está deshabilitado temporalmente",
    "auth.invalid_refresh_token": "Token de sesión inválido. Por favor, inicia sesión nuevamente",
    "auth.session_expired": "Sesión expirada. Por favor, inicia sesión nuevamente",
    "auth.user_banned": "Este usuario ha sido suspendido",
    "database.duplicate_key": "Este registro ya existe",
    "database.foreign_key_violation": "No se puede completar la operación debido a restricciones de datos",
    "database.not_null_violation": "Faltan datos requeridos",
    "database.check_violation": "Los datos no cumplen con las restricciones de validación",
    "database.permission_denied": "No tienes permisos para realizar esta acción",
    "database.insufficient_privilege": "Permisos insuficientes",
    "database.policy_violation": "Violación de políticas de seguridad",
    "database.record_exists": "Este registro ya existe en el sistema",
    "database.reference_error": "Referencia a un registro inexistente",
    "network.failed_to_fetch": "Error de conexión. Verifica tu conexión a internet",
    "network.request_failed": "Error de red. Verifica tu conexión a internet",
    "network.timeout": "La solicitud ha tardado demasiado. Intenta nuevamente",
    "validation.invalid_input": "Entrada inválida",
    "validation.valid_email": "Debe ser un correo electrónico válido",
    "validation.value_too_long": "El valor es demasiado largo",
    "validation.value_too_short": "El valor es demasiado corto",
    "generic.not_found": "No encontrado",
    "generic.unauthorized": "No autorizado",
    "generic.forbidden": "Prohibido",
    "generic.bad_request": "Solicitud incorrecta",
    "generic.internal_server_error": "Error interno del servidor",
    "generic.service_unavailable": "Servicio no disponible temporalmente",
    "generic.something_went_wrong": "Algo salió mal",
    "generic.unknown_error": "Error desconocido",
    "generic.unexpected_error": "Ha ocurrido un error inesperado",
}

TITLES = {
    "error": "Error",
    "auth": "Error de Autenticación",
    "duplicate": "Registro Duplicado",
    "reference": "Error de Referencia",
    "permission": "Permiso Denegado",
    "connection": "Error de Conexión",
    "validation": "Error de Validación",
}

# HTTP status per title category
TITLE_STATUS = {
    "duplicate": 409,
    "reference": 409,
    "permission": 403,
    "auth": 401,
    "connection": 503,
    "validation": 400,
    "error": 500,
}

# Backend error codes (PostgreSQL SQLSTATE + auth provider codes)
CODE_MAP = {
    "23505": "database.record_exists",
    "23503": "database.reference_error",
    "23502": "database.not_null_violation",
    "23514": "database.check_violation",
    "42501": "database.permission_denied",
    "invalid_credentials": "auth.invalid_credentials",
    "email_not_confirmed": "auth.email_not_confirmed",
    "user_already_registered": "auth.user_already_registered",
    "weak_password": "auth.weak_password",
}

# Substring matches, checked in order
MESSAGE_MAP = (
    ("invalid login credentials", "auth.invalid_credentials"),
    ("invalid credentials", "auth.invalid_credentials"),
    ("email not confirmed", "auth.email_not_confirmed"),
    ("user already registered", "auth.user_already_registered"),
    ("user not found", "auth.user_not_found"),
    ("invalid email", "auth.invalid_email"),
    ("email already exists", "auth.email_already_exists"),
    ("invalid password", "auth.invalid_password"),
    ("weak password", "auth.weak_password"),
    ("password should be different", "auth.password_must_be_different"),
    ("rate limit exceeded", "auth.rate_limit"),
    ("signup disabled", "auth.signup_disabled"),
    ("invalid refresh token", "auth.invalid_refresh_token"),
    ("invalid or expired token", "auth.session_expired"),
    ("user banned", "auth.user_banned"),
    ("duplicate key value", "database.duplicate_key"),
    ("unique constraint failed", "database.duplicate_key"),
    ("violates foreign key constraint", "database.foreign_key_violation"),
    ("foreign key constraint failed", "database.foreign_key_violation"),
    ("violates not-null constraint", "database.not_null_violation"),
    ("not null constraint failed", "database.not_null_violation"),
    ("violates check constraint", "database.check_violation"),
    ("check constraint failed", "database.check_violation"),
    ("permission denied", "database.permission_denied"),
    ("insufficient privilege", "database.insufficient_privilege"),
    ("policy violation", "database.policy_violation"),
    ("failed to fetch", "network.failed_to_fetch"),
    ("network request failed", "network.request_failed"),
    ("timeout", "network.timeout"),
    ("invalid input", "validation.invalid_input"),
    ("must be a valid email", "validation.valid_email"),
    ("value too long", "validation.value_too_long"),
    ("value too short", "validation.value_too_short"),
    ("not found", "generic.not_found"),
    ("unauthorized", "generic.unauthorized"),
    ("forbidden", "generic.forbidden"),
    ("bad request", "generic.bad_request"),
    ("internal server error", "generic.internal_server_error"),
    ("service unavailable", "generic.service_unavailable"),
    ("something went wrong", "generic.something_went_wrong"),
    ("unknown error", "generic.unknown_error"),
)


def translate_message(message: str | None, code: str | None = None) -> str:
    """
    Localize a backend error message.

    Lookup order: error code, message substring, a few compound patterns.
    Unknown messages are returned unchanged.
    """
    if not message:
        return MESSAGES["generic.unexpected_error"]

    if code and code in CODE_MAP:
        return MESSAGES[CODE_MAP[code]]

    lowered = message.lower()
    for needle, key in MESSAGE_MAP:
        if needle in lowered:
            return MESSAGES[key]

    if "email" in lowered and "already" in lowered:
        return MESSAGES["auth.email_already_exists"]
    if "password" in lowered and ("weak" in lowered or "strong" in lowered):
        return MESSAGES["auth.weak_password"]
    if "rate limit" in lowered:
        return MESSAGES["auth.rate_limit"]
    if "token" in lowered and ("expired" in lowered or "invalid" in lowered):
        return MESSAGES["auth.invalid_refresh_token"]

    return message


def classify(message: str | None, code: str | None = None) -> str:
    """Title category for an error (keys of TITLES)."""
    lowered = (message or "").lower()
    if code == "23505" or "duplicate" in lowered or "unique constraint" in lowered:
        return "duplicate"
    if code == "23503" or "foreign key" in lowered:
        return "reference"
    if code == "42501" or "permission" in lowered or "unauthorized" in lowered:
        return "permission"
    if "login" in lowered or "credentials" in lowered:
        return "auth"
    if "network" in lowered or "fetch" in lowered:
        return "connection"
    if "validation" in lowered or "invalid" in lowered:
        return "validation"
    return "error"


def describe_error(message: str | None, code: str | None = None) -> dict:
    """Return {"title", "description"} for a raw backend message/code."""
    if not message and not code:
        return {"title": TITLES["error"], "description": MESSAGES["generic.unexpected_error"]}
    return {
        "title": TITLES[classify(message, code)],
        "description": translate_message(message, code),
    }


def _sqlstate(exc: SQLAlchemyError) -> str | None:
    orig = getattr(exc, "orig", None)
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def translate_backend_error(exc: SQLAlchemyError) -> tuple[dict, int]:
    """Map a database exception to a localized payload and HTTP status."""
    code = _sqlstate(exc)
    message = str(getattr(exc, "orig", None) or exc)
    category = classify(message, code)
    if category == "error" and isinstance(exc, IntegrityError):
        category = "validation"
    payload = {
        "error": TITLES[category],
        "title": TITLES[category],
        "description": translate_message(message, code),
    }
    return payload, TITLE_STATUS[category]


def register_error_handlers(app) -> None:
    """JSON bodies for the error classes routes let escape."""

    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        return jsonify({"error": str(e), "title": TITLES["validation"], "description": str(e)}), 400

    @app.errorhandler(ConflictError)
    def handle_conflict_error(e):
        return jsonify({"error": str(e), "title": TITLES["duplicate"], "description": str(e)}), 409

    @app.errorhandler(NotFoundError)
    def handle_not_found_error(e):
        return jsonify({"error": str(e) or MESSAGES["generic.not_found"]}), 404

    @app.errorhandler(SQLAlchemyError)
    def handle_db_error(e):
        from .extensions import db
        db.session.rollback()
        if isinstance(e, (IntegrityError, DBAPIError)) and getattr(e, "orig", None) is not None:
            current_app.logger.warning("Database error: %s", e.orig)
        else:
            current_app.logger.exception("Unexpected database error")
        payload, status = translate_backend_error(e)
        return jsonify(payload), status

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        if e.code and 300 <= e.code < 400:
            return e
        return jsonify({"error": e.description or e.name}), e.code
