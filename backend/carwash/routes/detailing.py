# Overview: Flask API routes for wash services; public catalog plus admin CRUD.

# backend/carwash/routes/detailing.py
from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_permission
from ..services import detailing_service
from ..services import storage_service
from ..services.storage_service import UploadValidationError
from ..validation import ValidationError, NotFoundError


services_bp = Blueprint("services", __name__, url_prefix="/api/services")


@services_bp.get("")
def list_public_services():
    """Bookable services: active and visible only."""
    services = detailing_service.list_services(public_only=True, search=request.args.get("q"))
    return jsonify({"items": [s.to_dict() for s in services], "count": len(services)})


@services_bp.get("/<int:service_id>")
def get_public_service(service_id: int):
    try:
        service = detailing_service.get_service(service_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    if not (service.is_active and service.is_visible):
        return jsonify({"error": "Service not found"}), 404
    return jsonify(service.to_dict())


@services_bp.get("/admin")
@require_auth
@require_permission("servicios.ver_listado")
def list_all_services():
    """Back-office listing, hidden and inactive services included."""
    services = detailing_service.list_services(search=request.args.get("q"))
    return jsonify({"items": [s.to_dict() for s in services], "count": len(services)})


@services_bp.post("")
@require_auth
@require_permission("servicios.crear")
def create_service():
    try:
        service = detailing_service.create_service(request.get_json(silent=True) or {}, actor_id=g.current_user.id)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create service")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(service.to_dict()), 201


@services_bp.put("/<int:service_id>")
@require_auth
@require_permission("servicios.editar")
def update_service(service_id: int):
    try:
        service = detailing_service.update_service(
            service_id, request.get_json(silent=True) or {}, actor_id=g.current_user.id
        )
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(service.to_dict())


@services_bp.delete("/<int:service_id>")
@require_auth
@require_permission("servicios.eliminar")
def delete_service(service_id: int):
    """Soft delete; existing appointments keep their service."""
    try:
        service = detailing_service.delete_service(service_id, actor_id=g.current_user.id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(service.to_dict())


@services_bp.post("/<int:service_id>/toggle-visibility")
@require_auth
@require_permission("servicios.cambiar_estado")
def toggle_service_visibility(service_id: int):
    try:
        service = detailing_service.toggle_visibility(service_id, actor_id=g.current_user.id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(service.to_dict())


@services_bp.post("/<int:service_id>/image")
@require_auth
@require_permission("servicios.editar")
def upload_service_image(service_id: int):
    """Multipart upload, field name `image`."""
    try:
        detailing_service.get_service(service_id)
        url = storage_service.save_image(request.files.get("image"), "servicios")
        service = detailing_service.set_image(service_id, url, actor_id=g.current_user.id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except UploadValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(service.to_dict())
