# Overview: Flask API routes for products; public catalog plus admin CRUD.

# backend/carwash/routes/products.py
from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_permission
from ..services import products_service
from ..services import storage_service
from ..services.storage_service import UploadValidationError
from ..validation import ValidationError, NotFoundError


products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_public_products():
    """Shop catalog: active and visible products only."""
    products = products_service.list_products(public_only=True, search=request.args.get("q"))
    return jsonify({"items": [p.to_dict() for p in products], "count": len(products)})


@products_bp.get("/<int:product_id>")
def get_public_product(product_id: int):
    try:
        product = products_service.get_product(product_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    if not (product.is_active and product.is_visible):
        return jsonify({"error": "Product not found"}), 404
    return jsonify(product.to_dict())


@products_bp.get("/admin")
@require_auth
@require_permission("productos.ver_listado")
def list_all_products():
    """Back-office listing, hidden and inactive products included."""
    products = products_service.list_products(search=request.args.get("q"))
    return jsonify({"items": [p.to_dict() for p in products], "count": len(products)})


@products_bp.post("")
@require_auth
@require_permission("productos.crear")
def create_product():
    try:
        product = products_service.create_product(request.get_json(silent=True) or {}, actor_id=g.current_user.id)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(product.to_dict()), 201


@products_bp.put("/<int:product_id>")
@require_auth
@require_permission("productos.editar")
def update_product(product_id: int):
    try:
        product = products_service.update_product(
            product_id, request.get_json(silent=True) or {}, actor_id=g.current_user.id
        )
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(product.to_dict())


@products_bp.delete("/<int:product_id>")
@require_auth
@require_permission("productos.eliminar")
def delete_product(product_id: int):
    """Soft delete: the product is deactivated and hidden."""
    try:
        product = products_service.delete_product(product_id, actor_id=g.current_user.id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(product.to_dict())


@products_bp.post("/<int:product_id>/toggle-visibility")
@require_auth
@require_permission("productos.cambiar_estado")
def toggle_product_visibility(product_id: int):
    try:
        product = products_service.toggle_visibility(product_id, actor_id=g.current_user.id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(product.to_dict())


@products_bp.post("/<int:product_id>/image")
@require_auth
@require_permission("productos.editar")
def upload_product_image(product_id: int):
    """Multipart upload, field name `image`."""
    try:
        products_service.get_product(product_id)
        url = storage_service.save_image(request.files.get("image"), "productos")
        product = products_service.set_image(product_id, url, actor_id=g.current_user.id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except UploadValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(product.to_dict())
