# Overview: Flask API routes for orders (pedidos); checkout and back-office edits.

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth, require_permission
from ..services import order_service
from ..services.saga import SagaError
from ..validation import ValidationError, NotFoundError


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.post("")
@require_auth
def checkout():
    """
    Body:
      items: [{"product_id": 1, "quantity": 2}, ...]
      customer_data: {first_name, last_name, email, national_id, phone, address}
    """
    data = request.get_json(silent=True) or {}
    try:
        order = order_service.create_order(
            client_id=g.current_user.id,
            items=data.get("items"),
            customer_data=data.get("customer_data"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except SagaError as e:
        return jsonify({
            "error": "Could not create order",
            "failed_step": e.failed_step,
            "rolled_back": e.fully_compensated,
        }), 500

    return jsonify(order.to_dict()), 201


@orders_bp.get("/mine")
@require_auth
def my_orders():
    orders = order_service.list_for_client(g.current_user.id)
    return jsonify({"items": [o.to_dict() for o in orders], "count": len(orders)})


@orders_bp.get("")
@require_auth
@require_permission("pedidos.ver_listado")
def list_orders():
    items = order_service.list_orders(search=request.args.get("q"))
    return jsonify({"items": items, "count": len(items)})


@orders_bp.get("/<int:order_id>")
@require_auth
def get_order(order_id: int):
    """Owners see their own orders; staff need pedidos.ver_listado."""
    try:
        order = order_service.get_order(order_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    if order.client_id != g.current_user.id and not g.oracle.has_permission("pedidos.ver_listado"):
        # Same answer as a missing order
        return jsonify({"error": "Order not found"}), 404
    return jsonify(order.to_dict())


@orders_bp.patch("/<int:order_id>/status")
@require_auth
@require_permission("pedidos.editar")
def update_statuses(order_id: int):
    data = request.get_json(silent=True) or {}
    try:
        order = order_service.update_statuses(
            order_id,
            payment_status=data.get("payment_status"),
            shipping_status=data.get("shipping_status"),
            actor_id=g.current_user.id,
        )
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(order.to_dict())


@orders_bp.patch("/<int:order_id>/lines")
@require_auth
@require_permission("pedidos.editar")
def update_lines(order_id: int):
    """Body: {"quantities": {line_id: quantity}}; 0 removes the line."""
    data = request.get_json(silent=True) or {}
    try:
        order = order_service.update_line_quantities(order_id, data.get("quantities"), actor_id=g.current_user.id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(order.to_dict())
