# Overview: Service-layer operations for orders; checkout saga and admin edits.

"""
Orders (pedidos) and their lines.

Checkout writes the order row and then its lines as two separate commits.
If the line insert fails the order row is deleted again (compensation);
when that delete also fails the order is left without lines and the
failure is logged.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from ..extensions import db
from ..models import Order, OrderLine, Product, PaymentStatus, ShippingStatus
from ..validation import ValidationError, NotFoundError
from . import audit_service
from .audit_service import AuditAction
from .saga import Saga
from carwash.time_utils import utcnow

logger = logging.getLogger(__name__)

CUSTOMER_REQUIRED_FIELDS = ("first_name", "email", "phone", "address")
CUSTOMER_FIELDS = ("first_name", "last_name", "email", "national_id", "phone", "address")

MAX_LINE_QUANTITY = 10_000


def _clean_customer_data(customer_data) -> dict:
    if not isinstance(customer_data, dict):
        raise ValidationError("customer_data is required")
    cleaned = {}
    for key in CUSTOMER_FIELDS:
        value = customer_data.get(key)
        cleaned[key] = str(value).strip() if value not in (None, "") else None
    missing = [key for key in CUSTOMER_REQUIRED_FIELDS if not cleaned[key]]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    return cleaned


def _parse_quantity(raw) -> int:
    if isinstance(raw, bool) or not isinstance(raw, (int, str)):
        raise ValidationError("quantity must be a positive integer")
    try:
        quantity = int(raw)
    except ValueError:
        raise ValidationError("quantity must be a positive integer")
    if quantity <= 0 or quantity > MAX_LINE_QUANTITY:
        raise ValidationError(f"quantity must be between 1 and {MAX_LINE_QUANTITY}")
    return quantity


def _priced_lines(items) -> list[dict]:
    """Validate cart items and freeze current product prices."""
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list")

    merged: dict[int, int] = {}
    for item in items:
        if not isinstance(item, dict) or "product_id" not in item:
            raise ValidationError("each item needs product_id and quantity")
        try:
            product_id = int(item["product_id"])
        except (TypeError, ValueError):
            raise ValidationError("product_id must be an integer")
        merged[product_id] = merged.get(product_id, 0) + _parse_quantity(item.get("quantity", 1))

    products = {
        p.id: p for p in db.session.query(Product).filter(Product.id.in_(list(merged))).all()
    }
    lines = []
    for product_id, quantity in merged.items():
        product = products.get(product_id)
        if not product or not product.is_active or not product.is_visible:
            raise NotFoundError(f"Product {product_id} not found")
        lines.append({"product_id": product_id, "quantity": quantity, "unit_price": Decimal(product.price)})
    return lines


def order_total(lines) -> Decimal:
    return sum((Decimal(line["unit_price"]) * line["quantity"] for line in lines), Decimal("0.00"))


def create_order(client_id: int, items, customer_data) -> Order:
    """
    Customer checkout.

    Raises ValidationError/NotFoundError on bad input and SagaError when a
    write fails (the order row is removed again when possible).
    """
    customer = _clean_customer_data(customer_data)
    lines = _priced_lines(items)
    total = order_total(lines)

    def insert_order(ctx):
        order = Order(
            client_id=client_id,
            customer_data=customer,
            total=total,
            payment_status=PaymentStatus.PENDING,
            shipping_status=ShippingStatus.PENDING,
        )
        db.session.add(order)
        db.session.commit()
        return order.id

    def delete_order(ctx):
        db.session.query(Order).filter_by(id=ctx["order"]).delete()
        db.session.commit()
        logger.info("Order %s removed after failed line insert", ctx["order"])

    def insert_lines(ctx):
        for line in lines:
            db.session.add(OrderLine(order_id=ctx["order"], **line))
        db.session.commit()

    saga = Saga("create_order", on_failure=db.session.rollback)
    saga.step("order", insert_order, delete_order)
    saga.step("lines", insert_lines)
    ctx = saga.run()

    order = db.session.get(Order, ctx["order"])
    audit_service.record(client_id, AuditAction.INSERT, Order.__tablename__, order.id,
                         data={"total": str(total), "lines": len(lines)})
    return order


def get_order(order_id: int) -> Order:
    order = db.session.get(Order, order_id)
    if not order:
        raise NotFoundError("Order not found")
    return order


def list_for_client(client_id: int) -> list[Order]:
    return (
        db.session.query(Order)
        .filter(Order.client_id == client_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )


def list_orders(search: str | None = None) -> list[dict]:
    """Admin listing, newest first; `search` matches customer fields and statuses."""
    orders = db.session.query(Order).order_by(Order.created_at.desc(), Order.id.desc()).all()
    items = [o.to_dict() for o in orders]

    if search:
        needle = search.strip().lower()

        def haystack(item):
            customer = item["customer_data"] or {}
            values = [customer.get(k) for k in CUSTOMER_FIELDS]
            values += [item["client"]["email"], item["payment_status"], item["shipping_status"], item["id"]]
            return " ".join(str(v or "") for v in values).lower()

        items = [item for item in items if needle in haystack(item)]
    return items


def update_statuses(order_id: int, payment_status: str | None = None, shipping_status: str | None = None,
                    actor_id: int | None = None) -> Order:
    if payment_status is None and shipping_status is None:
        raise ValidationError("payment_status or shipping_status is required")
    if payment_status is not None and payment_status not in PaymentStatus.ALL:
        raise ValidationError(f"payment_status must be one of: {', '.join(PaymentStatus.ALL)}")
    if shipping_status is not None and shipping_status not in ShippingStatus.ALL:
        raise ValidationError(f"shipping_status must be one of: {', '.join(ShippingStatus.ALL)}")

    order = get_order(order_id)
    changes = {}
    if payment_status is not None:
        changes["payment_status"] = [order.payment_status, payment_status]
        order.payment_status = payment_status
    if shipping_status is not None:
        changes["shipping_status"] = [order.shipping_status, shipping_status]
        order.shipping_status = shipping_status
    order.updated_at = utcnow()
    audit_service.record(actor_id, AuditAction.UPDATE, Order.__tablename__, order.id, data=changes, commit=False)
    db.session.commit()
    return order


def update_line_quantities(order_id: int, quantities: dict, actor_id: int | None = None) -> Order:
    """
    Edit quantities ({line_id: quantity}) and recompute the order total from
    the frozen unit prices. A quantity of 0 removes the line; an order must
    keep at least one line.
    """
    if not isinstance(quantities, dict) or not quantities:
        raise ValidationError("quantities must map line ids to integers")

    order = get_order(order_id)
    lines_by_id = {line.id: line for line in order.lines}

    parsed = {}
    for raw_line_id, raw_quantity in quantities.items():
        try:
            line_id = int(raw_line_id)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid line id: {raw_line_id}")
        if line_id not in lines_by_id:
            raise NotFoundError(f"Line {line_id} not found in order {order_id}")
        if raw_quantity in (0, "0"):
            parsed[line_id] = 0
        else:
            parsed[line_id] = _parse_quantity(raw_quantity)

    remaining = [lid for lid in lines_by_id if parsed.get(lid, lines_by_id[lid].quantity) > 0]
    if not remaining:
        raise ValidationError("An order must keep at least one line")

    for line_id, quantity in parsed.items():
        line = lines_by_id[line_id]
        if quantity == 0:
            order.lines.remove(line)
        else:
            line.quantity = quantity

    order.total = order_total(
        {"unit_price": line.unit_price, "quantity": line.quantity} for line in order.lines
    )
    order.updated_at = utcnow()
    audit_service.record(actor_id, AuditAction.UPDATE, Order.__tablename__, order.id,
                         data={"quantities": {str(k): v for k, v in parsed.items()}, "total": str(order.total)},
                         commit=False)
    db.session.commit()
    return order
