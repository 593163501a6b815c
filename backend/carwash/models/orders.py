from __future__ import annotations

from ..extensions import db
from carwash.time_utils import to_utc_z
from carwash.pricing import format_price


class PaymentStatus:
    PENDING = "Pendiente"
    PAID = "Pagado"

    ALL = (PENDING, PAID)


class ShippingStatus:
    PENDING = "Pendiente"
    DELIVERED = "Entregado"

    ALL = (PENDING, DELIVERED)


class Order(db.Model):
    """
    Shop order (pedido).

    customer_data is a snapshot of the checkout form (name, email, phone,
    address) taken when the order was placed.
    """
    __tablename__ = "pedidos"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    customer_data = db.Column(db.JSON, nullable=True)
    total = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    payment_status = db.Column(db.String(16), nullable=False, default=PaymentStatus.PENDING)
    shipping_status = db.Column(db.String(16), nullable=False, default=ShippingStatus.PENDING)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    client = db.relationship("User")
    lines = db.relationship(
        "OrderLine",
        backref="order",
        lazy=True,
        order_by="OrderLine.id",
        cascade="all, delete-orphan",
    )

    def to_dict(self, include_lines: bool = True) -> dict:
        profile = self.client.profile if self.client else None
        data = {
            "id": self.id,
            "client_id": self.client_id,
            "client": {
                "first_name": profile.first_name if profile else None,
                "last_name": profile.last_name if profile else None,
                "national_id": profile.national_id if profile else None,
                "phone": profile.phone if profile else None,
                "email": self.client.email if self.client else None,
            },
            "customer_data": self.customer_data,
            "total": format_price(self.total),
            "payment_status": self.payment_status,
            "shipping_status": self.shipping_status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_lines:
            data["lines"] = [line.to_dict() for line in self.lines]
        return data


class OrderLine(db.Model):
    """Order line; unit_price is frozen at purchase time."""
    __tablename__ = "pedido_productos"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("pedidos.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("productos.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity": self.quantity,
            "unit_price": format_price(self.unit_price),
        }
