"""
Order checkout and back-office edit tests.
"""

from decimal import Decimal

import pytest

from carwash.models import AuditEntry, Order, OrderLine, PaymentStatus, ShippingStatus
from carwash.services import order_service
from carwash.services.saga import SagaError
from carwash.validation import ValidationError, NotFoundError


CUSTOMER = {
    "first_name": "Carla",
    "last_name": "Test",
    "email": "cliente@lavadero.test",
    "national_id": "30333444",
    "phone": "1155550000",
    "address": "Av. Siempre Viva 742",
}


class TestCheckout:

    def test_creates_order_with_frozen_prices(self, db_session, customer_user, products):
        shampoo, cera, _ = products
        order = order_service.create_order(
            customer_user.id,
            [{"product_id": shampoo.id, "quantity": 2}, {"product_id": cera.id, "quantity": 1}],
            CUSTOMER,
        )

        assert order.total == Decimal("6201.00")
        assert order.payment_status == PaymentStatus.PENDING
        assert order.shipping_status == ShippingStatus.PENDING
        assert [line.quantity for line in order.lines] == [2, 1]

        shampoo.price = Decimal("9999.00")
        db_session.commit()
        assert db_session.get(Order, order.id).lines[0].unit_price == Decimal("1500.50")

    def test_same_product_is_merged(self, customer_user, products):
        shampoo = products[0]
        order = order_service.create_order(
            customer_user.id,
            [{"product_id": shampoo.id, "quantity": 1}, {"product_id": shampoo.id, "quantity": "3"}],
            CUSTOMER,
        )
        assert len(order.lines) == 1
        assert order.lines[0].quantity == 4

    def test_stock_is_not_changed(self, db_session, customer_user, products):
        shampoo = products[0]
        order_service.create_order(customer_user.id, [{"product_id": shampoo.id, "quantity": 3}], CUSTOMER)
        db_session.expire_all()
        assert shampoo.stock == 10

    def test_writes_audit_entry(self, db_session, customer_user, products):
        order = order_service.create_order(customer_user.id, [{"product_id": products[0].id}], CUSTOMER)
        entry = db_session.query(AuditEntry).filter_by(table_name="pedidos", record_id=order.id).one()
        assert entry.action == "INSERT"

    @pytest.mark.parametrize(
        "items",
        [[], None, [{"quantity": 1}], [{"product_id": 1, "quantity": 0}], [{"product_id": 1, "quantity": 1.5}]],
    )
    def test_rejects_bad_items(self, customer_user, products, items):
        with pytest.raises(ValidationError):
            order_service.create_order(customer_user.id, items, CUSTOMER)

    def test_hidden_product_cannot_be_ordered(self, customer_user, products):
        hidden = products[2]
        with pytest.raises(NotFoundError):
            order_service.create_order(customer_user.id, [{"product_id": hidden.id, "quantity": 1}], CUSTOMER)

    def test_customer_data_required_fields(self, customer_user, products):
        data = dict(CUSTOMER, address="  ")
        with pytest.raises(ValidationError) as exc:
            order_service.create_order(customer_user.id, [{"product_id": products[0].id}], data)
        assert "address" in str(exc.value)

    def test_failed_line_insert_removes_order(self, db_session, customer_user, products, monkeypatch):
        def broken_line(**kwargs):
            raise RuntimeError("insert failed")

        monkeypatch.setattr(order_service, "OrderLine", broken_line)

        with pytest.raises(SagaError) as exc:
            order_service.create_order(customer_user.id, [{"product_id": products[0].id}], CUSTOMER)

        assert exc.value.failed_step == "lines"
        assert exc.value.fully_compensated
        assert db_session.query(Order).count() == 0
        assert db_session.query(OrderLine).count() == 0


class TestBackOfficeEdits:

    @pytest.fixture
    def order(self, customer_user, products):
        shampoo, cera, _ = products
        return order_service.create_order(
            customer_user.id,
            [{"product_id": shampoo.id, "quantity": 2}, {"product_id": cera.id, "quantity": 1}],
            CUSTOMER,
        )

    def test_update_statuses(self, order, admin_user):
        updated = order_service.update_statuses(order.id, payment_status=PaymentStatus.PAID,
                                                actor_id=admin_user.id)
        assert updated.payment_status == PaymentStatus.PAID
        assert updated.shipping_status == ShippingStatus.PENDING

    @pytest.mark.parametrize(
        "kwargs",
        [{}, {"payment_status": "Regalado"}, {"shipping_status": "Perdido"}],
    )
    def test_update_statuses_rejects_bad_values(self, order, kwargs):
        with pytest.raises(ValidationError):
            order_service.update_statuses(order.id, **kwargs)

    def test_line_quantities_recompute_total(self, order):
        shampoo_line, cera_line = order.lines
        updated = order_service.update_line_quantities(order.id, {str(shampoo_line.id): 1, cera_line.id: 2})
        assert updated.total == Decimal("7900.50")

    def test_zero_removes_line(self, db_session, order):
        shampoo_line, cera_line = order.lines
        updated = order_service.update_line_quantities(order.id, {cera_line.id: 0})
        assert [line.id for line in updated.lines] == [shampoo_line.id]
        assert updated.total == Decimal("3001.00")
        assert db_session.query(OrderLine).count() == 1

    def test_order_keeps_one_line(self, order):
        with pytest.raises(ValidationError):
            order_service.update_line_quantities(order.id, {line.id: 0 for line in order.lines})

    def test_unknown_line(self, order):
        with pytest.raises(NotFoundError):
            order_service.update_line_quantities(order.id, {999999: 1})
