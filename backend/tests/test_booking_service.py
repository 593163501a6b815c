"""
Booking availability tests.

Verifies:
- A slot with an active appointment (Pendiente/Confirmado) is taken
- Cancelled and completed appointments free the slot
- The conflict key is date + time; the service does not narrow it
- Past slots are rejected, even when also taken
- Dates must be YYYY-MM-DD and times HH:MM (seconds are dropped)
- A failing conflict query follows BOOKING_ON_CHECK_ERROR
"""

from datetime import date, datetime, time

import pytest
from sqlalchemy.exc import SQLAlchemyError

from carwash.models import Appointment, AppointmentStatus, Service
from carwash.services import booking_service
from carwash.services.booking_service import SlotTakenError
from carwash.validation import ValidationError, NotFoundError


NOW = datetime(2025, 5, 31, 12, 0)
SLOT_DATE = date(2025, 6, 1)


@pytest.fixture
def booked(db_session, customer_user, wash_service):
    def _book(status, at=time(10, 0), service=None):
        appointment = Appointment(
            client_id=customer_user.id,
            service_id=(service or wash_service).id,
            date=SLOT_DATE,
            time=at,
            status=status,
        )
        db_session.add(appointment)
        db_session.commit()
        return appointment
    return _book


class TestSlotAvailability:

    @pytest.mark.parametrize(
        "status,taken",
        [
            (AppointmentStatus.PENDING, True),
            (AppointmentStatus.CONFIRMED, True),
            (AppointmentStatus.CANCELLED, False),
            (AppointmentStatus.DONE, False),
        ],
    )
    def test_status_decides(self, booked, status, taken):
        booked(status)
        check = booking_service.check_slot_availability(SLOT_DATE, time(10, 0))
        assert check.taken is taken
        assert check.check_failed is False

    def test_other_hour_is_free(self, booked):
        booked(AppointmentStatus.CONFIRMED)
        assert booking_service.check_slot_availability(SLOT_DATE, time(11, 0)).taken is False

    def test_service_is_not_part_of_the_key(self, db_session, booked):
        other = Service(name="Encerado", price=8000, duration_minutes=30)
        db_session.add(other)
        db_session.commit()

        booked(AppointmentStatus.CONFIRMED)
        check = booking_service.check_slot_availability(SLOT_DATE, time(10, 0), service_id=other.id)
        assert check.taken is True

    def test_failed_check_allows_by_default(self, app, db_session, monkeypatch):
        def boom(*args, **kwargs):
            raise SQLAlchemyError("connection lost")

        monkeypatch.setattr(booking_service, "find_conflicts", boom)
        check = booking_service.check_slot_availability(SLOT_DATE, time(10, 0))
        assert check.taken is False
        assert check.check_failed is True

    def test_failed_check_can_deny(self, app, db_session, monkeypatch):
        def boom(*args, **kwargs):
            raise SQLAlchemyError("connection lost")

        monkeypatch.setattr(booking_service, "find_conflicts", boom)
        monkeypatch.setitem(app.config, "BOOKING_ON_CHECK_ERROR", "deny")
        assert booking_service.check_slot_availability(SLOT_DATE, time(10, 0)).taken is True

        # Explicit argument wins over config
        check = booking_service.check_slot_availability(SLOT_DATE, time(10, 0), on_check_error="allow")
        assert check.taken is False


class TestCreateAppointment:

    def test_books_pending_appointment(self, customer_user, wash_service):
        appointment = booking_service.create_appointment(
            customer_user.id, wash_service.id, "2025-06-01", "10:00", notes=" portón azul ", now=NOW
        )
        assert appointment.status == AppointmentStatus.PENDING
        assert appointment.time == time(10, 0)
        assert appointment.notes == "portón azul"

    def test_taken_slot(self, booked, customer_user, wash_service):
        booked(AppointmentStatus.CONFIRMED)
        with pytest.raises(SlotTakenError):
            booking_service.create_appointment(customer_user.id, wash_service.id, "2025-06-01", "10:00", now=NOW)

    @pytest.mark.parametrize(
        "raw_date,raw_time",
        [
            ("2025-05-31", "12:00"),
            ("2025-05-31", "11:59"),
            ("2025-05-30", "18:00"),
        ],
    )
    def test_rejects_past_slots(self, customer_user, wash_service, raw_date, raw_time):
        with pytest.raises(ValidationError):
            booking_service.create_appointment(customer_user.id, wash_service.id, raw_date, raw_time, now=NOW)

    @pytest.mark.parametrize(
        "raw_date,raw_time",
        [
            (None, "10:00"),
            ("2025-06-01", ""),
            ("01/06/2025", "10:00"),
            ("2025-06-01", "diez"),
            ("20250601", "10:00"),
            ("2025-06-01", "10"),
            ("2025-06-01", "1000"),
            ("2025-06-01", "25:00"),
            ("2025-06-01", "10:00:00.5"),
        ],
    )
    def test_rejects_bad_input(self, customer_user, wash_service, raw_date, raw_time):
        with pytest.raises(ValidationError):
            booking_service.create_appointment(customer_user.id, wash_service.id, raw_date, raw_time, now=NOW)

    def test_seconds_are_truncated_to_the_slot(self, booked, customer_user, wash_service):
        booked(AppointmentStatus.PENDING)
        with pytest.raises(SlotTakenError):
            booking_service.create_appointment(customer_user.id, wash_service.id, "2025-06-01", "10:00:30", now=NOW)

        appointment = booking_service.create_appointment(
            customer_user.id, wash_service.id, "2025-06-01", "11:15:45", now=NOW
        )
        assert appointment.time == time(11, 15)

    def test_past_slot_wins_over_conflict(self, booked, customer_user, wash_service):
        booked(AppointmentStatus.CONFIRMED)
        later = datetime(2025, 6, 1, 12, 0)
        with pytest.raises(ValidationError) as exc:
            booking_service.create_appointment(customer_user.id, wash_service.id, "2025-06-01", "10:00", now=later)
        assert not isinstance(exc.value, SlotTakenError)
        assert "future" in str(exc.value)

    def test_hidden_service_cannot_be_booked(self, db_session, customer_user, wash_service):
        wash_service.is_visible = False
        db_session.commit()
        with pytest.raises(NotFoundError):
            booking_service.create_appointment(customer_user.id, wash_service.id, "2025-06-01", "10:00", now=NOW)


class TestAppointmentLifecycle:

    def test_cancel_frees_the_slot(self, booked):
        appointment = booked(AppointmentStatus.PENDING)
        booking_service.cancel(appointment.id)
        assert booking_service.check_slot_availability(SLOT_DATE, time(10, 0)).taken is False

    def test_reactivating_into_a_taken_slot_fails(self, booked):
        cancelled = booked(AppointmentStatus.CANCELLED)
        booked(AppointmentStatus.CONFIRMED)
        with pytest.raises(SlotTakenError):
            booking_service.update_status(cancelled.id, AppointmentStatus.PENDING)

    def test_invalid_status(self, booked):
        appointment = booked(AppointmentStatus.PENDING)
        with pytest.raises(ValidationError):
            booking_service.update_status(appointment.id, "Perdido")

    def test_reschedule_checks_new_slot(self, booked):
        first = booked(AppointmentStatus.PENDING)
        booked(AppointmentStatus.CONFIRMED, at=time(11, 0))

        with pytest.raises(SlotTakenError):
            booking_service.reschedule(first.id, "2025-06-01", "11:00", now=NOW)

        moved = booking_service.reschedule(first.id, "2025-06-01", "12:30", now=NOW)
        assert moved.time == time(12, 30)

    def test_reschedule_to_same_slot_is_allowed(self, booked):
        appointment = booked(AppointmentStatus.CONFIRMED)
        moved = booking_service.reschedule(appointment.id, "2025-06-01", "10:00", now=NOW)
        assert moved.id == appointment.id
