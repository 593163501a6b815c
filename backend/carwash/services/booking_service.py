# Overview: Service-layer operations for appointments; slot availability and booking lifecycle.

"""
Appointment booking.

Before an appointment is inserted the candidate slot goes through:

1. required fields (date, time, service)
2. future check: the slot must be strictly after "now" in the business
   time zone
3. conflict check: any appointment on the same date and time whose status
   is Pendiente or Confirmado makes the slot taken. The service is not
   part of the key: the shop has a single bay.

The conflict query and the insert are separate statements without a lock;
two concurrent requests for the same free slot can both succeed.

If the conflict query itself fails, BOOKING_ON_CHECK_ERROR decides:
"allow" (default) treats the slot as free, "deny" treats it as taken.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Appointment, AppointmentStatus, Service
from ..validation import ValidationError, NotFoundError
from . import audit_service
from .audit_service import AuditAction
from carwash.time_utils import local_now, parse_date, parse_time, utcnow

logger = logging.getLogger(__name__)

ON_CHECK_ERROR_ALLOW = "allow"
ON_CHECK_ERROR_DENY = "deny"


class SlotTakenError(Exception):
    """The requested date/time already has an active appointment."""

    def __init__(self, message: str = "The selected time slot is already booked"):
        super().__init__(message)


@dataclass(frozen=True)
class SlotCheck:
    taken: bool
    check_failed: bool = False


def parse_slot(raw_date, raw_time) -> tuple[date, time]:
    """Parse YYYY-MM-DD and HH:MM; both are required."""
    if raw_date in (None, "") or raw_time in (None, ""):
        raise ValidationError("date and time are required")
    try:
        slot_date = parse_date(raw_date)
    except ValueError:
        raise ValidationError("date must be YYYY-MM-DD")
    try:
        slot_time = parse_time(raw_time)
    except ValueError:
        raise ValidationError("time must be HH:MM")
    return slot_date, slot_time


def validate_future(slot_date: date, slot_time: time, now: Optional[datetime] = None) -> None:
    """Reject slots at or before `now` (business-local wall clock)."""
    if now is None:
        now = local_now(current_app.config["BUSINESS_TIMEZONE"])
    if datetime.combine(slot_date, slot_time) <= now:
        raise ValidationError("Appointment date and time must be in the future")


def _resolve_on_error(on_check_error: Optional[str]) -> str:
    policy = (on_check_error or current_app.config.get("BOOKING_ON_CHECK_ERROR") or ON_CHECK_ERROR_ALLOW).lower()
    if policy not in (ON_CHECK_ERROR_ALLOW, ON_CHECK_ERROR_DENY):
        logger.warning("Unknown BOOKING_ON_CHECK_ERROR %r; using %s", policy, ON_CHECK_ERROR_ALLOW)
        policy = ON_CHECK_ERROR_ALLOW
    return policy


def find_conflicts(slot_date: date, slot_time: time, exclude_id: Optional[int] = None) -> list[int]:
    query = (
        db.session.query(Appointment.id)
        .filter(
            Appointment.date == slot_date,
            Appointment.time == slot_time,
            Appointment.status.in_(AppointmentStatus.ACTIVE),
        )
    )
    if exclude_id is not None:
        query = query.filter(Appointment.id != exclude_id)
    return [row.id for row in query.all()]


def check_slot_availability(
    slot_date: date,
    slot_time: time,
    service_id: Optional[int] = None,
    on_check_error: Optional[str] = None,
    exclude_id: Optional[int] = None,
) -> SlotCheck:
    """
    Conflict check for one slot.

    service_id is accepted for the caller's convenience but does not narrow
    the query.
    """
    try:
        conflicts = find_conflicts(slot_date, slot_time, exclude_id=exclude_id)
    except SQLAlchemyError as exc:
        db.session.rollback()
        policy = _resolve_on_error(on_check_error)
        logger.warning(
            "Slot availability check failed for %s %s (service %s); policy=%s: %s",
            slot_date, slot_time, service_id, policy, exc,
        )
        return SlotCheck(taken=(policy == ON_CHECK_ERROR_DENY), check_failed=True)

    return SlotCheck(taken=bool(conflicts))


def _bookable_service(service_id) -> Service:
    if service_id in (None, ""):
        raise ValidationError("service_id is required")
    try:
        service_id = int(service_id)
    except (TypeError, ValueError):
        raise ValidationError("service_id must be an integer")
    service = db.session.get(Service, service_id)
    if not service or not service.is_active or not service.is_visible:
        raise NotFoundError("Service not found")
    return service


def create_appointment(
    client_id: int,
    service_id,
    raw_date,
    raw_time,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Appointment:
    """
    Book a slot for a customer. New appointments start as Pendiente.

    Raises ValidationError, NotFoundError or SlotTakenError.
    """
    slot_date, slot_time = parse_slot(raw_date, raw_time)
    validate_future(slot_date, slot_time, now=now)
    service = _bookable_service(service_id)

    if check_slot_availability(slot_date, slot_time, service.id).taken:
        raise SlotTakenError()

    appointment = Appointment(
        client_id=client_id,
        service_id=service.id,
        date=slot_date,
        time=slot_time,
        status=AppointmentStatus.PENDING,
        notes=(notes or "").strip() or None,
    )
    db.session.add(appointment)
    db.session.flush()
    audit_service.record(client_id, AuditAction.INSERT, Appointment.__tablename__, appointment.id,
                         data={"date": slot_date.isoformat(), "time": slot_time.strftime("%H:%M"),
                               "service_id": service.id}, commit=False)
    db.session.commit()
    return appointment


def get_appointment(appointment_id: int) -> Appointment:
    appointment = db.session.get(Appointment, appointment_id)
    if not appointment:
        raise NotFoundError("Appointment not found")
    return appointment


def list_for_client(client_id: int) -> list[Appointment]:
    """Customer history, newest booking first."""
    return (
        db.session.query(Appointment)
        .filter(Appointment.client_id == client_id)
        .order_by(Appointment.created_at.desc(), Appointment.id.desc())
        .all()
    )


def list_appointments(search: Optional[str] = None, status: Optional[str] = None) -> list[dict]:
    """
    Admin listing (newest first) with client and service joined.

    `search` matches client name, DNI, service name and status.
    """
    query = db.session.query(Appointment)
    if status:
        query = query.filter(Appointment.status == status)
    items = [a.to_dict() for a in query.order_by(Appointment.created_at.desc(), Appointment.id.desc()).all()]

    if search:
        needle = search.strip().lower()
        items = [
            item for item in items
            if needle in " ".join(str(v or "") for v in (
                item["client"]["first_name"], item["client"]["last_name"],
                item["client"]["national_id"], item["service"]["name"], item["status"],
            )).lower()
        ]
    return items


def update_status(appointment_id: int, status: str, actor_id: Optional[int] = None) -> Appointment:
    if status not in AppointmentStatus.ALL:
        raise ValidationError(f"status must be one of: {', '.join(AppointmentStatus.ALL)}")

    appointment = get_appointment(appointment_id)
    previous = appointment.status

    # Re-activating a cancelled/done appointment must not double-book
    if status in AppointmentStatus.ACTIVE and previous not in AppointmentStatus.ACTIVE:
        check = check_slot_availability(appointment.date, appointment.time, appointment.service_id,
                                        exclude_id=appointment.id)
        if check.taken:
            raise SlotTakenError()

    appointment.status = status
    appointment.updated_at = utcnow()
    audit_service.record(actor_id, AuditAction.UPDATE, Appointment.__tablename__, appointment.id,
                         data={"status": [previous, status]}, commit=False)
    db.session.commit()
    return appointment


def reschedule(appointment_id: int, raw_date, raw_time, actor_id: Optional[int] = None,
               now: Optional[datetime] = None) -> Appointment:
    """Move an appointment; the new slot goes through the same checks."""
    appointment = get_appointment(appointment_id)
    slot_date, slot_time = parse_slot(raw_date, raw_time)
    validate_future(slot_date, slot_time, now=now)

    if appointment.status in AppointmentStatus.ACTIVE:
        check = check_slot_availability(slot_date, slot_time, appointment.service_id, exclude_id=appointment.id)
        if check.taken:
            raise SlotTakenError()

    appointment.date = slot_date
    appointment.time = slot_time
    appointment.updated_at = utcnow()
    audit_service.record(actor_id, AuditAction.UPDATE, Appointment.__tablename__, appointment.id,
                         data={"date": slot_date.isoformat(), "time": slot_time.strftime("%H:%M")}, commit=False)
    db.session.commit()
    return appointment


def cancel(appointment_id: int, actor_id: Optional[int] = None) -> Appointment:
    """Appointments are never deleted; cancelling is a status transition."""
    return update_status(appointment_id, AppointmentStatus.CANCELLED, actor_id=actor_id)
