# Overview: Flask API routes for appointments (turnos); booking and back-office management.

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth, require_permission
from ..models import AppointmentStatus
from ..services import booking_service
from ..services.booking_service import SlotTakenError
from ..validation import ValidationError, NotFoundError


appointments_bp = Blueprint("appointments", __name__, url_prefix="/api/appointments")


@appointments_bp.get("/availability")
def availability():
    """
    Preview whether a slot can be booked.

    Query: date (YYYY-MM-DD), time (HH:MM), service_id (optional).
    """
    try:
        slot_date, slot_time = booking_service.parse_slot(request.args.get("date"), request.args.get("time"))
        booking_service.validate_future(slot_date, slot_time)
    except ValidationError as e:
        return jsonify({"available": False, "error": str(e)}), 400

    check = booking_service.check_slot_availability(
        slot_date, slot_time, service_id=request.args.get("service_id", type=int)
    )
    return jsonify({"available": not check.taken, "check_failed": check.check_failed})


@appointments_bp.post("")
@require_auth
def book_appointment():
    """Body: service_id, date, time, notes (optional)."""
    data = request.get_json(silent=True) or {}
    try:
        appointment = booking_service.create_appointment(
            client_id=g.current_user.id,
            service_id=data.get("service_id"),
            raw_date=data.get("date"),
            raw_time=data.get("time"),
            notes=data.get("notes"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except SlotTakenError as e:
        return jsonify({"error": str(e)}), 409

    return jsonify(appointment.to_dict()), 201


@appointments_bp.get("/mine")
@require_auth
def my_appointments():
    appointments = booking_service.list_for_client(g.current_user.id)
    return jsonify({"items": [a.to_dict() for a in appointments], "count": len(appointments)})


@appointments_bp.post("/<int:appointment_id>/cancel")
@require_auth
def cancel_appointment(appointment_id: int):
    """Customers cancel their own active bookings; staff need turnos.cancelar."""
    try:
        appointment = booking_service.get_appointment(appointment_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    is_owner = appointment.client_id == g.current_user.id
    if not is_owner and not g.oracle.has_permission("turnos.cancelar"):
        return jsonify({
            "error": "Permission denied",
            "required_permission": "turnos.cancelar",
            "message": "Se requiere el permiso: turnos.cancelar",
        }), 403
    if is_owner and appointment.status not in AppointmentStatus.ACTIVE:
        return jsonify({"error": "Only pending or confirmed appointments can be cancelled"}), 400

    appointment = booking_service.cancel(appointment_id, actor_id=g.current_user.id)
    return jsonify(appointment.to_dict())


@appointments_bp.get("")
@require_auth
@require_permission("turnos.ver_listado")
def list_appointments():
    """Query: q (search), status."""
    items = booking_service.list_appointments(search=request.args.get("q"), status=request.args.get("status"))
    return jsonify({"items": items, "count": len(items)})


@appointments_bp.patch("/<int:appointment_id>/status")
@require_auth
@require_permission("turnos.editar")
def update_status(appointment_id: int):
    data = request.get_json(silent=True) or {}
    try:
        appointment = booking_service.update_status(appointment_id, data.get("status"), actor_id=g.current_user.id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except SlotTakenError as e:
        return jsonify({"error": str(e)}), 409
    return jsonify(appointment.to_dict())


@appointments_bp.patch("/<int:appointment_id>/schedule")
@require_auth
@require_permission("turnos.editar")
def reschedule(appointment_id: int):
    data = request.get_json(silent=True) or {}
    try:
        appointment = booking_service.reschedule(
            appointment_id, data.get("date"), data.get("time"), actor_id=g.current_user.id
        )
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except SlotTakenError as e:
        return jsonify({"error": str(e)}), 409
    return jsonify(appointment.to_dict())
