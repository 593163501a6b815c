from __future__ import annotations

from ..extensions import db
from carwash.time_utils import to_utc_z, format_time


class AppointmentStatus:
    """Appointment lifecycle values (stored verbatim)."""
    PENDING = "Pendiente"
    CONFIRMED = "Confirmado"
    CANCELLED = "Cancelado"
    DONE = "Realizado"

    ALL = (PENDING, CONFIRMED, CANCELLED, DONE)
    # Statuses that occupy a slot
    ACTIVE = (PENDING, CONFIRMED)


class Appointment(db.Model):
    """
    Service booking (turno).

    Appointments are never deleted; cancellation is a status transition.
    date/time are shop-local wall-clock values.
    """
    __tablename__ = "turnos"
    __table_args__ = (
        db.Index("ix_turnos_date_time", "date", "time"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    service_id = db.Column(db.Integer, db.ForeignKey("servicios.id"), nullable=False, index=True)

    date = db.Column(db.Date, nullable=False)
    time = db.Column(db.Time, nullable=False)
    status = db.Column(db.String(16), nullable=False, default=AppointmentStatus.PENDING)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    client = db.relationship("User")
    service = db.relationship("Service")

    def to_dict(self) -> dict:
        profile = self.client.profile if self.client else None
        return {
            "id": self.id,
            "client_id": self.client_id,
            "client": {
                "first_name": profile.first_name if profile else None,
                "last_name": profile.last_name if profile else None,
                "national_id": profile.national_id if profile else None,
                "phone": profile.phone if profile else None,
            },
            "service_id": self.service_id,
            "service": {
                "name": self.service.name if self.service else None,
                "price": self.service.to_dict()["price"] if self.service else None,
            },
            "date": self.date.isoformat() if self.date else None,
            "time": format_time(self.time),
            "status": self.status,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
