from __future__ import annotations

from ..extensions import db
from carwash.time_utils import to_utc_z


class AuditEntry(db.Model):
    """
    Append-only audit trail of back-office mutations.

    WHY: admins must be able to answer "who changed this, and when".
    """
    __tablename__ = "auditoria"
    __table_args__ = (
        db.Index("ix_auditoria_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    action = db.Column(db.String(32), nullable=False, index=True)  # INSERT, UPDATE, DELETE
    table_name = db.Column(db.String(64), nullable=False, index=True)
    record_id = db.Column(db.Integer, nullable=True)
    data = db.Column(db.JSON, nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "action": self.action,
            "table_name": self.table_name,
            "record_id": self.record_id,
            "data": self.data,
            "ip_address": self.ip_address,
            "created_at": to_utc_z(self.created_at),
        }
