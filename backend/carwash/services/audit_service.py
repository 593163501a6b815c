# Overview: Service-layer operations for the audit trail.

from __future__ import annotations

from datetime import datetime, time

from ..extensions import db
from ..models import AuditEntry, Profile
from ..validation import ValidationError
from carwash.time_utils import parse_date


class AuditAction:
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"

    ALL = (INSERT, UPDATE, DELETE)


def record(
    user_id: int | None,
    action: str,
    table_name: str,
    record_id: int | None = None,
    data: dict | None = None,
    ip_address: str | None = None,
    commit: bool = True,
) -> AuditEntry:
    """Append one audit entry."""
    entry = AuditEntry(
        user_id=user_id,
        action=action,
        table_name=table_name,
        record_id=record_id,
        data=data,
        ip_address=ip_address,
    )
    db.session.add(entry)
    if commit:
        db.session.commit()
    return entry


def query_entries(
    user_id: int | None = None,
    date_from: str | None = None,
    date_to: str | None = None,
    action: str | None = None,
    table_name: str | None = None,
) -> list[AuditEntry]:
    """
    Filtered audit listing, newest first.

    date_from/date_to are inclusive calendar days (YYYY-MM-DD).
    """
    query = db.session.query(AuditEntry)

    if user_id:
        query = query.filter(AuditEntry.user_id == user_id)

    try:
        start = parse_date(date_from)
        end = parse_date(date_to)
    except ValueError:
        raise ValidationError("date filters must be YYYY-MM-DD")

    if start:
        query = query.filter(AuditEntry.created_at >= datetime.combine(start, time.min))
    if end:
        query = query.filter(AuditEntry.created_at <= datetime.combine(end, time(23, 59, 59)))
    if action:
        query = query.filter(AuditEntry.action == action)
    if table_name:
        query = query.filter(AuditEntry.table_name == table_name)

    return query.order_by(AuditEntry.created_at.desc(), AuditEntry.id.desc()).all()


def enrich_entries(entries: list[AuditEntry]) -> list[dict]:
    """
    Attach the acting user's name and e-mail to each entry.

    Lookups are batched: one profile query and one e-mail query for all
    distinct user ids.
    """
    from .auth_service import get_users_emails

    user_ids = sorted({e.user_id for e in entries if e.user_id})
    profiles = {}
    emails = {}
    if user_ids:
        for profile in db.session.query(Profile).filter(Profile.user_id.in_(user_ids)).all():
            profiles[profile.user_id] = profile
        emails = {row["id"]: row["email"] for row in get_users_emails(user_ids)}

    enriched = []
    for entry in entries:
        data = entry.to_dict()
        profile = profiles.get(entry.user_id)
        if entry.user_id and (profile or entry.user_id in emails):
            data["user"] = {
                "first_name": profile.first_name if profile else None,
                "last_name": profile.last_name if profile else None,
                "email": emails.get(entry.user_id),
            }
        else:
            data["user"] = None
        enriched.append(data)
    return enriched
