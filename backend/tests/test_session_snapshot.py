"""
Session snapshot tests.

The permission snapshot is taken at session-change events only. A role
edit is invisible to an open session until it refreshes.
"""

from datetime import timedelta

from carwash.models import Permission, Role, SessionToken
from carwash.permissions import EMPLOYEE_ROLE
from carwash.services import permission_service, profile_service, session_service
from carwash.services.session_service import SessionEvent
from carwash.time_utils import utcnow


def _revoke_from_employee(db_session, code):
    role = db_session.query(Role).filter_by(name=EMPLOYEE_ROLE).one()
    permission = db_session.query(Permission).filter_by(code=code).one()
    permission_service.save_role_permission_changes({role.id: {permission.id: False}})


class TestSnapshotLifecycle:

    def test_login_loads_snapshot(self, employee_user):
        session, token = session_service.create_session(employee_user.id)
        assert session.snapshot["role"]["name"] == EMPLOYEE_ROLE
        assert "turnos.editar" in session.snapshot["permissions"]
        assert session.snapshot["profile"]["first_name"] == "Emilio"

        context = session_service.validate_session(token)
        assert context.snapshot.user_id == employee_user.id
        assert "turnos.editar" in context.snapshot.permissions

    def test_role_edit_is_stale_until_refresh(self, db_session, employee_user):
        _, token = session_service.create_session(employee_user.id)
        _revoke_from_employee(db_session, "turnos.editar")

        stale = session_service.validate_session(token)
        assert "turnos.editar" in stale.snapshot.permissions

        refreshed = session_service.refresh_session(token)
        assert "turnos.editar" not in refreshed.snapshot.permissions

    def test_password_update_event_reloads(self, db_session, employee_user):
        session, token = session_service.create_session(employee_user.id)
        _revoke_from_employee(db_session, "pedidos.editar")

        snapshot = session_service.reload_snapshot(session, SessionEvent.PASSWORD_UPDATED)
        assert "pedidos.editar" not in snapshot.permissions

    def test_logout_clears_snapshot(self, db_session, employee_user):
        session, token = session_service.create_session(employee_user.id)
        assert session_service.revoke_session(token) is True

        db_session.expire_all()
        stored = db_session.get(SessionToken, session.id)
        assert stored.is_revoked is True
        assert stored.snapshot is None
        assert session_service.validate_session(token) is None

    def test_deactivated_profile_loses_session(self, employee_user):
        _, token = session_service.create_session(employee_user.id)
        profile_service.deactivate(employee_user.profile.id)
        assert session_service.validate_session(token) is None

    def test_idle_session_expires(self, db_session, employee_user):
        session, token = session_service.create_session(employee_user.id)
        session.last_used_at = utcnow() - timedelta(hours=3)
        db_session.commit()
        assert session_service.validate_session(token) is None

    def test_snapshot_without_profile(self, db_session, employee_user):
        snapshot = profile_service.load_snapshot(999999)
        assert snapshot == {"profile": None, "role": None, "permissions": []}


class TestSnapshotOverHttp:

    def test_refresh_endpoint_applies_role_edit(self, client, db_session, employee_headers):
        resp = client.post("/api/auth/validate", headers=employee_headers)
        assert resp.status_code == 200
        assert "turnos.editar" in resp.json["permissions"]

        _revoke_from_employee(db_session, "turnos.editar")

        resp = client.post("/api/auth/validate", headers=employee_headers)
        assert "turnos.editar" in resp.json["permissions"]

        resp = client.post("/api/auth/refresh", headers=employee_headers)
        assert resp.status_code == 200
        assert "turnos.editar" not in resp.json["permissions"]
