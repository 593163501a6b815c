"""
Role administration and the role-permission matrix.

Verifies:
- System roles cannot be deleted, and the guard runs before any query
- Role names are unique (case-insensitive)
- Batch matrix saves apply grants/revokes and undo them when a write fails
- Inactive roles grant nothing
"""

import pytest
from sqlalchemy.exc import SQLAlchemyError

from carwash.models import Permission, Role, RolePermission
from carwash.permissions import ADMIN_ROLE, EMPLOYEE_ROLE
from carwash.services import permission_service, role_service
from carwash.services.role_service import SYSTEM_ROLE_DELETE_MESSAGE, SystemRoleError
from carwash.services.saga import SagaError
from carwash.validation import ConflictError, NotFoundError, ValidationError


class _NoDatabase:
    @property
    def session(self):
        raise AssertionError("database was touched")


@pytest.fixture
def custom_role(setup_roles):
    return role_service.create_role({"name": "lavador", "description": "Personal de playa"})


class TestRoleCrud:

    def test_created_roles_are_not_system(self, custom_role):
        assert custom_role.is_system is False
        assert custom_role.is_active is True

    @pytest.mark.parametrize("name", ["lavador", "LAVADOR", " Lavador "])
    def test_duplicate_name(self, custom_role, name):
        with pytest.raises(ConflictError):
            role_service.create_role({"name": name})

    def test_name_required(self, setup_roles):
        with pytest.raises(ValidationError):
            role_service.create_role({"description": "sin nombre"})

    def test_is_system_not_writable(self, setup_roles):
        with pytest.raises(ValidationError):
            role_service.create_role({"name": "x", "is_system": True})

    def test_toggle(self, custom_role):
        assert role_service.toggle_active(custom_role.id).is_active is False


class TestRoleDelete:

    def test_system_role_rejected_before_any_statement(self, monkeypatch):
        monkeypatch.setattr(role_service, "db", _NoDatabase())
        role = Role(name=ADMIN_ROLE, is_system=True)

        with pytest.raises(SystemRoleError) as exc:
            role_service.delete_role(role)
        assert str(exc.value) == SYSTEM_ROLE_DELETE_MESSAGE

    def test_role_in_use(self, db_session, custom_role, customer_user):
        customer_user.profile.role_id = custom_role.id
        db_session.commit()
        with pytest.raises(ConflictError):
            role_service.delete_role_by_id(custom_role.id)

    def test_deletes_unused_role_and_links(self, db_session, custom_role):
        permission = db_session.query(Permission).filter_by(code="turnos.editar").one()
        permission_service.save_role_permission_changes({custom_role.id: {permission.id: True}})

        role_service.delete_role_by_id(custom_role.id)
        assert db_session.get(Role, custom_role.id) is None
        assert db_session.query(RolePermission).filter_by(role_id=custom_role.id).count() == 0

    def test_unknown_role(self, setup_roles):
        with pytest.raises(NotFoundError):
            role_service.delete_role_by_id(999999)


class TestPermissionMatrix:

    def _two_permissions(self, db_session):
        return db_session.query(Permission).order_by(Permission.id).limit(2).all()

    def test_batch_grant_and_revoke(self, db_session, custom_role):
        p1, p2 = self._two_permissions(db_session)
        result = permission_service.save_role_permission_changes({
            str(custom_role.id): {str(p1.id): True, str(p2.id): True},
        })
        assert result == {"granted": 2, "revoked": 0}

        result = permission_service.save_role_permission_changes({
            custom_role.id: {p1.id: False, p2.id: True},
        })
        assert result == {"granted": 0, "revoked": 1}

        matrix = permission_service.list_assignments()
        assert matrix["assignments"][str(custom_role.id)] == [p2.id]

    def test_failed_write_is_undone(self, db_session, custom_role, monkeypatch):
        p1, p2 = self._two_permissions(db_session)
        original = permission_service._grant_action

        def flaky(role_id, permission_id):
            if permission_id == p2.id:
                def fail(_ctx):
                    raise SQLAlchemyError("write failed")
                return fail
            return original(role_id, permission_id)

        monkeypatch.setattr(permission_service, "_grant_action", flaky)

        with pytest.raises(SagaError) as exc:
            permission_service.save_role_permission_changes({custom_role.id: {p1.id: True, p2.id: True}})

        assert exc.value.fully_compensated
        assert db_session.query(RolePermission).filter_by(role_id=custom_role.id).count() == 0

    @pytest.mark.parametrize(
        "changes",
        [[], {"x": {}}, {"1": {"y": True}}, {"1": {"2": "yes"}}, {"1": ["2"]}],
    )
    def test_malformed_changes(self, setup_roles, changes):
        with pytest.raises(ValidationError):
            permission_service.save_role_permission_changes(changes)

    def test_unknown_ids(self, db_session, custom_role):
        with pytest.raises(NotFoundError):
            permission_service.save_role_permission_changes({custom_role.id: {999999: True}})
        with pytest.raises(NotFoundError):
            permission_service.save_role_permission_changes({999999: {1: True}})


class TestEffectivePermissions:

    def test_employee_defaults(self, employee_user):
        codes = permission_service.get_user_permissions(employee_user.id)
        assert "turnos.editar" in codes
        assert "productos.eliminar" not in codes
        assert "roles.ver_listado" not in codes

    def test_customer_has_none(self, customer_user):
        assert permission_service.get_user_permissions(customer_user.id) == set()

    def test_inactive_role_grants_nothing(self, db_session, employee_user):
        role = db_session.query(Role).filter_by(name=EMPLOYEE_ROLE).one()
        role_service.toggle_active(role.id)
        assert permission_service.get_user_permissions(employee_user.id) == set()
