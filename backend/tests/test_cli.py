"""
Flask CLI command tests (bootstrap and permission repair).
"""

from carwash.models import Permission, Role, User
from carwash.permissions import ADMIN_ROLE, PERMISSION_DEFINITIONS
from carwash.services import permission_service


def test_system_init_is_idempotent(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["system", "init", "--admin-email", "jefe@lavadero.test",
                                 "--admin-password", "Jefe12345!"])
    assert result.exit_code == 0, result.output
    assert "DONE System initialized" in result.output
    assert db_session.query(Permission).count() == len(PERMISSION_DEFINITIONS)
    assert db_session.query(Role).count() == 3

    admin = db_session.query(User).filter_by(email="jefe@lavadero.test").one()
    assert admin.profile.role.name == ADMIN_ROLE

    again = runner.invoke(args=["system", "init", "--admin-email", "jefe@lavadero.test"])
    assert "SKIP Admin user jefe@lavadero.test already exists" in again.output
    assert db_session.query(Permission).count() == len(PERMISSION_DEFINITIONS)


def test_grant_and_check(app, customer_user):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["perms", "check", customer_user.email, "productos.ver_listado"])
    assert "DOES NOT HAVE" in result.output

    result = runner.invoke(args=["perms", "grant", "cliente", "productos.ver_listado"])
    assert "PASS Granted" in result.output
    assert permission_service.user_has_permission(customer_user.id, "productos.ver_listado")

    result = runner.invoke(args=["perms", "check", customer_user.email, "productos.ver_listado"])
    assert "HAS permission" in result.output

    result = runner.invoke(args=["perms", "revoke", "cliente", "productos.ver_listado"])
    assert "PASS Revoked" in result.output
    assert not permission_service.user_has_permission(customer_user.id, "productos.ver_listado")


def test_grant_unknown_code(app, setup_roles):
    result = app.test_cli_runner().invoke(args=["perms", "grant", "cliente", "lavados.regalar"])
    assert "FAIL Error: Unknown permission code lavados.regalar" in result.output


def test_users_list(app, employee_user):
    result = app.test_cli_runner().invoke(args=["users", "list"])
    assert "empleado@lavadero.test" in result.output
    assert "Emilio Test" in result.output
