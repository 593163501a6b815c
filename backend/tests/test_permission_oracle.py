"""
Permission oracle tests.

Verifies:
- Single, any-of and all-of predicates over a snapshot
- Empty requirements (vacuous all-of, empty any-of)
- Module helpers used by the menu
"""

import pytest

from carwash.permissions import PermissionOracle, PermissionSnapshot


def oracle_for(*codes):
    return PermissionOracle(PermissionSnapshot(user_id=1, permissions=frozenset(codes)))


class TestHasPermission:

    @pytest.mark.parametrize(
        "code,expected",
        [
            ("productos.crear", True),
            ("productos.eliminar", False),
            ("", False),
            (None, False),
        ],
    )
    def test_single(self, code, expected):
        oracle = oracle_for("productos.crear", "turnos.ver_listado")
        assert oracle.has_permission(code) is expected

    def test_anonymous_has_nothing(self):
        oracle = PermissionOracle(PermissionSnapshot.anonymous())
        assert oracle.has_permission("productos.crear") is False
        assert oracle.permissions == frozenset()


class TestAnyAndAll:

    def test_any_of(self):
        oracle = oracle_for("turnos.ver_listado")
        assert oracle.has_any_permission(["turnos.editar", "turnos.ver_listado"])
        assert not oracle.has_any_permission(["turnos.editar", "turnos.cancelar"])

    def test_all_of(self):
        oracle = oracle_for("roles.ver_listado", "roles.editar")
        assert oracle.has_all_permissions(["roles.ver_listado", "roles.editar"])
        assert not oracle.has_all_permissions(["roles.ver_listado", "roles.eliminar"])

    def test_empty_lists(self):
        oracle = oracle_for("roles.ver_listado")
        assert oracle.has_all_permissions([]) is True
        assert oracle.has_any_permission([]) is False

    def test_missing_preserves_order(self):
        oracle = oracle_for("pedidos.editar")
        missing = oracle.missing_permissions(["pedidos.ver_listado", "pedidos.editar", "turnos.editar"])
        assert missing == ["pedidos.ver_listado", "turnos.editar"]


class TestModuleHelpers:

    def test_can(self):
        oracle = oracle_for("servicios.cambiar_estado")
        assert oracle.can("servicios", "cambiar_estado")
        assert not oracle.can("productos", "cambiar_estado")

    def test_module_access(self):
        oracle = oracle_for("reportes.exportar_turnos", "reportes.turnos_por_dia", "turnos.editar")
        assert oracle.can_access("reportes")
        assert not oracle.can_access("usuarios")
        assert oracle.module_permissions("reportes") == ["reportes.exportar_turnos", "reportes.turnos_por_dia"]


class TestSnapshot:

    def test_from_dict_round_trip(self):
        snapshot = PermissionSnapshot.from_dict(7, {
            "profile": {"id": 3},
            "role": {"name": "empleado"},
            "permissions": ["turnos.editar", "pedidos.editar"],
        })
        assert snapshot.is_authenticated
        assert snapshot.to_dict()["permissions"] == ["pedidos.editar", "turnos.editar"]

    def test_missing_data_means_no_permissions(self):
        snapshot = PermissionSnapshot.from_dict(7, None)
        assert snapshot.is_authenticated
        assert snapshot.permissions == frozenset()

    def test_pending_snapshot_is_loading(self):
        assert PermissionSnapshot.pending().loading
