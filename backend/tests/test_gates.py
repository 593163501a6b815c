"""
Visibility and route gate tests.
"""

import pytest

from carwash.gates import (
    LOGIN_PATH,
    UNGUARDED_DENIED_MESSAGE,
    RouteAction,
    RouteState,
    evaluate_route,
    visibility_gate,
)
from carwash.permissions import PermissionSnapshot


def snapshot_with(*codes):
    return PermissionSnapshot(user_id=5, permissions=frozenset(codes))


class TestVisibilityGate:

    def test_renders_child_when_granted(self):
        snap = snapshot_with("productos.crear")
        assert visibility_gate(snap, "button", permission="productos.crear") == "button"

    def test_renders_fallback_when_denied(self):
        snap = snapshot_with("productos.crear")
        assert visibility_gate(snap, "button", permission="productos.eliminar", fallback="-") == "-"

    def test_fallback_defaults_to_nothing(self):
        assert visibility_gate(snapshot_with(), "button", permission="productos.crear") is None

    def test_loading_renders_nothing_unless_requested(self):
        snap = PermissionSnapshot.pending()
        assert visibility_gate(snap, "button", permission="productos.crear", fallback="-") is None
        assert visibility_gate(snap, "button", permission="productos.crear",
                               show_loading=True, loading="...") == "..."

    @pytest.mark.parametrize(
        "codes,require_all,expected",
        [
            (("turnos.editar",), False, "child"),
            (("turnos.editar",), True, None),
            (("turnos.editar", "turnos.cancelar"), True, "child"),
        ],
    )
    def test_permission_lists(self, codes, require_all, expected):
        snap = snapshot_with(*codes)
        result = visibility_gate(snap, "child", permissions=["turnos.editar", "turnos.cancelar"],
                                 require_all=require_all)
        assert result == expected

    def test_single_permission_wins_over_list(self):
        snap = snapshot_with("turnos.editar")
        result = visibility_gate(snap, "child", permission="turnos.cancelar", permissions=["turnos.editar"])
        assert result is None

    def test_unguarded_denies_by_default(self):
        assert visibility_gate(snapshot_with("turnos.editar"), "child") is None

    def test_unguarded_can_be_allowed(self):
        assert visibility_gate(snapshot_with(), "child", allow_unguarded=True) == "child"


class TestRouteGate:

    def test_loading(self):
        decision = evaluate_route(PermissionSnapshot.pending(), permission="turnos.editar")
        assert decision.state == RouteState.LOADING
        assert decision.action == RouteAction.SHOW_LOADER

    def test_anonymous_redirects_to_login(self):
        decision = evaluate_route(PermissionSnapshot.anonymous(), permission="turnos.editar",
                                  redirect_to="/inicio")
        assert decision.state == RouteState.UNAUTHENTICATED
        assert decision.redirect_to == LOGIN_PATH
        assert decision.replace is True

    def test_authorized(self):
        decision = evaluate_route(snapshot_with("roles.ver_listado"), permission="roles.ver_listado")
        assert decision.allowed
        assert decision.action == RouteAction.RENDER

    def test_access_denied_message_single(self):
        decision = evaluate_route(snapshot_with(), permission="roles.ver_listado")
        assert decision.state == RouteState.UNAUTHORIZED
        assert decision.action == RouteAction.ACCESS_DENIED
        assert decision.message == "Se requiere el permiso: roles.ver_listado"
        assert decision.missing_permissions == ["roles.ver_listado"]

    def test_access_denied_message_all(self):
        decision = evaluate_route(snapshot_with("roles.editar"), permissions=["roles.editar", "roles.crear"],
                                  require_all=True)
        assert decision.message == "Se requieren todos estos permisos: roles.editar, roles.crear"
        assert decision.missing_permissions == ["roles.crear"]

    def test_access_denied_message_any(self):
        decision = evaluate_route(snapshot_with(), permissions=["roles.editar", "roles.crear"])
        assert decision.message == "Se requiere al menos uno de estos permisos: roles.editar, roles.crear"

    def test_redirect_instead_of_denied_view(self):
        decision = evaluate_route(snapshot_with(), permission="roles.editar",
                                  redirect_to="/mi-cuenta", show_access_denied=False)
        assert decision.action == RouteAction.REDIRECT
        assert decision.redirect_to == "/mi-cuenta"
        assert decision.replace is True

    def test_unguarded_route(self):
        decision = evaluate_route(snapshot_with("roles.editar"))
        assert decision.state == RouteState.UNAUTHORIZED
        assert decision.message == UNGUARDED_DENIED_MESSAGE

        decision = evaluate_route(snapshot_with(), allow_unguarded=True)
        assert decision.allowed
