# Overview: Visibility and route gates evaluated against a permission snapshot.

"""
Two gates sit between the permission oracle and whatever renders content:

- visibility_gate: hides or shows one fragment (a button, a menu entry).
- evaluate_route: decides what a whole page does, including the login
  redirect for anonymous visitors.

Both are pure: they receive the snapshot and return a value. The Flask
decorator require_access and the /api/auth/access-check endpoint apply
evaluate_route server side; a front end can call the endpoint or mirror
the same rules.

A gate with no permission requirement denies unless allow_unguarded is
set, in which case it grants and logs a warning.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from .permissions.oracle import PermissionOracle, PermissionSnapshot

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
UNGUARDED_DENIED_MESSAGE = "No tienes permisos para acceder a esta página"


class RouteState:
    LOADING = "loading"
    UNAUTHENTICATED = "unauthenticated"
    UNAUTHORIZED = "unauthorized"
    AUTHORIZED = "authorized"


class RouteAction:
    SHOW_LOADER = "show_loader"
    REDIRECT = "redirect"
    ACCESS_DENIED = "access_denied"
    RENDER = "render"


@dataclass(frozen=True)
class PermissionRequirement:
    """
    What a gate asks for.

    `permission` wins over `permissions` when both are given.
    """
    permission: Optional[str] = None
    permissions: tuple = ()
    require_all: bool = False

    @classmethod
    def build(cls, permission: Optional[str] = None, permissions: Iterable[str] = (),
              require_all: bool = False) -> "PermissionRequirement":
        return cls(permission=permission or None, permissions=tuple(permissions or ()), require_all=require_all)

    @property
    def is_empty(self) -> bool:
        return not self.permission and not self.permissions

    @property
    def codes(self) -> list[str]:
        if self.permission:
            return [self.permission]
        return list(self.permissions)

    def check(self, oracle: PermissionOracle, allow_unguarded: bool = False) -> tuple[bool, list[str]]:
        """Return (granted, missing codes)."""
        if self.permission:
            granted = oracle.has_permission(self.permission)
            return granted, [] if granted else [self.permission]

        if self.permissions:
            if self.require_all:
                missing = oracle.missing_permissions(self.permissions)
                return not missing, missing
            granted = oracle.has_any_permission(self.permissions)
            return granted, [] if granted else list(self.permissions)

        if allow_unguarded:
            logger.warning("Gate evaluated without a permission requirement; granting access")
            return True, []
        logger.warning("Gate evaluated without a permission requirement; denying access")
        return False, []

    def denied_message(self) -> str:
        if self.permission:
            return f"Se requiere el permiso: {self.permission}"
        if self.permissions and self.require_all:
            return f"Se requieren todos estos permisos: {', '.join(self.permissions)}"
        if self.permissions:
            return f"Se requiere al menos uno de estos permisos: {', '.join(self.permissions)}"
        return UNGUARDED_DENIED_MESSAGE


def visibility_gate(
    snapshot: PermissionSnapshot,
    child: Any,
    *,
    permission: Optional[str] = None,
    permissions: Iterable[str] = (),
    require_all: bool = False,
    fallback: Any = None,
    show_loading: bool = False,
    loading: Any = None,
    allow_unguarded: bool = False,
) -> Any:
    """
    Return `child` when access is granted, `fallback` otherwise.

    While the snapshot is still loading nothing is returned, or `loading`
    when show_loading is set.
    """
    if snapshot.loading:
        return loading if show_loading else None

    requirement = PermissionRequirement.build(permission, permissions, require_all)
    granted, _ = requirement.check(PermissionOracle(snapshot), allow_unguarded=allow_unguarded)
    return child if granted else fallback


@dataclass(frozen=True)
class RouteDecision:
    state: str
    action: str
    redirect_to: Optional[str] = None
    replace: bool = False
    message: Optional[str] = None
    required_permissions: list = field(default_factory=list)
    missing_permissions: list = field(default_factory=list)
    require_all: bool = False

    @property
    def allowed(self) -> bool:
        return self.state == RouteState.AUTHORIZED

    def to_dict(self) -> dict:
        return {
            "state": self.state,
            "action": self.action,
            "allowed": self.allowed,
            "redirect_to": self.redirect_to,
            "replace": self.replace,
            "message": self.message,
            "required_permissions": list(self.required_permissions),
            "missing_permissions": list(self.missing_permissions),
            "require_all": self.require_all,
        }


def evaluate_route(
    snapshot: PermissionSnapshot,
    *,
    permission: Optional[str] = None,
    permissions: Iterable[str] = (),
    require_all: bool = False,
    redirect_to: str = "/",
    show_access_denied: bool = True,
    allow_unguarded: bool = False,
) -> RouteDecision:
    """
    Decide what a protected page does.

    LOADING while the snapshot resolves; UNAUTHENTICATED always redirects to
    the login page (replace semantics) regardless of the requirement; an
    UNAUTHORIZED visitor gets the access-denied view or a redirect to
    `redirect_to`; AUTHORIZED renders.
    """
    requirement = PermissionRequirement.build(permission, permissions, require_all)

    if snapshot.loading:
        return RouteDecision(state=RouteState.LOADING, action=RouteAction.SHOW_LOADER)

    if not snapshot.is_authenticated:
        return RouteDecision(
            state=RouteState.UNAUTHENTICATED,
            action=RouteAction.REDIRECT,
            redirect_to=LOGIN_PATH,
            replace=True,
        )

    granted, missing = requirement.check(PermissionOracle(snapshot), allow_unguarded=allow_unguarded)
    if granted:
        return RouteDecision(
            state=RouteState.AUTHORIZED,
            action=RouteAction.RENDER,
            required_permissions=requirement.codes,
            require_all=requirement.require_all,
        )

    if show_access_denied:
        return RouteDecision(
            state=RouteState.UNAUTHORIZED,
            action=RouteAction.ACCESS_DENIED,
            message=requirement.denied_message(),
            required_permissions=requirement.codes,
            missing_permissions=missing,
            require_all=requirement.require_all,
        )

    return RouteDecision(
        state=RouteState.UNAUTHORIZED,
        action=RouteAction.REDIRECT,
        redirect_to=redirect_to,
        replace=True,
        required_permissions=requirement.codes,
        missing_permissions=missing,
        require_all=requirement.require_all,
    )
