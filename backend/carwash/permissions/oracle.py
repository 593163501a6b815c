# Overview: Pure permission predicates over a cached identity snapshot.

"""
Permission oracle.

A PermissionSnapshot is the cached answer to "who is this and what may they
do", built from the profile row, its role and the flattened permission
codes. It is rebuilt wholesale on every session-change event (login,
logout, token refresh, password update) and is never merged or patched.

PermissionOracle answers questions against one snapshot without touching
the database. Between a role edit and the holder's next session-change
event the oracle keeps answering from the old snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from .helpers import split_code


@dataclass(frozen=True)
class PermissionSnapshot:
    user_id: Optional[int] = None
    profile: Optional[dict] = None
    role: Optional[dict] = None
    permissions: frozenset = field(default_factory=frozenset)
    loading: bool = False

    @classmethod
    def anonymous(cls) -> "PermissionSnapshot":
        return cls()

    @classmethod
    def pending(cls) -> "PermissionSnapshot":
        """Session known to exist but profile/permissions not resolved yet."""
        return cls(loading=True)

    @classmethod
    def from_dict(cls, user_id: int, data: Optional[dict]) -> "PermissionSnapshot":
        data = data or {}
        return cls(
            user_id=user_id,
            profile=data.get("profile"),
            role=data.get("role"),
            permissions=frozenset(data.get("permissions") or ()),
        )

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "profile": self.profile,
            "role": self.role,
            "permissions": sorted(self.permissions),
        }


class PermissionOracle:
    """Predicates over PermissionSnapshot.permissions."""

    def __init__(self, snapshot: PermissionSnapshot):
        self.snapshot = snapshot

    @property
    def permissions(self) -> frozenset:
        return self.snapshot.permissions

    def has_permission(self, code: Optional[str]) -> bool:
        if not code:
            return False
        return code in self.permissions

    def has_any_permission(self, codes: Iterable[str]) -> bool:
        return any(self.has_permission(code) for code in codes or ())

    def has_all_permissions(self, codes: Iterable[str]) -> bool:
        # The empty requirement is satisfied by every identity
        return all(code in self.permissions for code in codes or ())

    def missing_permissions(self, codes: Iterable[str]) -> list[str]:
        return [code for code in codes or () if code not in self.permissions]

    def can(self, module: str, action: str) -> bool:
        return self.has_permission(f"{module}.{action}")

    def can_access(self, module: str) -> bool:
        return bool(self.module_permissions(module))

    def module_permissions(self, module: str) -> list[str]:
        return sorted(code for code in self.permissions if split_code(code)[0] == module)
