# Overview: Permission system package.
# Re-exports all public APIs.

from .categories import PermissionModule
from .definitions import (
    PERMISSION_DEFINITIONS,
    PRODUCT_PERMISSIONS,
    SERVICE_PERMISSIONS,
    USER_PERMISSIONS,
    APPOINTMENT_PERMISSIONS,
    ORDER_PERMISSIONS,
    ROLE_PERMISSIONS,
    REPORT_PERMISSIONS,
    AUDIT_PERMISSIONS,
)
from .roles import DEFAULT_ROLES, DEFAULT_ROLE_PERMISSIONS, ADMIN_ROLE, EMPLOYEE_ROLE, CUSTOMER_ROLE
from .helpers import (
    split_code,
    get_permission_definition,
    validate_permission_code,
)
from .oracle import PermissionSnapshot, PermissionOracle

__all__ = [
    "PermissionModule",
    "PERMISSION_DEFINITIONS",
    "PRODUCT_PERMISSIONS",
    "SERVICE_PERMISSIONS",
    "USER_PERMISSIONS",
    "APPOINTMENT_PERMISSIONS",
    "ORDER_PERMISSIONS",
    "ROLE_PERMISSIONS",
    "REPORT_PERMISSIONS",
    "AUDIT_PERMISSIONS",
    "DEFAULT_ROLES",
    "DEFAULT_ROLE_PERMISSIONS",
    "ADMIN_ROLE",
    "EMPLOYEE_ROLE",
    "CUSTOMER_ROLE",
    "split_code",
    "get_permission_definition",
    "validate_permission_code",
    "PermissionSnapshot",
    "PermissionOracle",
]
