# Overview: Default roles and the permissions each one starts with.

from .definitions import (
    PERMISSION_DEFINITIONS,
    PRODUCT_PERMISSIONS,
    SERVICE_PERMISSIONS,
    APPOINTMENT_PERMISSIONS,
    ORDER_PERMISSIONS,
)


ADMIN_ROLE = "admin"
EMPLOYEE_ROLE = "empleado"
CUSTOMER_ROLE = "cliente"

# (name, description); all are seeded with is_system=True
DEFAULT_ROLES = [
    (ADMIN_ROLE, "Acceso total al panel de administración"),
    (EMPLOYEE_ROLE, "Gestión diaria de turnos, pedidos y catálogo"),
    (CUSTOMER_ROLE, "Cliente registrado: reserva turnos y compra productos"),
]


def _codes(definitions):
    return [perm[0] for perm in definitions]


DEFAULT_ROLE_PERMISSIONS = {
    ADMIN_ROLE: _codes(PERMISSION_DEFINITIONS),
    EMPLOYEE_ROLE: (
        [code for code in _codes(PRODUCT_PERMISSIONS) if code != "productos.eliminar"]
        + [code for code in _codes(SERVICE_PERMISSIONS) if code != "servicios.eliminar"]
        + _codes(APPOINTMENT_PERMISSIONS)
        + _codes(ORDER_PERMISSIONS)
        + ["reportes.exportar_turnos", "reportes.exportar_pedidos", "reportes.turnos_por_dia"]
    ),
    # Customers act only on their own bookings and orders, which needs no permission
    CUSTOMER_ROLE: [],
}
