# Overview: All permission definitions organized by module.
# Each permission is defined as: (code, name, description, module)

from .categories import PermissionModule


# -- PRODUCTOS --

PRODUCT_PERMISSIONS = [
    ("productos.ver_listado", "Ver productos", "Listar productos en el panel", PermissionModule.PRODUCTOS),
    ("productos.crear", "Crear productos", "Dar de alta productos", PermissionModule.PRODUCTOS),
    ("productos.editar", "Editar productos", "Modificar datos, precio, stock e imagen", PermissionModule.PRODUCTOS),
    ("productos.eliminar", "Eliminar productos", "Baja lógica de productos", PermissionModule.PRODUCTOS),
    ("productos.cambiar_estado", "Cambiar visibilidad", "Mostrar u ocultar productos en la tienda", PermissionModule.PRODUCTOS),
]


# -- SERVICIOS --

SERVICE_PERMISSIONS = [
    ("servicios.ver_listado", "Ver servicios", "Listar servicios en el panel", PermissionModule.SERVICIOS),
    ("servicios.crear", "Crear servicios", "Dar de alta servicios", PermissionModule.SERVICIOS),
    ("servicios.editar", "Editar servicios", "Modificar datos, precio, duración e imagen", PermissionModule.SERVICIOS),
    ("servicios.eliminar", "Eliminar servicios", "Baja lógica de servicios", PermissionModule.SERVICIOS),
    ("servicios.cambiar_estado", "Cambiar visibilidad", "Mostrar u ocultar servicios en el sitio", PermissionModule.SERVICIOS),
]


# -- USUARIOS --

USER_PERMISSIONS = [
    ("usuarios.ver_listado", "Ver usuarios", "Listar perfiles de usuario", PermissionModule.USUARIOS),
    ("usuarios.crear", "Crear usuarios", "Dar de alta usuarios desde el panel", PermissionModule.USUARIOS),
    ("usuarios.editar", "Editar usuarios", "Modificar perfiles y asignar roles", PermissionModule.USUARIOS),
    ("usuarios.eliminar", "Desactivar usuarios", "Baja lógica de perfiles", PermissionModule.USUARIOS),
]


# -- TURNOS --

APPOINTMENT_PERMISSIONS = [
    ("turnos.ver_listado", "Ver turnos", "Listar todos los turnos", PermissionModule.TURNOS),
    ("turnos.editar", "Editar turnos", "Cambiar estado, fecha u hora de un turno", PermissionModule.TURNOS),
    ("turnos.cancelar", "Cancelar turnos", "Cancelar turnos de cualquier cliente", PermissionModule.TURNOS),
]


# -- PEDIDOS --

ORDER_PERMISSIONS = [
    ("pedidos.ver_listado", "Ver pedidos", "Listar todos los pedidos", PermissionModule.PEDIDOS),
    ("pedidos.editar", "Editar pedidos", "Cambiar estados y cantidades de un pedido", PermissionModule.PEDIDOS),
]


# -- ROLES --

ROLE_PERMISSIONS = [
    ("roles.ver_listado", "Ver roles", "Listar roles y permisos", PermissionModule.ROLES),
    ("roles.crear", "Crear roles", "Crear roles personalizados", PermissionModule.ROLES),
    ("roles.editar", "Editar roles", "Modificar y activar/desactivar roles", PermissionModule.ROLES),
    ("roles.eliminar", "Eliminar roles", "Eliminar roles no protegidos", PermissionModule.ROLES),
    ("roles.asignar_permisos", "Asignar permisos", "Editar la matriz rol-permiso", PermissionModule.ROLES),
]


# -- REPORTES --

REPORT_PERMISSIONS = [
    ("reportes.exportar_productos", "Exportar productos", "Planilla de productos", PermissionModule.REPORTES),
    ("reportes.exportar_servicios", "Exportar servicios", "Planilla de servicios", PermissionModule.REPORTES),
    ("reportes.exportar_turnos", "Exportar turnos", "Planilla de turnos", PermissionModule.REPORTES),
    ("reportes.exportar_pedidos", "Exportar pedidos", "Planilla de pedidos", PermissionModule.REPORTES),
    ("reportes.turnos_por_dia", "Turnos por día", "Análisis diario de turnos", PermissionModule.REPORTES),
    ("reportes.turnos_por_servicio", "Turnos por servicio", "Análisis de turnos por servicio", PermissionModule.REPORTES),
    ("reportes.ingresos_periodo", "Ingresos por período", "Análisis de ingresos por día y mes", PermissionModule.REPORTES),
    ("reportes.unidades_vendidas", "Unidades vendidas", "Ranking de productos vendidos", PermissionModule.REPORTES),
    ("reportes.auditoria", "Exportar auditoría", "Planilla del registro de auditoría", PermissionModule.REPORTES),
]


# -- AUDITORIA --

AUDIT_PERMISSIONS = [
    ("auditoria.ver_listado", "Ver auditoría", "Consultar el registro de auditoría", PermissionModule.AUDITORIA),
]


PERMISSION_DEFINITIONS = (
    PRODUCT_PERMISSIONS
    + SERVICE_PERMISSIONS
    + USER_PERMISSIONS
    + APPOINTMENT_PERMISSIONS
    + ORDER_PERMISSIONS
    + ROLE_PERMISSIONS
    + REPORT_PERMISSIONS
    + AUDIT_PERMISSIONS
)
