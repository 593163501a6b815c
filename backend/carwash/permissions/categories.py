# Overview: Permission module constants for grouping related permissions.


class PermissionModule:
    """Back-office modules; the first half of every "<module>.<action>" code."""
    PRODUCTOS = "productos"
    SERVICIOS = "servicios"
    USUARIOS = "usuarios"
    TURNOS = "turnos"
    PEDIDOS = "pedidos"
    ROLES = "roles"
    REPORTES = "reportes"
    AUDITORIA = "auditoria"

    ALL = (PRODUCTOS, SERVICIOS, USUARIOS, TURNOS, PEDIDOS, ROLES, REPORTES, AUDITORIA)
