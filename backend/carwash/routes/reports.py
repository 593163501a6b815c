# Overview: Flask API routes for reports; Excel exports and analytics.

from flask import Blueprint, request, jsonify, send_file, g

from ..decorators import require_auth
from ..services import export_service
from ..services import reporting_service
from ..services.reporting_service import EmptyReportError
from ..validation import ValidationError


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# name -> (permission, builder, file base name, sheet name, takes date range)
REPORTS = {
    "productos": ("reportes.exportar_productos", reporting_service.products_rows, "productos", "Productos", False),
    "servicios": ("reportes.exportar_servicios", reporting_service.services_rows, "servicios", "Servicios", False),
    "turnos": ("reportes.exportar_turnos", reporting_service.appointments_rows, "turnos", "Turnos", True),
    "pedidos": ("reportes.exportar_pedidos", reporting_service.orders_rows, "pedidos", "Pedidos", True),
    "turnos-por-dia": ("reportes.turnos_por_dia", reporting_service.appointments_per_day,
                       "turnos_por_dia", "Turnos por Día", True),
    "turnos-por-servicio": ("reportes.turnos_por_servicio", reporting_service.appointments_per_service,
                            "turnos_por_servicio", "Turnos por Servicio", True),
    "ingresos": ("reportes.ingresos_periodo", reporting_service.revenue_by_period,
                 "ingresos_periodo", "Ingresos", True),
    "unidades-vendidas": ("reportes.unidades_vendidas", reporting_service.units_sold,
                          "unidades_vendidas", "Unidades Vendidas", True),
}


def _denied(permission_code: str):
    return jsonify({
        "error": "Permission denied",
        "required_permission": permission_code,
        "message": f"Se requiere el permiso: {permission_code}",
    }), 403


def _send_rows(rows, base_name: str, sheet_name: str):
    buffer, filename = export_service.export_to_excel(rows, base_name, sheet_name)
    return send_file(buffer, mimetype=XLSX_MIMETYPE, as_attachment=True, download_name=filename)


@reports_bp.get("")
@require_auth
def list_reports():
    """Reports the caller may download."""
    available = [name for name, entry in REPORTS.items() if g.oracle.has_permission(entry[0])]
    if g.oracle.has_permission("reportes.auditoria"):
        available.append("auditoria")
    return jsonify({"reports": available})


@reports_bp.get("/auditoria")
@require_auth
def export_audit():
    """Filters: user_id, date_from, date_to, action, table."""
    if not g.oracle.has_permission("reportes.auditoria"):
        return _denied("reportes.auditoria")
    try:
        rows = reporting_service.audit_rows(
            user_id=request.args.get("user_id", type=int),
            date_from=request.args.get("date_from"),
            date_to=request.args.get("date_to"),
            action=request.args.get("action"),
            table_name=request.args.get("table"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except EmptyReportError as e:
        return jsonify({"error": str(e)}), 404
    return _send_rows(rows, "auditoria", "Auditoría")


@reports_bp.get("/<name>")
@require_auth
def export_report(name: str):
    """Download one report as .xlsx. Query: date_from, date_to (YYYY-MM-DD)."""
    entry = REPORTS.get(name)
    if entry is None:
        return jsonify({"error": f"Unknown report: {name}"}), 404

    permission_code, builder, base_name, sheet_name, ranged = entry
    if not g.oracle.has_permission(permission_code):
        return _denied(permission_code)

    try:
        if ranged:
            rows = builder(request.args.get("date_from"), request.args.get("date_to"))
        else:
            rows = builder()
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except EmptyReportError as e:
        return jsonify({"error": str(e)}), 404

    return _send_rows(rows, base_name, sheet_name)
