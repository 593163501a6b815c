# Overview: Service-layer report builders; each returns spreadsheet-ready rows.

"""
Back-office reports.

Every builder returns a list of dicts whose keys are the spreadsheet
column headers (in column order). Builders raise EmptyReportError when the
selection has no data so the caller can answer with a message instead of
an empty file.
"""

from __future__ import annotations

from collections import OrderedDict
from datetime import date, datetime, time, timedelta
from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..models import Appointment, AppointmentStatus, Order, PaymentStatus, Product, Service
from ..validation import ValidationError
from . import audit_service
from carwash.time_utils import local_now, parse_date, format_time

# Estimated bay capacity used for the occupancy rate
MAX_APPOINTMENTS_PER_DAY = 10
DEFAULT_DAILY_WINDOW_DAYS = 30

WEEKDAYS = ("lunes", "martes", "miércoles", "jueves", "viernes", "sábado", "domingo")
MONTHS = ("enero", "febrero", "marzo", "abril", "mayo", "junio", "julio",
          "agosto", "septiembre", "octubre", "noviembre", "diciembre")


class EmptyReportError(LookupError):
    """The report selection contains no rows."""


def _fmt_date(value) -> str:
    return value.strftime("%d/%m/%Y") if value else "N/A"


def _fmt_datetime(value) -> str:
    return value.strftime("%d/%m/%Y, %H:%M:%S") if value else "N/A"


def _money(value) -> Decimal:
    return Decimal(value or 0).quantize(Decimal("0.01"))


def _pct(part, whole) -> float:
    return round(float(part) / float(whole) * 100, 2) if whole else 0.0


def _range(date_from: str | None, date_to: str | None) -> tuple[date | None, date | None]:
    try:
        start, end = parse_date(date_from), parse_date(date_to)
    except ValueError:
        raise ValidationError("date filters must be YYYY-MM-DD")
    if start and end and start > end:
        raise ValidationError("date_from must not be after date_to")
    return start, end


def _day_bounds(start: date | None, end: date | None):
    return (
        datetime.combine(start, time.min) if start else None,
        datetime.combine(end, time(23, 59, 59)) if end else None,
    )


def _today() -> date:
    return local_now(current_app.config["BUSINESS_TIMEZONE"]).date()


def _profile_of(user):
    return user.profile if user is not None else None


# -- Catalog and transaction listings --

def products_rows() -> list[dict]:
    products = db.session.query(Product).order_by(Product.name.asc()).all()
    if not products:
        raise EmptyReportError("No hay productos para exportar")
    return [
        OrderedDict([
            ("ID", p.id),
            ("Nombre", p.name),
            ("Descripción", p.description or ""),
            ("Precio", _money(p.price)),
            ("Stock", p.stock),
            ("Visible", "Sí" if p.is_visible else "No"),
            ("Estado", "Activo" if p.is_active else "Inactivo"),
            ("Fecha Creación", _fmt_datetime(p.created_at)),
            ("Última Actualización", _fmt_datetime(p.updated_at) if p.updated_at else "-"),
        ])
        for p in products
    ]


def services_rows() -> list[dict]:
    services = db.session.query(Service).order_by(Service.name.asc()).all()
    if not services:
        raise EmptyReportError("No hay servicios para exportar")
    return [
        OrderedDict([
            ("ID", s.id),
            ("Nombre", s.name),
            ("Descripción", s.description or ""),
            ("Precio", _money(s.price)),
            ("Duración (min)", s.duration_minutes),
            ("Visible", "Sí" if s.is_visible else "No"),
            ("Estado", "Activo" if s.is_active else "Inactivo"),
            ("Fecha Creación", _fmt_datetime(s.created_at)),
            ("Última Actualización", _fmt_datetime(s.updated_at) if s.updated_at else "-"),
        ])
        for s in services
    ]


def appointments_rows(date_from: str | None = None, date_to: str | None = None) -> list[dict]:
    start, end = _range(date_from, date_to)
    query = db.session.query(Appointment)
    if start:
        query = query.filter(Appointment.date >= start)
    if end:
        query = query.filter(Appointment.date <= end)
    appointments = query.order_by(Appointment.date.desc(), Appointment.time.desc()).all()
    if not appointments:
        raise EmptyReportError("No hay turnos para exportar")

    rows = []
    for a in appointments:
        profile = _profile_of(a.client)
        rows.append(OrderedDict([
            ("ID", a.id),
            ("Cliente", profile.full_name if profile else "N/A"),
            ("DNI", profile.national_id if profile and profile.national_id else "N/A"),
            ("Teléfono", profile.phone if profile and profile.phone else "N/A"),
            ("Servicio", a.service.name if a.service else "N/A"),
            ("Fecha", _fmt_date(a.date)),
            ("Hora", format_time(a.time) or "N/A"),
            ("Estado", a.status or "N/A"),
            ("Notas", a.notes or ""),
            ("Fecha Creación", _fmt_datetime(a.created_at)),
        ]))
    return rows


def orders_rows(date_from: str | None = None, date_to: str | None = None) -> list[dict]:
    lower, upper = _day_bounds(*_range(date_from, date_to))
    query = db.session.query(Order)
    if lower:
        query = query.filter(Order.created_at >= lower)
    if upper:
        query = query.filter(Order.created_at <= upper)
    orders = query.order_by(Order.created_at.desc()).all()
    if not orders:
        raise EmptyReportError("No hay pedidos para exportar")

    rows = []
    for o in orders:
        customer = o.customer_data or {}
        name = f"{customer.get('first_name') or ''} {customer.get('last_name') or ''}".strip()
        rows.append(OrderedDict([
            ("ID", o.id),
            ("Cliente", name or "N/A"),
            ("Email", customer.get("email") or "N/A"),
            ("DNI", customer.get("national_id") or "N/A"),
            ("Teléfono", customer.get("phone") or "N/A"),
            ("Total", _money(o.total)),
            ("Estado Pago", o.payment_status or "N/A"),
            ("Estado Envío", o.shipping_status or "N/A"),
            ("Fecha Pedido", _fmt_datetime(o.created_at)),
            ("Cantidad Items", sum(line.quantity for line in o.lines)),
            ("Productos", ", ".join(
                f"{line.quantity}x {line.product.name if line.product else 'N/A'}" for line in o.lines
            )),
        ]))
    return rows


# -- Analytics --

def appointments_per_day(date_from: str | None = None, date_to: str | None = None) -> list[dict]:
    """
    Daily counts per status, revenue from Realizado appointments, and the
    occupancy rate against MAX_APPOINTMENTS_PER_DAY. Defaults to the last
    30 days.
    """
    start, end = _range(date_from, date_to)
    if start is None:
        start = _today() - timedelta(days=DEFAULT_DAILY_WINDOW_DAYS)

    query = db.session.query(Appointment).filter(Appointment.date >= start)
    if end:
        query = query.filter(Appointment.date <= end)
    appointments = query.order_by(Appointment.date.asc()).all()
    if not appointments:
        raise EmptyReportError("No hay turnos en el período seleccionado")

    per_day: dict[date, dict] = OrderedDict()
    for a in appointments:
        day = per_day.setdefault(a.date, {
            "count": 0, AppointmentStatus.CONFIRMED: 0, AppointmentStatus.PENDING: 0,
            AppointmentStatus.DONE: 0, AppointmentStatus.CANCELLED: 0, "revenue": Decimal("0"),
        })
        day["count"] += 1
        if a.status in day:
            day[a.status] += 1
        if a.status == AppointmentStatus.DONE and a.service is not None:
            day["revenue"] += Decimal(a.service.price or 0)

    return [
        OrderedDict([
            ("Fecha", _fmt_date(day_date)),
            ("Día de la Semana", WEEKDAYS[day_date.weekday()]),
            ("Cantidad de Turnos", data["count"]),
            ("Turnos Confirmados", data[AppointmentStatus.CONFIRMED]),
            ("Turnos Pendientes", data[AppointmentStatus.PENDING]),
            ("Turnos Realizados", data[AppointmentStatus.DONE]),
            ("Turnos Cancelados", data[AppointmentStatus.CANCELLED]),
            ("Ingresos Estimados", _money(data["revenue"])),
            ("Tasa de Ocupación %", _pct(data["count"], MAX_APPOINTMENTS_PER_DAY)),
        ])
        for day_date, data in sorted(per_day.items())
    ]


def appointments_per_service(date_from: str | None = None, date_to: str | None = None) -> list[dict]:
    start, end = _range(date_from, date_to)
    query = db.session.query(Appointment)
    if start:
        query = query.filter(Appointment.date >= start)
    if end:
        query = query.filter(Appointment.date <= end)
    appointments = query.all()
    if not appointments:
        raise EmptyReportError("No hay turnos para analizar")

    dates = [a.date for a in appointments]
    period_days = (max(dates) - min(dates)).days or 1
    total = len(appointments)

    per_service: dict[int, dict] = {}
    for a in appointments:
        if a.service is None:
            continue
        entry = per_service.setdefault(a.service_id, {
            "name": a.service.name, "price": _money(a.service.price), "count": 0,
            AppointmentStatus.CONFIRMED: 0, AppointmentStatus.DONE: 0, AppointmentStatus.CANCELLED: 0,
            "revenue": Decimal("0"),
        })
        entry["count"] += 1
        if a.status in entry:
            entry[a.status] += 1
        if a.status == AppointmentStatus.DONE:
            entry["revenue"] += entry["price"]

    ordered = sorted(per_service.values(), key=lambda e: e["count"], reverse=True)
    return [
        OrderedDict([
            ("Servicio", e["name"]),
            ("Cantidad de Turnos", e["count"]),
            ("Porcentaje del Total %", _pct(e["count"], total)),
            ("Turnos Confirmados", e[AppointmentStatus.CONFIRMED]),
            ("Turnos Realizados", e[AppointmentStatus.DONE]),
            ("Turnos Cancelados", e[AppointmentStatus.CANCELLED]),
            ("Precio del Servicio", e["price"]),
            ("Ingresos Totales", _money(e["revenue"])),
            ("Promedio Diario", round(e["count"] / period_days, 2)),
        ])
        for e in ordered
    ]


def revenue_by_period(date_from: str | None = None, date_to: str | None = None) -> list[dict]:
    """
    Revenue from Realizado appointments (service price) and Pagado orders
    (order total): a summary row, then per-day rows, then per-month rows
    with month-over-month growth.
    """
    start, end = _range(date_from, date_to)

    appt_query = db.session.query(Appointment).filter(Appointment.status == AppointmentStatus.DONE)
    if start:
        appt_query = appt_query.filter(Appointment.date >= start)
    if end:
        appt_query = appt_query.filter(Appointment.date <= end)
    appointments = appt_query.order_by(Appointment.date.asc()).all()

    lower, upper = _day_bounds(start, end)
    order_query = db.session.query(Order).filter(Order.payment_status == PaymentStatus.PAID)
    if lower:
        order_query = order_query.filter(Order.created_at >= lower)
    if upper:
        order_query = order_query.filter(Order.created_at <= upper)
    orders = order_query.order_by(Order.created_at.asc()).all()

    if not appointments and not orders:
        raise EmptyReportError("No hay ingresos para analizar")

    per_day: dict[date, dict] = {}

    def bucket(day: date) -> dict:
        return per_day.setdefault(day, {"services": Decimal("0"), "products": Decimal("0"), "transactions": 0})

    for a in appointments:
        amount = Decimal(a.service.price or 0) if a.service else Decimal("0")
        entry = bucket(a.date)
        entry["services"] += amount
        entry["transactions"] += 1
    for o in orders:
        entry = bucket(o.created_at.date())
        entry["products"] += Decimal(o.total or 0)
        entry["transactions"] += 1

    service_income = sum((d["services"] for d in per_day.values()), Decimal("0"))
    product_income = sum((d["products"] for d in per_day.values()), Decimal("0"))
    total_income = service_income + product_income
    transactions = len(appointments) + len(orders)
    days = sorted(per_day)

    rows: list[dict] = [OrderedDict([
        ("Tipo", "RESUMEN GENERAL"),
        ("Período", f"{_fmt_date(days[0])} - {_fmt_date(days[-1])}"),
        ("Total Ingresos", _money(total_income)),
        ("Ingresos por Servicios", _money(service_income)),
        ("Ingresos por Productos", _money(product_income)),
        ("Cantidad de Turnos", len(appointments)),
        ("Cantidad de Pedidos", len(orders)),
        ("Ticket Promedio", _money(total_income / transactions) if transactions else _money(0)),
    ]), {}]

    rows.append({"Tipo": "INGRESOS POR DÍA"})
    months: dict[tuple[int, int], dict] = OrderedDict()
    for day in days:
        data = per_day[day]
        rows.append(OrderedDict([
            ("Tipo", "Día"),
            ("Fecha", _fmt_date(day)),
            ("Día de la Semana", WEEKDAYS[day.weekday()]),
            ("Total Ingresos", _money(data["services"] + data["products"])),
            ("Servicios", _money(data["services"])),
            ("Productos", _money(data["products"])),
            ("Cantidad de Transacciones", data["transactions"]),
        ]))
        month = months.setdefault((day.year, day.month), {"services": Decimal("0"), "products": Decimal("0")})
        month["services"] += data["services"]
        month["products"] += data["products"]

    rows.append({})
    rows.append({"Tipo": "INGRESOS POR MES"})
    previous_total = None
    for (year, month_number), data in months.items():
        month_total = data["services"] + data["products"]
        growth = 0.0
        if previous_total:
            growth = round(float((month_total - previous_total) / previous_total * 100), 2)
        rows.append(OrderedDict([
            ("Tipo", "Mes"),
            ("Mes", MONTHS[month_number - 1]),
            ("Año", year),
            ("Total Ingresos", _money(month_total)),
            ("Servicios", _money(data["services"])),
            ("Productos", _money(data["products"])),
            ("Crecimiento vs Mes Anterior %", growth),
        ]))
        previous_total = month_total
    return rows


def units_sold(date_from: str | None = None, date_to: str | None = None) -> list[dict]:
    """
    Product ranking by units ordered. Defaults to the current month.

    Stock status: Sin Stock (0), Bajo (< half the units sold), Exceso
    (> 3x units sold), otherwise Normal. Demand trend: Alta (> 15% of all
    units), Baja (< 5%), otherwise Estable.
    """
    start, end = _range(date_from, date_to)
    today = _today()
    if start is None:
        start = today.replace(day=1)
    period_days = ((end or today) - start).days or 1

    lower, upper = _day_bounds(start, end)
    query = db.session.query(Order).filter(Order.created_at >= lower)
    if upper:
        query = query.filter(Order.created_at <= upper)
    orders = query.all()

    per_product: dict[int, dict] = {}
    total_units = 0
    for order in orders:
        for line in order.lines:
            product = line.product
            if product is None:
                continue
            entry = per_product.setdefault(product.id, {"product": product, "units": 0})
            entry["units"] += line.quantity
            total_units += line.quantity

    if not per_product:
        raise EmptyReportError("No hay ventas de productos en el período seleccionado")

    ranked = sorted(per_product.values(), key=lambda e: e["units"], reverse=True)
    rows = []
    for position, entry in enumerate(ranked, start=1):
        product, units = entry["product"], entry["units"]

        stock_status = "Normal"
        if product.stock == 0:
            stock_status = "Sin Stock"
        elif product.stock < units * 0.5:
            stock_status = "Bajo"
        elif product.stock > units * 3:
            stock_status = "Exceso"

        trend = "Estable"
        if units > total_units * 0.15:
            trend = "Alta Demanda"
        elif units < total_units * 0.05:
            trend = "Baja Demanda"

        rows.append(OrderedDict([
            ("Ranking", position),
            ("Producto", product.name),
            ("Unidades Vendidas", units),
            ("Porcentaje del Total %", _pct(units, total_units)),
            ("Precio Actual", _money(product.price)),
            ("Ingresos Totales", _money(Decimal(product.price or 0) * units)),
            ("Stock Actual", product.stock),
            ("Estado Stock", stock_status),
            ("Promedio Diario", round(units / period_days, 2)),
            ("Tendencia", trend),
        ]))
    return rows


def audit_rows(**filters) -> list[dict]:
    entries = audit_service.query_entries(**filters)
    if not entries:
        raise EmptyReportError("No hay registros de auditoría para exportar con los filtros seleccionados")

    rows = []
    for entry in audit_service.enrich_entries(entries):
        user = entry["user"] or {}
        name = f"{user.get('first_name') or ''} {user.get('last_name') or ''}".strip()
        rows.append(OrderedDict([
            ("ID", entry["id"]),
            ("Fecha", entry["created_at"]),
            ("Usuario", name or "Sistema"),
            ("Email", user.get("email") or "N/A"),
            ("Acción", entry["action"]),
            ("Tabla", entry["table_name"]),
            ("Registro", entry["record_id"] if entry["record_id"] is not None else "-"),
            ("Datos", "" if entry["data"] is None else str(entry["data"])),
        ]))
    return rows
