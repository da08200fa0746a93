# Overview: Read-only sales reporting and dashboard aggregates over invoices.

from __future__ import annotations

from datetime import date, timedelta

from sqlalchemy import func

from ..extensions import db
from ..models import Customer, Invoice, InvoiceItem, Product
from ..numbers import as_number, to_money, to_quantity
from ..validation import ValidationError
from ..time_utils import day_bounds, parse_iso_date, utcnow
from .stock_service import list_low_stock


DASHBOARD_RECENT_LIMIT = 5
DASHBOARD_TOP_PRODUCTS_LIMIT = 5
DASHBOARD_LOW_STOCK_LIMIT = 10
TREND_DAYS = 7


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


def _money(value) -> int | float:
    return as_number(to_money(value or 0))


def _quantity(value) -> int | float:
    return as_number(to_quantity(value or 0))


def _parse_range(date_from: str | None, date_to: str | None):
    try:
        start = parse_iso_date(date_from)
        end = parse_iso_date(date_to)
    except ValueError:
        raise ValidationError("from/to must be dates in YYYY-MM-DD format")
    return day_bounds(start, end)


def _in_range(query, lower, upper):
    if lower is not None:
        query = query.filter(Invoice.created_at >= lower)
    if upper is not None:
        query = query.filter(Invoice.created_at < upper)
    return query


def _invoice_day():
    return func.strftime("%Y-%m-%d", Invoice.created_at)


def summary_report(date_from: str | None = None, date_to: str | None = None) -> dict:
    lower, upper = _parse_range(date_from, date_to)

    totals = _in_range(db.session.query(
        func.count(Invoice.id).label("invoice_count"),
        func.coalesce(func.sum(Invoice.total_amount), 0).label("total_sales"),
        func.coalesce(func.sum(Invoice.gst_amount), 0).label("total_gst"),
        func.coalesce(func.sum(Invoice.discount_amount), 0).label("total_discount"),
        func.coalesce(func.avg(Invoice.total_amount), 0).label("avg_bill"),
    ), lower, upper).one()

    methods = _in_range(db.session.query(
        Invoice.payment_method,
        func.count(Invoice.id).label("invoice_count"),
        func.coalesce(func.sum(Invoice.total_amount), 0).label("total"),
    ), lower, upper).group_by(Invoice.payment_method).order_by(Invoice.payment_method.asc()).all()

    return {
        "total_sales": _money(totals.total_sales),
        "total_invoices": int(totals.invoice_count or 0),
        "total_gst": _money(totals.total_gst),
        "total_discount": _money(totals.total_discount),
        "avg_bill": _money(totals.avg_bill),
        "payment_methods": [
            {
                "payment_method": row.payment_method,
                "invoice_count": int(row.invoice_count or 0),
                "total": _money(row.total),
            }
            for row in methods
        ],
    }


def daily_report(date_from: str | None = None, date_to: str | None = None) -> list[dict]:
    lower, upper = _parse_range(date_from, date_to)
    day = _invoice_day()

    rows = _in_range(db.session.query(
        day.label("date"),
        func.count(Invoice.id).label("invoice_count"),
        func.coalesce(func.sum(Invoice.total_amount), 0).label("total_sales"),
        func.coalesce(func.sum(Invoice.gst_amount), 0).label("total_gst"),
        func.coalesce(func.sum(Invoice.discount_amount), 0).label("total_discount"),
    ), lower, upper).group_by("date").order_by(day.desc()).all()

    return [
        {
            "date": row.date,
            "invoice_count": int(row.invoice_count or 0),
            "total_sales": _money(row.total_sales),
            "total_gst": _money(row.total_gst),
            "total_discount": _money(row.total_discount),
        }
        for row in rows
    ]


def products_report(date_from: str | None = None, date_to: str | None = None) -> list[dict]:
    """Per-product sales, grouped by the name snapshot on the invoice items."""
    lower, upper = _parse_range(date_from, date_to)
    revenue = func.coalesce(func.sum(InvoiceItem.total), 0)

    rows = _in_range(db.session.query(
        InvoiceItem.product_name,
        func.coalesce(func.sum(InvoiceItem.quantity), 0).label("total_qty"),
        revenue.label("total_revenue"),
        func.count(func.distinct(InvoiceItem.invoice_id)).label("invoice_count"),
    ).join(Invoice, Invoice.id == InvoiceItem.invoice_id), lower, upper).group_by(
        InvoiceItem.product_name
    ).order_by(revenue.desc(), InvoiceItem.product_name.asc()).all()

    return [
        {
            "product_name": row.product_name,
            "total_qty": _quantity(row.total_qty),
            "total_revenue": _money(row.total_revenue),
            "invoice_count": int(row.invoice_count or 0),
        }
        for row in rows
    ]


def customers_report(date_from: str | None = None, date_to: str | None = None) -> list[dict]:
    lower, upper = _parse_range(date_from, date_to)
    spent = func.coalesce(func.sum(Invoice.total_amount), 0)

    rows = _in_range(db.session.query(
        Invoice.customer_name,
        func.count(Invoice.id).label("invoice_count"),
        spent.label("total_spent"),
    ), lower, upper).group_by(Invoice.customer_name).order_by(
        spent.desc(), Invoice.customer_name.asc()
    ).all()

    return [
        {
            "customer_name": row.customer_name,
            "invoice_count": int(row.invoice_count or 0),
            "total_spent": _money(row.total_spent),
        }
        for row in rows
    ]


def invoice_list_report(date_from: str | None = None, date_to: str | None = None) -> list[dict]:
    """Flat export rows, newest first."""
    lower, upper = _parse_range(date_from, date_to)
    invoices = _in_range(db.session.query(Invoice), lower, upper).order_by(
        Invoice.created_at.desc(), Invoice.id.desc()
    ).all()

    return [
        {
            "invoice_number": inv.invoice_number,
            "date": inv.created_at.date().isoformat() if inv.created_at else None,
            "customer_name": inv.customer_name,
            "total_amount": _money(inv.total_amount),
            "gst_amount": _money(inv.gst_amount),
            "payment_status": inv.payment_status,
            "balance_due": _money(inv.balance_due),
        }
        for inv in invoices
    ]


REPORT_TYPES = {
    "summary": summary_report,
    "daily": daily_report,
    "products": products_report,
    "customers": customers_report,
    "invoicelist": invoice_list_report,
}


def build_report(report_type: str | None, date_from: str | None = None, date_to: str | None = None):
    report_type = (report_type or "summary").strip().lower()
    builder = REPORT_TYPES.get(report_type)
    if builder is None:
        raise ReportError(f"type must be one of: {', '.join(REPORT_TYPES)}")
    return builder(date_from, date_to)


def _sales_since(lower) -> tuple:
    row = db.session.query(
        func.count(Invoice.id),
        func.coalesce(func.sum(Invoice.total_amount), 0),
    ).filter(Invoice.created_at >= lower).one()
    return int(row[0] or 0), _money(row[1])


def dashboard(today: date | None = None) -> dict:
    """
    Store overview: sales for today / last 7 days / this month, counts,
    recent invoices, best sellers, a 7-day trend and the low-stock list.
    """
    today = today or utcnow().date()
    today_start, _ = day_bounds(today, None)
    week_start, _ = day_bounds(today - timedelta(days=TREND_DAYS - 1), None)
    month_start, _ = day_bounds(today.replace(day=1), None)

    today_count, today_sales = _sales_since(today_start)
    _, week_sales = _sales_since(week_start)
    _, month_sales = _sales_since(month_start)

    recent = (
        db.session.query(Invoice)
        .order_by(Invoice.created_at.desc(), Invoice.id.desc())
        .limit(DASHBOARD_RECENT_LIMIT)
        .all()
    )

    sold = func.coalesce(func.sum(InvoiceItem.quantity), 0)
    top_products = (
        db.session.query(
            InvoiceItem.product_name,
            sold.label("total_quantity"),
            func.coalesce(func.sum(InvoiceItem.total), 0).label("total_revenue"),
        )
        .group_by(InvoiceItem.product_name)
        .order_by(sold.desc(), InvoiceItem.product_name.asc())
        .limit(DASHBOARD_TOP_PRODUCTS_LIMIT)
        .all()
    )

    day = _invoice_day()
    per_day = dict(
        db.session.query(day, func.coalesce(func.sum(Invoice.total_amount), 0))
        .filter(Invoice.created_at >= week_start)
        .group_by(day)
        .all()
    )
    trend = []
    for offset in range(TREND_DAYS - 1, -1, -1):
        d = (today - timedelta(days=offset)).isoformat()
        trend.append({"date": d, "amount": _money(per_day.get(d))})

    low_stock = list_low_stock()

    return {
        "stats": {
            "today_sales": today_sales,
            "today_invoices": today_count,
            "week_sales": week_sales,
            "month_sales": month_sales,
            "total_products": db.session.query(Product).count(),
            "low_stock_products": len(low_stock),
            "total_customers": db.session.query(Customer).count(),
        },
        "recent_invoices": [inv.to_dict() for inv in recent],
        "top_products": [
            {
                "product_name": row.product_name,
                "total_quantity": _quantity(row.total_quantity),
                "total_revenue": _money(row.total_revenue),
            }
            for row in top_products
        ],
        "sales_trend": trend,
        "low_stock_items": [
            {
                "id": p.id,
                "name": p.name,
                "quantity": as_number(p.quantity),
                "low_stock_alert": as_number(p.low_stock_alert),
                "unit": p.unit,
            }
            for p in low_stock[:DASHBOARD_LOW_STOCK_LIMIT]
        ],
    }
