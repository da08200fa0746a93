"""
Sales report and dashboard tests.
"""

from datetime import datetime, timedelta

import pytest

from billing.models import Invoice
from billing.services import invoice_service, reports_service
from billing.time_utils import utcnow
from billing.validation import ValidationError


@pytest.fixture
def sales(settings, make_product, make_customer, db_session):
    """Three invoices: two on 2026-03-01 (cash, upi), one on 2026-03-02 (cash, credit)."""
    dal = make_product(name="Toor Dal", quantity="100", selling_price="120", unit="kg")
    soap = make_product(name="Soap", quantity="40", selling_price="35", unit="pcs")
    ramesh = make_customer(name="Ramesh Kumar")

    first = invoice_service.create_invoice({
        "items": [{"product_id": dal.id, "quantity": 2}],
        "payment_method": "cash",
    })
    second = invoice_service.create_invoice({
        "items": [{"product_id": soap.id, "quantity": 4}],
        "discount_amount": 10,
        "gst_amount": 6.3,
        "payment_method": "upi",
    })
    third = invoice_service.create_invoice({
        "customer_id": ramesh.id,
        "items": [
            {"product_id": dal.id, "quantity": "1.5"},
            {"product_id": soap.id, "quantity": 2},
        ],
        "payment_method": "cash",
        "payment_status": "partial",
        "amount_paid": 100,
    })

    stamps = {
        first["invoice"]["id"]: datetime(2026, 3, 1, 9, 0),
        second["invoice"]["id"]: datetime(2026, 3, 1, 17, 30),
        third["invoice"]["id"]: datetime(2026, 3, 2, 11, 15),
    }
    for invoice_id, created_at in stamps.items():
        db_session.get(Invoice, invoice_id).created_at = created_at
    db_session.commit()


def test_summary(sales):
    report = reports_service.build_report("summary")
    # 240 + (140 - 10 + 6.30) + (180 + 70)
    assert report["total_sales"] == 626.3
    assert report["total_invoices"] == 3
    assert report["total_gst"] == 6.3
    assert report["total_discount"] == 10
    assert report["payment_methods"] == [
        {"payment_method": "cash", "invoice_count": 2, "total": 490},
        {"payment_method": "upi", "invoice_count": 1, "total": 136.3},
    ]


def test_summary_with_range(sales):
    report = reports_service.summary_report(date_from="2026-03-02", date_to="2026-03-02")
    assert report["total_invoices"] == 1
    assert report["total_sales"] == 250


def test_daily(sales):
    rows = reports_service.daily_report()
    assert [(r["date"], r["invoice_count"], r["total_sales"]) for r in rows] == [
        ("2026-03-02", 1, 250),
        ("2026-03-01", 2, 376.3),
    ]


def test_products(sales):
    rows = reports_service.products_report()
    assert rows[0] == {"product_name": "Toor Dal", "total_qty": 3.5, "total_revenue": 420, "invoice_count": 2}
    assert rows[1]["product_name"] == "Soap"
    assert rows[1]["total_qty"] == 6


def test_customers(sales):
    rows = reports_service.customers_report()
    assert rows == [
        {"customer_name": "Walk-in Customer", "invoice_count": 2, "total_spent": 376.3},
        {"customer_name": "Ramesh Kumar", "invoice_count": 1, "total_spent": 250},
    ]


def test_invoice_list(sales):
    rows = reports_service.invoice_list_report(date_from="2026-03-01", date_to="2026-03-01")
    assert [r["invoice_number"] for r in rows] == ["GKS-00002", "GKS-00001"]
    assert rows[0]["date"] == "2026-03-01"
    assert rows[0]["balance_due"] == 0


def test_unknown_type(db_session):
    with pytest.raises(reports_service.ReportError):
        reports_service.build_report("profit")


def test_bad_date(db_session):
    with pytest.raises(ValidationError):
        reports_service.build_report("daily", date_from="01-03-2026")


def test_dashboard(settings, make_product):
    rice = make_product(name="Rice", quantity="3", selling_price="60")
    invoice_service.create_invoice({"items": [{"product_id": rice.id, "quantity": 1}]})

    data = reports_service.dashboard()
    today = utcnow().date()

    assert data["stats"]["today_invoices"] == 1
    assert data["stats"]["today_sales"] == 60
    assert data["stats"]["week_sales"] == 60
    assert data["stats"]["total_products"] == 1
    assert data["stats"]["low_stock_products"] == 1
    assert [i["invoice_number"] for i in data["recent_invoices"]] == ["GKS-00001"]
    assert data["top_products"] == [{"product_name": "Rice", "total_quantity": 1, "total_revenue": 60}]
    assert [d["date"] for d in data["sales_trend"]] == [
        (today - timedelta(days=n)).isoformat() for n in range(6, -1, -1)
    ]
    assert data["sales_trend"][-1]["amount"] == 60
    assert data["low_stock_items"][0]["quantity"] == 2


def test_report_routes(client, sales):
    assert client.get("/api/reports").status_code == 200
    assert client.get("/api/reports?type=daily&from=2026-03-01&to=2026-03-01").get_json()[0]["invoice_count"] == 2
    assert client.get("/api/reports?type=bogus").status_code == 400
    assert client.get("/api/reports?from=March").status_code == 400
    assert client.get("/api/dashboard").status_code == 200
