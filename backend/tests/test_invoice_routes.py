"""
Invoice, customer and settings API tests.

Verifies:
- Status codes for create / read / delete / list
- Customer settlement endpoint
- Settings read and update
- Health endpoint
"""

import logging
from decimal import Decimal

import pytest

from billing.models import Customer, Product
from billing.services import invoice_service


def _invoice_body(product, customer=None, **overrides):
    body = {
        "customer_id": customer.id if customer is not None else None,
        "items": [{
            "product_id": product.id,
            "product_name": product.name,
            "quantity": 5,
            "unit": product.unit,
            "price": 10,
            "discount": 0,
            "total": 50,
        }],
        "subtotal": 50,
        "discount_amount": 0,
        "gst_amount": 0,
        "total_amount": 50,
        "payment_method": "upi",
        "payment_status": "partial",
        "amount_paid": 20,
    }
    body.update(overrides)
    return body


# =============================================================================
# INVOICES
# =============================================================================


class TestInvoiceEndpoints:

    def test_create_returns_201(self, client, settings, product, customer, reload):
        resp = client.post("/api/invoices", json=_invoice_body(product, customer))
        assert resp.status_code == 201

        data = resp.get_json()
        assert data["invoice"]["invoice_number"] == "GKS-00001"
        assert data["invoice"]["payment_method"] == "upi"
        assert data["items"][0]["quantity"] == 5
        assert data["warnings"] == []

        assert reload(Product, product.id).quantity == Decimal("45")
        assert reload(Customer, customer.id).balance == Decimal("30")

    def test_create_with_empty_items_returns_400(self, client, settings, product):
        resp = client.post("/api/invoices", json=_invoice_body(product, items=[]))
        assert resp.status_code == 400
        assert "item" in resp.get_json()["error"]

    def test_create_without_body_returns_400(self, client, settings):
        resp = client.post("/api/invoices", data="not json", content_type="text/plain")
        assert resp.status_code == 400

    def test_get_invoice(self, client, settings, product):
        created = client.post("/api/invoices", json=_invoice_body(product)).get_json()
        invoice_id = created["invoice"]["id"]

        resp = client.get(f"/api/invoices/{invoice_id}")
        assert resp.status_code == 200
        assert resp.get_json()["invoice"]["invoice_number"] == "GKS-00001"
        assert len(resp.get_json()["items"]) == 1

    def test_get_missing_invoice_returns_404(self, client, settings, caplog):
        with caplog.at_level(logging.WARNING):
            resp = client.get("/api/invoices/999")

        assert resp.status_code == 404
        assert resp.get_json() == {"error": "Not found"}
        assert "Invoice 999 not found" in caplog.text

    def test_get_invoice_storage_failure_returns_500(self, client, settings, monkeypatch):
        def boom(invoice_id):
            raise RuntimeError("database is locked")

        monkeypatch.setattr(invoice_service, "get_invoice", boom)

        resp = client.get("/api/invoices/1")
        assert resp.status_code == 500
        assert resp.get_json() == {"error": "Failed to fetch invoice"}

    def test_zero_total_invoice_is_listed_and_reported(self, client, settings):
        resp = client.post("/api/invoices", json={
            "items": [{"product_name": "Carry bag", "quantity": 1, "price": 0}],
        })
        assert resp.status_code == 201
        invoice_id = resp.get_json()["invoice"]["id"]

        listed = client.get("/api/invoices")
        assert listed.status_code == 200
        assert listed.get_json()[0]["balance_due"] == 0

        assert client.get(f"/api/invoices/{invoice_id}").status_code == 200
        assert client.get("/api/dashboard").status_code == 200
        assert client.get("/api/reports?type=invoicelist").status_code == 200

    def test_create_with_inconsistent_item_total_returns_400(self, client, settings, product, reload):
        body = _invoice_body(product)
        body["items"][0]["total"] = 999
        resp = client.post("/api/invoices", json=body)

        assert resp.status_code == 400
        assert "items[0].total" in resp.get_json()["error"]
        assert reload(Product, product.id).quantity == Decimal("50")

    def test_delete_reverses_and_is_idempotent(self, client, settings, product, customer, reload):
        created = client.post("/api/invoices", json=_invoice_body(product, customer)).get_json()
        invoice_id = created["invoice"]["id"]

        first = client.delete(f"/api/invoices/{invoice_id}")
        second = client.delete(f"/api/invoices/{invoice_id}")

        assert first.status_code == 200
        assert first.get_json()["success"] is True
        assert second.status_code == 200
        assert second.get_json()["success"] is True

        assert reload(Product, product.id).quantity == Decimal("50")
        assert reload(Customer, customer.id).balance == Decimal("0")
        assert client.get(f"/api/invoices/{invoice_id}").status_code == 404

    def test_list_with_filters(self, client, settings, product, customer):
        client.post("/api/invoices", json=_invoice_body(product, customer, payment_status="unpaid", amount_paid=None))
        client.post("/api/invoices", json=_invoice_body(product, payment_status="paid", amount_paid=None))

        all_rows = client.get("/api/invoices").get_json()
        assert [r["invoice_number"] for r in all_rows] == ["GKS-00002", "GKS-00001"]

        unpaid = client.get("/api/invoices?status=unpaid").get_json()
        assert [r["invoice_number"] for r in unpaid] == ["GKS-00001"]
        assert unpaid[0]["balance_due"] == 50

        by_name = client.get("/api/invoices?search=ramesh").get_json()
        assert [r["customer_name"] for r in by_name] == ["Ramesh Kumar"]

    def test_list_with_bad_date_returns_400(self, client, settings):
        assert client.get("/api/invoices?from=yesterday").status_code == 400


# =============================================================================
# CUSTOMERS
# =============================================================================


class TestCustomerEndpoints:

    def test_create_and_fetch(self, client, db_session):
        resp = client.post("/api/customers", json={"name": "Meena Stores", "phone": "9811111111", "balance": 500})
        assert resp.status_code == 201
        created = resp.get_json()
        # Balance is not writable through the customer form
        assert created["balance"] == 0

        fetched = client.get(f"/api/customers/{created['id']}").get_json()
        assert fetched["name"] == "Meena Stores"

    def test_create_requires_name(self, client, db_session):
        assert client.post("/api/customers", json={"phone": "1"}).status_code == 400

    def test_update_and_missing(self, client, customer):
        resp = client.put(f"/api/customers/{customer.id}", json={"address": "12 MG Road"})
        assert resp.status_code == 200
        assert resp.get_json()["address"] == "12 MG Road"
        assert client.put("/api/customers/999", json={"name": "x"}).status_code == 404

    def test_search(self, client, make_customer):
        make_customer(name="Anil", phone="9000000001")
        make_customer(name="Bina", phone="9000000002")
        rows = client.get("/api/customers?search=0002").get_json()
        assert [r["name"] for r in rows] == ["Bina"]

    def test_history(self, client, settings, product, customer):
        client.post("/api/invoices", json=_invoice_body(product, customer))
        client.post("/api/invoices", json=_invoice_body(product))

        data = client.get(f"/api/customers/{customer.id}?history=1").get_json()
        assert data["customer"]["balance"] == 30
        assert [inv["invoice_number"] for inv in data["invoices"]] == ["GKS-00001"]

    def test_delete_with_invoices_returns_409(self, client, settings, product, customer):
        client.post("/api/invoices", json=_invoice_body(product, customer))
        assert client.delete(f"/api/customers/{customer.id}").status_code == 409

    def test_delete(self, client, customer):
        assert client.delete(f"/api/customers/{customer.id}").status_code == 200
        assert client.get(f"/api/customers/{customer.id}").status_code == 404
        assert client.delete(f"/api/customers/{customer.id}").status_code == 404


class TestSettlementEndpoint:

    def test_pay_reduces_balance(self, client, make_customer, reload):
        customer = make_customer(balance="30")
        resp = client.post(f"/api/customers/{customer.id}/pay", json={"amount": 20})
        assert resp.status_code == 200
        assert resp.get_json()["balance"] == 10
        assert reload(Customer, customer.id).balance == Decimal("10")

    @pytest.mark.parametrize("body", [{}, {"amount": 0}, {"amount": -5}, {"amount": "ten"}])
    def test_pay_rejects_bad_amount(self, client, customer, body):
        assert client.post(f"/api/customers/{customer.id}/pay", json=body).status_code == 400

    def test_pay_unknown_customer(self, client, db_session):
        assert client.post("/api/customers/999/pay", json={"amount": 5}).status_code == 404


# =============================================================================
# SETTINGS / HEALTH
# =============================================================================


class TestSettingsEndpoints:

    def test_get_seeds_defaults(self, client, db_session):
        data = client.get("/api/settings").get_json()
        assert data["invoice_prefix"] == "GKS"
        assert data["invoice_counter"] == "1"

    def test_update_changes_numbering(self, client, settings, product):
        resp = client.put("/api/settings", json={"invoice_prefix": "INV", "invoice_counter": "100"})
        assert resp.status_code == 200
        created = client.post("/api/invoices", json=_invoice_body(product)).get_json()
        assert created["invoice"]["invoice_number"] == "INV-00100"

    def test_update_rejects_bad_counter(self, client, settings):
        resp = client.put("/api/settings", json={"invoice_counter": "abc"})
        assert resp.status_code == 400
        assert client.get("/api/settings").get_json()["invoice_counter"] == "1"


class TestHealth:

    def test_healthy(self, client, settings):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["status"] == "healthy"
        assert data["checks"]["invoice_numbering"]["details"]["prefix"] == "GKS"

    def test_degraded_without_settings(self, client, db_session):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "degraded"
