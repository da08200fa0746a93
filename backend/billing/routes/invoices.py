# Overview: Flask API routes for invoice operations; parses input and returns JSON responses.

# backend/billing/routes/invoices.py
"""Invoice API routes: create, reverse, read and list invoices."""

from flask import Blueprint, request, jsonify, current_app

from ..services import invoice_service
from ..validation import ValidationError, NotFoundError


invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")


@invoices_bp.get("")
def list_invoices_route():
    """
    List invoices, newest first.

    Query params:
    - search: invoice number / customer name substring
    - status: paid | unpaid | partial
    - from, to: inclusive creation dates (YYYY-MM-DD)
    """
    try:
        invoices = invoice_service.list_invoices(
            search=request.args.get("search") or None,
            status=request.args.get("status") or None,
            date_from=request.args.get("from") or None,
            date_to=request.args.get("to") or None,
        )
        return jsonify(invoices), 200

    except ValidationError as e:
        current_app.logger.warning("Rejected invoice listing: %s", e)
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to fetch invoices")
        return jsonify({"error": "Failed to fetch invoices"}), 500


@invoices_bp.post("")
def create_invoice_route():
    """
    Create an invoice, decrement stock and update the customer balance.

    Returns 201 with {"invoice", "items", "warnings"}.
    """
    try:
        data = request.get_json(silent=True)
        result = invoice_service.create_invoice(data)
        return jsonify(result), 201

    except ValidationError as e:
        current_app.logger.warning("Rejected invoice: %s", e)
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create invoice")
        return jsonify({"error": "Failed to create invoice"}), 500


@invoices_bp.get("/<int:invoice_id>")
def get_invoice_route(invoice_id: int):
    """Get invoice with items."""
    try:
        return jsonify(invoice_service.get_invoice(invoice_id)), 200
    except NotFoundError:
        current_app.logger.warning("Invoice %s not found", invoice_id)
        return jsonify({"error": "Not found"}), 404
    except Exception:
        current_app.logger.exception("Failed to fetch invoice %s", invoice_id)
        return jsonify({"error": "Failed to fetch invoice"}), 500


@invoices_bp.delete("/<int:invoice_id>")
def delete_invoice_route(invoice_id: int):
    """
    Reverse an invoice's stock and balance effects and delete it.

    Deleting an invoice that does not exist succeeds (idempotent).
    """
    try:
        result = invoice_service.delete_invoice(invoice_id)
        return jsonify(result), 200

    except Exception:
        current_app.logger.exception("Failed to delete invoice %s", invoice_id)
        return jsonify({"error": "Failed to delete invoice and reverse stock."}), 500
