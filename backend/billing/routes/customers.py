# Overview: Flask API routes for customers and balance settlement.

# backend/billing/routes/customers.py
"""
Customer routes.

The balance is read-only here; it changes through invoices and the
/pay settlement endpoint.
"""
from flask import Blueprint, request, jsonify, current_app

from ..models import Customer
from ..services import customers_service
from ..services.balance_service import settle_payment
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    ValidationError,
    NotFoundError,
    ConflictError,
)

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "phone", "email", "address", "gstin"},
    required_on_create={"name"},
)

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
def list_customers():
    """List customers ordered by name. ?search= matches name, phone or email."""
    return jsonify(customers_service.list_customers(request.args.get("search") or None)), 200


@customers_bp.post("")
def create_customer_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=False)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        created = customers_service.create_customer(patch=patch)
    except Exception:
        current_app.logger.exception("Failed to create customer")
        return jsonify({"error": "Failed to create customer"}), 500

    return jsonify(created), 201


@customers_bp.get("/<int:customer_id>")
def get_customer_route(customer_id: int):
    """Get a customer; ?history=1 adds their invoices, newest first."""
    with_history = request.args.get("history") == "1"
    customer = customers_service.get_customer(customer_id, with_history=with_history)
    if customer is None:
        return jsonify({"error": "Not found"}), 404
    return jsonify(customer), 200


@customers_bp.put("/<int:customer_id>")
def update_customer_route(customer_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=True)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    updated = customers_service.update_customer(customer_id=customer_id, patch=patch)
    if updated is None:
        return jsonify({"error": "Not found"}), 404
    return jsonify(updated), 200


@customers_bp.delete("/<int:customer_id>")
def delete_customer_route(customer_id: int):
    try:
        deleted = customers_service.delete_customer(customer_id=customer_id)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409

    if not deleted:
        return jsonify({"error": "Not found"}), 404
    return jsonify({"success": True}), 200


@customers_bp.post("/<int:customer_id>/pay")
def settle_payment_route(customer_id: int):
    """
    Record a manual payment against the customer's balance.

    Body: {"amount": <number > 0>}
    Returns the updated customer.
    """
    try:
        data = request.get_json(silent=True) or {}
        customer = settle_payment(customer_id, data.get("amount"))
        return jsonify(customer.to_dict()), 200

    except ValidationError as e:
        current_app.logger.warning("Rejected payment for customer %s: %s", customer_id, e)
        return jsonify({"error": str(e)}), 400
    except NotFoundError:
        current_app.logger.warning("Payment for unknown customer %s", customer_id)
        return jsonify({"error": "Customer not found"}), 404
    except Exception:
        current_app.logger.exception("Failed to process payment")
        return jsonify({"error": "Failed to process payment"}), 500
