from flask import Blueprint, jsonify, request, current_app

from ..services import reports_service
from ..validation import ValidationError


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")
dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@reports_bp.get("")
def sales_report():
    """
    Sales report over an inclusive date range.

    Query params:
    - type: summary (default) | daily | products | customers | invoicelist
    - from, to: YYYY-MM-DD
    """
    try:
        report = reports_service.build_report(
            request.args.get("type"),
            date_from=request.args.get("from") or None,
            date_to=request.args.get("to") or None,
        )
        return jsonify(report), 200
    except (reports_service.ReportError, ValidationError) as exc:
        return jsonify({"error": str(exc)}), 400
    except Exception:
        current_app.logger.exception("Failed to generate report")
        return jsonify({"error": "Failed to generate report"}), 500


@dashboard_bp.get("")
def dashboard():
    try:
        return jsonify(reports_service.dashboard()), 200
    except Exception:
        current_app.logger.exception("Failed to load dashboard")
        return jsonify({"error": "Failed to load dashboard"}), 500
