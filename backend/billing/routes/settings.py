from __future__ import annotations

from flask import Blueprint, jsonify, request, current_app

from ..services import settings_service
from ..validation import ValidationError


settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("")
def get_settings_route():
    try:
        return jsonify(settings_service.get_settings()), 200
    except Exception:
        current_app.logger.exception("Failed to fetch settings")
        return jsonify({"error": "Failed to fetch settings"}), 500


@settings_bp.put("")
def update_settings_route():
    payload = request.get_json(silent=True)
    try:
        settings_service.update_settings(payload if payload is not None else {})
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update settings")
        return jsonify({"error": "Failed to update settings"}), 500
    return jsonify({"success": True}), 200
