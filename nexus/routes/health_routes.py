from flask import Blueprint, jsonify
from nexus.services import HealthService

health_bp = Blueprint("health", __name__)


@health_bp.route("/health", methods=["GET"])
def health():
    status = HealthService.get_health_status()
    return jsonify(status), 200 if status["status"] == "ok" else 503
