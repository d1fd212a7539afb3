from flask import current_app, jsonify

from nexus.exceptions import ServiceError, ValidationError
from nexus.extensions import db


def error_response(error: ServiceError):
    return jsonify(error.to_dict()), error.status_code


def unexpected_error(message: str, error: Exception):
    db.session.rollback()
    current_app.logger.error(f"{message}: {str(error)}")
    return jsonify({"success": False, "error": message}), 500


def parse_id(value, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {field}")
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}")
    if parsed < 1:
        raise ValidationError(f"Invalid {field}")
    return parsed
