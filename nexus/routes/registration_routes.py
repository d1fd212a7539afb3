from flask import Blueprint, jsonify, request
from flask_cors import cross_origin
from flask_jwt_extended import jwt_required
from nexus.exceptions import ServiceError, ValidationError
from nexus.identity import current_actor
from nexus.routes.common import error_response, parse_id, unexpected_error
from nexus.services import RegistrationService

registration_bp = Blueprint("registration", __name__)


@registration_bp.route("/registrations", methods=["POST", "OPTIONS"])
@cross_origin(supports_credentials=True)
@jwt_required()
def create_registration():
    if request.method == "OPTIONS":
        return "", 204

    try:
        actor = current_actor()
        data = request.get_json(silent=True) or {}
        event_id = parse_id(data.get("eventId"), "event id")

        registration = RegistrationService.create_registration(
            actor,
            event_id,
            data.get("teamSize", 1),
            data.get("participants") or [],
        )
        return (
            jsonify(
                {
                    "success": True,
                    "message": "Successfully registered for the event",
                    "registration": registration.to_dict(),
                }
            ),
            201,
        )
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        return unexpected_error("Failed to register for event", e)


@registration_bp.route("/registrations", methods=["GET", "OPTIONS"])
@cross_origin(supports_credentials=True)
@jwt_required()
def get_registrations():
    """Own registration status (scope=self) or the event roster (scope=all)."""
    if request.method == "OPTIONS":
        return "", 204

    try:
        actor = current_actor()
        event_id = parse_id(request.args.get("eventId"), "event id")
        scope = request.args.get("scope", "self")

        if scope == "all":
            registrations = RegistrationService.get_roster(actor, event_id)
            return (
                jsonify(
                    {
                        "count": len(registrations),
                        "registrations": [r.to_dict(include_user=True) for r in registrations],
                    }
                ),
                200,
            )
        if scope != "self":
            raise ValidationError("scope must be 'self' or 'all'")

        return jsonify({"registered": RegistrationService.is_registered(actor, event_id)}), 200
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        return unexpected_error("Failed to fetch registrations", e)
