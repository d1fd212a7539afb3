from flask import Blueprint, jsonify, request
from flask_cors import cross_origin
from flask_jwt_extended import jwt_required
from nexus.exceptions import ServiceError, ValidationError
from nexus.identity import current_actor
from nexus.routes.common import error_response, parse_id, unexpected_error
from nexus.services import AttendanceService, EventService

event_bp = Blueprint("event", __name__)


@event_bp.route("/events", methods=["GET", "OPTIONS"])
@cross_origin(supports_credentials=True)
def get_all_events():
    if request.method == "OPTIONS":
        return "", 204

    try:
        events = EventService.get_events()
        return jsonify({"events": [event.to_dict() for event in events]}), 200
    except Exception as e:
        return unexpected_error("Failed to fetch events", e)


@event_bp.route("/events", methods=["POST", "OPTIONS"])
@cross_origin(supports_credentials=True)
@jwt_required()
def create_event():
    if request.method == "OPTIONS":
        return "", 204

    try:
        actor = current_actor()
        data = request.get_json(silent=True)
        if not data:
            return jsonify({"success": False, "error": "No data provided"}), 400

        event = EventService.create_event(actor, data)
        return jsonify({"success": True, "event": event.to_dict()}), 201
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        return unexpected_error("Failed to create event", e)


@event_bp.route("/events/<int:event_id>", methods=["GET", "OPTIONS"])
@cross_origin(supports_credentials=True)
def get_event(event_id):
    if request.method == "OPTIONS":
        return "", 204

    try:
        event = EventService.get_event(event_id)
        return jsonify(event.to_dict()), 200
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        return unexpected_error("Failed to fetch event", e)


@event_bp.route("/events/<int:event_id>/complete", methods=["POST", "OPTIONS"])
@cross_origin(supports_credentials=True)
@jwt_required()
def complete_event(event_id):
    if request.method == "OPTIONS":
        return "", 204

    try:
        actor = current_actor()
        event = EventService.complete_event(actor, event_id)
        return jsonify({"success": True, "event": event.to_dict()}), 200
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        return unexpected_error("Failed to complete event", e)


@event_bp.route("/events/<int:event_id>/attendance", methods=["PATCH", "OPTIONS"])
@cross_origin(supports_credentials=True)
@jwt_required()
def update_attendance(event_id):
    if request.method == "OPTIONS":
        return "", 204

    try:
        actor = current_actor()
        data = request.get_json(silent=True) or {}
        if not data.get("registrationId") or not data.get("participantEmail"):
            raise ValidationError("registrationId and participantEmail are required")

        participant = AttendanceService.update_attendance(
            actor,
            event_id,
            parse_id(data["registrationId"], "registrationId"),
            data["participantEmail"],
            data.get("action"),
            data.get("notes"),
        )
        return jsonify({"success": True, "participant": participant.to_dict()}), 200
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        return unexpected_error("Failed to update attendance", e)
