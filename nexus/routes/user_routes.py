from flask import Blueprint, request, jsonify, make_response
from flask_jwt_extended import jwt_required
from nexus.exceptions import ServiceError
from nexus.identity import current_actor
from nexus.routes.common import error_response, unexpected_error
from nexus.services import UserService

user_bp = Blueprint("user", __name__)


@user_bp.route("/signup", methods=["POST"])
def sign_up():
    try:
        user_data = request.get_json(silent=True)
        if not user_data:
            return jsonify({"success": False, "error": "No data provided"}), 400

        result = UserService.sign_up(user_data)
        return make_response(jsonify(result), 201)
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        return unexpected_error("An unexpected error occurred", e)


@user_bp.route("/signin", methods=["POST"])
def sign_in():
    try:
        user_data = request.get_json(silent=True)
        if not user_data:
            return jsonify({"success": False, "error": "No data provided"}), 400

        result = UserService.sign_in(user_data.get("email"), user_data.get("password"))
        return jsonify(result), 200
    except ServiceError as e:
        # Bad credentials are an authentication failure, not a bad request.
        body = e.to_dict()
        return jsonify(body), 401 if e.status_code == 400 else e.status_code
    except Exception as e:
        return unexpected_error("An unexpected error occurred", e)


@user_bp.route("/me", methods=["GET"])
@jwt_required()
def get_current_user():
    try:
        actor = current_actor()
        user = UserService.get_user(actor.id)
        return jsonify({"user": user.to_dict()}), 200
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        return unexpected_error("Failed to fetch user", e)
