from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from nexus.exceptions import ServiceError
from nexus.identity import current_actor
from nexus.routes.common import error_response, parse_id, unexpected_error
from nexus.services import OrganizationService, UserService

admin_bp = Blueprint("admin", __name__)


@admin_bp.route("/admin/check", methods=["GET"])
@jwt_required()
def check_admin():
    """Check if current user is a platform super-admin"""
    try:
        actor = current_actor()
    except ServiceError as e:
        return error_response(e)

    if not actor.is_super_admin:
        return jsonify({"is_admin": False}), 403
    return jsonify({"is_admin": True})


@admin_bp.route("/admin/organizations", methods=["GET"])
@jwt_required()
def get_organizations():
    try:
        current_actor()
        organizations = OrganizationService.get_organizations()
        return jsonify({"organizations": [o.to_dict() for o in organizations]}), 200
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        return unexpected_error("Failed to retrieve organizations", e)


@admin_bp.route("/admin/organizations", methods=["POST"])
@jwt_required()
def create_organization():
    """Create an organization (super-admin only)"""
    try:
        actor = current_actor()
        data = request.get_json(silent=True) or {}
        organization = OrganizationService.create_organization(actor, data)
        return jsonify({"success": True, "organization": organization.to_dict()}), 201
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        return unexpected_error("Failed to create organization", e)


@admin_bp.route("/admin/users/<int:user_id>/role", methods=["PUT"])
@jwt_required()
def update_user_role(user_id):
    """Update a user's role and organization"""
    try:
        actor = current_actor()
        data = request.get_json(silent=True) or {}
        if "organization_id" in data and data["organization_id"] is not None:
            data["organization_id"] = parse_id(data["organization_id"], "organization_id")
        user = UserService.assign_role(actor, user_id, data)
        return jsonify({"success": True, "user": user.to_dict()})
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        return unexpected_error("Failed to update user role", e)
