"""
Permission Blueprint — lets the UI ask what the current actor may do.

Endpoints:
    GET /api/v1/permissions/me              actor + effective permission list
    GET /api/v1/permissions/check/<token>   evaluate_permission() result
    GET /api/v1/permissions/catalog         grouped permission catalog
"""

from flask import Blueprint, g, jsonify

from eodflow.middleware.jwt_auth import require_actor
from eodflow.services.permission_catalog import permission_groups
from eodflow.services.permission_service import (
    effective_permissions,
    evaluate_permission,
    role_for_actor,
)

permission_bp = Blueprint("permission_bp", __name__, url_prefix="/api/v1/permissions")


@permission_bp.route("/me", methods=["GET"])
@require_actor
def my_permissions():
    actor = g.actor
    role = role_for_actor(actor)
    return jsonify({
        "actor": actor.to_dict(),
        "role": {"id": role.id, "name": role.name} if role else None,
        "permissions": sorted(p.value for p in effective_permissions(actor, role)),
    }), 200


@permission_bp.route("/check/<token>", methods=["GET"])
@require_actor
def check_permission(token):
    actor = g.actor
    return jsonify(evaluate_permission(actor, role_for_actor(actor), token)), 200


@permission_bp.route("/catalog", methods=["GET"])
@require_actor
def catalog():
    return jsonify({"groups": permission_groups()}), 200
