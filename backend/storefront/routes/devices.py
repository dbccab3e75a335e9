# Overview: Flask API routes for the device taxonomy; parses input and returns JSON responses.

# backend/storefront/routes/devices.py
"""
Device taxonomy routes: /api/devices/<level> where level is one of
brands, types, series, models.

Reads are public (the repair and sell-phone flows browse them).
Writes require an admin token.
"""
from flask import Blueprint, request, current_app

from ..services import taxonomy_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_url,
    ValidationError,
    ConflictError,
    NotFoundError,
)
from ..decorators import require_admin

TAXONOMY_POLICIES = {
    "brands": ModelValidationPolicy(
        writable_fields={"name", "image_url"},
        required_on_create={"name"},
    ),
    "types": ModelValidationPolicy(
        writable_fields={"brand_id", "name", "image_url"},
        required_on_create={"brand_id", "name"},
    ),
    "series": ModelValidationPolicy(
        writable_fields={"device_type_id", "name", "image_url"},
        required_on_create={"device_type_id", "name"},
    ),
    "models": ModelValidationPolicy(
        writable_fields={"device_series_id", "name", "image_url"},
        required_on_create={"device_series_id", "name"},
    ),
}

devices_bp = Blueprint("devices", __name__, url_prefix="/api/devices")


def _validated(level: str, payload: dict, *, partial: bool) -> dict:
    model, _parent, _fk = taxonomy_service.resolve_level(level)
    patch = validate_payload(model=model, payload=payload, policy=TAXONOMY_POLICIES[level], partial=partial)
    enforce_url(patch, "image_url")
    return patch


@devices_bp.get("/<string:level>")
def list_nodes(level: str):
    """
    Query params:
    - parent_id: int (optional) - restrict to one parent (ignored for brands)
    """
    parent_id = request.args.get("parent_id", type=int)
    try:
        items = taxonomy_service.list_nodes(level, parent_id=parent_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return {"items": items, "count": len(items)}


@devices_bp.get("/<string:level>/<int:node_id>")
def get_node(level: str, node_id: int):
    try:
        return taxonomy_service.get_node(level, node_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404


@devices_bp.post("/<string:level>")
@require_admin
def create_node(level: str):
    payload = request.get_json(silent=True) or {}
    try:
        patch = _validated(level, payload, partial=False)
        created = taxonomy_service.create_node(level, patch)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    except Exception:
        current_app.logger.exception("Failed to create taxonomy node")
        return {"error": "Internal server error"}, 500
    return created, 201


@devices_bp.put("/<string:level>/<int:node_id>")
@require_admin
def update_node(level: str, node_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = _validated(level, payload, partial=True)
        return taxonomy_service.update_node(level, node_id, patch)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    except Exception:
        current_app.logger.exception("Failed to update taxonomy node")
        return {"error": "Internal server error"}, 500


@devices_bp.delete("/<string:level>/<int:node_id>")
@require_admin
def delete_node(level: str, node_id: int):
    """Blocked with 409 while the node still has children or references."""
    try:
        taxonomy_service.delete_node(level, node_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409
    except Exception:
        current_app.logger.exception("Failed to delete taxonomy node")
        return {"error": "Internal server error"}, 500
    return {"ok": True}, 200
