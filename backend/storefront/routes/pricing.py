# Overview: Flask API routes for the trade-in pricing tables (admin only).

from flask import Blueprint, request, current_app

from ..services import pricing_service
from ..validation import (
    validate_payload,
    ValidationError,
    ConflictError,
    NotFoundError,
)
from ..decorators import require_admin

pricing_bp = Blueprint("pricing", __name__, url_prefix="/api/admin/pricing")

# Tables: conditions, base-prices, parameters, storage, colors, accessories


@pricing_bp.get("/<table_name>")
@require_admin
def list_rows(table_name: str):
    try:
        items = pricing_service.list_rows(table_name)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return {"items": items, "count": len(items)}


@pricing_bp.get("/<table_name>/<int:row_id>")
@require_admin
def get_row(table_name: str, row_id: int):
    try:
        return pricing_service.get_row(table_name, row_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404


@pricing_bp.post("/<table_name>")
@require_admin
def create_row(table_name: str):
    payload = request.get_json(silent=True) or {}
    try:
        table = pricing_service.get_table(table_name)
        patch = validate_payload(model=table.model, payload=payload, policy=table.policy, partial=False)
        created = pricing_service.create_row(table_name, patch)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    except Exception:
        current_app.logger.exception("Failed to create pricing row")
        return {"error": "Internal server error"}, 500
    return created, 201


@pricing_bp.put("/<table_name>/<int:row_id>")
@require_admin
def update_row(table_name: str, row_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        table = pricing_service.get_table(table_name)
        patch = validate_payload(model=table.model, payload=payload, policy=table.policy, partial=True)
        return pricing_service.update_row(table_name, row_id, patch)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    except Exception:
        current_app.logger.exception("Failed to update pricing row")
        return {"error": "Internal server error"}, 500


@pricing_bp.delete("/<table_name>/<int:row_id>")
@require_admin
def delete_row(table_name: str, row_id: int):
    try:
        if not pricing_service.delete_row(table_name, row_id):
            return {"error": "Row not found"}, 404
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409
    return {"ok": True}, 200
