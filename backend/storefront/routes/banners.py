# Overview: Flask API routes for storefront banners; parses input and returns JSON responses.

from flask import Blueprint, request, current_app

from ..services import banner_service
from ..models import Banner
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    ValidationError,
    NotFoundError,
)
from ..decorators import require_admin

BANNER_POLICY = ModelValidationPolicy(
    writable_fields={
        "title",
        "subtitle",
        "image_url",
        "link_url",
        "button_text",
        "is_active",
        "start_date",
        "end_date",
        "display_order",
        "target_page",
    },
    required_on_create={"title", "image_url", "start_date", "end_date"},
)

banners_bp = Blueprint("banners", __name__, url_prefix="/api/banners")


@banners_bp.get("")
def active_banners():
    """Live banners for ?page= (default "home"), in display order."""
    target_page = request.args.get("page", "home")
    items = banner_service.active_banners(target_page)
    return {"items": items, "count": len(items)}


@banners_bp.get("/all")
@require_admin
def list_banners():
    items = banner_service.list_banners(target_page=request.args.get("page"))
    return {"items": items, "count": len(items)}


@banners_bp.get("/<int:banner_id>")
@require_admin
def get_banner(banner_id: int):
    try:
        return banner_service.get_banner(banner_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404


def _date_window_first(payload: dict) -> None:
    """Reject an inverted window before anything else in the form is looked at."""
    window = {k: payload.get(k) for k in ("start_date", "end_date") if isinstance(payload.get(k), str)}
    if len(window) < 2:
        return
    try:
        patch = validate_payload(
            model=Banner,
            payload=window,
            policy=ModelValidationPolicy(writable_fields={"start_date", "end_date"}),
            partial=True,
        )
    except ValidationError:
        return
    if patch["end_date"] <= patch["start_date"]:
        raise ValidationError("end_date must be after start_date")


@banners_bp.post("")
@require_admin
def create_banner_route():
    payload = request.get_json(silent=True) or {}
    try:
        _date_window_first(payload)
        patch = validate_payload(model=Banner, payload=payload, policy=BANNER_POLICY, partial=False)
        created = banner_service.create_banner(patch=patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to create banner")
        return {"error": "Internal server error"}, 500
    return created, 201


@banners_bp.put("/<int:banner_id>")
@require_admin
def update_banner_route(banner_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        _date_window_first(payload)
        patch = validate_payload(model=Banner, payload=payload, policy=BANNER_POLICY, partial=True)
        return banner_service.update_banner(banner_id, patch=patch)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to update banner")
        return {"error": "Internal server error"}, 500


@banners_bp.delete("/<int:banner_id>")
@require_admin
def delete_banner_route(banner_id: int):
    if not banner_service.delete_banner(banner_id):
        return {"error": "Banner not found"}, 404
    return {"ok": True}, 200
