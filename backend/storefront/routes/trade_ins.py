# Overview: Flask API routes for phone trade-ins; parses input and returns JSON responses.

from flask import Blueprint, request, current_app, g

from ..extensions import db
from ..models import PhoneCondition
from ..services import trade_in_service
from ..services.estimate_service import EstimateError, EstimateRequest, estimate_trade_in
from ..services.trade_in_service import TradeInTransitionError, TransitionRequest
from ..validation import ValidationError, NotFoundError
from ..decorators import require_admin

trade_ins_bp = Blueprint("trade_ins", __name__, url_prefix="/api/trade-ins")


# =============================================================================
# CUSTOMER
# =============================================================================

@trade_ins_bp.get("/conditions")
def list_conditions():
    rows = (
        db.session.query(PhoneCondition)
        .order_by(PhoneCondition.multiplier.desc(), PhoneCondition.id.asc())
        .all()
    )
    return {"items": [r.to_dict() for r in rows], "count": len(rows)}


@trade_ins_bp.post("/estimate")
def estimate_route():
    """
    Body: device_model_id, condition_id, storage_capacity, color,
    has_charger, has_box, has_accessories.
    """
    payload = request.get_json(silent=True) or {}
    try:
        estimate = estimate_trade_in(EstimateRequest.from_payload(payload))
    except (ValidationError, EstimateError) as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to estimate trade-in value")
        return {"error": "Internal server error"}, 500
    return estimate.to_dict()


@trade_ins_bp.post("")
def submit_route():
    """Estimate fields plus description, images (URLs) and user_id."""
    payload = request.get_json(silent=True) or {}
    try:
        created = trade_in_service.submit_trade_in(payload, user_id=payload.get("user_id"))
    except (ValidationError, EstimateError) as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to submit trade-in")
        return {"error": "Internal server error"}, 500
    return created, 201


@trade_ins_bp.get("/mine")
def my_trade_ins():
    user_id = (request.args.get("user_id") or "").strip()
    if not user_id:
        return {"error": "user_id is required"}, 400
    items = trade_in_service.list_user_trade_ins(user_id)
    return {"items": items, "count": len(items)}


# =============================================================================
# ADMIN QUEUE
# =============================================================================

@trade_ins_bp.get("")
@require_admin
def list_trade_ins():
    """
    Query params:
    - status: "all" or a lifecycle status (default all)
    - search: str (optional)
    - page, per_page: pagination
    """
    try:
        return trade_in_service.list_trade_ins(
            status=request.args.get("status"),
            search=request.args.get("search"),
            page=request.args.get("page", type=int),
            per_page=request.args.get("per_page", type=int),
        )
    except ValidationError as e:
        return {"error": str(e)}, 400


@trade_ins_bp.get("/<int:trade_in_id>")
@require_admin
def get_trade_in(trade_in_id: int):
    try:
        return trade_in_service.get_trade_in_detail(trade_in_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404


@trade_ins_bp.post("/<int:trade_in_id>/status")
@require_admin
def transition_route(trade_in_id: int):
    """Body: status, notes, offered_value_cents (required for completed)."""
    payload = request.get_json(silent=True)
    try:
        transition = TransitionRequest.from_payload(payload)
        return trade_in_service.transition_status(trade_in_id, transition, actor_id=g.actor_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except (ValidationError, TradeInTransitionError) as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to change trade-in status")
        return {"error": "Internal server error"}, 500
