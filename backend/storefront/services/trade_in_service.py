# Overview: Trade-in submission, admin queue and status lifecycle.

"""
Phone Trade-In Lifecycle Service

================================================================================
STATE MACHINE
================================================================================

    pending  -> approved | rejected
    approved -> completed | rejected | cancelled
    rejected -> cancelled
    completed, cancelled: terminal

RULES:
1. Every transition carries a non-blank admin note.
2. completed requires a non-negative offered value; approved may carry one;
   no other target accepts one.
3. Request validation happens before the database is touched. A rejected
   request writes nothing.
4. The status change and its audit row commit together with the trade-in
   row locked. If either write fails, neither lands.
5. Audit rows are append-only. Nothing here updates or deletes them.
================================================================================
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Optional

from sqlalchemy import or_

from ..extensions import db
from ..models import DeviceModel, PhoneCondition, PhoneTradeIn, TradeInAuditLog
from ..validation import MAX_PRICE_CENTS, NotFoundError, ValidationError, enforce_url_list
from .concurrency import atomic, lock_for_update
from .estimate_service import EstimateRequest, estimate_trade_in
from .products_service import paginate

logger = logging.getLogger(__name__)

TradeInStatus = Literal["pending", "approved", "rejected", "completed", "cancelled"]

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"approved", "rejected"}),
    "approved": frozenset({"completed", "rejected", "cancelled"}),
    "rejected": frozenset({"cancelled"}),
    "completed": frozenset(),
    "cancelled": frozenset(),
}
VALID_STATUSES = frozenset(ALLOWED_TRANSITIONS)


class TradeInTransitionError(ValueError):
    """The requested status change is not allowed from the current status."""


def validate_status(status: str) -> None:
    if status not in VALID_STATUSES:
        raise ValidationError(
            f"Invalid status '{status}'. Must be one of: {', '.join(sorted(VALID_STATUSES))}"
        )


def allowed_next_statuses(status: str) -> frozenset[str]:
    """Statuses reachable from `status` in one step."""
    validate_status(status)
    return ALLOWED_TRANSITIONS[status]


@dataclass(frozen=True)
class TransitionRequest:
    new_status: str
    notes: str
    offered_value_cents: Optional[int] = None

    @classmethod
    def from_payload(cls, payload: dict) -> "TransitionRequest":
        """
        Validate a transition body without touching the database.

        Accepts "status", "notes" and "offered_value_cents".
        """
        if not isinstance(payload, dict):
            raise ValidationError("Invalid JSON payload")

        new_status = payload.get("status")
        if not isinstance(new_status, str) or not new_status.strip():
            raise ValidationError("status is required")
        new_status = new_status.strip()
        validate_status(new_status)

        notes = payload.get("notes")
        if not isinstance(notes, str) or not notes.strip():
            raise ValidationError("notes are required for a status change")

        offered = payload.get("offered_value_cents")
        if offered is not None:
            if new_status not in ("approved", "completed"):
                raise ValidationError(f"offered_value_cents is not accepted when moving to {new_status}")
            if isinstance(offered, bool) or not isinstance(offered, int):
                raise ValidationError("offered_value_cents must be an integer number of cents")
            if offered < 0:
                raise ValidationError("offered_value_cents must be >= 0")
            if offered > MAX_PRICE_CENTS:
                raise ValidationError(f"offered_value_cents cannot exceed {MAX_PRICE_CENTS}")
        elif new_status == "completed":
            raise ValidationError("offered_value_cents is required to complete a trade-in")

        return cls(new_status=new_status, notes=notes.strip(), offered_value_cents=offered)


# =============================================================================
# SUBMISSION
# =============================================================================

def submit_trade_in(payload: dict, *, user_id: str | None = None) -> dict:
    """
    Persist a customer trade-in in `pending`.

    The estimate is recomputed here; any client-sent estimated value is ignored.
    """
    request = EstimateRequest.from_payload(payload)

    images = payload.get("images") or []
    enforce_url_list({"images": images}, "images")

    description = payload.get("description")
    if description is not None and not isinstance(description, str):
        raise ValidationError("description must be a string")

    if user_id is not None and not isinstance(user_id, str):
        raise ValidationError("user_id must be a string")

    estimate = estimate_trade_in(request)

    trade_in = PhoneTradeIn(
        user_id=user_id,
        device_model_id=request.device_model_id,
        condition_id=request.condition_id,
        storage_capacity=request.storage_capacity,
        color=request.color,
        description=(description or "").strip() or None,
        images=list(images),
        has_charger=request.has_charger,
        has_box=request.has_box,
        has_accessories=request.has_accessories,
        estimated_value_cents=estimate.value_cents,
        estimate_source=estimate.source,
        status="pending",
    )
    db.session.add(trade_in)
    db.session.commit()

    logger.info(
        "Trade-in %s submitted (model %s, %s estimate %s cents)",
        trade_in.id, trade_in.device_model_id, estimate.source, estimate.value_cents,
    )
    return trade_in.to_dict()


# =============================================================================
# QUEUES
# =============================================================================

def list_trade_ins(
    *,
    status: str | None = None,
    search: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Admin queue, newest first.

    status: "all"/None or one lifecycle status.
    search: case-insensitive match on model name, condition name, colour,
    storage or description.
    """
    query = (
        db.session.query(PhoneTradeIn)
        .join(DeviceModel, PhoneTradeIn.device_model_id == DeviceModel.id)
        .join(PhoneCondition, PhoneTradeIn.condition_id == PhoneCondition.id)
    )
    if status and status != "all":
        validate_status(status)
        query = query.filter(PhoneTradeIn.status == status)
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                DeviceModel.name.ilike(pattern),
                PhoneCondition.name.ilike(pattern),
                PhoneTradeIn.color.ilike(pattern),
                PhoneTradeIn.storage_capacity.ilike(pattern),
                PhoneTradeIn.description.ilike(pattern),
            )
        )
    query = query.order_by(PhoneTradeIn.created_at.desc(), PhoneTradeIn.id.desc())
    return paginate(query, page, per_page)


def list_user_trade_ins(user_id: str) -> list[dict]:
    rows = (
        db.session.query(PhoneTradeIn)
        .filter(PhoneTradeIn.user_id == user_id)
        .order_by(PhoneTradeIn.created_at.desc(), PhoneTradeIn.id.desc())
        .all()
    )
    return [r.to_dict() for r in rows]


def get_trade_in_detail(trade_in_id: int) -> dict:
    """Trade-in with its audit history (oldest first) and the statuses it can move to."""
    trade_in = db.session.get(PhoneTradeIn, trade_in_id)
    if trade_in is None:
        raise NotFoundError("Trade-in not found")
    data = trade_in.to_dict()
    data["audit_log"] = [entry.to_dict() for entry in trade_in.audit_log]
    data["allowed_next_statuses"] = sorted(allowed_next_statuses(trade_in.status))
    return data


# =============================================================================
# TRANSITIONS
# =============================================================================

def _write_audit(trade_in_id: int, status_from: str, status_to: str, notes: str, actor_id: str | None) -> None:
    db.session.add(
        TradeInAuditLog(
            trade_in_id=trade_in_id,
            status_from=status_from,
            status_to=status_to,
            notes=notes,
            actor_id=actor_id,
        )
    )
    db.session.flush()


def transition_status(trade_in_id: int, request: TransitionRequest, *, actor_id: str | None = None) -> dict:
    """
    Move a trade-in to a new status and record it in the audit log.

    Raises:
        NotFoundError: no such trade-in
        TradeInTransitionError: the move is not allowed from the current status

    The update and the audit insert share one transaction.
    """
    with atomic():
        trade_in = lock_for_update(
            db.session.query(PhoneTradeIn).filter(PhoneTradeIn.id == trade_in_id)
        ).first()
        if trade_in is None:
            raise NotFoundError("Trade-in not found")

        status_from = trade_in.status
        if request.new_status not in ALLOWED_TRANSITIONS.get(status_from, frozenset()):
            raise TradeInTransitionError(
                f"Cannot move trade-in from {status_from} to {request.new_status}"
            )

        trade_in.status = request.new_status
        trade_in.admin_notes = request.notes
        if request.offered_value_cents is not None:
            trade_in.offered_value_cents = request.offered_value_cents

        _write_audit(trade_in.id, status_from, request.new_status, request.notes, actor_id)

    logger.info(
        "Trade-in %s moved %s -> %s by %s", trade_in_id, status_from, request.new_status, actor_id or "unknown"
    )
    return get_trade_in_detail(trade_in_id)
