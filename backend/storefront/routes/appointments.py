# Overview: Flask API routes for repair appointments; parses input and returns JSON responses.

from flask import Blueprint, request, current_app

from ..services import appointment_service
from ..models import Appointment
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    ValidationError,
    NotFoundError,
)
from ..decorators import require_admin

BOOKING_POLICY = ModelValidationPolicy(
    writable_fields={
        "customer_name",
        "customer_email",
        "customer_phone",
        "device_model_id",
        "problem_description",
        "appointment_date",
    },
    required_on_create={"customer_name", "problem_description", "appointment_date"},
)

ADMIN_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={
        "status_id",
        "diagnosis",
        "technician_notes",
        "estimated_completion_date",
        "actual_completion_date",
    },
)

appointments_bp = Blueprint("appointments", __name__, url_prefix="/api/appointments")


@appointments_bp.get("/statuses")
def list_statuses():
    items = appointment_service.list_statuses()
    return {"items": items, "count": len(items)}


@appointments_bp.post("")
def book_appointment():
    """Customer booking. Starts in the first configured repair status."""
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Appointment, payload=payload, policy=BOOKING_POLICY, partial=False)
        created = appointment_service.create_appointment(patch=patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to book appointment")
        return {"error": "Internal server error"}, 500
    return created, 201


@appointments_bp.get("")
@require_admin
def list_appointments():
    """
    Query params:
    - status_id: int (optional)
    - search: str (optional) - problem, diagnosis, customer name or email
    - page, per_page: pagination
    """
    return appointment_service.list_appointments(
        status_id=request.args.get("status_id", type=int),
        search=request.args.get("search"),
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )


@appointments_bp.get("/<int:appointment_id>")
@require_admin
def get_appointment(appointment_id: int):
    try:
        return appointment_service.get_appointment(appointment_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404


@appointments_bp.put("/<int:appointment_id>")
@require_admin
def update_appointment(appointment_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Appointment, payload=payload, policy=ADMIN_UPDATE_POLICY, partial=True)
        return appointment_service.update_appointment(appointment_id, patch=patch)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to update appointment")
        return {"error": "Internal server error"}, 500
