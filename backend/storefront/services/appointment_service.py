# Overview: Service-layer operations for repair appointments and their status lookup.

from __future__ import annotations

from sqlalchemy import or_

from ..extensions import db
from ..models import Appointment, DeviceModel, RepairStatus
from ..validation import NotFoundError, ValidationError, enforce_rules_appointment
from .products_service import paginate

DEFAULT_REPAIR_STATUSES = (
    ("Pending", "Awaiting diagnosis", "#f59e0b"),
    ("In Progress", "Technician is working on the device", "#3b82f6"),
    ("Waiting for Parts", "Repair paused until parts arrive", "#8b5cf6"),
    ("Completed", "Repair finished, ready for pickup", "#10b981"),
    ("Cancelled", "Appointment cancelled", "#ef4444"),
)


def ensure_default_statuses() -> int:
    """Insert missing default repair statuses. Returns how many were created."""
    existing = {name for (name,) in db.session.query(RepairStatus.name).all()}
    created = 0
    for name, description, color in DEFAULT_REPAIR_STATUSES:
        if name in existing:
            continue
        db.session.add(RepairStatus(name=name, description=description, color=color))
        created += 1
    db.session.commit()
    return created


def list_statuses() -> list[dict]:
    return [s.to_dict() for s in db.session.query(RepairStatus).order_by(RepairStatus.id.asc()).all()]


def list_appointments(
    *,
    status_id: int | None = None,
    search: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Admin listing, newest appointment first.

    search matches (case-insensitive) problem description, diagnosis,
    customer name and customer email.
    """
    query = db.session.query(Appointment)
    if status_id is not None:
        query = query.filter(Appointment.status_id == status_id)
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Appointment.problem_description.ilike(pattern),
                Appointment.diagnosis.ilike(pattern),
                Appointment.customer_name.ilike(pattern),
                Appointment.customer_email.ilike(pattern),
            )
        )
    query = query.order_by(Appointment.appointment_date.desc(), Appointment.id.desc())
    return paginate(query, page, per_page)


def get_appointment(appointment_id: int) -> dict:
    appointment = db.session.get(Appointment, appointment_id)
    if appointment is None:
        raise NotFoundError("Appointment not found")
    return appointment.to_dict()


def _require_refs(patch: dict) -> None:
    if "status_id" in patch and db.session.get(RepairStatus, patch["status_id"]) is None:
        raise ValidationError("status_id does not reference an existing status")
    if patch.get("device_model_id") is not None and db.session.get(DeviceModel, patch["device_model_id"]) is None:
        raise ValidationError("device_model_id does not reference an existing model")


def create_appointment(*, patch: dict) -> dict:
    """Book an appointment. Without an explicit status it starts in the first status."""
    enforce_rules_appointment(patch)
    if patch.get("status_id") is None:
        first = db.session.query(RepairStatus).order_by(RepairStatus.id.asc()).first()
        if first is None:
            raise ValidationError("No repair statuses configured; run `flask system init`")
        patch = {**patch, "status_id": first.id}
    _require_refs(patch)

    appointment = Appointment(**patch)
    db.session.add(appointment)
    db.session.commit()
    return appointment.to_dict()


def update_appointment(appointment_id: int, *, patch: dict) -> dict:
    appointment = db.session.get(Appointment, appointment_id)
    if appointment is None:
        raise NotFoundError("Appointment not found")

    current = {
        "appointment_date": appointment.appointment_date,
        "estimated_completion_date": appointment.estimated_completion_date,
        "actual_completion_date": appointment.actual_completion_date,
    }
    enforce_rules_appointment(patch, current=current)
    _require_refs(patch)

    for key, value in patch.items():
        setattr(appointment, key, value)
    db.session.commit()
    return appointment.to_dict()
