from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z


class RepairStatus(db.Model):
    """Lookup table for appointment statuses (name + badge colour)."""
    __tablename__ = "repair_statuses"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False, unique=True)
    description = db.Column(db.String(255), nullable=True)
    color = db.Column(db.String(16), nullable=False, default="#6b7280")

    def __repr__(self) -> str:
        return f"<RepairStatus id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "color": self.color,
        }


class Appointment(db.Model):
    __tablename__ = "appointments"
    __table_args__ = (
        db.Index("ix_appointments_status_date", "status_id", "appointment_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    customer_name = db.Column(db.String(200), nullable=False)
    customer_email = db.Column(db.String(255), nullable=True)
    customer_phone = db.Column(db.String(64), nullable=True)

    device_model_id = db.Column(db.Integer, db.ForeignKey("device_models.id"), nullable=True, index=True)
    problem_description = db.Column(db.Text, nullable=False)
    diagnosis = db.Column(db.Text, nullable=True)
    technician_notes = db.Column(db.Text, nullable=True)

    status_id = db.Column(db.Integer, db.ForeignKey("repair_statuses.id"), nullable=False, index=True)

    appointment_date = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    estimated_completion_date = db.Column(db.DateTime(timezone=True), nullable=True)
    actual_completion_date = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    device_model = db.relationship("DeviceModel")
    status = db.relationship("RepairStatus")

    def __repr__(self) -> str:
        return f"<Appointment id={self.id} status_id={self.status_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer": {
                "name": self.customer_name,
                "email": self.customer_email,
                "phone": self.customer_phone,
            },
            "device_model_id": self.device_model_id,
            "device_model_name": self.device_model.name if self.device_model else None,
            "problem_description": self.problem_description,
            "diagnosis": self.diagnosis,
            "technician_notes": self.technician_notes,
            "status": self.status.to_dict() if self.status else None,
            "appointment_date": to_utc_z(self.appointment_date),
            "estimated_completion_date": to_utc_z(self.estimated_completion_date),
            "actual_completion_date": to_utc_z(self.actual_completion_date),
            "created_at": to_utc_z(self.created_at),
        }
