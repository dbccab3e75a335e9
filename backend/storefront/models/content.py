from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z


class Banner(db.Model):
    """
    Storefront banner shown on a target page inside a date window.

    Window is half-open from the reader's view: a banner is live when
    start_date <= now < end_date. end_date > start_date is enforced on write.
    """
    __tablename__ = "banners"
    __table_args__ = (
        db.Index("ix_banners_page_active_order", "target_page", "is_active", "display_order"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    subtitle = db.Column(db.String(500), nullable=True)
    image_url = db.Column(db.String(500), nullable=False)
    link_url = db.Column(db.String(500), nullable=True)
    button_text = db.Column(db.String(80), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    start_date = db.Column(db.DateTime(timezone=True), nullable=False)
    end_date = db.Column(db.DateTime(timezone=True), nullable=False)
    display_order = db.Column(db.Integer, nullable=False, default=0)
    target_page = db.Column(db.String(64), nullable=False, default="home")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Banner id={self.id} title={self.title!r} page={self.target_page}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "subtitle": self.subtitle,
            "image_url": self.image_url,
            "link_url": self.link_url,
            "button_text": self.button_text,
            "is_active": self.is_active,
            "start_date": to_utc_z(self.start_date),
            "end_date": to_utc_z(self.end_date),
            "display_order": self.display_order,
            "target_page": self.target_page,
            "created_at": to_utc_z(self.created_at),
        }
