# Overview: Service-layer operations for storefront banners.

from __future__ import annotations

from ..extensions import db
from ..models import Banner
from ..validation import NotFoundError, enforce_rules_banner
from storefront.time_utils import utcnow


def list_banners(*, target_page: str | None = None) -> list[dict]:
    """Back-office listing, in display order."""
    query = db.session.query(Banner)
    if target_page:
        query = query.filter(Banner.target_page == target_page)
    rows = query.order_by(Banner.display_order.asc(), Banner.id.asc()).all()
    return [b.to_dict() for b in rows]


def active_banners(target_page: str = "home", *, now=None) -> list[dict]:
    """Banners live on a page right now: active and start_date <= now < end_date."""
    now = now or utcnow()
    rows = (
        db.session.query(Banner)
        .filter(Banner.target_page == target_page)
        .filter(Banner.is_active.is_(True))
        .filter(Banner.start_date <= now)
        .filter(Banner.end_date > now)
        .order_by(Banner.display_order.asc(), Banner.id.asc())
        .all()
    )
    return [b.to_dict() for b in rows]


def get_banner(banner_id: int) -> dict:
    banner = db.session.get(Banner, banner_id)
    if banner is None:
        raise NotFoundError("Banner not found")
    return banner.to_dict()


def create_banner(*, patch: dict) -> dict:
    enforce_rules_banner(patch)
    banner = Banner(**patch)
    if banner.target_page is None:
        banner.target_page = "home"
    db.session.add(banner)
    db.session.commit()
    return banner.to_dict()


def update_banner(banner_id: int, *, patch: dict) -> dict:
    banner = db.session.get(Banner, banner_id)
    if banner is None:
        raise NotFoundError("Banner not found")

    current = {"start_date": banner.start_date, "end_date": banner.end_date}
    enforce_rules_banner(patch, current=current)

    for key, value in patch.items():
        setattr(banner, key, value)
    db.session.commit()
    return banner.to_dict()


def delete_banner(banner_id: int) -> bool:
    banner = db.session.get(Banner, banner_id)
    if banner is None:
        return False
    db.session.delete(banner)
    db.session.commit()
    return True
