"""
Trade-in lifecycle tests.

Verifies:
- Allowed-next-status table
- Transition validation happens before any write
- Status change and audit row commit (or roll back) together
- Submission, customer view and admin queue routes
"""

import pytest

from storefront.models import PhoneTradeIn, TradeInAuditLog
from storefront.services import trade_in_service
from storefront.services.trade_in_service import (
    TradeInTransitionError,
    TransitionRequest,
    allowed_next_statuses,
    transition_status,
)
from storefront.validation import ValidationError


# =============================================================================
# STATE MACHINE
# =============================================================================


class TestAllowedNextStatuses:

    @pytest.mark.parametrize(
        "status,expected",
        [
            ("pending", {"approved", "rejected"}),
            ("approved", {"completed", "rejected", "cancelled"}),
            ("rejected", {"cancelled"}),
            ("completed", set()),
            ("cancelled", set()),
        ],
    )
    def test_table(self, status, expected):
        assert allowed_next_statuses(status) == expected

    def test_unknown_status_is_validation_error(self):
        with pytest.raises(ValidationError):
            allowed_next_statuses("shipped")


# =============================================================================
# REQUEST VALIDATION (no database access)
# =============================================================================


class TestTransitionRequest:

    def test_completed_requires_offered_value(self):
        with pytest.raises(ValidationError, match="offered_value_cents is required"):
            TransitionRequest.from_payload({"status": "completed", "notes": "Paid out"})

    @pytest.mark.parametrize("offered", ["150", 12.5, True, -1])
    def test_completed_rejects_non_numeric_or_negative_offer(self, offered):
        with pytest.raises(ValidationError):
            TransitionRequest.from_payload(
                {"status": "completed", "notes": "Paid out", "offered_value_cents": offered}
            )

    def test_completed_accepts_zero(self):
        req = TransitionRequest.from_payload(
            {"status": "completed", "notes": "Recycled", "offered_value_cents": 0}
        )
        assert req.offered_value_cents == 0

    def test_approved_offer_is_optional(self):
        req = TransitionRequest.from_payload({"status": "approved", "notes": "Looks fine"})
        assert req.offered_value_cents is None

    @pytest.mark.parametrize("status", ["rejected", "cancelled", "pending"])
    def test_other_targets_reject_offer(self, status):
        with pytest.raises(ValidationError):
            TransitionRequest.from_payload(
                {"status": status, "notes": "x", "offered_value_cents": 100}
            )

    @pytest.mark.parametrize("notes", [None, "", "   "])
    def test_notes_required(self, notes):
        with pytest.raises(ValidationError, match="notes"):
            TransitionRequest.from_payload({"status": "approved", "notes": notes})

    def test_notes_are_trimmed(self):
        req = TransitionRequest.from_payload({"status": "rejected", "notes": "  cracked  "})
        assert req.notes == "cracked"


# =============================================================================
# TRANSITIONS
# =============================================================================


class TestTransitionStatus:

    def test_transition_writes_status_and_audit_row(self, db_session, make_trade_in):
        trade_in = make_trade_in("pending")

        detail = transition_status(
            trade_in.id,
            TransitionRequest(new_status="approved", notes="Verified IMEI", offered_value_cents=22000),
            actor_id="admin-1",
        )

        assert detail["status"] == "approved"
        assert detail["offered_value_cents"] == 22000
        assert detail["admin_notes"] == "Verified IMEI"
        assert detail["allowed_next_statuses"] == ["cancelled", "completed", "rejected"]
        assert len(detail["audit_log"]) == 1
        entry = detail["audit_log"][0]
        assert (entry["status_from"], entry["status_to"]) == ("pending", "approved")
        assert entry["actor_id"] == "admin-1"

    def test_disallowed_transition_writes_nothing(self, db_session, make_trade_in):
        trade_in = make_trade_in("pending")

        with pytest.raises(TradeInTransitionError):
            transition_status(
                trade_in.id,
                TransitionRequest(new_status="completed", notes="skip", offered_value_cents=100),
            )

        db_session.expire_all()
        assert db_session.get(PhoneTradeIn, trade_in.id).status == "pending"
        assert db_session.query(TradeInAuditLog).count() == 0

    def test_terminal_status_cannot_move(self, db_session, make_trade_in):
        trade_in = make_trade_in("completed")
        with pytest.raises(TradeInTransitionError):
            transition_status(trade_in.id, TransitionRequest(new_status="cancelled", notes="late"))

    def test_audit_failure_rolls_back_status(self, db_session, make_trade_in, monkeypatch):
        trade_in = make_trade_in("approved")

        def failing_audit(*args, **kwargs):
            raise RuntimeError("audit insert failed")

        monkeypatch.setattr(trade_in_service, "_write_audit", failing_audit)

        with pytest.raises(RuntimeError):
            transition_status(
                trade_in.id,
                TransitionRequest(new_status="completed", notes="Paid", offered_value_cents=20000),
            )

        db_session.expire_all()
        reloaded = db_session.get(PhoneTradeIn, trade_in.id)
        assert reloaded.status == "approved"
        assert reloaded.offered_value_cents is None
        assert db_session.query(TradeInAuditLog).count() == 0

    def test_full_path_keeps_chronological_audit(self, db_session, make_trade_in):
        trade_in = make_trade_in("pending")
        transition_status(trade_in.id, TransitionRequest(new_status="approved", notes="ok"))
        transition_status(trade_in.id, TransitionRequest(new_status="rejected", notes="mismatch"))
        detail = transition_status(trade_in.id, TransitionRequest(new_status="cancelled", notes="closed"))

        assert [e["status_to"] for e in detail["audit_log"]] == ["approved", "rejected", "cancelled"]
        assert detail["allowed_next_statuses"] == []


# =============================================================================
# ROUTES
# =============================================================================


class TestTradeInRoutes:

    def test_completed_without_offer_rejected_before_write(self, client, db_session, make_trade_in, admin_headers):
        trade_in = make_trade_in("approved")

        resp = client.post(
            f"/api/trade-ins/{trade_in.id}/status",
            json={"status": "completed", "notes": "Paid"},
            headers=admin_headers,
        )

        assert resp.status_code == 400
        db_session.expire_all()
        assert db_session.get(PhoneTradeIn, trade_in.id).status == "approved"
        assert db_session.query(TradeInAuditLog).count() == 0

    def test_status_change_records_token_actor(self, client, db_session, make_trade_in, admin_headers):
        trade_in = make_trade_in("pending")

        resp = client.post(
            f"/api/trade-ins/{trade_in.id}/status",
            json={"status": "rejected", "notes": "Water damage"},
            headers=admin_headers,
        )

        assert resp.status_code == 200
        assert resp.json["status"] == "rejected"
        assert resp.json["audit_log"][0]["actor_id"] == "admin-1"

    def test_invalid_transition_is_400(self, client, db_session, make_trade_in, admin_headers):
        trade_in = make_trade_in("rejected")
        resp = client.post(
            f"/api/trade-ins/{trade_in.id}/status",
            json={"status": "approved", "notes": "changed my mind"},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_missing_trade_in_is_404(self, client, db_session, admin_headers):
        resp = client.post(
            "/api/trade-ins/999/status",
            json={"status": "approved", "notes": "x"},
            headers=admin_headers,
        )
        assert resp.status_code == 404

    def test_status_change_requires_admin(self, client, db_session, make_trade_in):
        trade_in = make_trade_in("pending")
        resp = client.post(
            f"/api/trade-ins/{trade_in.id}/status",
            json={"status": "approved", "notes": "x"},
        )
        assert resp.status_code == 401

    def test_submit_recomputes_estimate(self, client, db_session, apple_model, good_condition):
        resp = client.post(
            "/api/trade-ins",
            json={
                "user_id": "user-42",
                "device_model_id": apple_model.id,
                "condition_id": good_condition.id,
                "storage_capacity": "128GB",
                "color": "Blue",
                "has_charger": True,
                "has_box": True,
                "has_accessories": True,
                "estimated_value_cents": 1,
                "images": ["https://cdn.example.com/front.jpg"],
                "description": "Minor scratches",
            },
        )

        assert resp.status_code == 201
        body = resp.json
        assert body["status"] == "pending"
        assert body["estimated_value_cents"] == 28500
        assert body["estimate_source"] == "fallback"
        assert body["images"] == ["https://cdn.example.com/front.jpg"]
        assert body["user_id"] == "user-42"

    def test_submit_rejects_bad_image_url(self, client, db_session, apple_model, good_condition):
        resp = client.post(
            "/api/trade-ins",
            json={
                "device_model_id": apple_model.id,
                "condition_id": good_condition.id,
                "storage_capacity": "128GB",
                "images": ["not-a-url"],
            },
        )
        assert resp.status_code == 400

    def test_mine_lists_only_that_user(self, client, db_session, make_trade_in):
        make_trade_in("pending", user_id="alice")
        make_trade_in("approved", user_id="alice")
        make_trade_in("pending", user_id="bob")

        resp = client.get("/api/trade-ins/mine?user_id=alice")

        assert resp.status_code == 200
        assert resp.json["count"] == 2
        assert {i["user_id"] for i in resp.json["items"]} == {"alice"}

    def test_mine_requires_user_id(self, client, db_session):
        assert client.get("/api/trade-ins/mine").status_code == 400

    def test_admin_queue_filters_by_status_and_search(self, client, db_session, make_trade_in, admin_headers):
        make_trade_in("pending", color="Midnight")
        make_trade_in("pending", color="Red")
        make_trade_in("approved", color="Midnight")

        resp = client.get("/api/trade-ins?status=pending&search=midnight&page=1", headers=admin_headers)

        assert resp.status_code == 200
        assert resp.json["pagination"]["total"] == 1
        assert resp.json["items"][0]["color"] == "Midnight"

        resp = client.get("/api/trade-ins?status=all&search=iphone", headers=admin_headers)
        assert resp.json["count"] == 3

    def test_admin_queue_rejects_unknown_status(self, client, db_session, admin_headers):
        resp = client.get("/api/trade-ins?status=shipped", headers=admin_headers)
        assert resp.status_code == 400

    def test_conditions_sorted_by_multiplier(self, client, db_session):
        from storefront.services import pricing_service

        pricing_service.ensure_defaults()
        resp = client.get("/api/trade-ins/conditions")

        multipliers = [c["multiplier"] for c in resp.json["items"]]
        assert multipliers == sorted(multipliers, reverse=True)
        assert resp.json["count"] == 5
