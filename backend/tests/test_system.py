"""
Health endpoint, admin token checks and CLI commands.
"""

from storefront.models import PhoneCondition, PricingParameter, RepairStatus


# =============================================================================
# HEALTH
# =============================================================================


class TestHealth:

    def test_empty_lookup_tables_are_degraded(self, client, db_session):
        resp = client.get("/health")

        assert resp.status_code == 200
        assert resp.json["status"] == "degraded"
        assert resp.json["checks"]["database"]["status"] == "degraded"
        assert resp.json["checks"]["ai_provider"]["details"]["configured"] is False

    def test_seeded_database_is_healthy(self, app, client, db_session):
        app.test_cli_runner().invoke(args=["system", "init"])

        resp = client.get("/health")

        assert resp.json["checks"]["database"]["status"] == "healthy"
        assert resp.json["checks"]["database"]["details"]["phone_conditions"] == 5


# =============================================================================
# ADMIN TOKENS
# =============================================================================


class TestAdminTokens:

    def test_missing_header(self, client, db_session):
        resp = client.get("/api/trade-ins")
        assert resp.status_code == 401
        assert resp.json["error"] == "Authentication required"

    def test_wrong_scheme(self, client, db_session):
        resp = client.get("/api/trade-ins", headers={"Authorization": "Basic abc"})
        assert resp.status_code == 401

    def test_unknown_token(self, client, db_session):
        resp = client.get("/api/trade-ins", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401
        assert resp.json["error"] == "Invalid or expired token"


# =============================================================================
# CLI
# =============================================================================


class TestCli:

    def test_system_init_is_idempotent(self, app, db_session):
        runner = app.test_cli_runner()

        first = runner.invoke(args=["system", "init"])
        second = runner.invoke(args=["system", "init"])

        assert first.exit_code == 0
        assert "PASS Conditions created: 5" in first.output
        assert "PASS Repair statuses created: 5" in first.output
        assert "PASS Conditions created: 0" in second.output
        assert db_session.query(PhoneCondition).count() == 5
        assert db_session.query(RepairStatus).count() == 5
        assert db_session.query(PricingParameter).count() == 2

    def test_tradeins_list(self, app, db_session, make_trade_in):
        make_trade_in("pending")
        make_trade_in("approved", offered_value_cents=22000)

        result = app.test_cli_runner().invoke(args=["tradeins", "list"])

        assert result.exit_code == 0
        assert "iPhone 13" in result.output
        assert "220.00" in result.output

    def test_tradeins_list_filtered(self, app, db_session, make_trade_in):
        make_trade_in("pending")

        result = app.test_cli_runner().invoke(args=["tradeins", "list", "--status", "completed"])

        assert "No trade-ins found." in result.output

    def test_tradeins_list_bad_status(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["tradeins", "list", "--status", "lost"])
        assert result.exit_code != 0

    def test_update_embeddings_without_provider(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["search", "update-embeddings"])
        assert result.exit_code != 0
        assert "not configured" in result.output
