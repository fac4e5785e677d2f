"""Tests for role-specific dashboards"""
import pytest


@pytest.fixture
def sold(client, register_user, list_property):
    """One completed sale and one untouched verified listing"""
    seller = register_user("seller")
    admin = register_user("admin")
    buyer = register_user("buyer")
    agent = register_user("agent")
    sold_id = list_property(seller, admin, title="Sold House")
    list_property(seller, admin, title="Still For Sale")
    list_property(seller, title="Awaiting Review")

    transaction_id = client.post(
        "/api/transactions", headers=buyer.headers, json={"property_id": sold_id, "amount": 300000}
    ).json()["id"]
    client.patch(f"/api/transactions/{transaction_id}/verify", headers=agent.headers)
    client.patch(f"/api/transactions/{transaction_id}/complete", headers=agent.headers)
    return {"seller": seller, "admin": admin, "buyer": buyer, "agent": agent}


class TestDashboard:
    """Tests for GET /api/dashboard"""

    def test_requires_token(self, client):
        assert client.get("/api/dashboard").status_code == 401

    def test_seller_stats(self, client, sold):
        response = client.get("/api/dashboard", headers=sold["seller"].headers)

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["role"] == "seller"
        # Sold house now belongs to the buyer
        assert body["stats"]["total_properties"] == 2
        assert body["stats"]["verified_properties"] == 1
        assert body["stats"]["sold_properties"] == 1
        assert body["stats"]["total_earnings"] == 300000
        assert len(body["properties"]) == 2
        assert "pendingVerifications" not in body

    def test_buyer_stats(self, client, sold):
        body = client.get("/api/dashboard", headers=sold["buyer"].headers).json()

        assert body["stats"] == {
            "total_offers": 1,
            "completed_purchases": 1,
            "total_spent": 300000,
        }

    def test_agent_stats_and_queue(self, client, register_user, list_property, sold):
        other_buyer = register_user("buyer")
        property_id = list_property(sold["seller"], sold["admin"], title="Queue Me")
        client.post("/api/transactions", headers=other_buyer.headers, json={"property_id": property_id, "amount": 5000})

        body = client.get("/api/dashboard", headers=sold["agent"].headers).json()

        assert body["stats"] == {
            "total_verifications": 1,
            "pending_completion": 0,
            "completed_verifications": 1,
        }
        assert [t["property_title"] for t in body["pendingVerifications"]] == ["Queue Me"]

    def test_admin_overview(self, client, sold):
        body = client.get("/api/dashboard", headers=sold["admin"].headers).json()

        assert body["stats"]["total_users"] == 4
        assert body["stats"]["total_properties"] == 3
        assert body["stats"]["total_transactions"] == 1
        assert body["stats"]["completed_transactions"] == 1
        assert body["stats"]["total_volume"] == 300000
        assert len(body["recentTransactions"]) == 1
        assert body["recentTransactions"][0]["status"] == "completed"
        assert len(body["recentUsers"]) == 4
