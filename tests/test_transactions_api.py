"""End-to-end tests for the sale workflow over HTTP"""
import pytest
from fastapi.testclient import TestClient

from propledger.main import create_app
from propledger.services.ledger import BlockchainLedger


class TestSaleScenario:
    """Walks a property from listing to completed sale"""

    def test_full_sale(self, client, register_user, list_property):
        seller = register_user("seller", name="Sam Seller")
        admin = register_user("admin")
        buyer = register_user("buyer", name="Bea Buyer")
        agent = register_user("agent", name="Ada Agent")

        # Unverified listings are hidden
        property_id = list_property(seller)
        listed = client.get("/api/properties").json()
        assert property_id not in [p["id"] for p in listed]

        # Admin verification makes it visible
        response = client.put(f"/api/properties/{property_id}", headers=admin.headers, json={"is_verified": True})
        assert response.status_code == 200
        assert response.json()["is_verified"] is True
        listed = client.get("/api/properties").json()
        assert property_id in [p["id"] for p in listed]

        # Buyer opens the sale
        response = client.post(
            "/api/transactions",
            headers=buyer.headers,
            json={"property_id": property_id, "amount": 100000},
        )
        assert response.status_code == 200, response.text
        transaction = response.json()
        assert transaction["status"] == "pending"
        assert transaction["seller_id"] == seller.id
        assert transaction["buyer_id"] == buyer.id
        assert transaction["amount"] == 100000

        # Agent verifies
        response = client.patch(f"/api/transactions/{transaction['id']}/verify", headers=agent.headers)
        assert response.status_code == 200, response.text
        assert response.json()["status"] == "verified"
        assert response.json()["agent_id"] == agent.id
        assert response.json()["verified_at"] is not None

        # Agent completes
        response = client.patch(f"/api/transactions/{transaction['id']}/complete", headers=agent.headers)
        assert response.status_code == 200, response.text
        completed = response.json()
        assert completed["status"] == "completed"
        assert completed["completed_at"] is not None
        chain = completed["blockchainTransaction"]
        assert chain["status"] == "confirmed"
        assert chain["txHash"].startswith("0x") and len(chain["txHash"]) == 66
        assert 0 <= chain["blockNumber"] < 1_000_000
        assert completed["blockchain_tx_id"] == chain["txHash"]

        # Ownership moved to the buyer
        property_data = client.get(f"/api/properties/{property_id}").json()
        assert property_data["owner_id"] == buyer.id
        assert property_data["owner_name"] == "Bea Buyer"

        # All three parties see the sale
        for party in (seller, buyer, agent):
            rows = client.get("/api/transactions/user", headers=party.headers).json()
            assert [r["id"] for r in rows] == [transaction["id"]]
            assert rows[0]["seller_name"] == "Sam Seller"
            assert rows[0]["agent_name"] == "Ada Agent"
            assert rows[0]["property_title"] == "Lakeside Cabin"

    def test_second_transaction_while_pending_rejected(self, client, register_user, list_property):
        seller = register_user("seller")
        admin = register_user("admin")
        first = register_user("buyer")
        second = register_user("buyer")
        property_id = list_property(seller, admin)

        response = client.post("/api/transactions", headers=first.headers, json={"property_id": property_id, "amount": 100000})
        assert response.status_code == 200

        response = client.post("/api/transactions", headers=second.headers, json={"property_id": property_id, "amount": 110000})
        assert response.status_code == 400
        assert "already a pending transaction" in response.json()["message"]

        rows = client.get("/api/transactions/user", headers=seller.headers).json()
        assert len(rows) == 1


class TestCreateErrors:
    """Error responses for opening a sale"""

    def test_non_buyer_gets_401_and_no_row(self, client, register_user, list_property):
        seller = register_user("seller")
        admin = register_user("admin")
        property_id = list_property(seller, admin)

        for role_user in (seller, admin, register_user("agent")):
            response = client.post(
                "/api/transactions",
                headers=role_user.headers,
                json={"property_id": property_id, "amount": 100000},
            )
            assert response.status_code == 401
            assert response.json()["message"] == "Only buyers can initiate transactions"

        assert client.get("/api/transactions/user", headers=seller.headers).json() == []

    def test_unverified_property_is_404(self, client, register_user, list_property):
        seller = register_user("seller")
        buyer = register_user("buyer")
        property_id = list_property(seller)

        response = client.post("/api/transactions", headers=buyer.headers, json={"property_id": property_id, "amount": 5})

        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"

    @pytest.mark.parametrize("body", [
        {"amount": 100},
        {"property_id": 1},
        {"property_id": 1, "amount": "lots"},
        {"property_id": 1, "amount": -5},
        {"property_id": 1, "amount": "0.001"},
        {"property_id": 1, "amount": 10 ** 14},
    ])
    def test_malformed_body_is_400(self, client, register_user, body):
        buyer = register_user("buyer")

        response = client.post("/api/transactions", headers=buyer.headers, json=body)

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"
        assert response.json()["details"]["errors"]

    def test_requires_token(self, client):
        response = client.post("/api/transactions", json={"property_id": 1, "amount": 100})

        assert response.status_code == 401
        assert response.json()["message"] == "No token, authorization denied"


class TestVerifyAndCompleteErrors:
    """Error responses for agent actions"""

    @pytest.fixture
    def pending(self, client, register_user, list_property):
        seller = register_user("seller")
        admin = register_user("admin")
        buyer = register_user("buyer")
        agent = register_user("agent")
        property_id = list_property(seller, admin)
        response = client.post("/api/transactions", headers=buyer.headers, json={"property_id": property_id, "amount": 1000})
        return response.json()["id"], buyer, agent

    def test_buyer_cannot_verify(self, client, pending):
        transaction_id, buyer, _ = pending

        response = client.patch(f"/api/transactions/{transaction_id}/verify", headers=buyer.headers)

        assert response.status_code == 401
        assert response.json()["message"] == "Only verification agents can verify transactions"

    def test_unknown_transaction_is_404(self, client, pending):
        _, _, agent = pending

        assert client.patch("/api/transactions/999/verify", headers=agent.headers).status_code == 404
        assert client.patch("/api/transactions/999/complete", headers=agent.headers).status_code == 404

    def test_complete_requires_verification(self, client, pending):
        transaction_id, _, agent = pending

        response = client.patch(f"/api/transactions/{transaction_id}/complete", headers=agent.headers)

        assert response.status_code == 400
        assert response.json()["message"] == "Only verified transactions can be completed"
        assert response.json()["error"] == "INVALID_TRANSITION"

    def test_verify_twice_rejected(self, client, pending):
        transaction_id, _, agent = pending
        assert client.patch(f"/api/transactions/{transaction_id}/verify", headers=agent.headers).status_code == 200

        response = client.patch(f"/api/transactions/{transaction_id}/verify", headers=agent.headers)

        assert response.status_code == 400
        assert response.json()["message"] == "Only pending transactions can be verified"


class BrokenLedger(BlockchainLedger):
    async def record_transfer(self, property_id, previous_owner_id, new_owner_id):
        raise ConnectionError("node unreachable at 10.0.0.5")


def test_ledger_crash_is_opaque_500_and_rolls_back(test_settings):
    app = create_app(test_settings, ledger=BrokenLedger())

    with TestClient(app, raise_server_exceptions=False) as client:
        def register(role):
            response = client.post("/api/auth/register", json={
                "name": f"Crash {role}",
                "email": f"crash-{role}@example.com",
                "password": "secret123",
                "role": role,
            })
            return response.json()["user"]["id"], {"Authorization": f"Bearer {response.json()['access_token']}"}

        seller_id, seller = register("seller")
        _, admin = register("admin")
        _, buyer = register("buyer")
        _, agent = register("agent")

        property_id = client.post("/api/properties", headers=seller, json={
            "title": "Fragile Farmhouse",
            "description": "Needs a working ledger",
            "location": "Boise, ID",
            "price": 90000,
        }).json()["id"]
        client.put(f"/api/properties/{property_id}", headers=admin, json={"is_verified": True})
        transaction_id = client.post(
            "/api/transactions", headers=buyer, json={"property_id": property_id, "amount": 90000}
        ).json()["id"]
        assert client.patch(f"/api/transactions/{transaction_id}/verify", headers=agent).status_code == 200

        response = client.patch(f"/api/transactions/{transaction_id}/complete", headers=agent)

        assert response.status_code == 500
        assert response.text == "Server Error"
        assert "10.0.0.5" not in response.text

        rows = client.get("/api/transactions/user", headers=buyer).json()
        assert rows[0]["status"] == "verified"
        assert rows[0]["completed_at"] is None
        assert rows[0]["blockchain_tx_id"] is None
        assert client.get(f"/api/properties/{property_id}").json()["owner_id"] == seller_id
