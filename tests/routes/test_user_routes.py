import inspect

import pytest
from fastapi.testclient import TestClient

from gamearena.api.endpoints import auth as auth_endpoints
from gamearena.core.config import Settings
from gamearena.main import create_app


@pytest.fixture
def client():
    return TestClient(create_app(Settings(SECRET_KEY="test-secret", BOOTSTRAP_ADMIN=False)))

@pytest.fixture
def registered(client: TestClient):
    response = client.post("/api/auth/register", json={
        "username": "sniper",
        "email": "sniper@example.com",
        "password": "secret12",
        "fullName": "Sniper Wolf",
        "phoneNumber": "+919999999999",
    })
    assert response.status_code == 200
    return response.json()["user"]


class TestAuthRoutes:

    def test_register_returns_public_profile(self, registered):
        assert registered["username"] == "sniper"
        assert registered["fullName"] == "Sniper Wolf"
        assert registered["walletBalance"] == "0.00"
        assert registered["isAdmin"] is False
        assert "password" not in registered
        assert "hashedPassword" not in registered

    def test_register_duplicate(self, client: TestClient, registered):
        response = client.post("/api/auth/register", json={
            "username": "SNIPER",
            "email": "another@example.com",
            "password": "secret12",
            "fullName": "Copycat",
        })
        assert response.status_code == 400
        assert "already taken" in response.json()["detail"]

    def test_register_invalid_email(self, client: TestClient):
        response = client.post("/api/auth/register", json={
            "username": "sniper",
            "email": "not-an-email",
            "password": "secret12",
            "fullName": "Sniper Wolf",
        })
        assert response.status_code == 400

    def test_login_and_me(self, client: TestClient, registered):
        response = client.post("/api/auth/login", json={"email": "sniper@example.com", "password": "secret12"})
        assert response.status_code == 200
        body = response.json()
        assert body["tokenType"] == "bearer"
        assert body["user"]["id"] == registered["id"]

        me = client.get("/api/users/me", headers={"Authorization": f"Bearer {body['accessToken']}"})
        assert me.status_code == 200
        assert me.json()["user"]["email"] == "sniper@example.com"

    def test_login_wrong_password(self, client: TestClient, registered):
        response = client.post("/api/auth/login", json={"email": "sniper@example.com", "password": "wrong-pass"})
        assert response.status_code == 401

    def test_password_hashing_routes_run_in_threadpool(self):
        # Sync handlers are dispatched to the threadpool instead of the event loop
        assert not inspect.iscoroutinefunction(auth_endpoints.register)
        assert not inspect.iscoroutinefunction(auth_endpoints.login)

    def test_me_requires_token(self, client: TestClient):
        assert client.get("/api/users/me").status_code == 401
        assert client.get("/api/users/me", headers={"Authorization": "Bearer garbage"}).status_code == 401


class TestUserRoutes:

    def test_get_user(self, client: TestClient, registered):
        response = client.get(f"/api/users/{registered['id']}")
        assert response.status_code == 200
        assert response.json()["user"]["username"] == "sniper"

    def test_get_unknown_user(self, client: TestClient):
        response = client.get("/api/users/does-not-exist")
        assert response.status_code == 404
        assert response.json() == {"detail": "User not found"}

    def test_deposit_and_withdraw(self, client: TestClient, registered):
        user_id = registered["id"]

        deposit = client.post(f"/api/users/{user_id}/deposit", json={
            "amount": "500", "paymentGateway": "PAYTM", "transactionRef": "ref-1",
        })
        assert deposit.status_code == 200
        assert deposit.json()["transaction"]["amount"] == "500.00"
        assert deposit.json()["transaction"]["status"] == "COMPLETED"
        assert deposit.json()["message"] == "Deposit successful"

        withdrawal = client.post(f"/api/users/{user_id}/withdraw", json={"amount": 200.5})
        assert withdrawal.status_code == 200
        assert withdrawal.json()["transaction"]["type"] == "WITHDRAWAL"

        user = client.get(f"/api/users/{user_id}").json()["user"]
        assert user["walletBalance"] == "299.50"

        transactions = client.get(f"/api/users/{user_id}/transactions").json()["transactions"]
        assert [t["type"] for t in transactions] == ["WITHDRAWAL", "DEPOSIT"]

    def test_withdraw_insufficient_funds(self, client: TestClient, registered):
        response = client.post(f"/api/users/{registered['id']}/withdraw", json={"amount": "150"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Insufficient wallet balance"

    def test_deposit_limits(self, client: TestClient, registered):
        too_small = client.post(f"/api/users/{registered['id']}/deposit", json={"amount": "5"})
        negative = client.post(f"/api/users/{registered['id']}/deposit", json={"amount": "-10"})
        assert too_small.status_code == 400
        assert negative.status_code == 400

    def test_deposit_unknown_user(self, client: TestClient):
        response = client.post("/api/users/nobody/deposit", json={"amount": "50"})
        assert response.status_code == 404

    def test_user_tournaments_empty(self, client: TestClient, registered):
        response = client.get(f"/api/users/{registered['id']}/tournaments")
        assert response.status_code == 200
        assert response.json() == {"tournaments": []}
