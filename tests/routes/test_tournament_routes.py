import pytest
from fastapi.testclient import TestClient

from gamearena.core.config import Settings
from gamearena.main import create_app

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin-pass"


@pytest.fixture
def client():
    settings = Settings(
        SECRET_KEY="test-secret",
        ADMIN_EMAIL=ADMIN_EMAIL,
        ADMIN_PASSWORD=ADMIN_PASSWORD,
    )
    return TestClient(create_app(settings))

@pytest.fixture
def admin_id(client: TestClient):
    response = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    return response.json()["user"]["id"]

@pytest.fixture
def make_player(client: TestClient):
    def _make(username, deposit=None):
        user = client.post("/api/auth/register", json={
            "username": username,
            "email": f"{username}@example.com",
            "password": "secret12",
            "fullName": username.title(),
        }).json()["user"]
        if deposit:
            client.post(f"/api/users/{user['id']}/deposit", json={"amount": deposit})
        return user
    return _make

@pytest.fixture
def create_tournament(client: TestClient, admin_id):
    def _create(**overrides):
        payload = {
            "name": "Vikendi Brawl",
            "game": "PUBG",
            "gameMode": "SQUAD",
            "maxPlayers": 2,
            "entryFee": "50.00",
            "prizePool": "500.00",
            "prizeDistribution": {"1": 0.6, "2": 0.4},
            "roomId": "R-1001",
            "roomPassword": "snow",
            "createdBy": admin_id,
        }
        payload.update(overrides)
        return client.post("/api/tournaments", json=payload)
    return _create


class TestTournamentRoutes:

    def test_create_tournament(self, create_tournament, admin_id):
        response = create_tournament()
        assert response.status_code == 200
        tournament = response.json()["tournament"]
        assert tournament["status"] == "WAITING"
        assert tournament["currentPlayers"] == 0
        assert tournament["entryFee"] == "50.00"
        assert tournament["createdBy"] == admin_id

    def test_create_requires_admin(self, create_tournament, make_player):
        player = make_player("rookie")
        assert create_tournament(createdBy=player["id"]).status_code == 403
        assert create_tournament(createdBy=None).status_code == 403

    def test_create_invalid_payload(self, create_tournament):
        assert create_tournament(maxPlayers=0).status_code == 400
        assert create_tournament(prizeDistribution={"1": 0.8, "2": 0.4}).status_code == 400
        assert create_tournament(game="FORTNITE").status_code == 400

    def test_list_tournaments(self, client: TestClient, create_tournament):
        create_tournament()
        create_tournament(game="FREE_FIRE", name="Bermuda Rush")

        everything = client.get("/api/tournaments").json()["tournaments"]
        free_fire = client.get("/api/tournaments", params={"game": "FREE_FIRE"}).json()["tournaments"]
        featured = client.get("/api/tournaments", params={"featured": "true"}).json()["tournaments"]

        assert len(everything) == 2
        assert [t["name"] for t in free_fire] == ["Bermuda Rush"]
        assert len(featured) == 2
        assert all(t["roomId"] is None for t in everything)

    def test_join_flow(self, client: TestClient, create_tournament, make_player):
        tournament = create_tournament().json()["tournament"]
        player = make_player("striker", deposit="120")

        response = client.post(f"/api/tournaments/{tournament['id']}/join", json={
            "userId": player["id"], "inGameName": "Striker", "inGameId": "5550001",
        })

        assert response.status_code == 200
        participant = response.json()["participant"]
        assert participant["status"] == "JOINED"
        assert participant["inGameName"] == "Striker"
        assert client.get(f"/api/users/{player['id']}").json()["user"]["walletBalance"] == "70.00"

        detail = client.get(f"/api/tournaments/{tournament['id']}", params={"userId": player["id"]}).json()
        assert detail["tournament"]["currentPlayers"] == 1
        assert detail["tournament"]["roomId"] == "R-1001"
        assert [p["userId"] for p in detail["participants"]] == [player["id"]]

        anonymous = client.get(f"/api/tournaments/{tournament['id']}").json()
        assert anonymous["tournament"]["roomId"] is None

        joined = client.get(f"/api/users/{player['id']}/tournaments").json()["tournaments"]
        assert joined[0]["tournament"]["id"] == tournament["id"]
        assert joined[0]["inGameId"] == "5550001"

    def test_join_errors(self, client: TestClient, create_tournament, make_player):
        tournament = create_tournament(maxPlayers=1).json()["tournament"]
        broke = make_player("broke", deposit="30")
        first = make_player("first", deposit="100")
        late = make_player("late", deposit="100")
        url = f"/api/tournaments/{tournament['id']}/join"

        poor = client.post(url, json={"userId": broke["id"], "inGameName": "Broke", "inGameId": "1"})
        assert poor.status_code == 400
        assert poor.json()["detail"] == "Insufficient wallet balance"
        assert client.get(f"/api/users/{broke['id']}").json()["user"]["walletBalance"] == "30.00"

        assert client.post(url, json={"userId": first["id"], "inGameName": "First", "inGameId": "2"}).status_code == 200
        again = client.post(url, json={"userId": first["id"], "inGameName": "First", "inGameId": "2"})
        assert again.status_code == 400
        full = client.post(url, json={"userId": late["id"], "inGameName": "Late", "inGameId": "3"})
        assert full.status_code == 400
        assert full.json()["detail"] == "Tournament is full"

        missing = client.post("/api/tournaments/nope/join", json={"userId": late["id"], "inGameName": "Late", "inGameId": "3"})
        assert missing.status_code == 404

    def test_get_unknown_tournament(self, client: TestClient):
        response = client.get("/api/tournaments/unknown")
        assert response.status_code == 404
        assert response.json() == {"detail": "Tournament not found"}

    def test_update_tournament(self, client: TestClient, create_tournament, admin_id, make_player):
        tournament = create_tournament().json()["tournament"]
        url = f"/api/tournaments/{tournament['id']}"

        response = client.put(url, params={"adminId": admin_id}, json={"status": "STARTING", "mapName": "Vikendi"})
        assert response.status_code == 200
        assert response.json()["tournament"]["status"] == "STARTING"
        assert response.json()["tournament"]["mapName"] == "Vikendi"

        assert client.put(url, params={"adminId": admin_id}, json={"status": "WAITING"}).status_code == 400
        assert client.put(url, params={"adminId": admin_id}, json={"status": "FINISHED"}).status_code == 400

        player = make_player("rookie")
        assert client.put(url, params={"adminId": player["id"]}, json={"name": "Stolen"}).status_code == 403
        assert client.put(url, json={"name": "Stolen"}).status_code == 403

    def test_delete_tournament(self, client: TestClient, create_tournament, admin_id, make_player):
        empty = create_tournament().json()["tournament"]
        busy = create_tournament(name="Busy Brawl").json()["tournament"]
        player = make_player("striker", deposit="100")
        client.post(f"/api/tournaments/{busy['id']}/join", json={
            "userId": player["id"], "inGameName": "Striker", "inGameId": "1",
        })

        deleted = client.delete(f"/api/tournaments/{empty['id']}", params={"adminId": admin_id})
        assert deleted.status_code == 200
        assert deleted.json() == {"message": "Tournament deleted successfully"}
        assert client.get(f"/api/tournaments/{empty['id']}").status_code == 404

        refused = client.delete(f"/api/tournaments/{busy['id']}", params={"adminId": admin_id})
        assert refused.status_code == 400
        assert client.delete(f"/api/tournaments/{busy['id']}", params={"adminId": player["id"]}).status_code == 403
