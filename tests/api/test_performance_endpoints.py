from fastapi.testclient import TestClient


def test_ledger_creation_tracks_player_performance(client: TestClient) -> None:
    client.post(
        "/ledgers",
        json={
            "owner_id": "owner-1",
            "session_date": "2024-05-03T22:00:00",
            "players": [
                {"name": "alice", "buy_in": 100, "cash_out": 150},
                {"name": "bob", "buy_in": 100, "cash_out": 50},
            ],
        },
    )

    history = client.get("/performance", params={"owner_id": "owner-1", "player": "alice"})
    assert history.status_code == 200
    rows = history.json()
    assert len(rows) == 1
    assert rows[0]["profit"] == 50
    assert rows[0]["is_manual_entry"] is False
    assert rows[0]["ledger_id"] is not None

    summary = client.get("/performance/summary/alice", params={"owner_id": "owner-1"})
    assert summary.status_code == 200
    data = summary.json()
    assert data["sessions"] == 1
    assert data["total_profit"] == 50
    assert data["win_rate"] == 1.0


def test_manual_performance_lifecycle(client: TestClient) -> None:
    created = client.post(
        "/performance",
        json={
            "owner_id": "owner-1",
            "player_name": "alice",
            "session_name": "Casino night",
            "session_date": "2024-04-01T21:00:00",
            "buy_in": 20000,
            "cash_out": 12000,
        },
    )
    assert created.status_code == 201
    performance = created.json()
    assert performance["profit"] == -8000
    assert performance["is_manual_entry"] is True

    updated = client.put(f"/performance/{performance['id']}", json={"cash_out": 26000})
    assert updated.status_code == 200
    assert updated.json()["profit"] == 6000

    deleted = client.delete(f"/performance/{performance['id']}")
    assert deleted.status_code == 204

    missing = client.put(f"/performance/{performance['id']}", json={"cash_out": 1})
    assert missing.status_code == 404
    assert missing.json()["detail"]["code"] == "performance_not_found"


def test_summary_for_unknown_player_is_empty(client: TestClient) -> None:
    response = client.get("/performance/summary/nobody", params={"owner_id": "owner-1"})

    assert response.status_code == 200
    assert response.json()["sessions"] == 0
    assert response.json()["best_session"] is None
