import json

from fastapi.testclient import TestClient

PLAYERS = [
    {"name": "Alice", "buy_in": 100, "cash_out": 200},
    {"name": "Bob", "buy_in": 200, "cash_out": 100},
]

POKERNOW_LEDGER = (
    "player_nickname,player_id,buy_in,buy_out,stack\n"
    "ace,p1,1000,0,1800\n"
    "bobby,p2,1000,0,0\n"
    "ace_phone,p3,500,700,0\n"
)


def _create(client: TestClient, owner_id: str = "owner-1", **overrides) -> dict:
    payload = {"owner_id": owner_id, "session_name": "Friday game", "players": PLAYERS, **overrides}
    response = client.post("/ledgers", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def test_create_and_fetch_ledger(client: TestClient) -> None:
    created = _create(client, session_date="2024-05-03T22:00:00")

    assert created["owner_id"] == "owner-1"
    assert created["session_name"] == "Friday game"
    assert created["session_date"] == "2024-05-03T22:00:00"
    assert created["denomination"] == "cents"
    assert created["players"] == PLAYERS
    assert created["transactions"] == [{"from": "Bob", "to": "Alice", "amount": 100}]
    assert created["share_code"] is None
    assert created["strategy"] == "proportional"

    fetched = client.get(f"/ledgers/{created['id']}", params={"owner_id": "owner-1"})
    assert fetched.status_code == 200
    assert fetched.json() == created


def test_create_ledger_validates_players(client: TestClient) -> None:
    one_player = client.post("/ledgers", json={"owner_id": "owner-1", "players": PLAYERS[:1]})
    assert one_player.status_code == 422

    duplicate = client.post("/ledgers", json={"owner_id": "owner-1", "players": [PLAYERS[0], PLAYERS[0]]})
    assert duplicate.status_code == 422


def test_unbalanced_ledger_is_rejected(client: TestClient) -> None:
    response = client.post(
        "/ledgers",
        json={"owner_id": "owner-1", "players": [PLAYERS[0], {"name": "Bob", "buy_in": 200, "cash_out": 150}]},
    )

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "unbalanced_ledger"


def test_list_ledgers_for_owner(client: TestClient) -> None:
    older = _create(client, session_date="2024-01-01T20:00:00")
    newer = _create(client, session_date="2024-02-01T20:00:00")
    _create(client, owner_id="owner-2")

    response = client.get("/ledgers", params={"owner_id": "owner-1"})

    assert response.status_code == 200
    assert [ledger["id"] for ledger in response.json()] == [newer["id"], older["id"]]


def test_missing_ledger_returns_error_shape(client: TestClient) -> None:
    response = client.get("/ledgers/999", params={"owner_id": "owner-1"})

    assert response.status_code == 404
    detail = response.json()["detail"]
    assert set(detail.keys()) == {"code", "message", "details"}
    assert detail["code"] == "ledger_not_found"


def test_delete_ledger_requires_owner(client: TestClient) -> None:
    created = _create(client)

    forbidden = client.delete(f"/ledgers/{created['id']}", params={"owner_id": "intruder"})
    assert forbidden.status_code == 403

    deleted = client.delete(f"/ledgers/{created['id']}", params={"owner_id": "owner-1"})
    assert deleted.status_code == 204
    assert client.get(f"/ledgers/{created['id']}", params={"owner_id": "owner-1"}).status_code == 404


def test_share_and_open_shared_ledger(client: TestClient) -> None:
    created = _create(client)

    shared = client.post(f"/ledgers/{created['id']}/share", params={"owner_id": "owner-1"})
    assert shared.status_code == 200
    share_code = shared.json()["share_code"]

    public = client.get(f"/shared/{share_code}")
    assert public.status_code == 200
    assert public.json() == {
        "session_name": "Friday game",
        "session_date": created["session_date"],
        "denomination": "cents",
        "players": PLAYERS,
        "transactions": [{"from": "Bob", "to": "Alice", "amount": 100}],
    }

    assert client.get("/shared/unknown-code").status_code == 404


def test_upload_csv_with_aliases(client: TestClient) -> None:
    response = client.post(
        "/ledgers/upload",
        data={
            "owner_id": "owner-1",
            "session_name": "PokerNow game",
            "aliases": json.dumps({"ace": "Alice", "ace_phone": "Alice", "bobby": "Bob"}),
        },
        files={"file": ("ledger_2024_05_03.csv", POKERNOW_LEDGER, "text/csv")},
    )

    assert response.status_code == 201, response.text
    ledger = response.json()
    assert ledger["original_file_name"] == "ledger_2024_05_03.csv"
    assert ledger["players"] == [
        {"name": "Alice", "buy_in": 1500, "cash_out": 2500},
        {"name": "Bob", "buy_in": 1000, "cash_out": 0},
    ]
    assert ledger["transactions"] == [{"from": "Bob", "to": "Alice", "amount": 1000}]


def test_upload_rejects_bad_csv(client: TestClient) -> None:
    response = client.post(
        "/ledgers/upload",
        data={"owner_id": "owner-1"},
        files={"file": ("ledger.csv", "name,amount\nalice,10\n", "text/csv")},
    )

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "invalid_ledger_file"


def test_upload_rejects_bad_aliases(client: TestClient) -> None:
    response = client.post(
        "/ledgers/upload",
        data={"owner_id": "owner-1", "aliases": "not json"},
        files={"file": ("ledger.csv", POKERNOW_LEDGER, "text/csv")},
    )

    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "invalid_aliases"


def test_shared_view_hides_owner_details(client: TestClient) -> None:
    created = _create(client, owner_id="private-owner", original_file_name="private.csv")
    share_code = client.post(f"/ledgers/{created['id']}/share", params={"owner_id": "private-owner"}).json()["share_code"]

    public = client.get(f"/shared/{share_code}").json()

    assert "owner_id" not in public
    assert "original_file_name" not in public
    assert "id" not in public


def test_fetching_a_ledger_requires_its_owner(client: TestClient) -> None:
    created = _create(client)

    assert client.get(f"/ledgers/{created['id']}").status_code == 422
    forbidden = client.get(f"/ledgers/{created['id']}", params={"owner_id": "intruder"})
    assert forbidden.status_code == 403
    assert forbidden.json()["detail"]["code"] == "ledger_forbidden"


def test_create_ledger_with_minimize_strategy(client: TestClient) -> None:
    created = _create(
        client,
        strategy="minimize",
        players=[
            {"name": "Alice", "buy_in": 100, "cash_out": 300},
            {"name": "Bob", "buy_in": 100, "cash_out": 150},
            {"name": "Carol", "buy_in": 250, "cash_out": 0},
        ],
    )

    assert created["strategy"] == "minimize"
    assert created["transactions"] == [
        {"from": "Carol", "to": "Alice", "amount": 200},
        {"from": "Carol", "to": "Bob", "amount": 50},
    ]


SPLIT_NICKNAME_LEDGER = "player_nickname,buy_in,buy_out,stack\nAlice,1000,0,1500\nalice_,500,0,1000\nBob,1000,0,0\n"


def test_suggest_aliases_groups_similar_nicknames(client: TestClient) -> None:
    response = client.post("/ledgers/aliases", files={"file": ("ledger.csv", SPLIT_NICKNAME_LEDGER, "text/csv")})

    assert response.status_code == 200
    assert response.json() == [
        {"player": "Alice", "aliases": ["Alice", "alice_"]},
        {"player": "Bob", "aliases": ["Bob"]},
    ]


def test_upload_merges_detected_aliases_and_accepts_strategy(client: TestClient) -> None:
    response = client.post(
        "/ledgers/upload",
        data={"owner_id": "owner-1", "strategy": "minimize"},
        files={"file": ("ledger.csv", SPLIT_NICKNAME_LEDGER, "text/csv")},
    )

    assert response.status_code == 201, response.text
    ledger = response.json()
    assert ledger["strategy"] == "minimize"
    assert ledger["players"] == [
        {"name": "Alice", "buy_in": 1500, "cash_out": 2500},
        {"name": "Bob", "buy_in": 1000, "cash_out": 0},
    ]
    assert ledger["transactions"] == [{"from": "Bob", "to": "Alice", "amount": 1000}]


def test_upload_can_keep_every_nickname(client: TestClient) -> None:
    response = client.post(
        "/ledgers/upload",
        data={"owner_id": "owner-1", "detect_aliases": "false"},
        files={"file": ("ledger.csv", SPLIT_NICKNAME_LEDGER, "text/csv")},
    )

    assert response.status_code == 201, response.text
    assert [player["name"] for player in response.json()["players"]] == ["Alice", "alice_", "Bob"]
