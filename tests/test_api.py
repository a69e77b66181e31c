PREFIX = "/autoraffle"
ORACLE_HEADERS = {"X-Oracle-Token": "oracle-secret"}


def _enter(client, participant="P1", amount=100):
    return client.post(f"{PREFIX}/raffle/entries", json={"participant": participant, "amount": amount})


def _close(client, clock):
    _enter(client)
    clock.advance(31)
    response = client.post(f"{PREFIX}/raffle/upkeep")
    assert response.status_code == 200
    return response.json()["request_id"]


def test_health(client):
    response = client.get(f"{PREFIX}/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_initial_snapshot(client):
    body = client.get(f"{PREFIX}/raffle").json()
    assert body["state"] == "OPEN"
    assert body["state_code"] == 0
    assert body["players"] == []
    assert body["pot"] == 0
    assert body["entrance_fee"] == 100
    assert body["interval"] == 30
    assert body["pending_request_id"] is None
    assert body["recent_winner"] == {"winner": None, "pot": 0, "paid_at": None}


def test_enter(client):
    response = _enter(client, "P1", 150)
    assert response.status_code == 201
    assert response.json() == {
        "participant": "P1",
        "position": 0,
        "amount": 150,
        "pot": 150,
        "number_of_players": 1,
    }
    assert client.get(f"{PREFIX}/raffle/players").json() == ["P1"]
    assert client.get(f"{PREFIX}/raffle/players/0").json() == {"index": 0, "participant": "P1"}


def test_enter_underpaid(client):
    response = _enter(client, "P1", 99)
    assert response.status_code == 400
    body = response.json()
    assert body["type"] == "raffle_error"
    assert body["detail"]["error"] == "not_enough_paid"
    assert body["detail"]["entrance_fee"] == 100


def test_enter_negative_amount_is_not_enough_paid(client):
    response = _enter(client, "P1", -5)
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "not_enough_paid"
    assert client.get(f"{PREFIX}/raffle/players").json() == []


def test_enter_negative_amount_while_calculating_is_round_not_open(client, clock):
    _close(client, clock)

    response = _enter(client, "P2", -5)

    assert response.status_code == 409
    assert response.json()["detail"]["error"] == "round_not_open"


def test_missing_player_is_404(client):
    response = client.get(f"{PREFIX}/raffle/players/3")
    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "player_not_found"


def test_upkeep_check_and_perform(client, clock):
    _enter(client)
    body = client.get(f"{PREFIX}/raffle/upkeep").json()
    assert body["upkeep_needed"] is False
    assert body["seconds_until_due"] == 30

    early = client.post(f"{PREFIX}/raffle/upkeep")
    assert early.status_code == 409
    assert early.json()["detail"] == {
        "error": "upkeep_not_needed",
        "message": "Upkeep not needed",
        "balance": 100,
        "num_players": 1,
        "raffle_state": 0,
    }

    clock.advance(31)
    assert client.get(f"{PREFIX}/raffle/upkeep").json()["upkeep_needed"] is True
    performed = client.post(f"{PREFIX}/raffle/upkeep")
    assert performed.status_code == 200
    assert performed.json()["state"] == "CALCULATING"

    again = client.post(f"{PREFIX}/raffle/upkeep")
    assert again.status_code == 409
    assert again.json()["detail"]["raffle_state"] == 1


def test_enter_while_calculating_is_conflict(client, clock):
    _close(client, clock)
    response = _enter(client, "P2", 100)
    assert response.status_code == 409
    assert response.json()["detail"]["error"] == "round_not_open"


def test_fulfill_requires_oracle_token(client, clock):
    request_id = _close(client, clock)
    payload = {"request_id": request_id, "random_words": [42]}

    assert client.post(f"{PREFIX}/oracle/fulfill", json=payload).status_code == 401
    wrong = client.post(f"{PREFIX}/oracle/fulfill", json=payload, headers={"X-Oracle-Token": "nope"})
    assert wrong.status_code == 401
    assert client.get(f"{PREFIX}/raffle").json()["state"] == "CALCULATING"


def test_fulfill_unknown_request(client, clock):
    request_id = _close(client, clock)
    response = client.post(
        f"{PREFIX}/oracle/fulfill",
        json={"request_id": request_id + 10, "random_words": [42]},
        headers=ORACLE_HEADERS,
    )
    assert response.status_code == 404
    assert response.json()["detail"]["error"] == "unknown_request"


def test_fulfill_requires_random_words(client, clock):
    request_id = _close(client, clock)
    response = client.post(
        f"{PREFIX}/oracle/fulfill",
        json={"request_id": request_id, "random_words": []},
        headers=ORACLE_HEADERS,
    )
    assert response.status_code == 400


def test_fulfill_pays_winner(client, clock, payouts):
    request_id = _close(client, clock)
    response = client.post(
        f"{PREFIX}/oracle/fulfill",
        json={"request_id": request_id, "random_words": [42]},
        headers=ORACLE_HEADERS,
    )
    assert response.status_code == 200
    assert response.json()["winner"] == "P1"
    assert response.json()["pot"] == 100
    assert payouts.balance_of("P1") == 100

    snapshot = client.get(f"{PREFIX}/raffle").json()
    assert snapshot["state"] == "OPEN"
    assert snapshot["players"] == []
    assert client.get(f"{PREFIX}/raffle/winner").json()["winner"] == "P1"

    names = [event["name"] for event in client.get(f"{PREFIX}/raffle/events").json()]
    assert names == ["RaffleEnter", "RequestedRaffleWinner", "WinnerPicked"]


def test_fulfill_payout_failure(client, clock, payouts):
    request_id = _close(client, clock)
    payouts.refuse("P1")
    response = client.post(
        f"{PREFIX}/oracle/fulfill",
        json={"request_id": request_id, "random_words": [42]},
        headers=ORACLE_HEADERS,
    )
    assert response.status_code == 502
    assert response.json()["detail"]["error"] == "payout_failed"
    snapshot = client.get(f"{PREFIX}/raffle").json()
    assert snapshot["state"] == "CALCULATING"
    assert snapshot["pot"] == 100
    assert snapshot["pending_request_id"] == request_id
