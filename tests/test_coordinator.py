import pytest

from app.core.errors import OracleRequestFailed, UpkeepNotNeeded
from app.models.round import RaffleState, Round
from app.services.coordinator import close_round
from app.services.oracle import LocalRandomnessOracle, RandomnessOracle
from app.services.raffle import DEFAULT_REQUEST_PARAMS


class BrokenOracle(RandomnessOracle):
    address = "broken"

    def request_random_words(self, params):
        raise ConnectionError("oracle unreachable")


def _due_round() -> Round:
    return Round(entrance_fee=100, interval=30, last_close_timestamp=0, players=["P1"], pot=100)


def test_close_round_records_pending_request():
    oracle = LocalRandomnessOracle()
    round_ = _due_round()

    request_id = close_round(round_, oracle, DEFAULT_REQUEST_PARAMS, now=31)

    assert request_id == 1
    assert round_.state == RaffleState.CALCULATING
    assert round_.pending_request_id == 1
    assert oracle.pending_requests() == [1]


def test_close_round_rejects_before_interval_with_diagnostics():
    round_ = _due_round()

    with pytest.raises(UpkeepNotNeeded) as excinfo:
        close_round(round_, LocalRandomnessOracle(), DEFAULT_REQUEST_PARAMS, now=10)

    assert excinfo.value.payload == {"balance": 100, "num_players": 1, "raffle_state": 0}
    assert round_.state == RaffleState.OPEN
    assert round_.pending_request_id is None


def test_second_close_fails_closed():
    oracle = LocalRandomnessOracle()
    round_ = _due_round()
    close_round(round_, oracle, DEFAULT_REQUEST_PARAMS, now=31)

    with pytest.raises(UpkeepNotNeeded) as excinfo:
        close_round(round_, oracle, DEFAULT_REQUEST_PARAMS, now=100)

    assert excinfo.value.state == int(RaffleState.CALCULATING)
    assert round_.pending_request_id == 1
    assert oracle.pending_requests() == [1]


def test_oracle_failure_is_reported():
    with pytest.raises(OracleRequestFailed):
        close_round(_due_round(), BrokenOracle(), DEFAULT_REQUEST_PARAMS, now=31)
