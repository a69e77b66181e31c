from types import SimpleNamespace

import pytest

from app.services.oracle import LocalRandomnessOracle
from app.services.payouts import BalanceBook
from app.services.raffle import Raffle

ENTRANCE_FEE = 100
INTERVAL = 30
START_TIME = 1_700_000_000


class FakeClock:
    def __init__(self, start: int = START_TIME):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def oracle():
    return LocalRandomnessOracle(address="vrf-coordinator")


@pytest.fixture
def payouts():
    return BalanceBook()


@pytest.fixture
def raffle(clock, oracle, payouts):
    return Raffle.in_memory(ENTRANCE_FEE, INTERVAL, oracle, payouts, clock=clock)


@pytest.fixture
def closed_raffle(raffle, clock):
    """A raffle with one entry whose round has been closed."""
    raffle.enter("P1", ENTRANCE_FEE)
    clock.advance(INTERVAL + 1)
    request_id = raffle.close_round()
    return raffle, request_id


@pytest.fixture
def client(monkeypatch, raffle, oracle):
    from fastapi.testclient import TestClient

    import app.api.dependencies as dependencies
    from app.main import app

    monkeypatch.setattr(
        dependencies,
        "settings",
        SimpleNamespace(oracle_callback_token="oracle-secret", oracle_address=oracle.address),
    )
    app.dependency_overrides[dependencies.get_raffle] = lambda: raffle
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
