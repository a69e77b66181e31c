import pytest

from app.core.errors import PayoutFailed, UnknownRequest
from app.models.round import RaffleState, RecentWinner, Round
from app.services.payouts import BalanceBook
from app.services.resolver import pick_winner_index, resolve_winner


def _calculating_round(players, pot, request_id=7) -> Round:
    return Round(
        entrance_fee=100,
        interval=30,
        last_close_timestamp=0,
        state=RaffleState.CALCULATING,
        players=list(players),
        pot=pot,
        pending_request_id=request_id,
    )


def test_pick_winner_index():
    assert pick_winner_index(42, 1) == 0
    assert pick_winner_index(7, 4) == 3
    assert pick_winner_index(2**256 - 1, 3) == (2**256 - 1) % 3


def test_resolve_pays_winner_and_resets_round():
    book = BalanceBook()
    round_ = _calculating_round(["P1", "P2", "P3", "P4"], 400)

    record = resolve_winner(round_, 7, [9], book, now=500)

    assert record == RecentWinner(winner="P2", pot=400, paid_at=500)
    assert book.balance_of("P2") == 400
    assert book.transfers() == [("P2", 400, "raffle-request-7")]
    assert round_.state == RaffleState.OPEN
    assert round_.players == []
    assert round_.pot == 0
    assert round_.last_close_timestamp == 500
    assert round_.pending_request_id is None
    assert round_.recent_winner == record


@pytest.mark.parametrize("request_id", [0, 6, 8])
def test_resolve_rejects_unknown_request_without_mutation(request_id):
    book = BalanceBook()
    round_ = _calculating_round(["P1"], 100)
    before = round_.copy()

    with pytest.raises(UnknownRequest):
        resolve_winner(round_, request_id, [1], book, now=500)

    assert round_ == before
    assert book.transfers() == []


def test_resolve_rejects_delivery_when_open():
    round_ = Round(entrance_fee=100, interval=30, last_close_timestamp=0, players=["P1"], pot=100)

    with pytest.raises(UnknownRequest):
        resolve_winner(round_, 1, [1], BalanceBook(), now=500)


def test_resolve_requires_a_random_word():
    with pytest.raises(ValueError):
        resolve_winner(_calculating_round(["P1"], 100), 7, [], BalanceBook(), now=500)


def test_refused_transfer_raises_payout_failed():
    book = BalanceBook(rejecting=["P1"])

    with pytest.raises(PayoutFailed) as excinfo:
        resolve_winner(_calculating_round(["P1"], 100), 7, [0], book, now=500)

    assert excinfo.value.winner == "P1"
    assert excinfo.value.amount == 100
    assert book.balance_of("P1") == 0


def test_unexpected_transfer_error_is_wrapped():
    class ExplodingGateway(BalanceBook):
        def transfer(self, recipient, amount, reference):
            raise OSError("network down")

    with pytest.raises(PayoutFailed) as excinfo:
        resolve_winner(_calculating_round(["P1"], 100), 7, [0], ExplodingGateway(), now=500)

    assert "network down" in str(excinfo.value)
