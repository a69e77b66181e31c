from __future__ import annotations

import logging
from typing import Sequence

from app.core.errors import PayoutFailed, RaffleError, UnknownRequest
from app.models.round import RaffleState, RecentWinner, Round
from app.services.payouts import PayoutGateway

logger = logging.getLogger(__name__)


def pick_winner_index(random_value: int, num_players: int) -> int:
    return random_value % num_players


def resolve_winner(
    round_: Round,
    request_id: int,
    random_words: Sequence[int],
    payouts: PayoutGateway,
    now: int,
) -> RecentWinner:
    """Select the winner for the pending request, reset the round, then pay.

    The transfer runs after every mutation. If it raises, the caller's
    transaction discards all of them and the round stays CALCULATING.
    """
    pending = round_.pending_request_id
    if round_.state != RaffleState.CALCULATING or pending is None or request_id != pending:
        raise UnknownRequest(request_id, pending)
    if not random_words:
        raise ValueError("random_words must contain at least one value")

    winner = round_.players[pick_winner_index(random_words[0], len(round_.players))]
    prize = round_.pot
    record = RecentWinner(winner=winner, pot=prize, paid_at=now)

    round_.recent_winner = record
    round_.players = []
    round_.pot = 0
    round_.last_close_timestamp = now
    round_.state = RaffleState.OPEN
    round_.pending_request_id = None

    try:
        payouts.transfer(winner, prize, reference=f"raffle-request-{request_id}")
    except RaffleError:
        raise
    except Exception as exc:
        logger.error("Transfer of %s to %s failed: %s", prize, winner, exc)
        raise PayoutFailed(winner, prize, str(exc)) from exc
    return record
