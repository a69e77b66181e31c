from __future__ import annotations

from app.core.errors import NotEnoughPaid, RoundNotOpen
from app.models.round import RaffleState, Round


def enter(round_: Round, participant: str, amount_paid: int) -> int:
    """Add one entry for ``participant`` and return its position in the round."""
    if round_.state != RaffleState.OPEN:
        raise RoundNotOpen(round_.state.name)
    if amount_paid < round_.entrance_fee:
        raise NotEnoughPaid(amount_paid, round_.entrance_fee)
    round_.players.append(participant)
    round_.pot += amount_paid
    return len(round_.players) - 1
