"""Core data models for the raffle round."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional


class RaffleState(IntEnum):
    OPEN = 0
    CALCULATING = 1


@dataclass(frozen=True)
class RecentWinner:
    """Last paid winner, kept as history only."""

    winner: str
    pot: int
    paid_at: int


@dataclass
class Round:
    """The live raffle round. Created once, reset after every payout."""

    entrance_fee: int
    interval: int
    last_close_timestamp: int
    state: RaffleState = RaffleState.OPEN
    players: list[str] = field(default_factory=list)
    pot: int = 0
    pending_request_id: Optional[int] = None
    recent_winner: Optional[RecentWinner] = None

    def copy(self) -> "Round":
        return Round(
            entrance_fee=self.entrance_fee,
            interval=self.interval,
            last_close_timestamp=self.last_close_timestamp,
            state=self.state,
            players=list(self.players),
            pot=self.pot,
            pending_request_id=self.pending_request_id,
            recent_winner=self.recent_winner,
        )


@dataclass(frozen=True)
class OracleRequestParams:
    """Opaque request parameters handed to the randomness oracle unchanged."""

    key_hash: str
    subscription_id: int
    request_confirmations: int
    callback_gas_limit: int
    num_words: int
