"""The raffle state machine.

``Raffle`` gates every operation on the round state (OPEN or CALCULATING)
and runs each one as a single transaction against its ``RoundStore``.
Notifications are published only after the transaction commits.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional, Sequence

from app.core.errors import OnlyOracleCanFulfill, PlayerNotFound, RaffleError
from app.db.store import InMemoryRoundStore, RoundStore
from app.models.round import OracleRequestParams, RaffleState, RecentWinner, Round
from app.services import coordinator, ledger, resolver, upkeep
from app.services.events import RAFFLE_ENTER, REQUESTED_RAFFLE_WINNER, WINNER_PICKED, EventLog
from app.services.oracle import RandomnessOracle
from app.services.payouts import PayoutGateway

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_PARAMS = OracleRequestParams(
    key_hash="",
    subscription_id=0,
    request_confirmations=3,
    callback_gas_limit=500_000,
    num_words=1,
)


def new_round(entrance_fee: int, interval: int, now: int) -> Round:
    if entrance_fee < 1:
        raise ValueError("entrance_fee must be at least 1")
    if interval < 0:
        raise ValueError("interval must not be negative")
    return Round(entrance_fee=entrance_fee, interval=interval, last_close_timestamp=now)


class Raffle:
    def __init__(
        self,
        store: RoundStore,
        oracle: RandomnessOracle,
        payouts: PayoutGateway,
        request_params: OracleRequestParams = DEFAULT_REQUEST_PARAMS,
        clock: Callable[[], float] = time.time,
        events: Optional[EventLog] = None,
    ):
        if request_params.num_words < 1:
            raise ValueError("num_words must be at least 1")
        self.store = store
        self.oracle = oracle
        self.payouts = payouts
        self.request_params = request_params
        self.events = events or EventLog()
        self._clock = clock

    @classmethod
    def in_memory(
        cls,
        entrance_fee: int,
        interval: int,
        oracle: RandomnessOracle,
        payouts: PayoutGateway,
        request_params: OracleRequestParams = DEFAULT_REQUEST_PARAMS,
        clock: Callable[[], float] = time.time,
        events: Optional[EventLog] = None,
    ) -> "Raffle":
        round_ = new_round(entrance_fee, interval, int(clock()))
        return cls(InMemoryRoundStore(round_), oracle, payouts, request_params, clock, events)

    def now(self) -> int:
        return int(self._clock())

    def enter(self, participant: str, amount_paid: int) -> int:
        try:
            position = self.store.run_transaction(
                lambda round_: ledger.enter(round_, participant, amount_paid)
            )
        except RaffleError as exc:
            logger.warning("Entry from %s rejected: %s", participant, exc)
            raise
        logger.info("%s entered the raffle with %s", participant, amount_paid)
        self.events.emit(RAFFLE_ENTER, self.now(), player=participant)
        return position

    def check_upkeep(self) -> upkeep.UpkeepCheck:
        return upkeep.check_upkeep(self.store.read(), self.now())

    def is_eligible_to_close(self) -> bool:
        return self.check_upkeep().upkeep_needed

    def close_round(self) -> int:
        """Close the round and request randomness; returns the request id."""
        now = self.now()
        try:
            request_id = self.store.run_transaction(
                lambda round_: coordinator.close_round(round_, self.oracle, self.request_params, now)
            )
        except RaffleError as exc:
            logger.warning("Close round rejected: %s", exc)
            raise
        logger.info("Round closing, waiting for randomness request %s", request_id)
        self.events.emit(REQUESTED_RAFFLE_WINNER, now, request_id=request_id)
        return request_id

    def on_randomness_delivered(
        self,
        request_id: int,
        random_words: Sequence[int],
        caller: str,
    ) -> RecentWinner:
        if caller != self.oracle.address:
            raise OnlyOracleCanFulfill(caller, self.oracle.address)
        now = self.now()
        try:
            record = self.store.run_transaction(
                lambda round_: resolver.resolve_winner(
                    round_, request_id, random_words, self.payouts, now
                )
            )
        except RaffleError as exc:
            logger.warning("Delivery for request %s rejected: %s", request_id, exc)
            raise
        logger.info("Winner %s paid %s for request %s", record.winner, record.pot, request_id)
        self.events.emit(WINNER_PICKED, now, winner=record.winner, pot=record.pot)
        return record

    def snapshot(self) -> Round:
        return self.store.read()

    def get_state(self) -> RaffleState:
        return self.store.read().state

    def get_players(self) -> list[str]:
        return self.store.read().players

    def get_player(self, index: int) -> str:
        players = self.store.read().players
        if index < 0 or index >= len(players):
            raise PlayerNotFound(index, len(players))
        return players[index]

    def get_number_of_players(self) -> int:
        return len(self.store.read().players)

    def get_pot(self) -> int:
        return self.store.read().pot

    def get_recent_winner(self) -> Optional[RecentWinner]:
        return self.store.read().recent_winner

    def get_entrance_fee(self) -> int:
        return self.store.read().entrance_fee

    def get_interval(self) -> int:
        return self.store.read().interval

    def get_last_close_timestamp(self) -> int:
        return self.store.read().last_close_timestamp

    def get_pending_request_id(self) -> Optional[int]:
        return self.store.read().pending_request_id

    def get_num_words(self) -> int:
        return self.request_params.num_words

    def get_request_confirmations(self) -> int:
        return self.request_params.request_confirmations
