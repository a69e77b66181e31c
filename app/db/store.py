"""Round storage.

Both stores expose ``run_transaction(handler)``: the handler receives a
mutable ``Round`` and its changes become visible only if it returns
normally. Any exception leaves the stored round untouched.
"""

from __future__ import annotations

import abc
import logging
import threading
from typing import Callable, Optional, TypeVar

from app.db.connection import fetch_all, fetch_one, run_transaction
from app.models.round import RaffleState, RecentWinner, Round

T = TypeVar("T")

logger = logging.getLogger(__name__)

_ROUND_COLUMNS = """
    id, state, entrance_fee, interval_seconds, pot, last_close_timestamp,
    pending_request_id, recent_winner, recent_winner_pot, recent_winner_paid_at
"""


class RoundStore(abc.ABC):
    @abc.abstractmethod
    def read(self) -> Round:
        """Return a detached copy of the current round."""

    @abc.abstractmethod
    def run_transaction(self, handler: Callable[[Round], T]) -> T:
        ...


class InMemoryRoundStore(RoundStore):
    def __init__(self, round_: Round):
        self._round = round_
        self._lock = threading.RLock()

    def read(self) -> Round:
        with self._lock:
            return self._round.copy()

    def run_transaction(self, handler: Callable[[Round], T]) -> T:
        with self._lock:
            working = self._round.copy()
            result = handler(working)
            self._round = working
            return result


def _optional_int(value) -> Optional[int]:
    return None if value is None else int(value)


def _round_from_row(row: dict, players: list[str]) -> Round:
    recent_winner = None
    if row.get("recent_winner"):
        recent_winner = RecentWinner(
            winner=row["recent_winner"],
            pot=int(row["recent_winner_pot"] or 0),
            paid_at=int(row["recent_winner_paid_at"] or 0),
        )
    return Round(
        entrance_fee=int(row["entrance_fee"]),
        interval=int(row["interval_seconds"]),
        last_close_timestamp=int(row["last_close_timestamp"]),
        state=RaffleState(int(row["state"])),
        players=players,
        pot=int(row["pot"]),
        pending_request_id=_optional_int(row.get("pending_request_id")),
        recent_winner=recent_winner,
    )


class PostgresRoundStore(RoundStore):
    def __init__(self, raffle_id: str):
        self.raffle_id = raffle_id

    def initialize(self, round_: Round) -> Round:
        """Create the round row on first start. An existing row is kept as is."""

        def _handler(conn):
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO raffle_rounds (
                    id, state, entrance_fee, interval_seconds, pot, last_close_timestamp
                ) VALUES (%s, %s, %s, %s, %s, %s)
                ON CONFLICT (id) DO NOTHING
                """,
                (
                    self.raffle_id,
                    int(round_.state),
                    round_.entrance_fee,
                    round_.interval,
                    round_.pot,
                    round_.last_close_timestamp,
                ),
            )
            created = cur.rowcount == 1
            cur.close()
            return created

        if run_transaction(_handler):
            logger.info("Created raffle round %s", self.raffle_id)
            return round_
        stored = self.read()
        if (stored.entrance_fee, stored.interval) != (round_.entrance_fee, round_.interval):
            logger.warning(
                "Raffle %s keeps its stored fee %s and interval %s",
                self.raffle_id,
                stored.entrance_fee,
                stored.interval,
            )
        return stored

    def read(self) -> Round:
        row = fetch_one(f"SELECT {_ROUND_COLUMNS} FROM raffle_rounds WHERE id = %s", (self.raffle_id,))
        if not row:
            raise RuntimeError(f"Raffle round {self.raffle_id} is not initialized")
        rows = fetch_all(
            "SELECT participant FROM raffle_players WHERE round_id = %s ORDER BY position ASC",
            (self.raffle_id,),
        )
        return _round_from_row(row, [player_row["participant"] for player_row in rows])

    def run_transaction(self, handler: Callable[[Round], T]) -> T:
        def _handler(conn):
            cur = conn.cursor()
            cur.execute(
                f"SELECT {_ROUND_COLUMNS} FROM raffle_rounds WHERE id = %s FOR UPDATE",
                (self.raffle_id,),
            )
            row = cur.fetchone()
            if not row:
                cur.close()
                raise RuntimeError(f"Raffle round {self.raffle_id} is not initialized")
            columns = [col[0] for col in cur.description]
            cur.execute(
                "SELECT participant FROM raffle_players WHERE round_id = %s ORDER BY position ASC",
                (self.raffle_id,),
            )
            stored_players = [player_row[0] for player_row in cur.fetchall()]
            round_ = _round_from_row(dict(zip(columns, row)), list(stored_players))

            result = handler(round_)

            self._save(cur, round_, stored_players)
            cur.close()
            return result

        return run_transaction(_handler)

    def _save(self, cur, round_: Round, stored_players: list[str]) -> None:
        winner = round_.recent_winner
        cur.execute(
            """
            UPDATE raffle_rounds
            SET state = %s,
                pot = %s,
                last_close_timestamp = %s,
                pending_request_id = %s,
                recent_winner = %s,
                recent_winner_pot = %s,
                recent_winner_paid_at = %s,
                updated_at = now()
            WHERE id = %s
            """,
            (
                int(round_.state),
                round_.pot,
                round_.last_close_timestamp,
                round_.pending_request_id,
                winner.winner if winner else None,
                winner.pot if winner else None,
                winner.paid_at if winner else None,
                self.raffle_id,
            ),
        )
        start = len(stored_players)
        if round_.players[:start] != stored_players:
            cur.execute("DELETE FROM raffle_players WHERE round_id = %s", (self.raffle_id,))
            start = 0
        for position in range(start, len(round_.players)):
            cur.execute(
                "INSERT INTO raffle_players (round_id, position, participant) VALUES (%s, %s, %s)",
                (self.raffle_id, position, round_.players[position]),
            )
