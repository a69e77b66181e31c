from __future__ import annotations

from dataclasses import dataclass

from app.models.round import RaffleState, Round


@dataclass(frozen=True)
class UpkeepCheck:
    upkeep_needed: bool
    is_open: bool
    time_passed: bool
    has_players: bool
    has_balance: bool
    balance: int
    num_players: int
    state: RaffleState
    seconds_until_due: int


def check_upkeep(round_: Round, now: int) -> UpkeepCheck:
    """Evaluate whether the round may be closed. Never mutates ``round_``."""
    elapsed = now - round_.last_close_timestamp
    is_open = round_.state == RaffleState.OPEN
    time_passed = elapsed >= round_.interval
    has_players = len(round_.players) > 0
    has_balance = round_.pot > 0
    return UpkeepCheck(
        upkeep_needed=is_open and time_passed and has_players and has_balance,
        is_open=is_open,
        time_passed=time_passed,
        has_players=has_players,
        has_balance=has_balance,
        balance=round_.pot,
        num_players=len(round_.players),
        state=round_.state,
        seconds_until_due=max(round_.interval - elapsed, 0),
    )


def is_eligible_to_close(round_: Round, now: int) -> bool:
    return check_upkeep(round_, now).upkeep_needed
