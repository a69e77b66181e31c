"""Raffle error kinds.

Every error carries a stable ``code``, an HTTP ``status_code`` used by the
API exception handler and an optional diagnostic ``payload``.
"""

from __future__ import annotations

from typing import Any, Optional


class RaffleError(Exception):
    """Base exception for all raffle operations."""

    code = "raffle_error"
    status_code = 400

    def __init__(self, message: str, payload: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.payload = payload or {}

    def to_detail(self) -> dict[str, Any]:
        return {"error": self.code, "message": self.message, **self.payload}


class NotEnoughPaid(RaffleError):
    """Raised when an entry pays less than the entrance fee."""

    code = "not_enough_paid"
    status_code = 400

    def __init__(self, amount_paid: int, entrance_fee: int):
        self.amount_paid = amount_paid
        self.entrance_fee = entrance_fee
        super().__init__(
            f"Paid {amount_paid}, entrance fee is {entrance_fee}",
            {"amount_paid": amount_paid, "entrance_fee": entrance_fee},
        )


class RoundNotOpen(RaffleError):
    """Raised when entering while a winner is being calculated."""

    code = "round_not_open"
    status_code = 409

    def __init__(self, state: str):
        self.state = state
        super().__init__("Raffle is not open", {"state": state})


class UpkeepNotNeeded(RaffleError):
    code = "upkeep_not_needed"
    status_code = 409

    def __init__(self, balance: int, num_players: int, state: int):
        self.balance = balance
        self.num_players = num_players
        self.state = state
        super().__init__(
            "Upkeep not needed",
            {"balance": balance, "num_players": num_players, "raffle_state": state},
        )


class UnknownRequest(RaffleError):
    """Raised when a delivery does not match the pending randomness request."""

    code = "unknown_request"
    status_code = 404

    def __init__(self, request_id: int, pending_request_id: Optional[int]):
        self.request_id = request_id
        self.pending_request_id = pending_request_id
        super().__init__(f"Unknown randomness request {request_id}", {"request_id": request_id})


class OnlyOracleCanFulfill(RaffleError):
    code = "only_oracle_can_fulfill"
    status_code = 403

    def __init__(self, have: str, want: str):
        self.have = have
        self.want = want
        super().__init__(f"Caller {have!r} is not the randomness oracle")


class PayoutFailed(RaffleError):
    """Raised when the pot cannot be transferred to the winner."""

    code = "payout_failed"
    status_code = 502

    def __init__(self, winner: str, amount: int, reason: str = ""):
        self.winner = winner
        self.amount = amount
        super().__init__(
            f"Transfer of {amount} to {winner} failed" + (f": {reason}" if reason else ""),
            {"winner": winner, "amount": amount},
        )


class OracleRequestFailed(RaffleError):
    code = "oracle_request_failed"
    status_code = 502

    def __init__(self, reason: str):
        super().__init__(f"Randomness request failed: {reason}")


class PlayerNotFound(RaffleError):
    code = "player_not_found"
    status_code = 404

    def __init__(self, index: int, num_players: int):
        self.index = index
        super().__init__(
            f"No player at index {index}", {"index": index, "num_players": num_players}
        )
