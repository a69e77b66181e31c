from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str
    time: datetime


class MigrationRunResponse(BaseModel):
    status: str
    applied_at: datetime


class RecentWinnerOut(BaseModel):
    winner: Optional[str] = None
    pot: int = 0
    paid_at: Optional[int] = None


class RaffleOut(BaseModel):
    state: str
    state_code: int
    players: list[str]
    number_of_players: int
    pot: int
    entrance_fee: int
    interval: int
    last_close_timestamp: int
    pending_request_id: Optional[int]
    num_words: int
    request_confirmations: int
    recent_winner: RecentWinnerOut


class EntryRequest(BaseModel):
    participant: str = Field(..., min_length=1, max_length=120)
    amount: int


class EntryResponse(BaseModel):
    participant: str
    position: int
    amount: int
    pot: int
    number_of_players: int


class PlayerOut(BaseModel):
    index: int
    participant: str


class UpkeepOut(BaseModel):
    upkeep_needed: bool
    is_open: bool
    time_passed: bool
    has_players: bool
    has_balance: bool
    balance: int
    num_players: int
    raffle_state: int
    seconds_until_due: int


class UpkeepPerformedResponse(BaseModel):
    request_id: int
    state: str


class FulfillRequest(BaseModel):
    request_id: int = Field(..., ge=0)
    random_words: list[int]


class FulfillResponse(BaseModel):
    request_id: int
    winner: str
    pot: int
    paid_at: int


class EventOut(BaseModel):
    name: str
    emitted_at: int
    data: dict[str, Any]
