from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.dependencies import get_raffle
from app.models.round import RecentWinner, Round
from app.models.schemas import (
    EntryRequest,
    EntryResponse,
    EventOut,
    PlayerOut,
    RaffleOut,
    RecentWinnerOut,
    UpkeepOut,
    UpkeepPerformedResponse,
)
from app.services.raffle import Raffle

router = APIRouter(prefix="/raffle", tags=["raffle"])


def _winner_out(winner: Optional[RecentWinner]) -> dict:
    if winner is None:
        return {"winner": None, "pot": 0, "paid_at": None}
    return {"winner": winner.winner, "pot": winner.pot, "paid_at": winner.paid_at}


def _raffle_out(raffle: Raffle, round_: Round) -> dict:
    return {
        "state": round_.state.name,
        "state_code": int(round_.state),
        "players": round_.players,
        "number_of_players": len(round_.players),
        "pot": round_.pot,
        "entrance_fee": round_.entrance_fee,
        "interval": round_.interval,
        "last_close_timestamp": round_.last_close_timestamp,
        "pending_request_id": round_.pending_request_id,
        "num_words": raffle.get_num_words(),
        "request_confirmations": raffle.get_request_confirmations(),
        "recent_winner": _winner_out(round_.recent_winner),
    }


@router.get("", response_model=RaffleOut)
def get_raffle_state(raffle: Raffle = Depends(get_raffle)):
    return _raffle_out(raffle, raffle.snapshot())


@router.post("/entries", response_model=EntryResponse, status_code=201)
def enter_raffle(payload: EntryRequest, raffle: Raffle = Depends(get_raffle)):
    position = raffle.enter(payload.participant, payload.amount)
    round_ = raffle.snapshot()
    return {
        "participant": payload.participant,
        "position": position,
        "amount": payload.amount,
        "pot": round_.pot,
        "number_of_players": len(round_.players),
    }


@router.get("/players", response_model=list[str])
def list_players(raffle: Raffle = Depends(get_raffle)):
    return raffle.get_players()


@router.get("/players/{index}", response_model=PlayerOut)
def get_player(index: int, raffle: Raffle = Depends(get_raffle)):
    return {"index": index, "participant": raffle.get_player(index)}


@router.get("/winner", response_model=RecentWinnerOut)
def get_recent_winner(raffle: Raffle = Depends(get_raffle)):
    return _winner_out(raffle.get_recent_winner())


@router.get("/upkeep", response_model=UpkeepOut)
def check_upkeep(raffle: Raffle = Depends(get_raffle)):
    check = raffle.check_upkeep()
    return {
        "upkeep_needed": check.upkeep_needed,
        "is_open": check.is_open,
        "time_passed": check.time_passed,
        "has_players": check.has_players,
        "has_balance": check.has_balance,
        "balance": check.balance,
        "num_players": check.num_players,
        "raffle_state": int(check.state),
        "seconds_until_due": check.seconds_until_due,
    }


@router.post("/upkeep", response_model=UpkeepPerformedResponse)
def perform_upkeep(raffle: Raffle = Depends(get_raffle)):
    request_id = raffle.close_round()
    return {"request_id": request_id, "state": raffle.get_state().name}


@router.get("/events", response_model=list[EventOut])
def list_events(
    limit: int = Query(50, ge=1, le=200),
    name: Optional[str] = Query(None, description="Filter by event name"),
    raffle: Raffle = Depends(get_raffle),
):
    return [
        {"name": event.name, "emitted_at": event.emitted_at, "data": event.data}
        for event in raffle.events.recent(limit=limit, name=name)
    ]
