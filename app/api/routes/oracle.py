from fastapi import APIRouter, Depends, HTTPException

from app.api.dependencies import get_raffle, require_oracle
from app.models.schemas import FulfillRequest, FulfillResponse
from app.services.raffle import Raffle

router = APIRouter(prefix="/oracle", tags=["oracle"])


@router.post("/fulfill", response_model=FulfillResponse)
def fulfill_random_words(
    payload: FulfillRequest,
    caller: str = Depends(require_oracle),
    raffle: Raffle = Depends(get_raffle),
):
    if not payload.random_words:
        raise HTTPException(status_code=400, detail="random_words must not be empty")
    record = raffle.on_randomness_delivered(payload.request_id, payload.random_words, caller=caller)
    return {
        "request_id": payload.request_id,
        "winner": record.winner,
        "pot": record.pot,
        "paid_at": record.paid_at,
    }
