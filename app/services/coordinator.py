from __future__ import annotations

import logging

from app.core.errors import OracleRequestFailed, RaffleError, UpkeepNotNeeded
from app.models.round import OracleRequestParams, RaffleState, Round
from app.services.oracle import RandomnessOracle
from app.services.upkeep import check_upkeep

logger = logging.getLogger(__name__)


def close_round(
    round_: Round,
    oracle: RandomnessOracle,
    params: OracleRequestParams,
    now: int,
) -> int:
    """Move the round to CALCULATING and record the oracle's request id.

    The eligibility check is repeated here so a second call while
    CALCULATING fails instead of issuing another request.
    """
    check = check_upkeep(round_, now)
    if not check.upkeep_needed:
        raise UpkeepNotNeeded(check.balance, check.num_players, int(check.state))

    round_.state = RaffleState.CALCULATING
    try:
        request_id = oracle.request_random_words(params)
    except RaffleError:
        raise
    except Exception as exc:
        logger.exception("Randomness request to %s failed", oracle.address)
        raise OracleRequestFailed(str(exc) or exc.__class__.__name__) from exc
    round_.pending_request_id = request_id
    return request_id
