from __future__ import annotations

import secrets
import threading
from typing import Optional

from fastapi import Header, HTTPException

from app.core.config import db_configured, settings
from app.db.store import InMemoryRoundStore, PostgresRoundStore
from app.models.round import OracleRequestParams
from app.services.oracle import HttpRandomnessOracle, LocalRandomnessOracle, RandomnessOracle
from app.services.payouts import BalanceBook, HttpPayoutGateway, PayoutGateway
from app.services.raffle import Raffle, new_round

_RAFFLE: Optional[Raffle] = None
_RAFFLE_LOCK = threading.Lock()


def require_db() -> None:
    if not db_configured():
        raise HTTPException(status_code=500, detail="Database is not configured")


def _build_oracle() -> RandomnessOracle:
    if settings.oracle_mode == "local":
        return LocalRandomnessOracle(address=settings.oracle_address)
    if settings.oracle_mode == "http":
        return HttpRandomnessOracle(
            settings.oracle_url,
            address=settings.oracle_address,
            consumer=settings.raffle_id,
            callback_url=settings.oracle_callback_url,
            timeout=settings.oracle_timeout_seconds,
        )
    raise RuntimeError(f"Unknown ORACLE_MODE: {settings.oracle_mode}")


def _build_payouts() -> PayoutGateway:
    if settings.payout_url:
        return HttpPayoutGateway(settings.payout_url, timeout=settings.oracle_timeout_seconds)
    return BalanceBook()


def build_raffle() -> Raffle:
    params = OracleRequestParams(
        key_hash=settings.oracle_key_hash,
        subscription_id=settings.oracle_subscription_id,
        request_confirmations=settings.oracle_request_confirmations,
        callback_gas_limit=settings.oracle_callback_gas_limit,
        num_words=settings.oracle_num_words,
    )
    oracle = _build_oracle()
    payouts = _build_payouts()
    if settings.store_backend == "memory":
        return Raffle.in_memory(
            settings.entrance_fee, settings.raffle_interval_seconds, oracle, payouts, params
        )
    if settings.store_backend == "postgres":
        if not db_configured():
            raise RuntimeError("Database configuration is missing")
        raffle = Raffle(PostgresRoundStore(settings.raffle_id), oracle, payouts, params)
        raffle.store.initialize(
            new_round(settings.entrance_fee, settings.raffle_interval_seconds, raffle.now())
        )
        return raffle
    raise RuntimeError(f"Unknown STORE_BACKEND: {settings.store_backend}")


def get_raffle() -> Raffle:
    global _RAFFLE
    if _RAFFLE is not None:
        return _RAFFLE
    with _RAFFLE_LOCK:
        if _RAFFLE is None:
            _RAFFLE = build_raffle()
    return _RAFFLE


def require_oracle(x_oracle_token: Optional[str] = Header(None)) -> str:
    """Authenticate the oracle callback and return the caller identity."""
    if not settings.oracle_callback_token:
        raise HTTPException(status_code=503, detail="Oracle callback is not configured")
    if not x_oracle_token or not secrets.compare_digest(
        x_oracle_token, settings.oracle_callback_token
    ):
        raise HTTPException(status_code=401, detail="Invalid oracle token")
    return settings.oracle_address
