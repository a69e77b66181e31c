"""Randomness oracle collaborators.

The raffle only ever calls ``request_random_words``. Delivery comes back
through ``Raffle.on_randomness_delivered`` with the oracle's ``address``
as the caller.
"""

from __future__ import annotations

import abc
import hashlib
import logging
import threading
from typing import TYPE_CHECKING, Optional, Sequence

import requests

from app.core.errors import UnknownRequest
from app.models.round import OracleRequestParams, RecentWinner

if TYPE_CHECKING:
    from app.services.raffle import Raffle

logger = logging.getLogger(__name__)


class RandomnessOracle(abc.ABC):
    address: str

    @abc.abstractmethod
    def request_random_words(self, params: OracleRequestParams) -> int:
        """Submit a request and return the oracle-issued request id."""


class LocalRandomnessOracle(RandomnessOracle):
    """Deterministic in-process oracle for tests and local runs."""

    def __init__(self, address: str = "local-oracle"):
        self.address = address
        self._next_request_id = 1
        self._requests: dict[int, OracleRequestParams] = {}
        self._lock = threading.Lock()

    def request_random_words(self, params: OracleRequestParams) -> int:
        with self._lock:
            request_id = self._next_request_id
            self._next_request_id += 1
            self._requests[request_id] = params
        logger.info("Local oracle accepted request %s", request_id)
        return request_id

    @property
    def last_request_id(self) -> Optional[int]:
        with self._lock:
            return self._next_request_id - 1 if self._next_request_id > 1 else None

    def pending_requests(self) -> list[int]:
        with self._lock:
            return sorted(self._requests)

    @staticmethod
    def derive_words(request_id: int, num_words: int) -> list[int]:
        return [
            int(hashlib.sha256(f"{request_id}:{index}".encode("utf-8")).hexdigest(), 16)
            for index in range(num_words)
        ]

    def fulfill(
        self,
        request_id: int,
        raffle: "Raffle",
        words: Optional[Sequence[int]] = None,
    ) -> RecentWinner:
        with self._lock:
            params = self._requests.get(request_id)
        if params is None:
            raise LookupError(f"nonexistent request {request_id}")
        if words is None:
            words = self.derive_words(request_id, params.num_words)
        try:
            result = raffle.on_randomness_delivered(request_id, list(words), caller=self.address)
        except UnknownRequest:
            # a request whose close rolled back can never be delivered
            logger.warning("Local oracle dropping request %s unknown to the raffle", request_id)
            self._forget(request_id)
            raise
        self._forget(request_id)
        return result

    def _forget(self, request_id: int) -> None:
        with self._lock:
            self._requests.pop(request_id, None)


class HttpRandomnessOracle(RandomnessOracle):
    def __init__(
        self,
        url: str,
        address: str,
        consumer: str,
        callback_url: str = "",
        timeout: float = 10,
        session: Optional[requests.Session] = None,
    ):
        if not url:
            raise RuntimeError("ORACLE_URL is required for the http oracle")
        self.url = url.rstrip("/")
        self.address = address
        self.consumer = consumer
        self.callback_url = callback_url
        self.timeout = timeout
        self._session = session or requests.Session()

    def request_random_words(self, params: OracleRequestParams) -> int:
        payload = {
            "consumer": self.consumer,
            "callback_url": self.callback_url or None,
            "key_hash": params.key_hash,
            "subscription_id": params.subscription_id,
            "request_confirmations": params.request_confirmations,
            "callback_gas_limit": params.callback_gas_limit,
            "num_words": params.num_words,
        }
        response = self._session.post(f"{self.url}/requests", json=payload, timeout=self.timeout)
        response.raise_for_status()
        body = response.json()
        if "request_id" not in body:
            raise RuntimeError("Oracle response is missing request_id")
        return int(body["request_id"])
