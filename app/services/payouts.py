from __future__ import annotations

import abc
import logging
import threading
from collections import defaultdict
from typing import Iterable, Optional

import requests

from app.core.errors import PayoutFailed

logger = logging.getLogger(__name__)


class PayoutGateway(abc.ABC):
    @abc.abstractmethod
    def transfer(self, recipient: str, amount: int, reference: str) -> None:
        """Move ``amount`` to ``recipient``. Raise on any failure.

        A resolution whose state fails to commit is retried with the same
        ``reference``, so implementations must treat a reference they have
        already paid as done and not move the funds again.
        """


class BalanceBook(PayoutGateway):
    """In-process balances. Recipients listed in ``rejecting`` refuse funds.

    Transfers are deduplicated on ``reference``.
    """

    def __init__(self, rejecting: Iterable[str] = ()):
        self._balances: defaultdict[str, int] = defaultdict(int)
        self._rejecting = set(rejecting)
        self._transfers: list[tuple[str, int, str]] = []
        self._paid_references: set[str] = set()
        self._lock = threading.Lock()

    def refuse(self, recipient: str) -> None:
        with self._lock:
            self._rejecting.add(recipient)

    def accept(self, recipient: str) -> None:
        with self._lock:
            self._rejecting.discard(recipient)

    def transfer(self, recipient: str, amount: int, reference: str) -> None:
        with self._lock:
            if reference in self._paid_references:
                logger.info("Transfer %s already paid, skipping", reference)
                return
            if recipient in self._rejecting:
                raise PayoutFailed(recipient, amount, "recipient refused funds")
            self._balances[recipient] += amount
            self._transfers.append((recipient, amount, reference))
            self._paid_references.add(reference)

    def balance_of(self, recipient: str) -> int:
        with self._lock:
            return self._balances.get(recipient, 0)

    def transfers(self) -> list[tuple[str, int, str]]:
        with self._lock:
            return list(self._transfers)


class HttpPayoutGateway(PayoutGateway):
    def __init__(self, url: str, timeout: float = 10, session: Optional[requests.Session] = None):
        self.url = url
        self.timeout = timeout
        self._session = session or requests.Session()

    def transfer(self, recipient: str, amount: int, reference: str) -> None:
        response = self._session.post(
            self.url,
            json={"recipient": recipient, "amount": amount, "reference": reference},
            timeout=self.timeout,
        )
        response.raise_for_status()
