"""Automated trigger for the raffle service.

Polls the upkeep check over HTTP and performs the upkeep when the round is
eligible to close. Runs outside the service process.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from typing import Optional

import requests

logger = logging.getLogger("autoraffle.keeper")

DEFAULT_BASE_URL = "http://localhost:8000/autoraffle"


class Keeper:
    def __init__(self, base_url: str, timeout: float = 10, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def check(self) -> dict:
        response = self._session.get(f"{self.base_url}/raffle/upkeep", timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def run_once(self) -> Optional[int]:
        """Perform upkeep if needed. Returns the request id, or None when skipped."""
        check = self.check()
        if not check.get("upkeep_needed"):
            logger.info(
                "Upkeep not needed: players=%s balance=%s state=%s due_in=%ss",
                check.get("num_players"),
                check.get("balance"),
                check.get("raffle_state"),
                check.get("seconds_until_due"),
            )
            return None
        response = self._session.post(f"{self.base_url}/raffle/upkeep", timeout=self.timeout)
        if response.status_code == 409:
            # Another keeper closed the round between check and perform.
            logger.info("Upkeep rejected by the service: %s", response.json().get("detail"))
            return None
        response.raise_for_status()
        request_id = int(response.json()["request_id"])
        logger.info("Round closed, randomness request %s", request_id)
        return request_id

    def run_forever(self, poll_seconds: float) -> None:
        while True:
            try:
                self.run_once()
            except requests.RequestException as exc:
                logger.error("Keeper poll failed: %s", exc)
            time.sleep(poll_seconds)


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Poll the raffle upkeep check and close due rounds")
    parser.add_argument("--base-url", default=os.getenv("RAFFLE_BASE_URL", DEFAULT_BASE_URL))
    parser.add_argument("--poll-seconds", type=float, default=float(os.getenv("KEEPER_POLL_SECONDS", "15")))
    parser.add_argument("--timeout", type=float, default=10)
    parser.add_argument("--once", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    keeper = Keeper(args.base_url, timeout=args.timeout)
    if args.once:
        try:
            keeper.run_once()
        except requests.RequestException as exc:
            logger.error("Keeper poll failed: %s", exc)
            return 1
        return 0
    keeper.run_forever(args.poll_seconds)
    return 0


if __name__ == "__main__":
    sys.exit(main())
