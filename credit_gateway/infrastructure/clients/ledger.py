"""Ledger HTTP client - account reads, write submission, and confirmation polling"""

import asyncio
import logging
import time
from typing import Any, Dict, Optional

import httpx

from credit_gateway.config import settings
from credit_gateway.domain.exceptions import LedgerRejected, LedgerTimeout, LedgerUnavailable
from credit_gateway.domain.models import LedgerAccount, LedgerReceipt, LoanRecord
from credit_gateway.infrastructure.observability.metrics import (
    ledger_confirmation_histogram,
    ledger_failures_counter,
)

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_CONFIRMED = "confirmed"
STATUS_REJECTED = "rejected"


class LedgerClient:
    """Client for the authoritative score and loan ledger"""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        confirmation_timeout: float | None = None,
        poll_interval: float | None = None,
        poll_max_interval: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.ledger_base_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.ledger_api_key
        self.timeout = timeout or settings.http_timeout_seconds
        self.confirmation_timeout = confirmation_timeout or settings.ledger_confirmation_timeout_seconds
        self.poll_interval = poll_interval or settings.ledger_poll_interval_seconds
        self.poll_max_interval = poll_max_interval or settings.ledger_poll_max_interval_seconds
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout,
            transport=self.transport,
        )

    async def get_account(self, address: str) -> LedgerAccount:
        """
        Read current score, metrics, and loan for an address.

        Raises:
            LedgerUnavailable: On transport errors or an unreadable response
        """
        async with self._client() as client:
            try:
                response = await client.get(f"/accounts/{address}")
                response.raise_for_status()
                data = response.json()
                loan = data.get("loan")
                return LedgerAccount(
                    address=data["address"],
                    score=int(data["score"]),
                    volume=int(data["volume"]),
                    trade_count=int(data["trade_count"]),
                    loan=LoanRecord(
                        amount=int(loan["amount"]),
                        due_date=int(loan["due_date"]),
                        repaid=bool(loan["repaid"]),
                    )
                    if loan
                    else None,
                )

            except httpx.TimeoutException as e:
                ledger_failures_counter.labels(kind="unavailable").inc()
                raise LedgerUnavailable(f"Ledger read timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                ledger_failures_counter.labels(kind="unavailable").inc()
                raise LedgerUnavailable(f"Ledger read error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                ledger_failures_counter.labels(kind="unavailable").inc()
                raise LedgerUnavailable(f"Ledger unreachable: {e}") from e
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                ledger_failures_counter.labels(kind="unavailable").inc()
                raise LedgerUnavailable(f"Invalid account data from ledger: {e}") from e

    async def _submit(self, path: str, payload: Dict[str, Any]) -> str:
        """
        Submit a write once and return its transaction id.

        Writes are never retried here: a resubmission is a second write.

        Raises:
            LedgerRejected: Ledger refused the write or could not be reached
            LedgerTimeout: Submission timed out and may have been accepted
        """
        async with self._client() as client:
            try:
                response = await client.post(path, json=payload)
                response.raise_for_status()
                tx_id = response.json()["tx_id"]
                if tx_id in (None, ""):
                    raise KeyError("tx_id")
                return str(tx_id)

            except httpx.TimeoutException as e:
                ledger_failures_counter.labels(kind="timeout").inc()
                raise LedgerTimeout(f"Ledger submission to {path} timed out; outcome unknown") from e
            except httpx.HTTPStatusError as e:
                ledger_failures_counter.labels(kind="rejected").inc()
                raise LedgerRejected(f"Ledger rejected {path}: {_error_detail(e.response)}") from e
            except httpx.RequestError as e:
                ledger_failures_counter.labels(kind="rejected").inc()
                raise LedgerRejected(f"Ledger unreachable: {e}") from e
            except (KeyError, ValueError, TypeError) as e:
                # Accepted but unidentifiable: cannot be confirmed, so report as ambiguous
                ledger_failures_counter.labels(kind="timeout").inc()
                raise LedgerTimeout(f"Ledger accepted {path} without a transaction id") from e

    async def submit_score_update(self, address: str, volume: int, trade_count: int) -> str:
        return await self._submit(
            "/score-updates",
            {"address": address, "volume": volume, "trade_count": trade_count},
        )

    async def submit_borrow(self, address: str) -> str:
        return await self._submit("/loans/borrow", {"address": address})

    async def submit_repay(self, address: str, payment_amount: int) -> str:
        return await self._submit(
            "/loans/repay",
            {"address": address, "payment_amount": payment_amount},
        )

    async def get_transaction_status(self, tx_id: str) -> Dict[str, Any]:
        async with self._client() as client:
            response = await client.get(f"/transactions/{tx_id}")
            response.raise_for_status()
            return response.json()

    async def wait_for_confirmation(self, tx_id: str, timeout: Optional[float] = None) -> LedgerReceipt:
        """
        Poll until the write is durably confirmed.

        Retry strategy:
        - Poll interval doubles after each pending or failed poll: 0.5s, 1s, 2s, 4s (capped)
        - Transient poll errors are retried until the deadline
        - Deadline expiry raises LedgerTimeout; the write may still confirm later

        Raises:
            LedgerRejected: Ledger reported the write as rejected
            LedgerTimeout: No confirmation before the deadline
        """
        timeout = timeout or self.confirmation_timeout
        start = time.monotonic()
        try:
            receipt = await asyncio.wait_for(self._poll(tx_id), timeout=timeout)
        except asyncio.TimeoutError as e:
            ledger_failures_counter.labels(kind="timeout").inc()
            raise LedgerTimeout(
                f"Transaction {tx_id} not confirmed within {timeout}s; re-read ledger state"
            ) from e

        ledger_confirmation_histogram.observe(time.monotonic() - start)
        return receipt

    async def _poll(self, tx_id: str) -> LedgerReceipt:
        attempt = 0
        while True:
            try:
                data = await self.get_transaction_status(tx_id)
                status = data.get("status")

                if status == STATUS_CONFIRMED:
                    return LedgerReceipt(confirmation_id=tx_id, status=STATUS_CONFIRMED)
                if status == STATUS_REJECTED:
                    ledger_failures_counter.labels(kind="rejected").inc()
                    raise LedgerRejected(f"Transaction {tx_id} rejected: {data.get('reason') or 'no reason given'}")

            except (httpx.HTTPError, ValueError, AttributeError) as e:
                logger.warning(f"Confirmation poll failed for {tx_id}: {e}")

            # Exponential backoff: base, 2x, 4x, ... capped
            backoff = min(self.poll_max_interval, self.poll_interval * (2**attempt))
            attempt += 1
            await asyncio.sleep(backoff)


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(body, dict):
        return str(body.get("error") or body.get("detail") or f"HTTP {response.status_code}")
    return f"HTTP {response.status_code}"
