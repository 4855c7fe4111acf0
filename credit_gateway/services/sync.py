"""Score synchronization - acquire trading metrics and commit them to the ledger"""

import asyncio
import logging

from credit_gateway.config import settings
from credit_gateway.domain.exceptions import (
    DataSourceException,
    DataSourceUnavailable,
    LedgerError,
    LedgerRejected,
    LedgerTimeout,
    SyncFailed,
)
from credit_gateway.domain.models import ActionKind, SyncResult, TradingMetrics
from credit_gateway.domain.scoring import calculate_score
from credit_gateway.infrastructure.clients.ledger import LedgerClient
from credit_gateway.infrastructure.clients.trading_data import TradingDataProvider
from credit_gateway.infrastructure.observability.metrics import record_sync
from credit_gateway.services.serializer import SessionRegistry
from credit_gateway.utils.addresses import normalize_address

logger = logging.getLogger(__name__)


class SyncOrchestrator:
    """Drives one end-to-end score update per call"""

    def __init__(
        self,
        provider: TradingDataProvider,
        ledger: LedgerClient,
        sessions: SessionRegistry,
        data_source_timeout: float | None = None,
    ):
        self.provider = provider
        self.ledger = ledger
        self.sessions = sessions
        self.data_source_timeout = data_source_timeout or settings.data_source_timeout_seconds

    async def fetch_trading_data(self, address: str) -> TradingMetrics:
        """
        Read-only acquisition; nothing is written to the ledger.

        Raises:
            DataSourceUnavailable: Upstream unreachable or too slow
            DataSourceError: Upstream payload malformed
        """
        address = normalize_address(address)
        try:
            return await asyncio.wait_for(self.provider.acquire(address), timeout=self.data_source_timeout)
        except asyncio.TimeoutError as e:
            raise DataSourceUnavailable(
                f"Trading data not received within {self.data_source_timeout}s"
            ) from e

    async def sync_score(self, address: str) -> SyncResult:
        """
        Sync the ledger's score inputs for an address.

        Flow:
        1. Normalize address and take the session guard
        2. Acquire trading metrics (no ledger contact if this fails)
        3. Submit metrics to the ledger once
        4. Wait for durable confirmation
        5. Return submitted metrics with the confirmation id

        Not idempotent: each call is a separate ledger write.

        Raises:
            ActionInProgress: Another mutating action is running for this address
            SyncFailed: Wrapping DataSourceUnavailable, DataSourceError,
                LedgerRejected, or LedgerTimeout
        """
        address = normalize_address(address)

        with self.sessions.guard(address, ActionKind.SYNC):
            try:
                metrics = await self.fetch_trading_data(address)
            except DataSourceException as e:
                record_sync("data_source_error")
                logger.warning(f"Trading data acquisition failed for {address}: {e}")
                raise SyncFailed(e) from e

            estimated_score = calculate_score(metrics)
            logger.info(
                "Submitting score update",
                extra={
                    "address": address,
                    "volume": metrics.volume,
                    "trade_count": metrics.trade_count,
                    "estimated_score": estimated_score,
                },
            )

            try:
                tx_id = await self.ledger.submit_score_update(address, metrics.volume, metrics.trade_count)
                receipt = await self.ledger.wait_for_confirmation(tx_id)
            except LedgerTimeout as e:
                record_sync("ledger_timeout")
                logger.warning(f"Score update for {address} unconfirmed, outcome indeterminate: {e}")
                raise SyncFailed(e) from e
            except LedgerRejected as e:
                record_sync("ledger_rejected")
                logger.error(f"Score update for {address} rejected: {e}")
                raise SyncFailed(e) from e
            except LedgerError as e:
                record_sync("ledger_rejected")
                raise SyncFailed(LedgerRejected(str(e))) from e

        record_sync("confirmed", estimated_score)
        return SyncResult(
            address=address,
            volume_usd=metrics.volume_usd,
            trade_count=metrics.trade_count,
            confirmation_id=receipt.confirmation_id,
        )

