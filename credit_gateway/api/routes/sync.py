"""POST /update-score/{address} and GET /trading-data/{address}"""

import logging
import time

from fastapi import APIRouter, Depends, Request

from credit_gateway.api.dependencies import get_address, get_request_id, get_sync_orchestrator
from credit_gateway.api.schemas import SyncData, SyncResponse, TradingDataResponse
from credit_gateway.domain.exceptions import SyncFailed
from credit_gateway.infrastructure.observability.logging import log_sync
from credit_gateway.services.sync import SyncOrchestrator

router = APIRouter()


@router.post("/update-score/{address}", response_model=SyncResponse)
async def update_score(
    request: Request,
    address: str = Depends(get_address),
    orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator),
):
    """
    Push fresh trading metrics for an address to the ledger.

    Flow:
    1. Acquire trading metrics from the configured provider
    2. Submit them to the ledger, which recomputes the score
    3. Wait for confirmation and return what was submitted

    A 500 caused by a ledger timeout is indeterminate: re-read the ledger
    before retrying.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        result = await orchestrator.sync_score(address)
    except SyncFailed as e:
        log_sync(request_id, address, type(e.cause).__name__, (time.time() - start_time) * 1000)
        raise

    log_sync(
        request_id,
        address,
        "confirmed",
        (time.time() - start_time) * 1000,
        trade_count=result.trade_count,
        confirmation_id=result.confirmation_id,
    )

    return SyncResponse(
        data=SyncData(
            address=result.address,
            volume=float(result.volume_usd),
            trade_count=result.trade_count,
            confirmation_id=result.confirmation_id,
        )
    )


@router.get("/trading-data/{address}", response_model=TradingDataResponse)
async def get_trading_data(
    address: str = Depends(get_address),
    orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator),
):
    """Current trading metrics for an address, without touching the ledger"""
    metrics = await orchestrator.fetch_trading_data(address)
    logging.debug("Trading data fetched", extra={"address": address, "trade_count": metrics.trade_count})
    return TradingDataResponse(volume=float(metrics.volume_usd), trade_count=metrics.trade_count)
