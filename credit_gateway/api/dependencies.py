"""Dependency injection for FastAPI endpoints"""

from functools import lru_cache

from fastapi import HTTPException, Request

from credit_gateway.infrastructure.clients.ledger import LedgerClient
from credit_gateway.infrastructure.clients.trading_data import TradingDataProvider, build_trading_data_provider
from credit_gateway.services.lending import LendingService
from credit_gateway.services.serializer import SessionRegistry
from credit_gateway.services.sync import SyncOrchestrator
from credit_gateway.utils.addresses import is_valid_address, normalize_address


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_address(address: str) -> str:
    """Validate and normalize the {address} path parameter"""
    if not is_valid_address(address):
        raise HTTPException(status_code=400, detail=f"Invalid address: {address}")
    return normalize_address(address)


@lru_cache
def get_session_registry() -> SessionRegistry:
    """Process-wide session registry; one busy flag per address"""
    return SessionRegistry()


@lru_cache
def get_trading_data_provider() -> TradingDataProvider:
    """Provider chosen once from configuration"""
    return build_trading_data_provider()


def get_ledger_client() -> LedgerClient:
    """Provide Ledger client instance"""
    return LedgerClient()


def get_sync_orchestrator() -> SyncOrchestrator:
    return SyncOrchestrator(
        provider=get_trading_data_provider(),
        ledger=get_ledger_client(),
        sessions=get_session_registry(),
    )


def get_lending_service() -> LendingService:
    return LendingService(ledger=get_ledger_client(), sessions=get_session_registry())
