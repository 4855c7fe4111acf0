"""Pytest fixtures for testing"""

from typing import Callable, List

import httpx
import pytest
from fastapi.testclient import TestClient

from credit_gateway.api.dependencies import get_lending_service, get_sync_orchestrator
from credit_gateway.api.main import create_app
from credit_gateway.domain.models import TradingMetrics
from credit_gateway.infrastructure.clients.ledger import LedgerClient
from credit_gateway.infrastructure.clients.trading_data import TradingDataProvider
from credit_gateway.services.lending import LendingService
from credit_gateway.services.serializer import SessionRegistry
from credit_gateway.services.sync import SyncOrchestrator
from mock_services.ledger_server.main import LedgerSettings, create_app as create_ledger_app

ADDRESS = "0x52908400098527886e0f7030069857d2e4169ee7"
MIXED_CASE_ADDRESS = "0x52908400098527886E0F7030069857D2E4169EE7"
DEAD_ADDRESS = "0x000000000000000000000000000000000000dEaD"


class FixedTradingDataProvider(TradingDataProvider):
    """Returns the same metrics for every address and counts calls"""

    def __init__(self, metrics: TradingMetrics):
        self.metrics = metrics
        self.calls: List[str] = []

    async def acquire(self, address: str) -> TradingMetrics:
        self.calls.append(address)
        return self.metrics


@pytest.fixture
def sessions() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def make_ledger_app() -> Callable:
    """Factory for isolated in-memory mock ledgers"""

    def factory(**overrides):
        return create_ledger_app(LedgerSettings(database_url="sqlite://", **overrides))

    return factory


@pytest.fixture
def ledger_app(make_ledger_app):
    return make_ledger_app()


def ledger_client_for(app, **kwargs) -> LedgerClient:
    """LedgerClient wired in-process to a mock ledger app"""
    kwargs.setdefault("confirmation_timeout", 2.0)
    kwargs.setdefault("poll_interval", 0.01)
    kwargs.setdefault("poll_max_interval", 0.05)
    return LedgerClient(
        base_url="http://ledger.test",
        transport=httpx.ASGITransport(app=app),
        **kwargs,
    )


@pytest.fixture
def ledger_client(ledger_app) -> LedgerClient:
    return ledger_client_for(ledger_app)


@pytest.fixture
def good_metrics() -> TradingMetrics:
    """$2000 volume over 50 trades → score 450"""
    return TradingMetrics(volume=2_000_000_000, trade_count=50)


@pytest.fixture
def client_factory() -> Callable[..., TestClient]:
    """Gateway test client with injected orchestrator and lending service"""

    def factory(
        orchestrator: SyncOrchestrator | None = None,
        lending: LendingService | None = None,
        **client_kwargs,
    ) -> TestClient:
        app = create_app()
        if orchestrator is not None:
            app.dependency_overrides[get_sync_orchestrator] = lambda: orchestrator
        if lending is not None:
            app.dependency_overrides[get_lending_service] = lambda: lending
        return TestClient(app, **client_kwargs)

    return factory
