"""Trading data providers - synthetic for development, OKX DEX API for production"""

import base64
import hashlib
import hmac
import logging
import random
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from credit_gateway.config import Settings, settings
from credit_gateway.domain.exceptions import DataSourceError, DataSourceUnavailable
from credit_gateway.domain.models import MAX_VOLUME, MICRO_UNITS, TradingMetrics
from credit_gateway.infrastructure.observability.metrics import data_source_failures_counter

logger = logging.getLogger(__name__)

SYNTHETIC_MAX_VOLUME_USD = 50_000
SYNTHETIC_MAX_TRADES = 100
TRANSACTION_LIMIT = 100


class TradingDataProvider(ABC):
    """Source of raw trading metrics for an address"""

    @abstractmethod
    async def acquire(self, address: str) -> TradingMetrics:
        """
        Fetch current trading metrics.

        Raises:
            DataSourceUnavailable: Upstream unreachable or refused the request
            DataSourceError: Upstream returned a malformed payload
        """


class SyntheticTradingDataProvider(TradingDataProvider):
    """
    Pseudo-random metrics for non-production deployments.

    Addresses containing the zero marker always get empty metrics, which makes
    the zero-score path reachable from a demo wallet. With a seed configured,
    each address gets the same metrics on every call.
    """

    def __init__(self, zero_marker: str = "dead", seed: str | None = None):
        self.zero_marker = zero_marker.lower()
        self.seed = seed

    def _rng(self, address: str) -> random.Random:
        if self.seed is None:
            return random.Random()
        return random.Random(f"{self.seed}:{address}")

    async def acquire(self, address: str) -> TradingMetrics:
        address = address.lower()
        if self.zero_marker and self.zero_marker in address:
            return TradingMetrics(volume=0, trade_count=0)

        rng = self._rng(address)
        volume_usd = rng.randint(0, SYNTHETIC_MAX_VOLUME_USD)
        trade_count = rng.randrange(SYNTHETIC_MAX_TRADES)
        return TradingMetrics(volume=volume_usd * MICRO_UNITS, trade_count=trade_count)


class OKXTradingDataProvider(TradingDataProvider):
    """Client for the OKX DEX transaction history API"""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        secret_key: str | None = None,
        passphrase: str | None = None,
        chain_id: str | None = None,
        timeout: float | None = None,
        strict: bool | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.okx_base_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.okx_api_key
        self.secret_key = secret_key if secret_key is not None else settings.okx_secret_key
        self.passphrase = passphrase if passphrase is not None else settings.okx_passphrase
        self.chain_id = chain_id or settings.chain_id
        self.timeout = timeout or settings.http_timeout_seconds
        self.strict = settings.strict_amount_parsing if strict is None else strict
        self.transport = transport

    def _sign(self, timestamp: str, method: str, request_path: str) -> str:
        """base64(HMAC-SHA256(secret, timestamp + method + path?query))"""
        message = f"{timestamp}{method}{request_path}".encode("utf-8")
        digest = hmac.new(self.secret_key.encode("utf-8"), message, hashlib.sha256).digest()
        return base64.b64encode(digest).decode("ascii")

    async def acquire(self, address: str) -> TradingMetrics:
        """
        Sum up to 100 recent transactions for the address.

        Raises:
            DataSourceUnavailable: On timeout, transport, or HTTP errors
            DataSourceError: On a payload that is not the expected shape
        """
        params = {"address": address, "chains": self.chain_id, "limit": str(TRANSACTION_LIMIT)}

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            request = client.build_request("GET", f"{self.base_url}/transactions-by-address", params=params)
            timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
            request.headers.update(
                {
                    "OK-ACCESS-KEY": self.api_key,
                    "OK-ACCESS-SIGN": self._sign(timestamp, "GET", request.url.raw_path.decode("ascii")),
                    "OK-ACCESS-TIMESTAMP": timestamp,
                    "OK-ACCESS-PASSPHRASE": self.passphrase,
                    "Content-Type": "application/json",
                }
            )
            try:
                response = await client.send(request)
                response.raise_for_status()
            except httpx.TimeoutException as e:
                data_source_failures_counter.labels(kind="unavailable").inc()
                raise DataSourceUnavailable(f"OKX API timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                data_source_failures_counter.labels(kind="unavailable").inc()
                raise DataSourceUnavailable(f"OKX API error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                data_source_failures_counter.labels(kind="unavailable").inc()
                raise DataSourceUnavailable(f"OKX API unreachable: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            data_source_failures_counter.labels(kind="malformed").inc()
            raise DataSourceError("OKX API returned a non-JSON body") from e

        try:
            return self._parse(payload)
        except DataSourceError:
            data_source_failures_counter.labels(kind="malformed").inc()
            raise

    def _parse(self, payload: Any) -> TradingMetrics:
        if not isinstance(payload, dict):
            raise DataSourceError("OKX API response is not an object")

        code = payload.get("code", "0")
        if str(code) != "0":
            raise DataSourceError(f"OKX API error code {code}: {payload.get('msg', '')}")

        data = payload.get("data")
        if data is None:
            return TradingMetrics(volume=0, trade_count=0)
        if not isinstance(data, list):
            raise DataSourceError("OKX API 'data' is not a list")
        if not data:
            return TradingMetrics(volume=0, trade_count=0)

        first = data[0]
        if not isinstance(first, dict):
            raise DataSourceError("OKX API 'data[0]' is not an object")

        transactions = first.get("transactionList")
        if transactions is None:
            return TradingMetrics(volume=0, trade_count=0)
        if not isinstance(transactions, list):
            raise DataSourceError("OKX API 'transactionList' is not a list")

        volume = sum(self._amount_micro(tx) for tx in transactions)
        if volume > MAX_VOLUME:
            raise DataSourceError(f"OKX API volume {volume} exceeds {MAX_VOLUME} micro-units")
        return TradingMetrics(volume=volume, trade_count=len(transactions))

    def _amount_micro(self, tx: Any) -> int:
        """Transaction amount in micro-units; unparseable amounts count as zero unless strict"""
        raw = tx.get("amount") if isinstance(tx, dict) else None
        if raw is None or raw == "":
            if self.strict:
                raise DataSourceError(f"Transaction missing amount: {tx!r}")
            return 0

        try:
            amount = Decimal(str(raw))
            if not amount.is_finite():
                raise InvalidOperation(raw)
            return int(abs(amount) * MICRO_UNITS)
        except ArithmeticError as e:
            # InvalidOperation and Overflow are both ArithmeticError
            if self.strict:
                raise DataSourceError(f"Unusable transaction amount: {raw!r}") from e
            logger.debug("Ignoring unusable transaction amount", extra={"amount": str(raw)})
            return 0


def build_trading_data_provider(config: Settings | None = None) -> TradingDataProvider:
    """Select the provider once at startup from configuration"""
    config = config or settings
    if config.data_source_mode == "live":
        return OKXTradingDataProvider(
            base_url=config.okx_base_url,
            api_key=config.okx_api_key,
            secret_key=config.okx_secret_key,
            passphrase=config.okx_passphrase,
            chain_id=config.chain_id,
            timeout=config.http_timeout_seconds,
            strict=config.strict_amount_parsing,
        )
    return SyntheticTradingDataProvider(zero_marker=config.zero_marker, seed=config.synthetic_seed)
