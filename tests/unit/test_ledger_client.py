"""Unit tests for the ledger HTTP client"""

import json

import httpx
import pytest

from credit_gateway.domain.exceptions import LedgerRejected, LedgerTimeout, LedgerUnavailable
from credit_gateway.domain.models import LoanRecord
from credit_gateway.infrastructure.clients.ledger import LedgerClient

ADDRESS = "0x52908400098527886e0f7030069857d2e4169ee7"


def make_client(handler, **kwargs) -> LedgerClient:
    kwargs.setdefault("confirmation_timeout", 1.0)
    kwargs.setdefault("poll_interval", 0.01)
    kwargs.setdefault("poll_max_interval", 0.02)
    return LedgerClient(base_url="http://ledger.test", api_key="ledger-key", transport=httpx.MockTransport(handler), **kwargs)


async def test_get_account_parses_loan():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == f"/accounts/{ADDRESS}"
        assert request.headers["Authorization"] == "Bearer ledger-key"
        return httpx.Response(
            200,
            json={
                "address": ADDRESS,
                "score": 450,
                "volume": 2_000_000_000,
                "trade_count": 50,
                "loan": {"amount": 1_000_000, "due_date": 1_700_000_000, "repaid": False},
            },
        )

    account = await make_client(handler).get_account(ADDRESS)

    assert account.score == 450
    assert account.trade_count == 50
    assert account.loan == LoanRecord(amount=1_000_000, due_date=1_700_000_000, repaid=False)


async def test_get_account_without_loan():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"address": ADDRESS, "score": 0, "volume": 0, "trade_count": 0, "loan": None})

    account = await make_client(handler).get_account(ADDRESS)

    assert account.loan is None


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, json={"detail": "boom"}),
        httpx.Response(200, json={"address": ADDRESS}),
        httpx.Response(200, content=b"not json"),
    ],
)
async def test_get_account_failures_are_unavailable(response: httpx.Response):
    def handler(request: httpx.Request) -> httpx.Response:
        return response

    with pytest.raises(LedgerUnavailable):
        await make_client(handler).get_account(ADDRESS)


async def test_submit_score_update_posts_metrics_once():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(202, json={"tx_id": "0xabc", "status": "pending"})

    tx_id = await make_client(handler).submit_score_update(ADDRESS, 2_000_000_000, 50)

    assert tx_id == "0xabc"
    assert len(requests) == 1
    assert requests[0].url.path == "/score-updates"
    assert json.loads(requests[0].content) == {"address": ADDRESS, "volume": 2_000_000_000, "trade_count": 50}


async def test_submit_rejection_carries_ledger_reason():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(409, json={"detail": "outstanding loan exists"})

    with pytest.raises(LedgerRejected, match="outstanding loan exists"):
        await make_client(handler).submit_borrow(ADDRESS)


async def test_submit_connection_error_is_rejected_and_not_retried():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(LedgerRejected):
        await make_client(handler).submit_repay(ADDRESS, 10**15)
    assert len(calls) == 1


async def test_submit_timeout_is_indeterminate():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(LedgerTimeout):
        await make_client(handler).submit_score_update(ADDRESS, 0, 0)


async def test_submit_repay_sends_payment_amount():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(202, json={"tx_id": "0xrepay", "status": "confirmed"})

    await make_client(handler).submit_repay(ADDRESS, 333_333_333_333_334)

    assert seen["body"] == {"address": ADDRESS, "payment_amount": 333_333_333_333_334}


async def test_wait_for_confirmation_polls_until_confirmed():
    statuses = iter(["pending", "pending", "confirmed"])
    polls = []

    def handler(request: httpx.Request) -> httpx.Response:
        polls.append(request.url.path)
        return httpx.Response(200, json={"tx_id": "0xabc", "status": next(statuses)})

    receipt = await make_client(handler).wait_for_confirmation("0xabc")

    assert receipt.confirmation_id == "0xabc"
    assert receipt.status == "confirmed"
    assert polls == ["/transactions/0xabc"] * 3


async def test_wait_for_confirmation_survives_transient_poll_errors():
    responses = iter(
        [
            httpx.Response(503, json={"detail": "overloaded"}),
            httpx.Response(200, content=b"garbage"),
            httpx.Response(200, json={"tx_id": "0xabc", "status": "confirmed"}),
        ]
    )

    def handler(request: httpx.Request) -> httpx.Response:
        return next(responses)

    receipt = await make_client(handler).wait_for_confirmation("0xabc")

    assert receipt.status == "confirmed"


async def test_wait_for_confirmation_rejected():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"tx_id": "0xabc", "status": "rejected", "reason": "insufficient repayment"})

    with pytest.raises(LedgerRejected, match="insufficient repayment"):
        await make_client(handler).wait_for_confirmation("0xabc")


async def test_wait_for_confirmation_times_out():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"tx_id": "0xabc", "status": "pending"})

    with pytest.raises(LedgerTimeout, match="re-read ledger state"):
        await make_client(handler).wait_for_confirmation("0xabc", timeout=0.1)


@pytest.mark.parametrize(
    "body",
    [
        {"tx_id": None, "status": "pending"},
        {"tx_id": "", "status": "pending"},
        {"status": "pending"},
    ],
)
async def test_submit_without_transaction_id_is_indeterminate(body):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request.url.path)
        return httpx.Response(202, json=body)

    with pytest.raises(LedgerTimeout, match="without a transaction id"):
        await make_client(handler).submit_score_update(ADDRESS, 0, 0)
    assert requests == ["/score-updates"]
