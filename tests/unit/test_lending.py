"""Unit tests for lending eligibility and repayment pricing"""

import pytest

from credit_gateway.domain.exceptions import IneligibleToBorrow, IneligibleToRepay
from credit_gateway.domain.lending import (
    available_to_borrow,
    borrow_denial_reasons,
    can_borrow,
    check_borrow,
    check_repay,
    credit_limit,
    evaluate_position,
    has_outstanding_loan,
    payment_to_loan_amount,
    repayment_amount,
)
from credit_gateway.domain.models import BorrowDenialReason, LedgerAccount, LoanRecord, RepayDenialReason

ADDRESS = "0x52908400098527886e0f7030069857d2e4169ee7"
OPEN_LOAN = LoanRecord(amount=1_000_000, due_date=1_700_000_000, repaid=False)
REPAID_LOAN = LoanRecord(amount=1_000_000, due_date=1_700_000_000, repaid=True)


def test_credit_limit_is_ten_times_score():
    assert credit_limit(0) == 0
    assert credit_limit(450) == 4500
    assert credit_limit(1000) == 10_000


def test_outstanding_loan_requires_amount_and_unrepaid():
    assert has_outstanding_loan(OPEN_LOAN)
    assert not has_outstanding_loan(REPAID_LOAN)
    assert not has_outstanding_loan(LoanRecord(amount=0, due_date=0, repaid=False))
    assert not has_outstanding_loan(None)


def test_cannot_borrow_below_300():
    for score in range(0, 300):
        assert not can_borrow(score, None)


def test_can_borrow_from_300_without_loan():
    assert can_borrow(300, None)
    assert can_borrow(1000, REPAID_LOAN)


def test_outstanding_loan_blocks_borrow_at_any_score():
    for score in (0, 300, 450, 1000):
        assert not can_borrow(score, OPEN_LOAN)


def test_available_to_borrow_half_limit_or_zero():
    for score in (0, 299, 300, 451, 1000):
        assert available_to_borrow(score, None) == credit_limit(score) // 2
        assert available_to_borrow(score, REPAID_LOAN) == credit_limit(score) // 2
        assert available_to_borrow(score, OPEN_LOAN) == 0


def test_denial_reasons_list_every_unmet_condition():
    assert borrow_denial_reasons("", 100, OPEN_LOAN) == [
        BorrowDenialReason.NO_ADDRESS,
        BorrowDenialReason.SCORE_TOO_LOW,
        BorrowDenialReason.OUTSTANDING_LOAN,
    ]
    assert borrow_denial_reasons(ADDRESS, 450, OPEN_LOAN) == [BorrowDenialReason.OUTSTANDING_LOAN]
    assert borrow_denial_reasons(ADDRESS, 450, None) == []


def test_check_borrow_raises_with_reasons():
    with pytest.raises(IneligibleToBorrow) as exc_info:
        check_borrow(ADDRESS, 299, None)
    assert exc_info.value.reasons == [BorrowDenialReason.SCORE_TOO_LOW]

    check_borrow(ADDRESS, 300, None)


def test_check_repay_requires_outstanding_loan():
    assert check_repay(OPEN_LOAN) is OPEN_LOAN

    for loan in (None, REPAID_LOAN):
        with pytest.raises(IneligibleToRepay) as exc_info:
            check_repay(loan)
        assert exc_info.value.reasons == [RepayDenialReason.NO_OUTSTANDING_LOAN]


def test_repayment_amount_exact_division():
    """$3 at $3000 per native unit = 0.001 native = 10^15"""
    assert repayment_amount(3_000_000, 3000) == 10**15


def test_repayment_amount_rounds_up():
    """$1 at $3000 = 333333333333333.33… → rounded up so the ledger is never underpaid"""
    payment = repayment_amount(1_000_000, 3000)

    assert payment == 333_333_333_333_334
    assert payment * 3000 >= 1_000_000 * 10**12


@pytest.mark.parametrize("rate", [1, 3, 7, 1999, 3000, 65_537, 10**12])
@pytest.mark.parametrize("amount", [0, 1, 2, 999_999, 1_000_000, 2_250_000_000, 5_000_000_001])
def test_repayment_conversion_reversible(amount: int, rate: int):
    assert payment_to_loan_amount(repayment_amount(amount, rate), rate) == amount


def test_repayment_amount_rejects_bad_rate():
    with pytest.raises(ValueError):
        repayment_amount(1_000_000, 0)
    with pytest.raises(ValueError):
        payment_to_loan_amount(1, -5)


def test_evaluate_position_with_outstanding_loan():
    account = LedgerAccount(address=ADDRESS, score=450, volume=0, trade_count=0, loan=OPEN_LOAN)
    position = evaluate_position(ADDRESS, account, 3000)

    assert position.credit_limit == 4500
    assert position.available_to_borrow == 0
    assert position.can_borrow is False
    assert position.has_outstanding_loan is True
    assert position.denial_reasons == [BorrowDenialReason.OUTSTANDING_LOAN]
    assert position.repayment_amount == repayment_amount(OPEN_LOAN.amount, 3000)


def test_evaluate_position_eligible():
    account = LedgerAccount(address=ADDRESS, score=450, volume=2_000_000_000, trade_count=50)
    position = evaluate_position(ADDRESS, account, 3000)

    assert position.can_borrow is True
    assert position.available_to_borrow == 2250
    assert position.denial_reasons == []
    assert position.repayment_amount is None
