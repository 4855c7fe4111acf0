"""Lending eligibility rules - credit limits, borrow gating, repayment pricing"""

from typing import List, Optional

from credit_gateway.domain.exceptions import IneligibleToBorrow, IneligibleToRepay
from credit_gateway.domain.models import (
    BorrowDenialReason,
    LedgerAccount,
    LendingPosition,
    LoanRecord,
    RepayDenialReason,
)

MIN_BORROW_SCORE = 300
CREDIT_LIMIT_MULTIPLIER = 10
# micro-units (6 decimals) to native units (18 decimals)
NATIVE_SCALE = 10**12


def credit_limit(score: int) -> int:
    """Credit limit in whole currency units"""
    return score * CREDIT_LIMIT_MULTIPLIER


def has_outstanding_loan(loan: Optional[LoanRecord]) -> bool:
    return loan is not None and loan.is_outstanding


def available_to_borrow(score: int, loan: Optional[LoanRecord]) -> int:
    """Half the credit limit, or nothing while a loan is outstanding"""
    if has_outstanding_loan(loan):
        return 0
    return credit_limit(score) // 2


def can_borrow(score: int, loan: Optional[LoanRecord]) -> bool:
    return score >= MIN_BORROW_SCORE and not has_outstanding_loan(loan)


def borrow_denial_reasons(address: str, score: int, loan: Optional[LoanRecord]) -> List[BorrowDenialReason]:
    """Every unmet borrow condition, in a stable order"""
    reasons = []
    if not address:
        reasons.append(BorrowDenialReason.NO_ADDRESS)
    if score < MIN_BORROW_SCORE:
        reasons.append(BorrowDenialReason.SCORE_TOO_LOW)
    if has_outstanding_loan(loan):
        reasons.append(BorrowDenialReason.OUTSTANDING_LOAN)
    return reasons


def check_borrow(address: str, score: int, loan: Optional[LoanRecord]) -> None:
    """
    Raises:
        IneligibleToBorrow: With every unmet condition
    """
    reasons = borrow_denial_reasons(address, score, loan)
    if reasons:
        raise IneligibleToBorrow(reasons)


def check_repay(loan: Optional[LoanRecord]) -> LoanRecord:
    """
    Return the outstanding loan.

    Raises:
        IneligibleToRepay: If there is nothing to repay
    """
    if not has_outstanding_loan(loan):
        raise IneligibleToRepay([RepayDenialReason.NO_OUTSTANDING_LOAN])
    return loan


def repayment_amount(loan_amount: int, exchange_rate: int) -> int:
    """
    Convert a micro-unit loan amount into native units at a fixed price.

    paymentAmount = loan_amount * 10^12 / exchange_rate, rounded up.

    Rounding up keeps the conversion exactly reversible through
    payment_to_loan_amount() for any rate up to 10^12, and never underpays a
    ledger that checks payment * rate >= amount * 10^12.

    Example:
        1_000_000 ($1.00) at $3000 → 333_333_333_333_334 (not ...333)
    """
    if exchange_rate <= 0:
        raise ValueError("exchange_rate must be positive")
    if loan_amount < 0:
        raise ValueError("loan_amount must be non-negative")
    return -(-loan_amount * NATIVE_SCALE // exchange_rate)


def payment_to_loan_amount(payment_amount: int, exchange_rate: int) -> int:
    """Inverse of repayment_amount(): native units back to micro-units"""
    if exchange_rate <= 0:
        raise ValueError("exchange_rate must be positive")
    return payment_amount * exchange_rate // NATIVE_SCALE


def evaluate_position(address: str, account: LedgerAccount, exchange_rate: int) -> LendingPosition:
    """Derive the full lending view for a fresh ledger read"""
    outstanding = has_outstanding_loan(account.loan)
    return LendingPosition(
        address=address,
        score=account.score,
        credit_limit=credit_limit(account.score),
        available_to_borrow=available_to_borrow(account.score, account.loan),
        can_borrow=can_borrow(account.score, account.loan),
        has_outstanding_loan=outstanding,
        denial_reasons=borrow_denial_reasons(address, account.score, account.loan),
        loan=account.loan,
        repayment_amount=repayment_amount(account.loan.amount, exchange_rate) if outstanding else None,
    )
