"""Lending position, borrow, and repay endpoints"""

import time

from fastapi import APIRouter, Depends, Request

from credit_gateway.api.dependencies import get_address, get_lending_service, get_request_id
from credit_gateway.api.schemas import (
    BorrowData,
    BorrowResponse,
    LendingPositionResponse,
    LoanSchema,
    RepayData,
    RepayResponse,
)
from credit_gateway.domain.exceptions import DomainException
from credit_gateway.infrastructure.observability.logging import log_lending_action
from credit_gateway.services.lending import LendingService

router = APIRouter()


@router.get("/lending/{address}", response_model=LendingPositionResponse)
async def get_lending_position(
    address: str = Depends(get_address),
    lending: LendingService = Depends(get_lending_service),
):
    """
    Credit limit, borrow eligibility, and repayment quote from fresh ledger state.

    Returns:
        Position with repaymentAmount in native units when a loan is outstanding
    """
    position = await lending.get_position(address)
    return LendingPositionResponse(
        address=position.address,
        score=position.score,
        credit_limit=position.credit_limit,
        available_to_borrow=position.available_to_borrow,
        can_borrow=position.can_borrow,
        has_outstanding_loan=position.has_outstanding_loan,
        denial_reasons=[r.value for r in position.denial_reasons],
        loan=LoanSchema.from_record(position.loan),
        repayment_amount=str(position.repayment_amount) if position.repayment_amount is not None else None,
    )


@router.post("/borrow/{address}", response_model=BorrowResponse)
async def borrow(
    request: Request,
    address: str = Depends(get_address),
    lending: LendingService = Depends(get_lending_service),
):
    """Open a loan sized by the ledger, if the address is eligible"""
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        outcome = await lending.borrow(address)
    except DomainException as e:
        log_lending_action(request_id, address, "borrow", type(e).__name__, (time.time() - start_time) * 1000)
        raise

    log_lending_action(
        request_id, address, "borrow", "confirmed", (time.time() - start_time) * 1000, outcome.confirmation_id
    )
    return BorrowResponse(
        data=BorrowData(
            address=outcome.address,
            loan=LoanSchema.from_record(outcome.loan),
            confirmation_id=outcome.confirmation_id,
        )
    )


@router.post("/repay/{address}", response_model=RepayResponse)
async def repay(
    request: Request,
    address: str = Depends(get_address),
    lending: LendingService = Depends(get_lending_service),
):
    """Repay the outstanding loan at the configured native asset price"""
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        outcome = await lending.repay(address)
    except DomainException as e:
        log_lending_action(request_id, address, "repay", type(e).__name__, (time.time() - start_time) * 1000)
        raise

    log_lending_action(
        request_id, address, "repay", "confirmed", (time.time() - start_time) * 1000, outcome.confirmation_id
    )
    return RepayResponse(
        data=RepayData(
            address=outcome.address,
            payment_amount=str(outcome.payment_amount),
            loan=LoanSchema.from_record(outcome.loan),
            confirmation_id=outcome.confirmation_id,
        )
    )
