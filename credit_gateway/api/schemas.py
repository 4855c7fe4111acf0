"""Pydantic schemas for API responses"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from credit_gateway.domain.models import LoanRecord


class CamelModel(BaseModel):
    """Serialize with the camelCase keys the dashboard expects"""

    model_config = ConfigDict(populate_by_name=True)


class SyncData(CamelModel):
    address: str
    volume: float = Field(description="Synced volume in whole currency units")
    trade_count: int = Field(alias="tradeCount")
    confirmation_id: str = Field(alias="confirmationId")


class SyncResponse(BaseModel):
    """Response for POST /update-score/{address}"""

    success: bool = True
    data: SyncData


class TradingDataResponse(CamelModel):
    """Response for GET /trading-data/{address}"""

    volume: float
    trade_count: int = Field(alias="tradeCount")


class LoanSchema(CamelModel):
    amount: int = Field(description="Loan amount in micro-units")
    amount_usd: float = Field(alias="amountUsd")
    due_date: int = Field(alias="dueDate", description="Epoch seconds")
    repaid: bool

    @classmethod
    def from_record(cls, loan: Optional[LoanRecord]) -> Optional["LoanSchema"]:
        if loan is None:
            return None
        return cls(amount=loan.amount, amount_usd=float(loan.amount_usd), due_date=loan.due_date, repaid=loan.repaid)


class LendingPositionResponse(CamelModel):
    """Response for GET /lending/{address}"""

    address: str
    score: int
    credit_limit: int = Field(alias="creditLimit")
    available_to_borrow: int = Field(alias="availableToBorrow")
    can_borrow: bool = Field(alias="canBorrow")
    has_outstanding_loan: bool = Field(alias="hasOutstandingLoan")
    denial_reasons: List[str] = Field(alias="denialReasons")
    loan: Optional[LoanSchema] = None
    repayment_amount: Optional[str] = Field(
        default=None,
        alias="repaymentAmount",
        description="Native units as a decimal string (exceeds JSON integer precision)",
    )


class BorrowData(CamelModel):
    address: str
    loan: LoanSchema
    confirmation_id: str = Field(alias="confirmationId")


class BorrowResponse(BaseModel):
    """Response for POST /borrow/{address}"""

    success: bool = True
    data: BorrowData


class RepayData(CamelModel):
    address: str
    payment_amount: str = Field(alias="paymentAmount")
    loan: LoanSchema
    confirmation_id: str = Field(alias="confirmationId")


class RepayResponse(BaseModel):
    """Response for POST /repay/{address}"""

    success: bool = True
    data: RepayData
