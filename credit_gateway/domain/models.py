"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import List, Optional

MICRO_UNITS = 10**6
# Ledger stores volume as an unsigned 64-bit integer
MAX_VOLUME = 2**64 - 1


class ActionKind(str, Enum):
    """Mutating operations serialized per session"""

    SYNC = "sync"
    BORROW = "borrow"
    REPAY = "repay"


class BorrowDenialReason(str, Enum):
    """Unmet conditions that block a borrow request"""

    NO_ADDRESS = "no_address"
    SCORE_TOO_LOW = "score_too_low"
    OUTSTANDING_LOAN = "outstanding_loan"


class RepayDenialReason(str, Enum):
    """Unmet conditions that block a repay request"""

    NO_OUTSTANDING_LOAN = "no_outstanding_loan"


@dataclass(frozen=True)
class TradingMetrics:
    """Raw trading activity for one address, volume in micro-units"""

    volume: int
    trade_count: int

    def __post_init__(self) -> None:
        if self.volume < 0 or self.trade_count < 0:
            raise ValueError("volume and trade_count must be non-negative")
        if self.volume > MAX_VOLUME:
            raise ValueError(f"volume exceeds {MAX_VOLUME} micro-units")

    @property
    def volume_usd(self) -> Decimal:
        return Decimal(self.volume) / MICRO_UNITS


@dataclass(frozen=True)
class ScoreBreakdown:
    """Components of a reputation score"""

    base: int
    volume_component: int
    frequency_component: int
    total: int


@dataclass(frozen=True)
class LoanRecord:
    """Loan state held by the ledger for one address"""

    amount: int  # micro-units
    due_date: int  # epoch seconds
    repaid: bool

    @property
    def is_outstanding(self) -> bool:
        return self.amount > 0 and not self.repaid

    @property
    def amount_usd(self) -> Decimal:
        return Decimal(self.amount) / MICRO_UNITS


@dataclass(frozen=True)
class LedgerAccount:
    """Ledger read view for one address"""

    address: str
    score: int
    volume: int
    trade_count: int
    loan: Optional[LoanRecord] = None


@dataclass(frozen=True)
class LedgerReceipt:
    """Durable confirmation of a ledger write"""

    confirmation_id: str
    status: str


@dataclass(frozen=True)
class SyncResult:
    """Outcome of one score synchronization"""

    address: str
    volume_usd: Decimal
    trade_count: int
    confirmation_id: str


@dataclass
class LendingPosition:
    """Eligibility view derived from the ledger's score and loan"""

    address: str
    score: int
    credit_limit: int
    available_to_borrow: int
    can_borrow: bool
    has_outstanding_loan: bool
    denial_reasons: List[BorrowDenialReason] = field(default_factory=list)
    loan: Optional[LoanRecord] = None
    repayment_amount: Optional[int] = None  # native units, only with an outstanding loan


@dataclass(frozen=True)
class BorrowOutcome:
    """Confirmed borrow"""

    address: str
    loan: LoanRecord
    confirmation_id: str


@dataclass(frozen=True)
class RepayOutcome:
    """Confirmed repayment"""

    address: str
    payment_amount: int
    loan: LoanRecord
    confirmation_id: str
