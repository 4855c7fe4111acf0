"""Domain-specific exceptions"""

from typing import Iterable, Optional

from credit_gateway.domain.models import ActionKind, BorrowDenialReason, RepayDenialReason


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class DataSourceException(DomainException):
    """Trading data could not be acquired"""

    pass


class DataSourceUnavailable(DataSourceException):
    """Upstream trading source unreachable, timed out, or refused credentials"""

    pass


class DataSourceError(DataSourceException):
    """Upstream trading source returned a malformed payload"""

    pass


class LedgerError(DomainException):
    """Base exception for ledger interactions"""

    pass


class LedgerRejected(LedgerError):
    """Ledger refused a write or the write reverted"""

    pass


class LedgerTimeout(LedgerError):
    """Confirmation was not observed in time; the write may still land"""

    pass


class LedgerUnavailable(LedgerError):
    """Ledger state could not be read"""

    pass


class SyncFailed(DomainException):
    """Score synchronization failed; wraps the underlying cause"""

    def __init__(self, cause: DomainException):
        self.cause = cause
        super().__init__(f"Score sync failed: {cause}")

    @property
    def indeterminate(self) -> bool:
        """True when the ledger write may still have landed"""
        return isinstance(self.cause, LedgerTimeout)


class IneligibleToBorrow(DomainException):
    """Borrow gate failed"""

    def __init__(self, reasons: Iterable[BorrowDenialReason]):
        self.reasons = list(reasons)
        super().__init__("Ineligible to borrow: " + ", ".join(r.value for r in self.reasons))


class IneligibleToRepay(DomainException):
    """Repay gate failed"""

    def __init__(self, reasons: Iterable[RepayDenialReason]):
        self.reasons = list(reasons)
        super().__init__("Ineligible to repay: " + ", ".join(r.value for r in self.reasons))


class ActionInProgress(DomainException):
    """Another mutating action is already running for this session"""

    def __init__(self, current: Optional[ActionKind] = None):
        self.current = current
        label = current.value if current else "another action"
        super().__init__(f"Action already in progress: {label}")
