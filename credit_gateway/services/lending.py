"""Borrow and repay workflows gated by ledger-fresh eligibility checks"""

import logging

from credit_gateway.config import settings
from credit_gateway.domain.exceptions import DomainException, IneligibleToBorrow, IneligibleToRepay, LedgerRejected
from credit_gateway.domain.lending import check_borrow, check_repay, evaluate_position, has_outstanding_loan, repayment_amount
from credit_gateway.domain.models import ActionKind, BorrowDenialReason, BorrowOutcome, LendingPosition, RepayOutcome
from credit_gateway.infrastructure.clients.ledger import LedgerClient
from credit_gateway.infrastructure.observability.metrics import lending_action_counter
from credit_gateway.services.serializer import SessionRegistry
from credit_gateway.utils.addresses import normalize_address

logger = logging.getLogger(__name__)


class LendingService:
    """
    Borrow/repay against the ledger.

    Every gated mutation re-reads ledger state first; nothing is cached
    between calls. The ledger performs loan sizing and price checks itself.
    """

    def __init__(self, ledger: LedgerClient, sessions: SessionRegistry, exchange_rate: int | None = None):
        self.ledger = ledger
        self.sessions = sessions
        self.exchange_rate = exchange_rate or settings.native_asset_price

    async def get_position(self, address: str) -> LendingPosition:
        address = normalize_address(address)
        account = await self.ledger.get_account(address)
        return evaluate_position(address, account, self.exchange_rate)

    async def borrow(self, address: str) -> BorrowOutcome:
        """
        Open a loan if the address is eligible.

        Raises:
            ActionInProgress: Another mutating action is running for this address
            IneligibleToBorrow: Score below 300, outstanding loan, or no address
            LedgerRejected: Ledger refused the borrow or did not record a loan
            LedgerTimeout: Confirmation not observed in time
            LedgerUnavailable: Ledger state could not be read
        """
        address = normalize_address(address)
        if not address:
            raise IneligibleToBorrow([BorrowDenialReason.NO_ADDRESS])

        with self.sessions.guard(address, ActionKind.BORROW):
            try:
                account = await self.ledger.get_account(address)
                check_borrow(address, account.score, account.loan)

                tx_id = await self.ledger.submit_borrow(address)
                receipt = await self.ledger.wait_for_confirmation(tx_id)

                account = await self.ledger.get_account(address)
                if not has_outstanding_loan(account.loan):
                    raise LedgerRejected(f"Borrow {tx_id} confirmed but no outstanding loan is recorded")

            except IneligibleToBorrow as e:
                lending_action_counter.labels(action="borrow", outcome="ineligible").inc()
                logger.info(f"Borrow denied for {address}: {e}")
                raise
            except DomainException:
                lending_action_counter.labels(action="borrow", outcome="failed").inc()
                raise

        lending_action_counter.labels(action="borrow", outcome="confirmed").inc()
        return BorrowOutcome(address=address, loan=account.loan, confirmation_id=receipt.confirmation_id)

    async def repay(self, address: str) -> RepayOutcome:
        """
        Repay the outstanding loan at the configured native asset price.

        A ledger configured with a different price rejects underpayment; that
        surfaces as LedgerRejected with no reconciliation attempted.

        Raises:
            ActionInProgress: Another mutating action is running for this address
            IneligibleToRepay: No outstanding loan
            LedgerRejected: Ledger refused the payment or left the loan open
            LedgerTimeout: Confirmation not observed in time
            LedgerUnavailable: Ledger state could not be read
        """
        address = normalize_address(address)

        with self.sessions.guard(address, ActionKind.REPAY):
            try:
                account = await self.ledger.get_account(address)
                loan = check_repay(account.loan)
                payment = repayment_amount(loan.amount, self.exchange_rate)

                tx_id = await self.ledger.submit_repay(address, payment)
                receipt = await self.ledger.wait_for_confirmation(tx_id)

                account = await self.ledger.get_account(address)
                if account.loan is None or not account.loan.repaid:
                    raise LedgerRejected(f"Repay {tx_id} confirmed but the loan is still open")

            except IneligibleToRepay as e:
                lending_action_counter.labels(action="repay", outcome="ineligible").inc()
                logger.info(f"Repay denied for {address}: {e}")
                raise
            except DomainException:
                lending_action_counter.labels(action="repay", outcome="failed").inc()
                raise

        lending_action_counter.labels(action="repay", outcome="confirmed").inc()
        return RepayOutcome(
            address=address,
            payment_amount=payment,
            loan=account.loan,
            confirmation_id=receipt.confirmation_id,
        )
