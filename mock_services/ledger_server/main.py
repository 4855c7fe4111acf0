"""
Mock ledger for local development and end-to-end tests.

Implements the ledger boundary the gateway talks to: account reads, score
updates, borrow, repay, and transaction confirmation. Scores are recomputed
from submitted metrics with the same rule the gateway documents.

Run with:
    uvicorn --factory mock_services.ledger_server.main:create_app --port 8545
"""

import time
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from credit_gateway.domain.lending import NATIVE_SCALE, available_to_borrow, can_borrow, has_outstanding_loan
from credit_gateway.domain.models import MICRO_UNITS, LoanRecord, TradingMetrics
from credit_gateway.domain.scoring import calculate_score
from mock_services.ledger_server.models import Account, Base, LedgerTransaction, Loan


class LedgerSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="MOCK_LEDGER_", env_file=".env", extra="ignore")

    database_url: str = "sqlite:///./ledger.db"
    api_key: str = ""
    native_asset_price: int = 3000
    loan_duration_seconds: int = 30 * 24 * 3600
    confirmation_polls: int = 0  # status polls a write stays pending before it applies


class ScoreUpdateRequest(BaseModel):
    address: str
    volume: int = Field(..., ge=0)
    trade_count: int = Field(..., ge=0)


class BorrowRequest(BaseModel):
    address: str


class RepayRequest(BaseModel):
    address: str
    payment_amount: int = Field(..., ge=0)


class LedgerRejection(Exception):
    pass


def _loan_record(loan: Optional[Loan]) -> Optional[LoanRecord]:
    if loan is None:
        return None
    return LoanRecord(amount=loan.amount, due_date=loan.due_date, repaid=loan.repaid)


def _score_of(db: Session, address: str) -> int:
    account = db.get(Account, address)
    return account.score if account else 0


def validate(db: Session, tx: LedgerTransaction, config: LedgerSettings) -> None:
    """Invariant checks; raise LedgerRejection when the write must revert"""
    if tx.kind == "borrow":
        loan = _loan_record(db.get(Loan, tx.address))
        if not can_borrow(_score_of(db, tx.address), loan):
            if has_outstanding_loan(loan):
                raise LedgerRejection("outstanding loan exists")
            raise LedgerRejection("score below minimum")

    elif tx.kind == "repay":
        loan = db.get(Loan, tx.address)
        if not has_outstanding_loan(_loan_record(loan)):
            raise LedgerRejection("no outstanding loan")
        payment = int(tx.payload["payment_amount"])
        if payment * config.native_asset_price < loan.amount * NATIVE_SCALE:
            raise LedgerRejection("insufficient repayment")


def apply(db: Session, tx: LedgerTransaction, config: LedgerSettings) -> None:
    """Apply a validated write"""
    if tx.kind == "score_update":
        metrics = TradingMetrics(volume=tx.payload["volume"], trade_count=tx.payload["trade_count"])
        account = db.get(Account, tx.address)
        if account is None:
            account = Account(address=tx.address)
            db.add(account)
        account.volume = metrics.volume
        account.trade_count = metrics.trade_count
        account.score = calculate_score(metrics)

    elif tx.kind == "borrow":
        loan = db.get(Loan, tx.address)
        amount = available_to_borrow(_score_of(db, tx.address), _loan_record(loan)) * MICRO_UNITS
        if loan is None:
            loan = Loan(address=tx.address)
            db.add(loan)
        loan.amount = amount
        loan.due_date = int(time.time()) + config.loan_duration_seconds
        loan.repaid = False

    elif tx.kind == "repay":
        db.get(Loan, tx.address).repaid = True


def settle(db: Session, tx: LedgerTransaction, config: LedgerSettings) -> None:
    """Re-validate and apply a write, marking it confirmed or rejected"""
    try:
        validate(db, tx, config)
    except LedgerRejection as e:
        tx.status = "rejected"
        tx.reason = str(e)
        return
    apply(db, tx, config)
    tx.status = "confirmed"


def create_app(config: Optional[LedgerSettings] = None) -> FastAPI:
    """Create the mock ledger application with its own database"""
    config = config or LedgerSettings()

    connect_args = {"check_same_thread": False} if config.database_url.startswith("sqlite") else {}
    engine_kwargs = {"poolclass": StaticPool} if config.database_url in ("sqlite://", "sqlite:///:memory:") else {}
    engine = create_engine(config.database_url, connect_args=connect_args, **engine_kwargs)
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    app = FastAPI(title="Mock Ledger", version="0.1.0")
    app.state.config = config
    app.state.engine = engine

    def get_db():
        db = SessionLocal()
        try:
            yield db
        finally:
            db.close()

    def require_auth(authorization: Optional[str] = Header(default=None)) -> None:
        if config.api_key and authorization != f"Bearer {config.api_key}":
            raise HTTPException(status_code=401, detail="invalid ledger credentials")

    def submit(db: Session, kind: str, address: str, payload: dict) -> dict:
        tx = LedgerTransaction(
            kind=kind,
            address=address.lower(),
            payload=payload,
            status="pending",
            polls_remaining=config.confirmation_polls,
        )
        try:
            validate(db, tx, config)
        except LedgerRejection as e:
            raise HTTPException(status_code=409, detail=str(e))

        db.add(tx)
        if tx.polls_remaining <= 0:
            settle(db, tx, config)
        db.commit()
        return {"tx_id": tx.id, "status": tx.status}

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.get("/accounts/{address}", dependencies=[Depends(require_auth)])
    def get_account(address: str, db: Session = Depends(get_db)):
        address = address.lower()
        account = db.get(Account, address)
        loan = db.get(Loan, address)
        return {
            "address": address,
            "score": account.score if account else 0,
            "volume": account.volume if account else 0,
            "trade_count": account.trade_count if account else 0,
            "loan": {"amount": loan.amount, "due_date": loan.due_date, "repaid": loan.repaid} if loan else None,
        }

    @app.post("/score-updates", status_code=202, dependencies=[Depends(require_auth)])
    def post_score_update(body: ScoreUpdateRequest, db: Session = Depends(get_db)):
        return submit(db, "score_update", body.address, {"volume": body.volume, "trade_count": body.trade_count})

    @app.post("/loans/borrow", status_code=202, dependencies=[Depends(require_auth)])
    def post_borrow(body: BorrowRequest, db: Session = Depends(get_db)):
        return submit(db, "borrow", body.address, {})

    @app.post("/loans/repay", status_code=202, dependencies=[Depends(require_auth)])
    def post_repay(body: RepayRequest, db: Session = Depends(get_db)):
        # Stored as a string: native amounts can exceed 64-bit JSON integers downstream
        return submit(db, "repay", body.address, {"payment_amount": str(body.payment_amount)})

    @app.get("/transactions/{tx_id}", dependencies=[Depends(require_auth)])
    def get_transaction(tx_id: str, db: Session = Depends(get_db)):
        tx = db.get(LedgerTransaction, tx_id)
        if tx is None:
            raise HTTPException(status_code=404, detail="transaction not found")

        if tx.status == "pending":
            tx.polls_remaining -= 1
            if tx.polls_remaining <= 0:
                settle(db, tx, config)
            db.commit()

        return {"tx_id": tx.id, "status": tx.status, "reason": tx.reason}

    return app
