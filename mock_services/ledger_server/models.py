"""SQLAlchemy ORM models for the mock ledger"""

import uuid

from sqlalchemy import JSON, BigInteger, Boolean, Column, DateTime, Integer, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class Account(Base):
    """Latest submitted trading metrics and the score derived from them"""

    __tablename__ = "ledger_account"

    address = Column(Text, primary_key=True)
    volume = Column(BigInteger, nullable=False, default=0)
    trade_count = Column(Integer, nullable=False, default=0)
    score = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class Loan(Base):
    """One loan record per address, overwritten by the next borrow"""

    __tablename__ = "ledger_loan"

    address = Column(Text, primary_key=True)
    amount = Column(BigInteger, nullable=False)
    due_date = Column(BigInteger, nullable=False)
    repaid = Column(Boolean, nullable=False, default=False)


class LedgerTransaction(Base):
    """Submitted write and its confirmation status"""

    __tablename__ = "ledger_transaction"

    id = Column(Text, primary_key=True, default=lambda: "0x" + uuid.uuid4().hex)
    kind = Column(Text, nullable=False)  # score_update | borrow | repay
    address = Column(Text, nullable=False, index=True)
    payload = Column(JSON, nullable=False)
    status = Column(Text, nullable=False, default="pending")
    reason = Column(Text, nullable=True)
    polls_remaining = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
