"""SQLAlchemy database models for imported transactions and case risk"""
from datetime import datetime, timezone
from enum import Enum as PyEnum

from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, JSON, Enum, ForeignKey
from sqlalchemy.orm import declarative_base, relationship

from diligence_core.models.risk import FindingCategory, FindingSeverity, RiskLevel
from diligence_core.models.transaction import TransactionSource

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TransactionType(str, PyEnum):
    """Persisted transaction type; the upper case twin of ParsedTransactionType"""
    BUY = "BUY"
    SELL = "SELL"
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    TRANSFER = "TRANSFER"
    SWAP = "SWAP"
    STAKE = "STAKE"
    UNSTAKE = "UNSTAKE"
    REWARD = "REWARD"
    FEE = "FEE"
    OTHER = "OTHER"


class Transaction(Base):
    """
    A client transaction, imported from an exchange export or added otherwise.
    ``value`` is amount * price when both are known.
    """
    __tablename__ = 'transactions'

    id = Column(Integer, primary_key=True)
    client_id = Column(String, nullable=False, index=True)
    organization_id = Column(String, nullable=True, index=True)
    timestamp = Column(DateTime(timezone=True), nullable=False)
    type = Column(Enum(TransactionType), nullable=False)
    asset = Column(String, nullable=False)
    amount = Column(Float, nullable=False)
    price = Column(Float, nullable=True)
    fee = Column(Float, nullable=True)
    fee_asset = Column(String, nullable=True)
    value = Column(Float, nullable=True)
    exchange = Column(String, nullable=True)
    source = Column(Enum(TransactionSource), nullable=False, default=TransactionSource.MANUAL)
    raw_data = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)


class Case(Base):
    """
    Due diligence case. Only the cached risk snapshot lives here;
    it is rewritten whenever findings change.
    """
    __tablename__ = 'cases'

    id = Column(String, primary_key=True)
    client_id = Column(String, nullable=True, index=True)
    risk_score = Column(Integer, nullable=False, default=0)
    risk_level = Column(Enum(RiskLevel), nullable=False, default=RiskLevel.UNASSESSED)
    risk_assessed_at = Column(DateTime(timezone=True), nullable=True)

    findings = relationship('Finding', back_populates='case')


class Finding(Base):
    """Risk observation recorded against a case"""
    __tablename__ = 'findings'

    id = Column(Integer, primary_key=True)
    case_id = Column(String, ForeignKey('cases.id'), nullable=False, index=True)
    title = Column(String, nullable=False, default='')
    category = Column(Enum(FindingCategory), nullable=False)
    severity = Column(Enum(FindingSeverity), nullable=False)
    is_resolved = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    case = relationship('Case', back_populates='findings')
