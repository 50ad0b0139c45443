"""Database storage service for imported transactions and case risk snapshots"""
import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from diligence_core.models.db import Case, Finding, Transaction, TransactionType
from diligence_core.models.risk import RiskBreakdown
from diligence_core.models.transaction import ParsedTransaction
from diligence_core.scoring import RiskScorer

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Base exception for storage service errors"""
    pass


def to_transaction_type(parsed: ParsedTransaction) -> TransactionType:
    return TransactionType(parsed.type.value.upper())


def transaction_value(parsed: ParsedTransaction) -> Optional[float]:
    """amount * price, or None unless both are known and non-zero"""
    if parsed.price and parsed.amount:
        return parsed.amount * parsed.price
    return None


class StorageService:
    """Handles all database operations"""

    def __init__(self, session: Session, scorer: Optional[RiskScorer] = None):
        if not session:
            raise ValueError("Database session is required")
        self.session = session
        self.scorer = scorer or RiskScorer()

    def store_transactions(
            self,
            client_id: str,
            organization_id: Optional[str],
            transactions: Iterable[ParsedTransaction],
            exchange: Optional[str] = None
    ) -> int:
        """
        Batch insert parsed transactions for a client.

        Args:
            client_id: Client the transactions belong to
            organization_id: Owning organization
            transactions: Parsed rows, usually ``ParseResult.transactions``
            exchange: Fallback exchange name for rows that carry none

        Returns:
            Number of rows inserted
        """
        if not client_id:
            raise StorageError("Client ID is required")

        records = [
            Transaction(
                client_id=client_id,
                organization_id=organization_id,
                timestamp=tx.timestamp,
                type=to_transaction_type(tx),
                asset=tx.asset,
                amount=tx.amount,
                price=tx.price,
                fee=tx.fee,
                fee_asset=tx.fee_asset,
                value=transaction_value(tx),
                exchange=tx.exchange or exchange,
                source=tx.source,
                raw_data=tx.raw_data or None
            )
            for tx in transactions
        ]

        try:
            self.session.add_all(records)
            self.session.commit()
            logger.info(f"Stored {len(records)} transactions for client {client_id}")
            return len(records)
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Database error storing transactions: {e}")
            raise StorageError(f"Failed to store transactions: {str(e)}")

    def refresh_case_risk(self, case_id: str) -> RiskBreakdown:
        """Recompute a case's risk from its current findings and cache the result on the case"""
        try:
            case = self.session.get(Case, case_id)
            if case is None:
                raise StorageError(f"Case {case_id} not found")

            findings = self.session.query(Finding).filter_by(case_id=case_id).all()
            breakdown = self.scorer.calculate_breakdown(findings)

            case.risk_score = breakdown.overall_score
            case.risk_level = breakdown.risk_level
            case.risk_assessed_at = datetime.now(timezone.utc)
            self.session.commit()

            logger.info(f"Case {case_id} scored {breakdown.overall_score} ({breakdown.risk_level.value})")
            return breakdown
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Database error refreshing case risk: {e}")
            raise StorageError(f"Failed to refresh case risk: {str(e)}")
