"""Domain models for normalized exchange transactions"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Dict, Any


class ParsedTransactionType(str, Enum):
    BUY = "buy"
    SELL = "sell"
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    TRANSFER = "transfer"
    SWAP = "swap"
    STAKE = "stake"
    UNSTAKE = "unstake"
    REWARD = "reward"
    FEE = "fee"
    OTHER = "other"


class TransactionSource(str, Enum):
    CEX_IMPORT = "CEX_IMPORT"
    ON_CHAIN = "ON_CHAIN"
    API_SYNC = "API_SYNC"
    MANUAL = "MANUAL"


class ExchangeType(str, Enum):
    """Exchange detected from CSV headers"""
    BINANCE = "binance"
    COINBASE = "coinbase"
    KRAKEN = "kraken"
    UNKNOWN = "unknown"


@dataclass
class ParsedTransaction:
    """Single exchange row normalized to the common transaction shape"""
    timestamp: datetime             # UTC, source reported
    type: ParsedTransactionType
    asset: str
    amount: float                   # magnitude, direction lives in type
    exchange: str
    price: Optional[float] = None
    fee: Optional[float] = None
    fee_asset: Optional[str] = None
    source: TransactionSource = TransactionSource.CEX_IMPORT
    raw_data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timestamp': self.timestamp.isoformat(),
            'type': self.type.value,
            'asset': self.asset,
            'amount': self.amount,
            'price': self.price,
            'fee': self.fee,
            'fee_asset': self.fee_asset,
            'exchange': self.exchange,
            'source': self.source.value,
            'raw_data': self.raw_data,
        }


@dataclass
class ParseResult:
    """
    Outcome of parsing one uploaded CSV file.

    Row level problems are collected in ``errors`` instead of aborting the file.
    ``warnings`` holds numeric fields that were present but unreadable and were
    taken as zero; they never influence ``success``.
    """
    success: bool = True
    transactions: List[ParsedTransaction] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    exchange: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @classmethod
    def failure(cls, *errors: str, exchange: Optional[str] = None) -> 'ParseResult':
        return cls(success=False, errors=list(errors), exchange=exchange)

    def finalize(self) -> 'ParseResult':
        """Compute the lenient success flag once all rows are processed"""
        self.success = len(self.errors) == 0 or len(self.transactions) > 0
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'exchange': self.exchange,
            'transactions': [tx.to_dict() for tx in self.transactions],
            'errors': list(self.errors),
            'warnings': list(self.warnings),
        }
