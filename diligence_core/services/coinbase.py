"""Coinbase and Coinbase Pro CSV export parsing"""
import logging
from typing import List

from diligence_core.models.transaction import ParsedTransaction, ParsedTransactionType, ParseResult
from diligence_core.services.csv_rows import (
    amount_field,
    parse_iso_timestamp,
    read_rows,
    row_error,
)

logger = logging.getLogger(__name__)

EXCHANGE_NAME = 'Coinbase'
PRO_EXCHANGE_NAME = 'Coinbase Pro'

STANDARD_HEADERS = [
    'Timestamp', 'Transaction Type', 'Asset', 'Quantity Transacted', 'Price Currency',
    'Price at Transaction', 'Subtotal', 'Total (inclusive of fees and/or spread)',
    'Fees and/or Spread', 'Notes',
]
PRO_HEADERS = [
    'portfolio', 'trade id', 'product', 'side', 'created at', 'size', 'size unit',
    'price', 'fee', 'total', 'price/fee/total unit',
]

# First substring match wins, so "Advanced Trade Buy" is a buy rather than a swap
TRANSACTION_TYPES = (
    ('buy', ParsedTransactionType.BUY),
    ('sell', ParsedTransactionType.SELL),
    ('send', ParsedTransactionType.WITHDRAWAL),
    ('receive', ParsedTransactionType.DEPOSIT),
    ('deposit', ParsedTransactionType.DEPOSIT),
    ('withdrawal', ParsedTransactionType.WITHDRAWAL),
    ('convert', ParsedTransactionType.SWAP),
    ('trade', ParsedTransactionType.SWAP),
    ('rewards income', ParsedTransactionType.REWARD),
    ('staking income', ParsedTransactionType.REWARD),
    ('coinbase earn', ParsedTransactionType.REWARD),
    ('learning reward', ParsedTransactionType.REWARD),
    ('interest', ParsedTransactionType.REWARD),
    ('transfer', ParsedTransactionType.TRANSFER),
    ('fee', ParsedTransactionType.FEE),
)

# Coinbase prints money columns like "$1,234.56"
_MONEY_NOISE = '$,'


def is_coinbase_pro_file(headers: List[str]) -> bool:
    return 'portfolio' in headers and 'product' in headers and 'side' in headers


def is_coinbase_file(headers: List[str]) -> bool:
    has_standard_headers = (
        any('Transaction Type' in h for h in headers)
        and any('Asset' in h for h in headers)
    )
    return has_standard_headers or is_coinbase_pro_file(headers)


def map_transaction_type(label: str) -> ParsedTransactionType:
    """Map Coinbase's free text transaction type onto our types"""
    normalized = label.lower().strip()
    for key, tx_type in TRANSACTION_TYPES:
        if key in normalized:
            return tx_type
    return ParsedTransactionType.OTHER


def parse_coinbase_standard(content: str) -> ParseResult:
    """Parse the retail Coinbase transaction history export"""
    result = ParseResult(exchange=EXCHANGE_NAME)

    for number, row in read_rows(content, result):
        try:
            if not row.get('Timestamp') or not row.get('Asset'):
                continue

            asset = row['Asset'].strip()
            if not asset:
                raise ValueError("Empty Asset column")

            price = amount_field(result, number, row, 'Price at Transaction', _MONEY_NOISE)
            fee = amount_field(result, number, row, 'Fees and/or Spread', _MONEY_NOISE)

            result.transactions.append(ParsedTransaction(
                timestamp=parse_iso_timestamp(row['Timestamp']),
                type=map_transaction_type(row['Transaction Type']),
                asset=asset,
                amount=abs(amount_field(result, number, row, 'Quantity Transacted', _MONEY_NOISE)),
                price=price or None,
                fee=fee or None,
                fee_asset=row.get('Price Currency') or 'USD',
                exchange=EXCHANGE_NAME,
                raw_data=row
            ))
        except Exception as e:
            logger.warning(f"Skipping Coinbase row {number}: {e}")
            row_error(result, row)

    return result.finalize()


def parse_coinbase_pro(content: str) -> ParseResult:
    """Parse a Coinbase Pro fills export"""
    result = ParseResult(exchange=PRO_EXCHANGE_NAME)

    for number, row in read_rows(content, result):
        try:
            if not row.get('created at') or not row.get('product'):
                continue

            base_asset = row['product'].strip().split('-')[0]
            if not base_asset:
                raise ValueError(f"No base asset in product {row['product']!r}")

            side = row['side'].strip().lower()

            result.transactions.append(ParsedTransaction(
                timestamp=parse_iso_timestamp(row['created at']),
                type=ParsedTransactionType.BUY if side == 'buy' else ParsedTransactionType.SELL,
                asset=base_asset,
                amount=abs(amount_field(result, number, row, 'size', _MONEY_NOISE)),
                price=amount_field(result, number, row, 'price', _MONEY_NOISE),
                fee=amount_field(result, number, row, 'fee', _MONEY_NOISE),
                fee_asset=row.get('price/fee/total unit') or 'USD',
                exchange=PRO_EXCHANGE_NAME,
                raw_data=row
            ))
        except Exception as e:
            logger.warning(f"Skipping Coinbase Pro row {number}: {e}")
            row_error(result, row)

    return result.finalize()


def parse_coinbase(content: str, headers: List[str]) -> ParseResult:
    if is_coinbase_pro_file(headers):
        return parse_coinbase_pro(content)
    return parse_coinbase_standard(content)
