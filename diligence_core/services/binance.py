# diligence_core/services/binance.py
import logging
import re
from typing import List

from diligence_core.models.transaction import ParsedTransaction, ParsedTransactionType, ParseResult
from diligence_core.services.csv_rows import (
    amount_field,
    parse_utc_timestamp,
    read_rows,
    row_error,
    split_pair,
)

logger = logging.getLogger(__name__)

EXCHANGE_NAME = 'Binance'

TRADE_HEADERS = ['Date(UTC)', 'Pair', 'Side', 'Price', 'Executed', 'Amount', 'Fee']
DEPOSIT_HEADERS = ['Date(UTC)', 'Coin', 'Network', 'Amount', 'TransactionFee', 'Address', 'TXID', 'Status']
WITHDRAW_HEADERS = ['Date(UTC)', 'Coin', 'Network', 'Amount', 'TransactionFee', 'Address', 'TXID', 'Status']

# Checked in order, so USDT wins over USD
QUOTE_ASSETS = ('USDT', 'USDC', 'BUSD', 'USD', 'BTC', 'ETH', 'BNB')

# Fee column looks like "0.001BTC" or "0.5 USDT"
_FEE_PATTERN = re.compile(r'^([\d.,]+)\s*([A-Z]+)$')


def is_binance_trade_history(headers: List[str]) -> bool:
    return all(h in headers for h in TRADE_HEADERS)


def is_binance_deposit_history(headers: List[str]) -> bool:
    return all(h in headers for h in DEPOSIT_HEADERS)


def is_binance_withdraw_history(headers: List[str]) -> bool:
    """Loose match: any withdrawal column plus a Coin column"""
    return any(h in headers for h in WITHDRAW_HEADERS) and 'Coin' in headers


def is_binance_file(headers: List[str]) -> bool:
    return (
        is_binance_trade_history(headers)
        or is_binance_deposit_history(headers)
        or is_binance_withdraw_history(headers)
    )


def _split_fee(result: ParseResult, number: int, row: dict) -> tuple[float, str]:
    """Split the Fee column into amount and asset"""
    fee_str = (row.get('Fee') or '').strip()
    match = _FEE_PATTERN.match(fee_str)
    if match:
        return amount_field(result, number, {'Fee': match.group(1)}, 'Fee'), match.group(2)
    return amount_field(result, number, row, 'Fee'), ''


def parse_binance_trades(content: str) -> ParseResult:
    """Parse a Binance spot trade history export"""
    result = ParseResult(exchange=EXCHANGE_NAME)

    for number, row in read_rows(content, result):
        try:
            if not row.get('Date(UTC)') or not row.get('Pair'):
                continue

            base_asset, quote_asset = split_pair(row['Pair'].strip(), QUOTE_ASSETS)
            if not base_asset:
                raise ValueError(f"No base asset in pair {row['Pair']!r}")

            side = row['Side'].strip().lower()
            fee, fee_asset = _split_fee(result, number, row)

            result.transactions.append(ParsedTransaction(
                timestamp=parse_utc_timestamp(row['Date(UTC)']),
                type=ParsedTransactionType.BUY if side == 'buy' else ParsedTransactionType.SELL,
                asset=base_asset,
                amount=abs(amount_field(result, number, row, 'Executed')),
                price=amount_field(result, number, row, 'Price'),
                fee=fee,
                fee_asset=fee_asset or quote_asset,
                exchange=EXCHANGE_NAME,
                raw_data=row
            ))
        except Exception as e:
            logger.warning(f"Skipping Binance trade row {number}: {e}")
            row_error(result, row)

    return result.finalize()


def _parse_transfers(content: str, tx_type: ParsedTransactionType) -> ParseResult:
    """Deposit and withdrawal exports share one layout"""
    result = ParseResult(exchange=EXCHANGE_NAME)

    for number, row in read_rows(content, result):
        try:
            if not row.get('Date(UTC)') or not row.get('Coin'):
                continue
            # Pending, failed and cancelled transfers never moved funds
            status = (row.get('Status') or '').strip()
            if status and status.lower() != 'completed':
                result.errors.append(f"Row {number}: skipped {status} transfer")
                continue

            coin = row['Coin'].strip()
            if not coin:
                raise ValueError("Empty Coin column")

            result.transactions.append(ParsedTransaction(
                timestamp=parse_utc_timestamp(row['Date(UTC)']),
                type=tx_type,
                asset=coin,
                amount=abs(amount_field(result, number, row, 'Amount')),
                fee=amount_field(result, number, row, 'TransactionFee'),
                fee_asset=coin,
                exchange=EXCHANGE_NAME,
                raw_data=row
            ))
        except Exception as e:
            logger.warning(f"Skipping Binance {tx_type.value} row {number}: {e}")
            row_error(result, row)

    return result.finalize()


def parse_binance_deposits(content: str) -> ParseResult:
    return _parse_transfers(content, ParsedTransactionType.DEPOSIT)


def parse_binance_withdrawals(content: str) -> ParseResult:
    return _parse_transfers(content, ParsedTransactionType.WITHDRAWAL)


def parse_binance(content: str, headers: List[str]) -> ParseResult:
    """Route a Binance export to the parser for its layout"""
    if is_binance_trade_history(headers):
        return parse_binance_trades(content)
    if is_binance_deposit_history(headers):
        return parse_binance_deposits(content)
    if is_binance_withdraw_history(headers):
        return parse_binance_withdrawals(content)

    return ParseResult.failure('Unrecognized Binance CSV format', exchange=EXCHANGE_NAME)
