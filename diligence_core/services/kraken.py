"""Kraken ledger and trades CSV export parsing"""
import logging
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

EXCHANGE_NAME = 'Kraken'

LEDGER_HEADERS = ['txid', 'refid', 'time', 'type', 'subtype', 'aclass', 'asset', 'amount', 'fee', 'balance']
TRADES_HEADERS = [
    'txid', 'ordertxid', 'pair', 'time', 'type', 'ordertype', 'price', 'cost', 'fee',
    'vol', 'margin', 'misc', 'ledgers',
]

ASSET_ALIASES = {
    'XXBT': 'BTC',
    'XBT': 'BTC',
    'XETH': 'ETH',
    'XXRP': 'XRP',
    'XXLM': 'XLM',
    'XLTC': 'LTC',
    'ZUSD': 'USD',
    'ZEUR': 'EUR',
    'ZGBP': 'GBP',
    'ZCAD': 'CAD',
    'ZJPY': 'JPY',
}

# Prefixed aliases come first so XXBTZUSD splits into XXBT / ZUSD
QUOTE_ASSETS = (
    'ZUSD', 'ZEUR', 'ZGBP', 'ZCAD', 'ZJPY', 'XXBT', 'XETH',
    'USD', 'EUR', 'GBP', 'CAD', 'JPY', 'XBT', 'ETH',
)

LEDGER_TYPES = {
    'trade': ParsedTransactionType.BUY,  # direction fixed from the amount sign
    'deposit': ParsedTransactionType.DEPOSIT,
    'withdrawal': ParsedTransactionType.WITHDRAWAL,
    'transfer': ParsedTransactionType.TRANSFER,
    'staking': ParsedTransactionType.STAKE,
    'receive': ParsedTransactionType.DEPOSIT,
    'spend': ParsedTransactionType.WITHDRAWAL,
    'reward': ParsedTransactionType.REWARD,
    'dividend': ParsedTransactionType.REWARD,
    'settled': ParsedTransactionType.TRANSFER,
    'margin': ParsedTransactionType.OTHER,
}


def is_kraken_ledger_file(headers: List[str]) -> bool:
    return 'txid' in headers and 'asset' in headers and 'type' in headers and 'amount' in headers


def is_kraken_trades_file(headers: List[str]) -> bool:
    return 'pair' in headers and 'type' in headers and 'vol' in headers


def is_kraken_file(headers: List[str]) -> bool:
    """Kraken exports use lower case headers; match regardless of case"""
    normalized = [h.lower().strip() for h in headers]
    return any(
        is_kraken_trades_file(candidate) or is_kraken_ledger_file(candidate)
        for candidate in (headers, normalized)
    )


def normalize_asset(asset: str) -> str:
    """
    Map Kraken asset codes to common tickers.

    Known aliases are translated; any other code loses one leading X or Z,
    which is a heuristic and can be wrong for tickers that really start
    with those letters.
    """
    if asset in ASSET_ALIASES:
        return ASSET_ALIASES[asset]
    if asset.startswith(('X', 'Z')):
        return asset[1:]
    return asset


def map_ledger_type(ledger_type: str) -> ParsedTransactionType:
    return LEDGER_TYPES.get(ledger_type.lower().strip(), ParsedTransactionType.OTHER)


def extract_pair_assets(pair: str) -> tuple[str, str]:
    base, quote = split_pair(pair, QUOTE_ASSETS)
    return normalize_asset(base), normalize_asset(quote)


def parse_kraken_ledger(content: str) -> ParseResult:
    """Parse a Kraken ledgers export"""
    result = ParseResult(exchange=EXCHANGE_NAME)

    for number, row in read_rows(content, result, lowercase_headers=True):
        try:
            if not row.get('time') or not row.get('asset'):
                continue

            asset = normalize_asset(row['asset'].strip())
            if not asset:
                raise ValueError(f"Unusable asset code {row['asset']!r}")

            amount = amount_field(result, number, row, 'amount')
            tx_type = map_ledger_type(row['type'])
            if row['type'].lower().strip() == 'trade' and amount < 0:
                tx_type = ParsedTransactionType.SELL

            result.transactions.append(ParsedTransaction(
                timestamp=parse_utc_timestamp(row['time']),
                type=tx_type,
                asset=asset,
                amount=abs(amount),
                fee=abs(amount_field(result, number, row, 'fee')),
                fee_asset=asset,
                exchange=EXCHANGE_NAME,
                raw_data=row
            ))
        except Exception as e:
            logger.warning(f"Skipping Kraken ledger row {number}: {e}")
            row_error(result, row)

    return result.finalize()


def parse_kraken_trades(content: str) -> ParseResult:
    """Parse a Kraken trades export"""
    result = ParseResult(exchange=EXCHANGE_NAME)

    for number, row in read_rows(content, result, lowercase_headers=True):
        try:
            if not row.get('time') or not row.get('pair'):
                continue

            base_asset, _ = extract_pair_assets(row['pair'].strip())
            if not base_asset:
                raise ValueError(f"No base asset in pair {row['pair']!r}")

            side = row['type'].strip().lower()

            result.transactions.append(ParsedTransaction(
                timestamp=parse_utc_timestamp(row['time']),
                type=ParsedTransactionType.BUY if side == 'buy' else ParsedTransactionType.SELL,
                asset=base_asset,
                amount=abs(amount_field(result, number, row, 'vol')),
                price=amount_field(result, number, row, 'price'),
                fee=amount_field(result, number, row, 'fee'),
                exchange=EXCHANGE_NAME,
                raw_data=row
            ))
        except Exception as e:
            logger.warning(f"Skipping Kraken trade row {number}: {e}")
            row_error(result, row)

    return result.finalize()


def parse_kraken(content: str, headers: List[str]) -> ParseResult:
    normalized = [h.lower().strip() for h in headers]

    if is_kraken_trades_file(normalized):
        return parse_kraken_trades(content)
    if is_kraken_ledger_file(normalized):
        return parse_kraken_ledger(content)

    return ParseResult.failure('Unrecognized Kraken CSV format', exchange=EXCHANGE_NAME)
