"""Exchange CSV import: format detection and dispatch to the exchange parsers"""
import logging
import os
from typing import Callable, List, NamedTuple, Optional

from diligence_core.config import settings
from diligence_core.models.transaction import ExchangeType, ParsedTransaction, ParseResult
from diligence_core.services.binance import is_binance_file, parse_binance
from diligence_core.services.coinbase import is_coinbase_file, parse_coinbase
from diligence_core.services.csv_rows import first_record
from diligence_core.services.kraken import is_kraken_file, parse_kraken

logger = logging.getLogger(__name__)

SUPPORTED_EXCHANGES = ['Binance', 'Coinbase', 'Coinbase Pro', 'Kraken']
CSV_EXTENSION = '.csv'


class ExchangeFormat(NamedTuple):
    """Detection predicate and parser for one exchange"""
    exchange: ExchangeType
    matches: Callable[[List[str]], bool]
    parse: Callable[[str, List[str]], ParseResult]


# Header sets overlap between export variants, so the first match wins
EXCHANGE_FORMATS = (
    ExchangeFormat(ExchangeType.BINANCE, is_binance_file, parse_binance),
    ExchangeFormat(ExchangeType.COINBASE, is_coinbase_file, parse_coinbase),
    ExchangeFormat(ExchangeType.KRAKEN, is_kraken_file, parse_kraken),
)


def extract_headers(content: str) -> List[str]:
    """Header row of a CSV file, trimmed; empty when the file has no rows"""
    return [h.strip() for h in first_record(content)]


def _find_format(headers: List[str]) -> Optional[ExchangeFormat]:
    for exchange_format in EXCHANGE_FORMATS:
        if exchange_format.matches(headers):
            return exchange_format
    return None


def detect_exchange(headers: List[str]) -> ExchangeType:
    exchange_format = _find_format(headers)
    return exchange_format.exchange if exchange_format else ExchangeType.UNKNOWN


def parse_csv(content: str) -> ParseResult:
    """Detect which exchange produced ``content`` and parse it"""
    headers = extract_headers(content)

    if not headers:
        return ParseResult.failure('CSV file appears to be empty or invalid')

    exchange_format = _find_format(headers)
    if exchange_format is None:
        sample = ', '.join(headers[:5]) + ('...' if len(headers) > 5 else '')
        logger.info(f"No exchange matched headers: {sample}")
        return ParseResult.failure(
            'Unable to detect exchange from CSV headers.',
            'Supported exchanges: Binance, Coinbase, Kraken',
            f"Headers found: {sample}",
        )

    result = exchange_format.parse(content, headers)
    logger.info(
        f"Parsed {exchange_format.exchange.value} export: "
        f"{len(result.transactions)} transactions, {len(result.errors)} errors, "
        f"{len(result.warnings)} warnings"
    )
    return result


def parse_file(path: str) -> ParseResult:
    """
    Parse an uploaded export from disk.

    Only ``.csv`` files are accepted. The whole file is read into memory
    before parsing.
    """
    if os.path.splitext(path)[1].lower() != CSV_EXTENSION:
        return ParseResult.failure('Only CSV files are supported')

    try:
        with open(path, 'r', encoding='utf-8-sig') as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Error reading {path}: {e}")
        return ParseResult.failure('Failed to read file')

    if not content:
        return ParseResult.failure('Failed to read file content')

    return parse_csv(content)


def preview_transactions(result: ParseResult, limit: Optional[int] = None) -> List[ParsedTransaction]:
    """Leading rows shown before the user confirms an import"""
    if limit is None:
        limit = settings.PREVIEW_ROWS
    return result.transactions[:limit]


def get_supported_exchanges() -> List[str]:
    return list(SUPPORTED_EXCHANGES)
