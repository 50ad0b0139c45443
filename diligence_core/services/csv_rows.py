"""CSV row reading and field normalization shared by the exchange parsers"""
import csv
import io
import json
import re
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from diligence_core.models.transaction import ParseResult

BOM = '\ufeff'
EXTRA_FIELDS_KEY = '_extra_fields'

# Same leniency as reading the leading number of "0.5BTC"
_LEADING_NUMBER = re.compile(r'^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?')

_EXCHANGE_DATE_FORMATS = ('%Y-%m-%d %H:%M:%S', '%Y-%m-%d %H:%M:%S.%f')


def _records(content: str):
    if content.startswith(BOM):
        content = content[len(BOM):]
    return (record for record in csv.reader(io.StringIO(content)) if record)


def split_records(content: str) -> List[List[str]]:
    """Split CSV text into records, dropping blank lines and a leading BOM"""
    return list(_records(content))


def first_record(content: str) -> List[str]:
    """First non-blank record, without reading the rest of the file"""
    return next(_records(content), [])


def read_rows(content: str, result: ParseResult, lowercase_headers: bool = False) -> List[Tuple[int, Dict[str, str]]]:
    """
    Read CSV content into header keyed rows.

    Rows whose field count differs from the header are still returned, but the
    mismatch is reported on ``result.errors`` the way a CSV reader would.

    Returns:
        List of (1-based data row number, row dict) pairs
    """
    records = split_records(content)
    if not records:
        return []

    headers = [h.strip() for h in records[0]]
    if lowercase_headers:
        headers = [h.lower() for h in headers]

    rows = []
    for number, values in enumerate(records[1:], start=1):
        if len(values) < len(headers):
            result.errors.append(
                f"Row {number}: Too few fields: expected {len(headers)} fields but parsed {len(values)}"
            )
        elif len(values) > len(headers):
            result.errors.append(
                f"Row {number}: Too many fields: expected {len(headers)} fields but parsed {len(values)}"
            )

        row = dict(zip(headers, values))
        if len(values) > len(headers):
            row[EXTRA_FIELDS_KEY] = values[len(headers):]
        rows.append((number, row))

    return rows


def row_error(result: ParseResult, row: Dict[str, str]) -> None:
    result.errors.append(f"Failed to parse row: {json.dumps(row)}")


def read_number(value: Optional[str], strip: str = ',') -> Optional[float]:
    """Leading number of a field after removing ``strip`` characters, None if there is none"""
    if not value:
        return None
    cleaned = value.translate({ord(c): None for c in strip}).strip()
    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        return None
    return float(match.group())


def parse_amount(value: Optional[str], strip: str = ',') -> float:
    """Parse a numeric field; anything unreadable counts as 0"""
    number = read_number(value, strip)
    return number if number is not None else 0.0


def amount_field(result: ParseResult, number: int, row: Dict[str, str], column: str, strip: str = ',') -> float:
    """
    Read ``row[column]`` as an amount.

    A value that is present but unreadable still becomes 0, and a warning is
    recorded so it can be told apart from an absent value.
    """
    value = row.get(column)
    parsed = read_number(value, strip)
    if parsed is None:
        if value and value.strip():
            result.warnings.append(f"Row {number}: unparseable {column} value '{value}' read as 0")
        return 0.0
    return parsed


def parse_iso_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 style timestamp; naive values are taken as UTC"""
    text = value.strip()
    if text.upper().endswith(' UTC'):
        text = text[:-4].rstrip()

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        try:
            parsed = datetime.fromisoformat(text.replace(' ', 'T', 1))
        except ValueError:
            raise ValueError(f"Unrecognized date: {value!r}")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_utc_timestamp(value: str) -> datetime:
    """Parse the 'YYYY-MM-DD HH:MM:SS[.ffff]' exchange format as UTC, falling back to ISO parsing"""
    text = value.strip()
    for fmt in _EXCHANGE_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    return parse_iso_timestamp(text)


def split_pair(pair: str, quote_assets: Sequence[str]) -> Tuple[str, str]:
    """
    Split a combined trading symbol into (base, quote).

    The first quote asset the pair ends with wins; a bare quote symbol gives
    an empty base. Without a match the symbol is cut in half, which is only
    a guess.
    """
    for quote in quote_assets:
        if pair.endswith(quote):
            return pair[:-len(quote)], quote

    mid = len(pair) // 2
    return pair[:mid], pair[mid:]
