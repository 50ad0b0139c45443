"""Tests for format detection and file level import."""

import pytest

from diligence_core.importer import (
    detect_exchange,
    extract_headers,
    get_supported_exchanges,
    parse_csv,
    parse_file,
    preview_transactions,
)
from diligence_core.models.transaction import ExchangeType
from diligence_core.services.binance import DEPOSIT_HEADERS, TRADE_HEADERS
from diligence_core.services.coinbase import PRO_HEADERS, STANDARD_HEADERS
from diligence_core.services.kraken import LEDGER_HEADERS, TRADES_HEADERS


class TestExtractHeaders:

    def test_trims_and_unquotes(self) -> None:
        assert extract_headers('"txid"," asset ",amount \n1,2,3\n') == ["txid", "asset", "amount"]

    def test_empty_content(self) -> None:
        assert extract_headers("") == []
        assert extract_headers("\n\n") == []

    def test_leading_bom(self) -> None:
        assert extract_headers("\ufeffDate(UTC),Pair\n") == ["Date(UTC)", "Pair"]


class TestDetectExchange:
    """Each known layout maps to exactly one exchange."""

    @pytest.mark.parametrize("headers,expected", [
        (TRADE_HEADERS, ExchangeType.BINANCE),
        (DEPOSIT_HEADERS, ExchangeType.BINANCE),
        (STANDARD_HEADERS, ExchangeType.COINBASE),
        (PRO_HEADERS, ExchangeType.COINBASE),
        (LEDGER_HEADERS, ExchangeType.KRAKEN),
        (TRADES_HEADERS, ExchangeType.KRAKEN),
    ])
    def test_known_layouts(self, headers, expected) -> None:
        assert detect_exchange(headers) == expected

    def test_loose_binance_match(self) -> None:
        assert detect_exchange(["Coin", "Amount"]) == ExchangeType.BINANCE

    def test_first_match_wins(self) -> None:
        assert detect_exchange(["Coin", "Transaction Type", "Asset"]) == ExchangeType.BINANCE
        mixed = ["Transaction Type", "Asset", "txid", "asset", "type", "amount"]
        assert detect_exchange(mixed) == ExchangeType.COINBASE

    def test_unknown(self) -> None:
        assert detect_exchange(["foo", "bar"]) == ExchangeType.UNKNOWN
        assert detect_exchange([]) == ExchangeType.UNKNOWN


class TestParseCsv:

    def test_dispatches_to_exchange(self, binance_trades_csv, coinbase_csv, kraken_ledger_csv) -> None:
        assert parse_csv(binance_trades_csv).exchange == "Binance"
        assert parse_csv(coinbase_csv).exchange == "Coinbase"
        assert parse_csv(kraken_ledger_csv).exchange == "Kraken"

    def test_empty_content(self) -> None:
        result = parse_csv("")

        assert not result.success
        assert result.transactions == []
        assert result.errors == ["CSV file appears to be empty or invalid"]

    def test_unknown_format(self) -> None:
        result = parse_csv("a,b,c,d,e,f\n1,2,3,4,5,6\n")

        assert not result.success
        assert result.exchange is None
        assert result.errors == [
            "Unable to detect exchange from CSV headers.",
            "Supported exchanges: Binance, Coinbase, Kraken",
            "Headers found: a, b, c, d, e...",
        ]

    def test_unknown_format_short_header(self) -> None:
        result = parse_csv("a,b\n1,2\n")
        assert result.errors[-1] == "Headers found: a, b"

    def test_repeatable(self, kraken_ledger_csv) -> None:
        first = parse_csv(kraken_ledger_csv)
        second = parse_csv(kraken_ledger_csv)

        assert first.to_dict() == second.to_dict()

    def test_every_row_accounted_for(self, binance_trades_csv) -> None:
        content = binance_trades_csv + "garbage,BTCUSDT,BUY,1,1,1,0\n"
        result = parse_csv(content)
        failed = [e for e in result.errors if e.startswith("Failed to parse row: ")]

        assert len(result.transactions) + len(failed) == 3
        assert result.success

    def test_every_transfer_row_accounted_for(self, binance_deposits_csv) -> None:
        result = parse_csv(binance_deposits_csv)
        data_rows = len(binance_deposits_csv.splitlines()) - 1

        assert len(result.transactions) == 1
        assert data_rows - len(result.transactions) <= len(result.errors)


class TestParseFile:

    def test_csv_file(self, tmp_path, binance_trades_csv) -> None:
        path = tmp_path / "trades.csv"
        path.write_text(binance_trades_csv)

        result = parse_file(str(path))
        assert result.success
        assert len(result.transactions) == 2

    def test_uppercase_extension(self, tmp_path, binance_trades_csv) -> None:
        path = tmp_path / "TRADES.CSV"
        path.write_text(binance_trades_csv)
        assert parse_file(str(path)).success

    def test_bom_file(self, tmp_path, coinbase_csv) -> None:
        path = tmp_path / "coinbase.csv"
        path.write_text("\ufeff" + coinbase_csv, encoding="utf-8")

        result = parse_file(str(path))
        assert result.exchange == "Coinbase"
        assert len(result.transactions) == 3

    def test_rejects_other_extensions(self, tmp_path) -> None:
        path = tmp_path / "trades.xlsx"
        path.write_text("irrelevant")

        result = parse_file(str(path))
        assert not result.success
        assert result.errors == ["Only CSV files are supported"]

    def test_missing_file(self, tmp_path) -> None:
        result = parse_file(str(tmp_path / "missing.csv"))

        assert not result.success
        assert result.errors == ["Failed to read file"]

    def test_empty_file(self, tmp_path) -> None:
        path = tmp_path / "empty.csv"
        path.write_text("")

        result = parse_file(str(path))
        assert result.errors == ["Failed to read file content"]


class TestHelpers:

    def test_preview_limit(self, coinbase_csv) -> None:
        result = parse_csv(coinbase_csv)

        assert len(preview_transactions(result, limit=2)) == 2
        assert len(preview_transactions(result)) == 3
        assert preview_transactions(result, limit=0) == []

    def test_supported_exchanges(self) -> None:
        exchanges = get_supported_exchanges()

        assert exchanges == ["Binance", "Coinbase", "Coinbase Pro", "Kraken"]
        exchanges.append("FTX")
        assert "FTX" not in get_supported_exchanges()
