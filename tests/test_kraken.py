"""Tests for the Kraken ledger and trades parsers."""

from datetime import datetime, timezone

import pytest

from diligence_core.models.transaction import ParsedTransactionType
from diligence_core.services.kraken import (
    LEDGER_HEADERS,
    TRADES_HEADERS,
    extract_pair_assets,
    is_kraken_file,
    map_ledger_type,
    normalize_asset,
    parse_kraken,
)


class TestAssets:

    @pytest.mark.parametrize("code,expected", [
        ("XXBT", "BTC"),
        ("XBT", "BTC"),
        ("XETH", "ETH"),
        ("ZUSD", "USD"),
        ("ZEUR", "EUR"),
        ("XFOO", "FOO"),
        ("ZBAR", "BAR"),
        ("DOT", "DOT"),
        ("DOT.S", "DOT.S"),
    ])
    def test_normalize_asset(self, code, expected) -> None:
        assert normalize_asset(code) == expected

    def test_pair_with_prefixed_codes(self) -> None:
        assert extract_pair_assets("XXBTZUSD") == ("BTC", "USD")
        assert extract_pair_assets("XETHXXBT") == ("ETH", "BTC")

    def test_pair_with_plain_codes(self) -> None:
        assert extract_pair_assets("XBTUSD") == ("BTC", "USD")
        assert extract_pair_assets("DOTEUR") == ("DOT", "EUR")

    def test_ledger_types(self) -> None:
        assert map_ledger_type("Staking") == ParsedTransactionType.STAKE
        assert map_ledger_type("spend") == ParsedTransactionType.WITHDRAWAL
        assert map_ledger_type("adjustment") == ParsedTransactionType.OTHER


class TestDetection:

    def test_lowercase_headers(self) -> None:
        assert is_kraken_file(LEDGER_HEADERS)
        assert is_kraken_file(TRADES_HEADERS)

    def test_uppercase_headers(self) -> None:
        assert is_kraken_file([h.upper() for h in LEDGER_HEADERS])

    def test_partial_headers(self) -> None:
        assert not is_kraken_file(["txid", "asset"])


class TestLedger:
    """Ledger rows, including sign based trade direction."""

    def test_negative_trade_is_sell(self, kraken_ledger_csv) -> None:
        result = parse_kraken(kraken_ledger_csv, LEDGER_HEADERS)

        assert result.success
        assert result.exchange == "Kraken"
        assert len(result.transactions) == 4

        tx = result.transactions[0]
        assert tx.timestamp == datetime(2024, 1, 15, 10, 30, 0, 123400, tzinfo=timezone.utc)
        assert tx.type == ParsedTransactionType.SELL
        assert tx.asset == "BTC"
        assert tx.amount == 0.5
        assert tx.fee == 0.001
        assert tx.fee_asset == "BTC"
        assert tx.price is None

    def test_positive_trade_is_buy(self, kraken_ledger_csv) -> None:
        tx = parse_kraken(kraken_ledger_csv, LEDGER_HEADERS).transactions[1]

        assert tx.type == ParsedTransactionType.BUY
        assert tx.asset == "USD"
        assert tx.amount == 21000.0

    def test_zero_trade_stays_buy(self) -> None:
        content = ",".join(LEDGER_HEADERS) + "\nL9,R9,2024-01-15 10:30:00,trade,,currency,XXBT,0,0,0\n"
        tx = parse_kraken(content, LEDGER_HEADERS).transactions[0]
        assert tx.type == ParsedTransactionType.BUY

    def test_other_ledger_types(self, kraken_ledger_csv) -> None:
        txs = parse_kraken(kraken_ledger_csv, LEDGER_HEADERS).transactions

        assert txs[2].type == ParsedTransactionType.STAKE
        assert txs[2].asset == "DOT.S"
        assert txs[3].type == ParsedTransactionType.DEPOSIT
        assert txs[3].asset == "FOO"

    def test_uppercase_export(self, kraken_ledger_csv) -> None:
        lines = kraken_ledger_csv.splitlines(keepends=True)
        content = lines[0].upper() + "".join(lines[1:])
        headers = [h.upper() for h in LEDGER_HEADERS]

        result = parse_kraken(content, headers)
        assert len(result.transactions) == 4
        assert result.transactions[0].asset == "BTC"


class TestTrades:

    def test_trade_row(self, kraken_trades_csv) -> None:
        result = parse_kraken(kraken_trades_csv, TRADES_HEADERS)

        tx = result.transactions[0]
        assert tx.type == ParsedTransactionType.BUY
        assert tx.asset == "BTC"
        assert tx.amount == 0.5
        assert tx.price == 42000.0
        assert tx.fee == 33.6
        assert tx.fee_asset is None
        assert tx.raw_data["ledgers"] == "L1,L2"

    def test_negative_volume_is_magnitude(self) -> None:
        content = ",".join(TRADES_HEADERS) + "\nT2,O2,XETHZEUR,2024-01-16 09:00:00,sell,market,2000,1000,1.6,-0.5,0,,L3\n"
        tx = parse_kraken(content, TRADES_HEADERS).transactions[0]

        assert tx.type == ParsedTransactionType.SELL
        assert tx.asset == "ETH"
        assert tx.amount == 0.5

    def test_bare_quote_pair_is_row_error(self) -> None:
        content = ",".join(TRADES_HEADERS) + "\nT3,O3,ZUSD,2024-01-16 09:00:00,buy,market,1,1,0,1,0,,L4\n"
        result = parse_kraken(content, TRADES_HEADERS)

        assert result.transactions == []
        assert result.errors[0].startswith("Failed to parse row: ")

    def test_unrecognized_layout(self) -> None:
        result = parse_kraken("txid\nx\n", ["txid"])

        assert not result.success
        assert result.errors == ["Unrecognized Kraken CSV format"]
