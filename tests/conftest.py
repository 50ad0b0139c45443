"""Pytest configuration and fixtures."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from diligence_core.models.db import Base


BINANCE_TRADES_CSV = (
    "Date(UTC),Pair,Side,Price,Executed,Amount,Fee\n"
    "2024-01-15 10:30:00,BTCUSDT,BUY,42000,0.5,21000,0.021BTC\n"
    "2024-01-16 08:00:00,ETHBTC,SELL,0.055,2,0.11,0.0001 BTC\n"
)

BINANCE_DEPOSITS_CSV = (
    "Date(UTC),Coin,Network,Amount,TransactionFee,Address,TXID,Status\n"
    "2024-01-10 09:00:00,BTC,BTC,1.25,0,bc1qaddress,abc123,Completed\n"
    "2024-01-11 09:00:00,ETH,ETH,3,0,0xaddress,def456,Pending\n"
)

COINBASE_CSV = (
    "Timestamp,Transaction Type,Asset,Quantity Transacted,Price Currency,Price at Transaction,"
    "Subtotal,Total (inclusive of fees and/or spread),Fees and/or Spread,Notes\n"
    '2024-01-15T10:30:00Z,Buy,BTC,0.01,USD,"$42,000.00",$420.00,$421.99,$1.99,Bought 0.01 BTC\n'
    "2024-02-01 08:00:00 UTC,Rewards Income,ETH,0.002,USD,$2300,$4.60,$4.60,$0.00,\n"
    "2024-03-01T00:00:00Z,Send,BTC,-0.005,USD,$0,$0,$0,$0,Sent to wallet\n"
)

COINBASE_PRO_CSV = (
    "portfolio,trade id,product,side,created at,size,size unit,price,fee,total,price/fee/total unit\n"
    "default,1001,ETH-USD,SELL,2021-05-01T12:00:00.123Z,1.5,ETH,3000.00,4.5,4495.5,USD\n"
)

KRAKEN_LEDGER_CSV = (
    '"txid","refid","time","type","subtype","aclass","asset","amount","fee","balance"\n'
    '"L1","R1","2024-01-15 10:30:00.1234","trade","","currency","XXBT","-0.5000000000","0.0010","1.0"\n'
    '"L2","R1","2024-01-15 10:30:00.1234","trade","","currency","ZUSD","21000.0000","0.0000","21000"\n'
    '"L3","R2","2024-02-01 00:00:00","staking","","currency","DOT.S","1.2","0","1.2"\n'
    '"L4","R3","2024-02-02 00:00:00","deposit","","currency","XFOO","3","0","3"\n'
)

KRAKEN_TRADES_CSV = (
    "txid,ordertxid,pair,time,type,ordertype,price,cost,fee,vol,margin,misc,ledgers\n"
    'T1,O1,XXBTZUSD,2024-01-15 10:30:00.1234,buy,limit,42000.0,21000.0,33.6,0.5,0,,"L1,L2"\n'
)


@pytest.fixture
def binance_trades_csv() -> str:
    return BINANCE_TRADES_CSV


@pytest.fixture
def binance_deposits_csv() -> str:
    return BINANCE_DEPOSITS_CSV


@pytest.fixture
def coinbase_csv() -> str:
    return COINBASE_CSV


@pytest.fixture
def coinbase_pro_csv() -> str:
    return COINBASE_PRO_CSV


@pytest.fixture
def kraken_ledger_csv() -> str:
    return KRAKEN_LEDGER_CSV


@pytest.fixture
def kraken_trades_csv() -> str:
    return KRAKEN_TRADES_CSV


@pytest.fixture
def session():
    """Session bound to a fresh in-memory SQLite database."""
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    sess = sessionmaker(bind=engine)()
    yield sess
    sess.close()
    engine.dispose()
