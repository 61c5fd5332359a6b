from __future__ import annotations

import pytest

from tickerwatch.config.models import BithumbConfig
from tickerwatch.core.enums import BithumbMarket, Exchange
from tickerwatch.core.errors import TransportError, UpstreamError
from tickerwatch.data_feed.bithumb_client import BithumbClient

KRW_BODY = {
    "status": "0000",
    "data": {
        "BTC": {
            "closing_price": "95000000",
            "fluctate_rate_24H": "1.5",
            "units_traded_24H": "1234.5",
            "acc_trade_value_24H": "117000000000",
            "prev_closing_price": "93600000",
            "max_price": "96000000",
            "min_price": "93000000",
            "fluctate_24H": "1400000",
        },
        "ETH": {"closing_price": "4100000", "fluctate_rate_24H": "-0.25"},
        "date": "1717000000000",
    },
}


@pytest.mark.asyncio
async def test_fetch_market_should_build_records_without_date_key(mock_session) -> None:
    client = BithumbClient(BithumbConfig(), session=mock_session({"/public/ticker/ALL_KRW": (200, KRW_BODY)}))
    records = await client.fetch_market(BithumbMarket.KRW)
    await client.aclose()

    by_symbol = {r.symbol: r for r in records}
    assert set(by_symbol) == {"BTC", "ETH"}
    btc = by_symbol["BTC"]
    assert btc.exchange is Exchange.BITHUMB
    assert btc.market == "KRW"
    assert btc.last_price == "95000000"
    assert btc.change_24h_pct == "+1.50"
    assert btc.turnover_24h == "117000000000"
    assert btc.pair == "BTC/KRW"
    assert btc.search_key == "BTCKRWBTC"
    assert btc.timestamp == "1717000000000"
    assert by_symbol["ETH"].change_24h_pct == "-0.25"


@pytest.mark.asyncio
async def test_non_success_status_should_raise_upstream_error(mock_session) -> None:
    body = {"status": "5600", "message": "Please try again"}
    client = BithumbClient(BithumbConfig(), session=mock_session({"/public/ticker/ALL_USDT": (200, body)}))
    with pytest.raises(UpstreamError) as excinfo:
        await client.fetch_market(BithumbMarket.USDT)
    assert excinfo.value.code == "5600"
    assert excinfo.value.message == "Please try again"


@pytest.mark.asyncio
async def test_status_without_message_should_name_market(mock_session) -> None:
    client = BithumbClient(BithumbConfig(), session=mock_session({"/public/ticker/ALL_BTC": (200, {"status": "5500"})}))
    with pytest.raises(UpstreamError, match="Unknown error for BTC market"):
        await client.fetch_market(BithumbMarket.BTC)


@pytest.mark.asyncio
async def test_http_failure_should_raise_transport_error(mock_session) -> None:
    client = BithumbClient(BithumbConfig(), session=mock_session({"/public/ticker/ALL_KRW": (500, "oops")}))
    with pytest.raises(TransportError) as excinfo:
        await client.fetch_market(BithumbMarket.KRW)
    assert excinfo.value.status_code == 500
