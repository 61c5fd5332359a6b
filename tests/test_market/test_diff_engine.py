from __future__ import annotations

from tickerwatch.core.enums import PriceEffect
from tickerwatch.market.diff_engine import PriceEffectTracker, compare_prices


def _effects(displays) -> dict:
    return {d.symbol: d.effect for d in displays}


def test_compare_prices_should_handle_unusable_values() -> None:
    assert compare_prices("1", "2") is PriceEffect.UP
    assert compare_prices("2", "1") is PriceEffect.DOWN
    assert compare_prices("2.0", "2") is PriceEffect.FLAT
    assert compare_prices(None, "2") is PriceEffect.NONE
    assert compare_prices("abc", "2") is PriceEffect.NONE
    assert compare_prices("2", "") is PriceEffect.NONE


def test_first_tick_should_have_no_effect(fake_timers, ticker_factory) -> None:
    tracker = PriceEffectTracker(0.2, timers=fake_timers)
    displays = tracker.apply([ticker_factory("BTCUSDT", "100")])
    assert _effects(displays) == {"BTCUSDT": PriceEffect.NONE}
    assert tracker.pending_timers == 0


def test_up_tick_should_expire_to_flat(fake_timers, ticker_factory) -> None:
    expired = []
    tracker = PriceEffectTracker(0.2, timers=fake_timers, on_expire=expired.append)
    tracker.apply([ticker_factory("BTCUSDT", "100")])
    displays = tracker.apply([ticker_factory("BTCUSDT", "101")])
    assert _effects(displays) == {"BTCUSDT": PriceEffect.UP}
    assert tracker.pending_timers == 1

    fake_timers.advance(0.1)
    assert tracker.effect(("bybit", "BTCUSDT", "spot")) is PriceEffect.UP
    fake_timers.advance(0.1)
    assert tracker.effect(("bybit", "BTCUSDT", "spot")) is PriceEffect.FLAT
    assert tracker.pending_timers == 0
    assert expired == [("bybit", "BTCUSDT", "spot")]


def test_retrigger_should_leave_single_live_timer(fake_timers, ticker_factory) -> None:
    tracker = PriceEffectTracker(0.2, timers=fake_timers)
    tracker.apply([ticker_factory("ETHUSDT", "100")])
    tracker.apply([ticker_factory("ETHUSDT", "105")])
    displays = tracker.apply([ticker_factory("ETHUSDT", "103")])
    assert _effects(displays) == {"ETHUSDT": PriceEffect.DOWN}
    assert tracker.pending_timers == 1
    assert len(fake_timers.pending) == 1
    assert sum(1 for h in fake_timers.handles if h.cancelled) == 1


def test_equal_price_should_settle_immediately(fake_timers, ticker_factory) -> None:
    tracker = PriceEffectTracker(0.2, timers=fake_timers)
    tracker.apply([ticker_factory("BTCUSDT", "100")])
    tracker.apply([ticker_factory("BTCUSDT", "101")])
    displays = tracker.apply([ticker_factory("BTCUSDT", "101")])
    assert _effects(displays) == {"BTCUSDT": PriceEffect.FLAT}
    assert tracker.pending_timers == 0
    assert fake_timers.pending == []


def test_malformed_price_should_not_trigger(fake_timers, ticker_factory) -> None:
    tracker = PriceEffectTracker(0.2, timers=fake_timers)
    tracker.apply([ticker_factory("BTCUSDT", "100")])
    displays = tracker.apply([ticker_factory("BTCUSDT", "n/a")])
    assert _effects(displays) == {"BTCUSDT": PriceEffect.NONE}
    assert tracker.pending_timers == 0
    # previous snapshot is replaced unconditionally, so the next good tick has nothing to compare
    displays = tracker.apply([ticker_factory("BTCUSDT", "90")])
    assert _effects(displays) == {"BTCUSDT": PriceEffect.NONE}


def test_keys_should_be_independent_per_market(fake_timers, bithumb_ticker_factory) -> None:
    tracker = PriceEffectTracker(0.2, timers=fake_timers)
    tracker.apply([bithumb_ticker_factory("BTC", "KRW", "100"), bithumb_ticker_factory("BTC", "USDT", "100")])
    displays = tracker.apply([bithumb_ticker_factory("BTC", "KRW", "99"), bithumb_ticker_factory("BTC", "USDT", "101")])
    assert {d.record.market: d.effect for d in displays} == {"KRW": PriceEffect.DOWN, "USDT": PriceEffect.UP}
    assert tracker.pending_timers == 2


def test_usd_index_price_should_carry_forward(fake_timers, ticker_factory) -> None:
    tracker = PriceEffectTracker(0.2, timers=fake_timers)
    tracker.apply([ticker_factory("BTCUSDT", "100", usd_index_price="99.9")])
    [second] = tracker.apply([ticker_factory("BTCUSDT", "100", usd_index_price="")])
    [third] = tracker.apply([ticker_factory("BTCUSDT", "100", usd_index_price=None)])
    [fourth] = tracker.apply([ticker_factory("BTCUSDT", "100", usd_index_price="100.1")])
    assert second.record.usd_index_price == "99.9"
    assert third.record.usd_index_price == "99.9"
    assert fourth.record.usd_index_price == "100.1"


def test_close_should_cancel_all_timers(fake_timers, ticker_factory) -> None:
    expired = []
    tracker = PriceEffectTracker(0.2, timers=fake_timers, on_expire=expired.append)
    tracker.apply([ticker_factory("A", "1"), ticker_factory("B", "1")])
    tracker.apply([ticker_factory("A", "2"), ticker_factory("B", "0.5")])
    assert len(fake_timers.pending) == 2

    tracker.close()
    fake_timers.advance(1.0)
    assert fake_timers.pending == []
    assert expired == []
    assert tracker.pending_timers == 0


def test_vanished_key_should_release_its_timer(fake_timers, ticker_factory) -> None:
    tracker = PriceEffectTracker(0.2, timers=fake_timers)
    tracker.apply([ticker_factory("A", "1")])
    tracker.apply([ticker_factory("A", "2")])
    tracker.apply([ticker_factory("B", "5")])
    assert fake_timers.pending == []
    assert tracker.effect(("bybit", "A", "spot")) is PriceEffect.NONE
