"""Tests for the typed stream API."""

import pytest

from chainstream_dex.shared import ChannelType, Dex, RankingType, Resolution
from chainstream_dex.stream import (
    TokenCandle,
    TradeActivity,
    WalletBalance,
)


def _noop(data):
    pass


class TestChannelNames:
    def test_token_channels(self, stream, transport):
        stream.subscribe_token_candles(
            chain="solana", token_address="T", resolution=Resolution.ONE_MINUTE, callback=_noop
        )
        stream.subscribe_token_stats(chain="solana", token_address="T", callback=_noop)
        stream.subscribe_token_holders(chain="solana", token_address="T", callback=_noop)
        stream.subscribe_new_token(chain="solana", callback=_noop)
        stream.subscribe_new_tokens_metadata(chain="solana", callback=_noop)
        stream.subscribe_token_supply(chain="solana", token_address="T", callback=_noop)
        stream.subscribe_token_liquidity(chain="solana", token_address="T", callback=_noop)
        stream.subscribe_token_trade(chain="solana", token_address="T", callback=_noop)

        assert list(transport.subscriptions) == [
            "dex-candle:solana_T_1m",
            "dex-token-stats:solana_T",
            "dex-token-holding:solana_T",
            "dex-new-token:solana",
            "dex-new-tokens-metadata:solana",
            "dex-token-supply:solana_T",
            "dex-token-general-stat-num:solana_T",
            "dex-trade:solana_T",
        ]

    def test_ranking_channels(self, stream, transport):
        stream.subscribe_ranking_tokens_liquidity(
            chain="solana", channel_type=ChannelType.HOT, callback=_noop
        )
        stream.subscribe_ranking_tokens_list(
            chain="solana", ranking_type=RankingType.NEW, callback=_noop
        )
        stream.subscribe_ranking_tokens_list(
            chain="solana", ranking_type=RankingType.NEW, dex=Dex.PUMP_FUN, callback=_noop
        )
        stream.subscribe_ranking_tokens_stats(chain="solana", channel_type="new", callback=_noop)
        stream.subscribe_ranking_tokens_holders(
            chain="solana", channel_type=ChannelType.MIGRATED, callback=_noop
        )
        stream.subscribe_ranking_tokens_supply(
            chain="solana", channel_type=ChannelType.FINAL_STRETCH, callback=_noop
        )

        assert list(transport.subscriptions) == [
            "dex-ranking-token-general_stat_num-list:solana_hot",
            "dex-ranking-list:solana_new",
            "dex-ranking-list:solana_new_pump_fun",
            "dex-ranking-token-stats-list:solana_new",
            "dex-ranking-token-holding-list:solana_migrated",
            "dex-ranking-token-supply-list:solana_finalStretch",
        ]

    def test_wallet_and_pool_channels(self, stream, transport):
        stream.subscribe_wallet_balance(chain="solana", wallet_address="W", callback=_noop)
        stream.subscribe_wallet_pnl(chain="solana", wallet_address="W", callback=_noop)
        stream.subscribe_wallet_pnl_list(chain="solana", wallet_address="W", callback=_noop)
        stream.subscribe_wallet_trade(chain="solana", wallet_address="W", callback=_noop)
        stream.subscribe_dex_pool_balance(chain="solana", pool_address="P", callback=_noop)

        assert list(transport.subscriptions) == [
            "dex-wallet-balance:solana_W",
            "dex-wallet-token-pnl:solana_W",
            "dex-wallet-pnl-list:solana_W",
            "dex-wallet-trade:solana_W",
            "dex-pool-balance:solana_P",
        ]

    def test_every_subscription_requests_fossil_delta(self, stream, transport):
        stream.subscribe_new_token(chain="solana", callback=_noop)
        assert transport.created[0].delta == "fossil"


class TestFilters:
    def test_token_trade_filter_rewritten(self, stream, transport):
        stream.subscribe_token_trade(
            chain="solana",
            token_address="T",
            callback=_noop,
            filter="buyAmountInUsd > 1000 && kind == 'buy'",
        )
        assert transport.created[0].filter == "meta.baiu > 1000 && meta.k == 'buy'"

    def test_wallet_trade_uses_trade_fields(self, stream, transport):
        stream.subscribe_wallet_trade(
            chain="solana", wallet_address="W", callback=_noop, filter='tokenAddress == "T"'
        )
        assert transport.created[0].filter == 'meta.a == "T"'

    def test_stats_filter(self, stream, transport):
        stream.subscribe_token_stats(
            chain="solana", token_address="T", callback=_noop, filter="price5m > price1m"
        )
        assert transport.created[0].filter == "meta.p5m > meta.p1m"


class TestWalletBalanceScenario:
    def test_double_subscribe_and_release(self, stream, transport):
        channel = "dex-wallet-balance:solana_ABC"
        first, second = [], []

        h1 = stream.subscribe_wallet_balance(
            chain="solana", wallet_address="ABC", callback=first.append
        )
        h2 = stream.subscribe_wallet_balance(
            chain="solana", wallet_address="ABC", callback=second.append
        )

        assert len(transport.created) == 1
        assert stream.registry.listener_count(channel) == 2

        transport.publish(channel, {"a": "ABC", "ta": "T", "tpiu": "1.23e-8", "b": "5", "t": 9})

        expected = [
            WalletBalance(
                wallet_address="ABC",
                token_address="T",
                token_price_in_usd="0.0000000123",
                balance="5",
                timestamp=9,
            )
        ]
        assert first == [expected]
        assert second == [expected]

        h1.unsubscribe()
        assert transport.created[0].unsubscribe_calls == 0
        assert stream.registry.listener_count(channel) == 1

        h2.unsubscribe()
        assert transport.created[0].unsubscribe_calls == 1
        assert channel not in stream.registry

    def test_same_callback_twice_is_two_registrations(self, stream, transport):
        received = []
        h1 = stream.subscribe_wallet_balance(
            chain="solana", wallet_address="ABC", callback=received.append
        )
        stream.subscribe_wallet_balance(
            chain="solana", wallet_address="ABC", callback=received.append
        )

        transport.publish("dex-wallet-balance:solana_ABC", {"a": "ABC"})
        assert len(received) == 2

        h1.unsubscribe()
        transport.publish("dex-wallet-balance:solana_ABC", {"a": "ABC"})
        assert len(received) == 3


class TestDecodedCallbacks:
    def test_candle_callback(self, stream, transport):
        received = []
        stream.subscribe_token_candles(
            chain="solana", token_address="T", resolution="1h", callback=received.append
        )
        transport.publish("dex-candle:solana_T_1h", {"o": "1", "c": "2", "r": "1h"})

        assert received == [TokenCandle(open="1", close="2", resolution="1h")]

    def test_trade_callback(self, stream, transport):
        received = []
        stream.subscribe_token_trade(chain="solana", token_address="T", callback=received.append)
        transport.publish("dex-trade:solana_T", {"a": "T", "k": "buy", "h": "sig"})

        assert received == [TradeActivity(token_address="T", kind="buy", tx_hash="sig")]

    def test_list_callback_with_null_payload(self, stream, transport):
        received = []
        stream.subscribe_ranking_tokens_stats(
            chain="solana", channel_type="hot", callback=received.append
        )
        transport.publish("dex-ranking-token-stats-list:solana_hot", None)

        assert received == [[]]


class TestBatching:
    def test_batch_subscribe(self, stream, transport):
        handles = stream.batch_subscribe(
            lambda: [
                stream.subscribe_token_stats(chain="solana", token_address="A", callback=_noop),
                stream.subscribe_token_stats(chain="solana", token_address="B", callback=_noop),
            ]
        )

        assert len(handles) == 2
        assert transport.batch_events == ["start", "stop"]
        assert [c for c, _ in transport.commands] == ["subscribe", "subscribe"]

    def test_batch_unsubscribe_skips_none(self, stream, transport):
        h1 = stream.subscribe_token_stats(chain="solana", token_address="A", callback=_noop)
        h2 = stream.subscribe_token_stats(chain="solana", token_address="B", callback=_noop)

        stream.batch_unsubscribe([h1, None, h2])
        stream.batch_unsubscribe(None)
        stream.batch_unsubscribe([])

        assert len(transport.removed) == 2
        assert stream.registry.channels() == []

    def test_manual_batching(self, stream, transport):
        stream.start_batching()
        stream.subscribe_new_token(chain="solana", callback=_noop)
        stream.stop_batching()

        assert transport.batch_events == ["start", "stop"]


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_connect_and_close(self, stream, transport):
        await stream.connect()
        assert transport.connected

        stream.subscribe_new_token(chain="solana", callback=_noop)
        await stream.close()

        assert not transport.connected
        assert stream.registry.channels() == []
        assert len(transport.removed) == 1

    @pytest.mark.asyncio
    async def test_disconnect_keeps_subscriptions(self, stream, transport):
        await stream.connect()
        stream.subscribe_new_token(chain="solana", callback=_noop)
        await stream.disconnect()

        assert stream.registry.channels() == ["dex-new-token:solana"]
