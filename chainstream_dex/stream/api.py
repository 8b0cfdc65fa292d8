"""Typed subscriptions to the ChainStream realtime streams."""

from contextlib import contextmanager
from typing import Any, Callable, Iterable, Iterator, Optional, TypeVar, Union

from ..shared.types import ChannelType, Dex, RankingType, Resolution, enum_value
from .registry import Listener, StreamSubscription, SubscriptionRegistry
from .transport import Transport
from .types import (
    DexPoolBalance,
    NewToken,
    RankingTokenList,
    TokenCandle,
    TokenHolder,
    TokenLiquidity,
    TokenMetadata,
    TokenStat,
    TokenSupply,
    TradeActivity,
    WalletBalance,
    WalletPnl,
    WalletTokenPnl,
    decode_list,
)

T = TypeVar("T")


class StreamApi:
    """Realtime stream subscriptions.

    Every ``subscribe_*`` method builds the channel name, decodes each
    publication into typed records and returns a :class:`StreamSubscription`
    handle. Subscribing twice to the same channel shares one server
    subscription.

    Example:
        ```python
        stream = StreamApi(CentrifugeTransport(url, get_token=lambda: token))
        await stream.connect()

        handle = stream.subscribe_token_trade(
            chain="solana",
            token_address=mint,
            callback=lambda trade: print(trade.tx_hash),
            filter="buyAmountInUsd > 1000",
        )
        ...
        handle.unsubscribe()
        ```
    """

    def __init__(self, transport: Transport):
        self._transport = transport
        self._registry = SubscriptionRegistry(transport)

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def registry(self) -> SubscriptionRegistry:
        return self._registry

    # =========================================================================
    # Connection
    # =========================================================================

    async def connect(self) -> None:
        """Connect the underlying transport."""
        await self._transport.connect()

    async def disconnect(self) -> None:
        """Disconnect the transport, keeping registered subscriptions."""
        await self._transport.disconnect()

    async def close(self) -> None:
        """Release every subscription and disconnect."""
        self._registry.clear()
        await self._transport.disconnect()

    # =========================================================================
    # Batching
    # =========================================================================

    def start_batching(self) -> None:
        """Hold subscription changes until :meth:`stop_batching`."""
        self._transport.start_batching()

    def stop_batching(self) -> None:
        """Release the held subscription changes together."""
        self._transport.stop_batching()

    @contextmanager
    def batching(self) -> Iterator["StreamApi"]:
        """Batch every subscription change made inside the block."""
        with self._registry.batching():
            yield self

    def batch_subscribe(self, subscribe: Callable[[], T]) -> T:
        """Run ``subscribe`` with batching enabled and return its result.

        Example:
            ```python
            handles = stream.batch_subscribe(lambda: [
                stream.subscribe_token_stats(chain="solana", token_address=a, callback=cb),
                stream.subscribe_token_holders(chain="solana", token_address=a, callback=cb),
            ])
            ```
        """
        with self.batching():
            return subscribe()

    def batch_unsubscribe(self, handles: Optional[Iterable[Optional[StreamSubscription]]]) -> None:
        """Release several handles; ``None`` entries are skipped."""
        if not handles:
            return
        for handle in handles:
            if handle is not None:
                handle.unsubscribe()

    # =========================================================================
    # Raw subscriptions
    # =========================================================================

    def subscribe(
        self,
        channel: str,
        listener: Listener,
        filter: Optional[str] = None,
        type_name: Optional[str] = None,
    ) -> StreamSubscription:
        """Subscribe a listener to raw publications on a channel.

        Args:
            channel: Channel name
            listener: Callable receiving the raw publication payload
            filter: Optional filter expression
            type_name: Field mapping used to rewrite ``filter``
        """
        return self._registry.subscribe(channel, listener, filter, type_name)

    def unsubscribe(self, channel: str, listener: Listener) -> None:
        """Remove a listener registered with :meth:`subscribe` (matched by identity)."""
        self._registry.unsubscribe(channel, listener)

    def _subscribe_decoded(
        self,
        channel: str,
        decode: Callable[[Any], T],
        callback: Callable[[T], None],
        filter: Optional[str] = None,
        type_name: Optional[str] = None,
    ) -> StreamSubscription:
        # A fresh listener per call keeps each registration distinct
        def listener(data: Any) -> None:
            callback(decode(data))

        return self._registry.subscribe(channel, listener, filter, type_name)

    # =========================================================================
    # Token streams
    # =========================================================================

    def subscribe_token_candles(
        self,
        *,
        chain: str,
        token_address: str,
        resolution: Union[Resolution, str],
        callback: Callable[[TokenCandle], None],
        filter: Optional[str] = None,
    ) -> StreamSubscription:
        """Subscribe to OHLCV candles for a token.

        Args:
            chain: Chain name, e.g. ``"solana"``
            token_address: Token address
            resolution: Candle resolution
            callback: Receives a :class:`TokenCandle` per publication
            filter: Optional filter over candle fields
        """
        channel = f"dex-candle:{chain}_{token_address}_{enum_value(resolution)}"
        return self._subscribe_decoded(
            channel, TokenCandle.from_wire, callback, filter, "subscribeTokenCandles"
        )

    def subscribe_token_stats(
        self,
        *,
        chain: str,
        token_address: str,
        callback: Callable[[TokenStat], None],
        filter: Optional[str] = None,
    ) -> StreamSubscription:
        """Subscribe to rolling trade statistics for a token."""
        channel = f"dex-token-stats:{chain}_{token_address}"
        return self._subscribe_decoded(
            channel, TokenStat.from_wire, callback, filter, "subscribeTokenStats"
        )

    def subscribe_token_holders(
        self,
        *,
        chain: str,
        token_address: str,
        callback: Callable[[TokenHolder], None],
        filter: Optional[str] = None,
    ) -> StreamSubscription:
        """Subscribe to holder concentration updates for a token."""
        channel = f"dex-token-holding:{chain}_{token_address}"
        return self._subscribe_decoded(
            channel, TokenHolder.from_wire, callback, filter, "subscribeTokenHolders"
        )

    def subscribe_new_token(
        self,
        *,
        chain: str,
        callback: Callable[[NewToken], None],
        filter: Optional[str] = None,
    ) -> StreamSubscription:
        """Subscribe to tokens created on a chain."""
        channel = f"dex-new-token:{chain}"
        return self._subscribe_decoded(
            channel, NewToken.from_wire, callback, filter, "subscribeNewToken"
        )

    def subscribe_new_tokens_metadata(
        self,
        *,
        chain: str,
        callback: Callable[[list[TokenMetadata]], None],
    ) -> StreamSubscription:
        """Subscribe to metadata batches for newly created tokens."""
        channel = f"dex-new-tokens-metadata:{chain}"
        return self._subscribe_decoded(
            channel, lambda data: decode_list(TokenMetadata.from_wire, data), callback
        )

    def subscribe_token_supply(
        self,
        *,
        chain: str,
        token_address: str,
        callback: Callable[[TokenSupply], None],
        filter: Optional[str] = None,
    ) -> StreamSubscription:
        """Subscribe to supply and market cap updates for a token."""
        channel = f"dex-token-supply:{chain}_{token_address}"
        return self._subscribe_decoded(
            channel, TokenSupply.from_wire, callback, filter, "subscribeTokenSupply"
        )

    def subscribe_token_liquidity(
        self,
        *,
        chain: str,
        token_address: str,
        callback: Callable[[TokenLiquidity], None],
        filter: Optional[str] = None,
    ) -> StreamSubscription:
        """Subscribe to liquidity and other numeric stats for a token."""
        channel = f"dex-token-general-stat-num:{chain}_{token_address}"
        return self._subscribe_decoded(
            channel, TokenLiquidity.from_wire, callback, filter, "subscribeTokenLiquidity"
        )

    def subscribe_token_trade(
        self,
        *,
        chain: str,
        token_address: str,
        callback: Callable[[TradeActivity], None],
        filter: Optional[str] = None,
    ) -> StreamSubscription:
        """Subscribe to trades of a token."""
        channel = f"dex-trade:{chain}_{token_address}"
        return self._subscribe_decoded(
            channel, TradeActivity.from_wire, callback, filter, "subscribeTokenTrades"
        )

    # =========================================================================
    # Ranking streams
    # =========================================================================

    def subscribe_ranking_tokens_liquidity(
        self,
        *,
        chain: str,
        channel_type: Union[ChannelType, str],
        callback: Callable[[list[TokenLiquidity]], None],
    ) -> StreamSubscription:
        channel = (
            f"dex-ranking-token-general_stat_num-list:{chain}_{enum_value(channel_type)}"
        )
        return self._subscribe_decoded(
            channel, lambda data: decode_list(TokenLiquidity.from_wire, data), callback
        )

    def subscribe_ranking_tokens_list(
        self,
        *,
        chain: str,
        ranking_type: Union[RankingType, str],
        callback: Callable[[list[RankingTokenList]], None],
        dex: Optional[Union[Dex, str]] = None,
    ) -> StreamSubscription:
        """Subscribe to a ranking list, optionally narrowed to one DEX.

        Each entry bundles whichever metadata, bonding curve, holder, supply
        and stat sections the server sent for the token.
        """
        channel = f"dex-ranking-list:{chain}_{enum_value(ranking_type)}"
        if dex:
            channel = f"{channel}_{enum_value(dex)}"
        return self._subscribe_decoded(
            channel, lambda data: decode_list(RankingTokenList.from_wire, data), callback
        )

    def subscribe_ranking_tokens_stats(
        self,
        *,
        chain: str,
        channel_type: Union[ChannelType, str],
        callback: Callable[[list[TokenStat]], None],
    ) -> StreamSubscription:
        channel = f"dex-ranking-token-stats-list:{chain}_{enum_value(channel_type)}"
        return self._subscribe_decoded(
            channel, lambda data: decode_list(TokenStat.from_wire, data), callback
        )

    def subscribe_ranking_tokens_holders(
        self,
        *,
        chain: str,
        channel_type: Union[ChannelType, str],
        callback: Callable[[list[TokenHolder]], None],
    ) -> StreamSubscription:
        channel = f"dex-ranking-token-holding-list:{chain}_{enum_value(channel_type)}"
        return self._subscribe_decoded(
            channel, lambda data: decode_list(TokenHolder.from_wire, data), callback
        )

    def subscribe_ranking_tokens_supply(
        self,
        *,
        chain: str,
        channel_type: Union[ChannelType, str],
        callback: Callable[[list[TokenSupply]], None],
    ) -> StreamSubscription:
        channel = f"dex-ranking-token-supply-list:{chain}_{enum_value(channel_type)}"
        return self._subscribe_decoded(
            channel, lambda data: decode_list(TokenSupply.from_wire, data), callback
        )

    # =========================================================================
    # Wallet streams
    # =========================================================================

    def subscribe_wallet_balance(
        self,
        *,
        chain: str,
        wallet_address: str,
        callback: Callable[[list[WalletBalance]], None],
        filter: Optional[str] = None,
    ) -> StreamSubscription:
        """Subscribe to token balance changes of a wallet.

        Each publication carries one balance and is delivered as a
        single-element list.
        """
        channel = f"dex-wallet-balance:{chain}_{wallet_address}"
        return self._subscribe_decoded(
            channel,
            lambda data: [WalletBalance.from_wire(data)],
            callback,
            filter,
            "subscribeWalletBalance",
        )

    def subscribe_wallet_pnl(
        self,
        *,
        chain: str,
        wallet_address: str,
        callback: Callable[[WalletTokenPnl], None],
        filter: Optional[str] = None,
    ) -> StreamSubscription:
        """Subscribe to per-token PnL updates of a wallet."""
        channel = f"dex-wallet-token-pnl:{chain}_{wallet_address}"
        return self._subscribe_decoded(
            channel, WalletTokenPnl.from_wire, callback, filter, "subscribeWalletPnl"
        )

    def subscribe_wallet_pnl_list(
        self,
        *,
        chain: str,
        wallet_address: str,
        callback: Callable[[list[WalletPnl]], None],
    ) -> StreamSubscription:
        """Subscribe to aggregate PnL of a wallet, one entry per resolution."""
        channel = f"dex-wallet-pnl-list:{chain}_{wallet_address}"
        return self._subscribe_decoded(
            channel, lambda data: decode_list(WalletPnl.from_wire, data), callback
        )

    def subscribe_wallet_trade(
        self,
        *,
        chain: str,
        wallet_address: str,
        callback: Callable[[TradeActivity], None],
        filter: Optional[str] = None,
    ) -> StreamSubscription:
        """Subscribe to trades made by a wallet."""
        channel = f"dex-wallet-trade:{chain}_{wallet_address}"
        return self._subscribe_decoded(
            channel, TradeActivity.from_wire, callback, filter, "subscribeTokenTrades"
        )

    # =========================================================================
    # Pool streams
    # =========================================================================

    def subscribe_dex_pool_balance(
        self,
        *,
        chain: str,
        pool_address: str,
        callback: Callable[[DexPoolBalance], None],
    ) -> StreamSubscription:
        """Subscribe to liquidity on both sides of a DEX pool."""
        channel = f"dex-pool-balance:{chain}_{pool_address}"
        return self._subscribe_decoded(channel, DexPoolBalance.from_wire, callback)
