"""Realtime streaming for ChainStream DEX data.

Subscriptions are multiplexed per channel over a single Centrifugo
connection. Filters are written with verbose field names and rewritten to
the short wire names the server evaluates.

Example:
    ```python
    from chainstream_dex.stream import CentrifugeTransport, StreamApi

    stream = StreamApi(CentrifugeTransport(url, get_token=lambda: token))
    await stream.connect()

    handle = stream.subscribe_wallet_balance(
        chain="solana",
        wallet_address=wallet,
        callback=lambda balances: print(balances[0].balance),
    )
    ```
"""

from .api import StreamApi
from .error import (
    AlreadyConnectedError,
    ConnectionFailedError,
    DuplicateSubscriptionError,
    InvalidUrlError,
    StreamError,
)
from .fields import (
    FIELD_MAPPINGS,
    FieldMapping,
    get_available_fields,
    get_field_mappings,
    replace_filter_fields,
)
from .registry import ChannelSubscription, StreamSubscription, SubscriptionRegistry
from .transport import (
    CentrifugeSubscription,
    CentrifugeTransport,
    SubscriptionState,
    Transport,
    TransportSubscription,
    WebSocketConfig,
)
from .types import (
    DexPoolBalance,
    LaunchPlatform,
    NewToken,
    RankingTokenList,
    SocialMedia,
    TokenBondingCurve,
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

__all__ = [
    # API
    "StreamApi",
    # Registry
    "ChannelSubscription",
    "StreamSubscription",
    "SubscriptionRegistry",
    # Transport
    "CentrifugeSubscription",
    "CentrifugeTransport",
    "SubscriptionState",
    "Transport",
    "TransportSubscription",
    "WebSocketConfig",
    # Fields
    "FIELD_MAPPINGS",
    "FieldMapping",
    "get_available_fields",
    "get_field_mappings",
    "replace_filter_fields",
    # Records
    "DexPoolBalance",
    "LaunchPlatform",
    "NewToken",
    "RankingTokenList",
    "SocialMedia",
    "TokenBondingCurve",
    "TokenCandle",
    "TokenHolder",
    "TokenLiquidity",
    "TokenMetadata",
    "TokenStat",
    "TokenSupply",
    "TradeActivity",
    "WalletBalance",
    "WalletPnl",
    "WalletTokenPnl",
    "decode_list",
    # Errors
    "AlreadyConnectedError",
    "ConnectionFailedError",
    "DuplicateSubscriptionError",
    "InvalidUrlError",
    "StreamError",
]
