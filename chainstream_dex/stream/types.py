"""Record types for the ChainStream realtime streams.

Every record decodes from the terse wire payload with ``from_wire``. Keys
are looked up through the per-type tables in :mod:`.fields`, so a record
attribute exists for each long field name of its table. Keys missing from a
payload leave the attribute as ``None``; numeric-as-string values that are
present are passed through :func:`format_scientific_notation`.
"""

from dataclasses import dataclass, fields as dataclass_fields, is_dataclass
from typing import Any, Callable, Optional, TypeVar

from ..shared.price import format_scientific_notation
from .fields import wire_fields

T = TypeVar("T")


def _decode_values(
    data: dict,
    type_name: str,
    numeric: frozenset = frozenset(),
    truthy_only: bool = False,
) -> dict[str, Any]:
    """Map short wire keys of ``data`` to record attribute values."""
    values: dict[str, Any] = {}
    for attr, short in wire_fields(type_name):
        if short not in data:
            continue
        raw = data[short]
        if truthy_only and not raw:
            continue
        values[attr] = format_scientific_notation(raw) if attr in numeric else raw
    return values


def _to_dict(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return value.to_dict()
    if isinstance(value, list):
        return [_to_dict(v) for v in value]
    return value


def decode_list(decoder: Callable[[dict], T], data: Optional[list]) -> list[T]:
    """Decode an array payload element-wise, preserving order.

    A missing array decodes to an empty list.
    """
    if not data:
        return []
    return [decoder(item) for item in data]


class WireRecord:
    """Mixin for stream records."""

    def to_dict(self) -> dict:
        """Convert to a dictionary, omitting attributes that are ``None``."""
        result = {}
        for f in dataclass_fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            result[f.name] = _to_dict(value)
        return result


# ============================================================================
# CANDLES
# ============================================================================


@dataclass
class TokenCandle(WireRecord):
    """OHLCV candle for a token at a fixed resolution."""

    open: Optional[str] = None
    close: Optional[str] = None
    high: Optional[str] = None
    low: Optional[str] = None
    volume: Optional[str] = None
    resolution: Optional[str] = None
    time: Optional[int] = None
    number: Optional[int] = None

    _NUMERIC = frozenset({"open", "close", "high", "low", "volume"})

    @classmethod
    def from_wire(cls, data: dict) -> "TokenCandle":
        return cls(**_decode_values(data, "subscribeTokenCandles", cls._NUMERIC))


# ============================================================================
# TOKEN STATS
# ============================================================================

# USD volumes and prices; trade and trader counts stay as sent
_TOKEN_STAT_NUMERIC = frozenset(
    attr
    for attr, _ in wire_fields("subscribeTokenStats")
    if attr.startswith(("buy_volume", "sell_volume", "price", "open_in_usd", "close_in_usd"))
)


@dataclass
class TokenStat(WireRecord):
    """Rolling trade statistics for a token over several windows."""

    address: Optional[str] = None
    timestamp: Optional[int] = None

    buys1m: Optional[int] = None
    sells1m: Optional[int] = None
    buyers1m: Optional[int] = None
    sellers1m: Optional[int] = None
    buy_volume_in_usd1m: Optional[str] = None
    sell_volume_in_usd1m: Optional[str] = None
    price1m: Optional[str] = None
    open_in_usd1m: Optional[str] = None
    close_in_usd1m: Optional[str] = None

    buys5m: Optional[int] = None
    sells5m: Optional[int] = None
    buyers5m: Optional[int] = None
    sellers5m: Optional[int] = None
    buy_volume_in_usd5m: Optional[str] = None
    sell_volume_in_usd5m: Optional[str] = None
    price5m: Optional[str] = None
    open_in_usd5m: Optional[str] = None
    close_in_usd5m: Optional[str] = None

    buys15m: Optional[int] = None
    sells15m: Optional[int] = None
    buyers15m: Optional[int] = None
    sellers15m: Optional[int] = None
    buy_volume_in_usd15m: Optional[str] = None
    sell_volume_in_usd15m: Optional[str] = None
    price15m: Optional[str] = None
    open_in_usd15m: Optional[str] = None
    close_in_usd15m: Optional[str] = None

    buys30m: Optional[int] = None
    sells30m: Optional[int] = None
    buyers30m: Optional[int] = None
    sellers30m: Optional[int] = None
    buy_volume_in_usd30m: Optional[str] = None
    sell_volume_in_usd30m: Optional[str] = None
    price30m: Optional[str] = None
    open_in_usd30m: Optional[str] = None
    close_in_usd30m: Optional[str] = None

    buys1h: Optional[int] = None
    sells1h: Optional[int] = None
    buyers1h: Optional[int] = None
    sellers1h: Optional[int] = None
    buy_volume_in_usd1h: Optional[str] = None
    sell_volume_in_usd1h: Optional[str] = None
    price1h: Optional[str] = None
    open_in_usd1h: Optional[str] = None
    close_in_usd1h: Optional[str] = None

    buys4h: Optional[int] = None
    sells4h: Optional[int] = None
    buyers4h: Optional[int] = None
    sellers4h: Optional[int] = None
    buy_volume_in_usd4h: Optional[str] = None
    sell_volume_in_usd4h: Optional[str] = None
    price4h: Optional[str] = None
    open_in_usd4h: Optional[str] = None
    close_in_usd4h: Optional[str] = None

    buys24h: Optional[int] = None
    sells24h: Optional[int] = None
    buyers24h: Optional[int] = None
    sellers24h: Optional[int] = None
    buy_volume_in_usd24h: Optional[str] = None
    sell_volume_in_usd24h: Optional[str] = None
    price24h: Optional[str] = None
    open_in_usd24h: Optional[str] = None
    close_in_usd24h: Optional[str] = None

    price: Optional[str] = None

    @classmethod
    def from_wire(cls, data: dict, truthy_only: bool = False) -> "TokenStat":
        return cls(
            **_decode_values(data, "subscribeTokenStats", _TOKEN_STAT_NUMERIC, truthy_only)
        )


# ============================================================================
# HOLDERS / SUPPLY / LIQUIDITY
# ============================================================================


@dataclass
class TokenHolder(WireRecord):
    """Holder concentration snapshot for a token."""

    token_address: Optional[str] = None
    holders: Optional[int] = None
    top100_amount: Optional[str] = None
    top10_amount: Optional[str] = None
    top100_holders: Optional[int] = None
    top10_holders: Optional[int] = None
    top100_ratio: Optional[str] = None
    top10_ratio: Optional[str] = None
    creators_holders: Optional[int] = None
    creators_amount: Optional[str] = None
    creators_ratio: Optional[str] = None
    timestamp: Optional[int] = None

    _NUMERIC = frozenset(
        {
            "top100_amount",
            "top10_amount",
            "top100_ratio",
            "top10_ratio",
            "creators_amount",
            "creators_ratio",
        }
    )

    @classmethod
    def from_wire(cls, data: dict, truthy_only: bool = False) -> "TokenHolder":
        return cls(
            **_decode_values(data, "subscribeTokenHolders", cls._NUMERIC, truthy_only)
        )


@dataclass
class TokenSupply(WireRecord):
    """Token supply and market cap."""

    token_address: Optional[str] = None
    supply: Optional[str] = None
    market_cap_in_usd: Optional[str] = None
    timestamp: Optional[int] = None

    _NUMERIC = frozenset({"supply", "market_cap_in_usd"})

    @classmethod
    def from_wire(cls, data: dict, truthy_only: bool = False) -> "TokenSupply":
        return cls(
            **_decode_values(data, "subscribeTokenSupply", cls._NUMERIC, truthy_only)
        )


@dataclass
class TokenLiquidity(WireRecord):
    """A general numeric stat (liquidity and similar) for a token."""

    token_address: Optional[str] = None
    metric_type: Optional[str] = None
    value: Optional[str] = None
    timestamp: Optional[int] = None

    @classmethod
    def from_wire(cls, data: dict) -> "TokenLiquidity":
        return cls(
            **_decode_values(data, "subscribeTokenLiquidity", frozenset({"value"}))
        )


@dataclass
class TokenBondingCurve(WireRecord):
    """Bonding curve progress for a launchpad token."""

    progress_ratio: Optional[str] = None

    @classmethod
    def from_wire(cls, data: dict) -> "TokenBondingCurve":
        return cls(
            **_decode_values(
                data,
                "subscribeTokenBondingCurve",
                frozenset({"progress_ratio"}),
                truthy_only=True,
            )
        )


# ============================================================================
# TOKEN METADATA
# ============================================================================


@dataclass
class SocialMedia(WireRecord):
    """Social links; only links the server sent are set."""

    twitter: Optional[str] = None
    telegram: Optional[str] = None
    website: Optional[str] = None
    tiktok: Optional[str] = None
    discord: Optional[str] = None
    facebook: Optional[str] = None
    github: Optional[str] = None
    instagram: Optional[str] = None
    linkedin: Optional[str] = None
    medium: Optional[str] = None
    reddit: Optional[str] = None
    youtube: Optional[str] = None
    bitbucket: Optional[str] = None

    @classmethod
    def from_wire(cls, data: Optional[dict]) -> "SocialMedia":
        return cls(**_decode_values(data or {}, "subscribeSocialMedia", truthy_only=True))


@dataclass
class LaunchPlatform(WireRecord):
    """Program a token launched from or migrated to."""

    program_address: Optional[str] = None
    protocol_family: Optional[str] = None
    protocol_name: Optional[str] = None

    @classmethod
    def from_wire(cls, data: dict) -> "LaunchPlatform":
        return cls(**_decode_values(data, "subscribeLaunchPlatform", truthy_only=True))


@dataclass
class NewToken(WireRecord):
    """A newly created token."""

    token_address: Optional[str] = None
    name: Optional[str] = None
    symbol: Optional[str] = None
    created_at_ms: Optional[int] = None

    @classmethod
    def from_wire(cls, data: dict) -> "NewToken":
        return cls(**_decode_values(data, "subscribeNewToken"))


@dataclass
class TokenMetadata(WireRecord):
    """Descriptive metadata for a token."""

    token_address: Optional[str] = None
    name: Optional[str] = None
    symbol: Optional[str] = None
    image_url: Optional[str] = None
    description: Optional[str] = None
    decimals: Optional[int] = None
    social_media: Optional[SocialMedia] = None
    launch_from: Optional[LaunchPlatform] = None
    migrated_to: Optional[LaunchPlatform] = None
    created_at_ms: Optional[int] = None

    @classmethod
    def from_wire(cls, data: dict) -> "TokenMetadata":
        """Decode an entry of the new-tokens-metadata stream."""
        values = _decode_values(data, "subscribeNewTokensMetadata")
        values["social_media"] = SocialMedia.from_wire(data.get("sm"))
        return cls(**values)

    @classmethod
    def from_ranking_wire(cls, data: dict) -> "TokenMetadata":
        """Decode the ``t`` section of a ranking list entry.

        Only the token address is always carried; every other field is set
        when the server sent a non-empty value.
        """
        metadata = cls(token_address=data.get("a"))
        if data.get("n"):
            metadata.name = data["n"]
        if data.get("s"):
            metadata.symbol = data["s"]
        if data.get("iu"):
            metadata.image_url = data["iu"]
        if data.get("de"):
            metadata.description = data["de"]
        if data.get("dec"):
            metadata.decimals = data["dec"]
        if data.get("cts"):
            metadata.created_at_ms = data["cts"]
        if data.get("lf"):
            metadata.launch_from = LaunchPlatform.from_wire(data["lf"])
        if data.get("mt"):
            metadata.migrated_to = LaunchPlatform.from_wire(data["mt"])
        if data.get("sm"):
            metadata.social_media = SocialMedia.from_wire(data["sm"])
        return metadata


# ============================================================================
# RANKING LISTS
# ============================================================================


@dataclass
class RankingTokenList(WireRecord):
    """One entry of a ranking list, bundling the sections the server sent."""

    metadata: Optional[TokenMetadata] = None
    bonding_curve: Optional[TokenBondingCurve] = None
    holder: Optional[TokenHolder] = None
    supply: Optional[TokenSupply] = None
    stat: Optional[TokenStat] = None

    @classmethod
    def from_wire(cls, data: dict) -> "RankingTokenList":
        result = cls()

        if data.get("t"):
            result.metadata = TokenMetadata.from_ranking_wire(data["t"])

        if data.get("bc"):
            result.bonding_curve = TokenBondingCurve.from_wire(data["bc"])

        if data.get("h"):
            holder = TokenHolder.from_wire(data["h"], truthy_only=True)
            holder.token_address = data["h"].get("a")
            holder.timestamp = data["h"].get("ts") or 0
            result.holder = holder

        if data.get("s"):
            supply = TokenSupply.from_wire(data["s"], truthy_only=True)
            supply.token_address = data["s"].get("a")
            supply.timestamp = data["s"].get("ts") or 0
            result.supply = supply

        if data.get("ts"):
            stat = TokenStat.from_wire(data["ts"], truthy_only=True)
            stat.address = data["ts"].get("a")
            stat.timestamp = data["ts"].get("t") or 0
            result.stat = stat

        return result


# ============================================================================
# WALLETS
# ============================================================================


@dataclass
class WalletBalance(WireRecord):
    """Balance of one token in a wallet."""

    wallet_address: Optional[str] = None
    token_address: Optional[str] = None
    token_price_in_usd: Optional[str] = None
    balance: Optional[str] = None
    timestamp: Optional[int] = None

    _NUMERIC = frozenset({"token_price_in_usd", "balance"})

    @classmethod
    def from_wire(cls, data: dict) -> "WalletBalance":
        return cls(**_decode_values(data, "subscribeWalletBalance", cls._NUMERIC))


@dataclass
class WalletTokenPnl(WireRecord):
    """Profit and loss of a wallet on a single token."""

    wallet_address: Optional[str] = None
    token_address: Optional[str] = None
    token_price_in_usd: Optional[str] = None
    timestamp: Optional[int] = None
    opentime: Optional[int] = None
    lasttime: Optional[int] = None
    closetime: Optional[int] = None
    buy_amount: Optional[str] = None
    buy_amount_in_usd: Optional[str] = None
    buy_count: Optional[int] = None
    buy_count30d: Optional[int] = None
    buy_count7d: Optional[int] = None
    sell_amount: Optional[str] = None
    sell_amount_in_usd: Optional[str] = None
    sell_count: Optional[int] = None
    sell_count30d: Optional[int] = None
    sell_count7d: Optional[int] = None
    held_duration_timestamp: Optional[int] = None
    average_buy_price_in_usd: Optional[str] = None
    average_sell_price_in_usd: Optional[str] = None
    unrealized_profit_in_usd: Optional[str] = None
    unrealized_profit_ratio: Optional[str] = None
    realized_profit_in_usd: Optional[str] = None
    realized_profit_ratio: Optional[str] = None
    total_realized_profit_in_usd: Optional[str] = None
    total_realized_profit_ratio: Optional[str] = None

    _NUMERIC = frozenset(
        {
            "token_price_in_usd",
            "buy_amount",
            "buy_amount_in_usd",
            "sell_amount",
            "sell_amount_in_usd",
            "average_buy_price_in_usd",
            "average_sell_price_in_usd",
            "unrealized_profit_in_usd",
            "unrealized_profit_ratio",
            "realized_profit_in_usd",
            "realized_profit_ratio",
            "total_realized_profit_in_usd",
            "total_realized_profit_ratio",
        }
    )

    @classmethod
    def from_wire(cls, data: dict) -> "WalletTokenPnl":
        return cls(**_decode_values(data, "subscribeWalletPnl", cls._NUMERIC))


@dataclass
class WalletPnl(WireRecord):
    """Aggregate wallet PnL over a resolution window."""

    wallet_address: Optional[str] = None
    buys: Optional[int] = None
    buy_amount: Optional[str] = None
    buy_amount_in_usd: Optional[str] = None
    average_buy_price_in_usd: Optional[str] = None
    sell_amount: Optional[str] = None
    sell_amount_in_usd: Optional[str] = None
    sells: Optional[int] = None
    wins: Optional[int] = None
    win_ratio: Optional[str] = None
    pnl_in_usd: Optional[str] = None
    average_pnl_in_usd: Optional[str] = None
    pnl_ratio: Optional[str] = None
    profitable_days: Optional[int] = None
    losing_days: Optional[int] = None
    tokens: Optional[int] = None
    resolution: Optional[str] = None

    _NUMERIC = frozenset(
        {
            "buy_amount",
            "buy_amount_in_usd",
            "average_buy_price_in_usd",
            "sell_amount",
            "sell_amount_in_usd",
            "win_ratio",
            "pnl_in_usd",
            "average_pnl_in_usd",
            "pnl_ratio",
        }
    )

    @classmethod
    def from_wire(cls, data: dict) -> "WalletPnl":
        return cls(**_decode_values(data, "subscribeWalletPnlList", cls._NUMERIC))


# ============================================================================
# TRADES / POOLS
# ============================================================================


@dataclass
class TradeActivity(WireRecord):
    """A swap, seen from the token or from the wallet stream."""

    token_address: Optional[str] = None
    timestamp: Optional[int] = None
    kind: Optional[str] = None
    buy_amount: Optional[str] = None
    buy_amount_in_usd: Optional[str] = None
    buy_token_address: Optional[str] = None
    buy_token_name: Optional[str] = None
    buy_token_symbol: Optional[str] = None
    buy_wallet_address: Optional[str] = None
    sell_amount: Optional[str] = None
    sell_amount_in_usd: Optional[str] = None
    sell_token_address: Optional[str] = None
    sell_token_name: Optional[str] = None
    sell_token_symbol: Optional[str] = None
    sell_wallet_address: Optional[str] = None
    tx_hash: Optional[str] = None

    _NUMERIC = frozenset(
        {"buy_amount", "buy_amount_in_usd", "sell_amount", "sell_amount_in_usd"}
    )

    @classmethod
    def from_wire(cls, data: dict) -> "TradeActivity":
        return cls(**_decode_values(data, "subscribeTokenTrades", cls._NUMERIC))


@dataclass
class DexPoolBalance(WireRecord):
    """Liquidity on both sides of a DEX pool."""

    pool_address: Optional[str] = None
    token_a_address: Optional[str] = None
    token_a_liquidity_in_usd: Optional[str] = None
    token_b_address: Optional[str] = None
    token_b_liquidity_in_usd: Optional[str] = None

    _NUMERIC = frozenset({"token_a_liquidity_in_usd", "token_b_liquidity_in_usd"})

    @classmethod
    def from_wire(cls, data: dict) -> "DexPoolBalance":
        return cls(**_decode_values(data, "subscribeDexPoolBalance", cls._NUMERIC))
