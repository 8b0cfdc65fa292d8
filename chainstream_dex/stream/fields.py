"""Field mappings for stream filter expressions and payload decoding.

The realtime backend publishes payloads with short keys and evaluates
subscription filters against them under the ``meta.`` namespace. Each table
maps the verbose field name used by the SDK to its short wire name. Tables
are scoped per subscription type because short codes are reused with
different meanings (``a`` is a wallet address for wallet balances and a
token address for token holders).
"""

import re
from types import MappingProxyType
from typing import Mapping, Optional

FieldMapping = Mapping[str, str]

# Namespace the server exposes publication fields under in filters
FILTER_NAMESPACE = "meta"

_TOKEN_STAT_WINDOWS = ("1m", "5m", "15m", "30m", "1h", "4h", "24h")


def _token_stat_fields() -> dict[str, str]:
    fields = {
        "address": "a",
        "timestamp": "t",
    }
    for window in _TOKEN_STAT_WINDOWS:
        fields[f"buys{window}"] = f"b{window}"
        fields[f"sells{window}"] = f"s{window}"
        fields[f"buyers{window}"] = f"be{window}"
        fields[f"sellers{window}"] = f"se{window}"
        fields[f"buyVolumeInUsd{window}"] = f"bviu{window}"
        fields[f"sellVolumeInUsd{window}"] = f"sviu{window}"
        fields[f"price{window}"] = f"p{window}"
        fields[f"openInUsd{window}"] = f"oiu{window}"
        fields[f"closeInUsd{window}"] = f"ciu{window}"
    fields["price"] = "p"
    return fields


_FIELD_MAPPINGS: dict[str, dict[str, str]] = {
    "subscribeWalletBalance": {
        "walletAddress": "a",
        "tokenAddress": "ta",
        "tokenPriceInUsd": "tpiu",
        "balance": "b",
        "timestamp": "t",
    },
    "subscribeTokenCandles": {
        "open": "o",
        "close": "c",
        "high": "h",
        "low": "l",
        "volume": "v",
        "resolution": "r",
        "time": "t",
        "number": "n",
    },
    "subscribeTokenStats": _token_stat_fields(),
    "subscribeTokenHolders": {
        "tokenAddress": "a",
        "holders": "h",
        "top100Amount": "t100a",
        "top10Amount": "t10a",
        "top100Holders": "t100h",
        "top10Holders": "t10h",
        "top100Ratio": "t100r",
        "top10Ratio": "t10r",
        "creatorsHolders": "ch",
        "creatorsAmount": "ca",
        "creatorsRatio": "cr",
        "timestamp": "ts",
    },
    "subscribeNewToken": {
        "tokenAddress": "a",
        "name": "n",
        "symbol": "s",
        "createdAtMs": "cts",
    },
    "subscribeTokenSupply": {
        "tokenAddress": "a",
        "supply": "s",
        "marketCapInUsd": "mc",
        "timestamp": "ts",
    },
    "subscribeDexPoolBalance": {
        "poolAddress": "a",
        "tokenAAddress": "taa",
        "tokenALiquidityInUsd": "taliu",
        "tokenBAddress": "tba",
        "tokenBLiquidityInUsd": "tbliu",
    },
    "subscribeTokenLiquidity": {
        "tokenAddress": "a",
        "metricType": "t",
        "value": "v",
        "timestamp": "ts",
    },
    "subscribeNewTokensMetadata": {
        "tokenAddress": "a",
        "name": "n",
        "symbol": "s",
        "imageUrl": "iu",
        "description": "de",
        "socialMedia": "sm",
        "createdAtMs": "cts",
    },
    "subscribeTokenTrades": {
        "tokenAddress": "a",
        "timestamp": "t",
        "kind": "k",
        "buyAmount": "ba",
        "buyAmountInUsd": "baiu",
        "buyTokenAddress": "btma",
        "buyTokenName": "btn",
        "buyTokenSymbol": "bts",
        "buyWalletAddress": "bwa",
        "sellAmount": "sa",
        "sellAmountInUsd": "saiu",
        "sellTokenAddress": "stma",
        "sellTokenName": "stn",
        "sellTokenSymbol": "sts",
        "sellWalletAddress": "swa",
        "txHash": "h",
    },
    "subscribeWalletPnl": {
        "walletAddress": "a",
        "tokenAddress": "ta",
        "tokenPriceInUsd": "tpiu",
        "timestamp": "t",
        "opentime": "ot",
        "lasttime": "lt",
        "closetime": "ct",
        "buyAmount": "ba",
        "buyAmountInUsd": "baiu",
        "buyCount": "bs",
        "buyCount30d": "bs30d",
        "buyCount7d": "bs7d",
        "sellAmount": "sa",
        "sellAmountInUsd": "saiu",
        "sellCount": "ss",
        "sellCount30d": "ss30d",
        "sellCount7d": "ss7d",
        "heldDurationTimestamp": "hdts",
        "averageBuyPriceInUsd": "abpiu",
        "averageSellPriceInUsd": "aspiu",
        "unrealizedProfitInUsd": "upiu",
        "unrealizedProfitRatio": "upr",
        "realizedProfitInUsd": "rpiu",
        "realizedProfitRatio": "rpr",
        "totalRealizedProfitInUsd": "trpiu",
        "totalRealizedProfitRatio": "trr",
    },
}

# Payload tables for records that have no filterable stream of their own
_DECODE_TABLES: dict[str, dict[str, str]] = {
    "subscribeWalletPnlList": {
        "walletAddress": "a",
        "buys": "bs",
        "buyAmount": "ba",
        "buyAmountInUsd": "baiu",
        "averageBuyPriceInUsd": "abpiu",
        "sellAmount": "sa",
        "sellAmountInUsd": "saiu",
        "sells": "ss",
        "wins": "ws",
        "winRatio": "wr",
        "pnlInUsd": "piu",
        "averagePnlInUsd": "apiu",
        "pnlRatio": "pr",
        "profitableDays": "pd",
        "losingDays": "ld",
        "tokens": "ts",
        "resolution": "r",
    },
    "subscribeTokenBondingCurve": {
        "progressRatio": "pr",
    },
    "subscribeLaunchPlatform": {
        "programAddress": "pa",
        "protocolFamily": "pf",
        "protocolName": "pn",
    },
    "subscribeSocialMedia": {
        "twitter": "tw",
        "telegram": "tg",
        "website": "w",
        "tiktok": "tt",
        "discord": "dc",
        "facebook": "fb",
        "github": "gh",
        "instagram": "ig",
        "linkedin": "li",
        "medium": "md",
        "reddit": "rd",
        "youtube": "yt",
        "bitbucket": "bb",
    },
}

FIELD_MAPPINGS: Mapping[str, FieldMapping] = MappingProxyType(
    {name: MappingProxyType(fields) for name, fields in _FIELD_MAPPINGS.items()}
)

_EMPTY: FieldMapping = MappingProxyType({})

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def get_field_mappings(type_name: str) -> FieldMapping:
    """Get the field mapping for a subscription type.

    Args:
        type_name: Subscription type name, e.g. ``"subscribeTokenStats"``

    Returns:
        The long-to-short mapping, or an empty mapping for unknown types
    """
    return FIELD_MAPPINGS.get(type_name, _EMPTY)


def get_available_fields(type_name: str) -> list[str]:
    """Get the long field names usable in filters for a subscription type."""
    return list(get_field_mappings(type_name))


def to_attribute_name(long_name: str) -> str:
    """Convert a camelCase field name to the snake_case record attribute.

    ``buyVolumeInUsd1m`` becomes ``buy_volume_in_usd1m`` and
    ``tokenAAddress`` becomes ``token_a_address``.
    """
    return _CAMEL_BOUNDARY.sub("_", long_name).lower()


def wire_fields(type_name: str) -> tuple[tuple[str, str], ...]:
    """Get ``(attribute, short key)`` pairs for decoding a subscription type.

    Covers the filter tables and the decode-only tables for nested records.
    """
    table = FIELD_MAPPINGS.get(type_name) or _DECODE_TABLES.get(type_name, {})
    return tuple(
        (to_attribute_name(long_name), short_name) for long_name, short_name in table.items()
    )


def replace_filter_fields(filter: Optional[str], type_name: str) -> Optional[str]:
    """Rewrite long field names in a filter expression to wire names.

    Every whole-word occurrence of a mapped long name, with or without the
    ``meta.`` prefix, becomes ``meta.<short>``. Mappings are applied one at a
    time in table order. Identifiers that are not long names for this type
    pass through, so short names already written as ``meta.a`` are left as
    they are. The expression is not validated; the server owns the syntax.

    Args:
        filter: Filter expression, e.g. ``'walletAddress == "X"'``
        type_name: Subscription type name selecting the mapping

    Returns:
        The rewritten expression, or the input unchanged when it is empty
    """
    if not filter:
        return filter

    result = filter
    for long_name, short_name in get_field_mappings(type_name).items():
        replacement = f"{FILTER_NAMESPACE}.{short_name}"
        escaped = re.escape(long_name)
        result = re.sub(rf"\b{FILTER_NAMESPACE}\.{escaped}\b", replacement, result)
        result = re.sub(rf"\b{escaped}\b", replacement, result)

    return result
