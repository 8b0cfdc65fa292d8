"""Enumerations shared by the REST and streaming layers."""

from enum import Enum
from typing import Union


class Resolution(str, Enum):
    """Candle resolution."""

    ONE_SECOND = "1s"
    FIFTEEN_SECONDS = "15s"
    THIRTY_SECONDS = "30s"
    ONE_MINUTE = "1m"
    FIVE_MINUTES = "5m"
    FIFTEEN_MINUTES = "15m"
    ONE_HOUR = "1h"
    FOUR_HOURS = "4h"
    TWELVE_HOURS = "12h"
    ONE_DAY = "1d"

    def __str__(self) -> str:
        return self.value


class ChannelType(str, Enum):
    """Ranking channel bucket used by the ranking list streams."""

    NEW = "new"
    HOT = "hot"
    STOCKS = "stocks"
    FINAL_STRETCH = "finalStretch"
    MIGRATED = "migrated"

    def __str__(self) -> str:
        return self.value


class RankingType(str, Enum):
    """Ranking list type."""

    NEW = "new"
    HOT = "hot"
    STOCKS = "stocks"
    FINAL_STRETCH = "finalStretch"
    MIGRATED = "migrated"

    def __str__(self) -> str:
        return self.value


class Dex(str, Enum):
    """Launchpad / DEX program family used to narrow ranking lists."""

    PUMP_FUN = "pump_fun"
    RAYDIUM_LAUNCHPAD = "raydium_launchpad"
    METEORA_DYNAMIC_BONDING_CURVE = "meteora_dynamic_bonding_curve"
    BONK = "bonk"
    MOONSHOT = "moonshot"
    BOOP = "boop"

    def __str__(self) -> str:
        return self.value


def enum_value(value: Union[str, Enum]) -> str:
    """Return the wire string for an enum member or a raw string.

    Channel names accept either, so values the server adds before the SDK
    catches up can still be passed as plain strings.
    """
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)
