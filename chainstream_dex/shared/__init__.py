"""Shared utilities used across the REST and streaming modules."""

from .types import ChannelType, Dex, RankingType, Resolution, enum_value
from .price import SCIENTIFIC_PRECISION, format_scientific_notation

__all__ = [
    "ChannelType",
    "Dex",
    "RankingType",
    "Resolution",
    "enum_value",
    "SCIENTIFIC_PRECISION",
    "format_scientific_notation",
]
