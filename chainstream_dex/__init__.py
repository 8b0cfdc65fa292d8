"""ChainStream DEX SDK - Python SDK for ChainStream DEX data.

This SDK provides:
- `stream`: Real-time data streaming with channel multiplexing and filters
- `shared`: Enumerations and numeric formatting shared across modules
- `DexClient`: Entry point holding credentials, the stream API and job waiting

Example:
    from chainstream_dex import DexClient

    async with DexClient("my-access-token") as client:
        client.stream.subscribe_new_token(chain="solana", callback=print)

    # Or import from specific modules
    from chainstream_dex.stream import StreamApi, replace_filter_fields
"""

__version__ = "0.1.0"

# ============================================================================
# MODULE IMPORTS
# ============================================================================

from . import shared
from . import stream

# ============================================================================
# CLIENT
# ============================================================================

from .client import (
    DEFAULT_SERVER_URL,
    DEFAULT_STREAM_URL,
    LIB_VERSION,
    DexClient,
    DexClientOptions,
    DexRequestContext,
    TokenProvider,
    resolve_token,
)
from .error import (
    DexError,
    DeserializeError,
    HttpError,
    JobFailedError,
    JobTimeoutError,
    UnexpectedStatusError,
)

# ============================================================================
# CONVENIENCE RE-EXPORTS
# ============================================================================

from .shared import (
    ChannelType,
    Dex,
    RankingType,
    Resolution,
    format_scientific_notation,
)
from .stream import (
    CentrifugeTransport,
    StreamApi,
    StreamError,
    StreamSubscription,
    SubscriptionRegistry,
    WebSocketConfig,
    get_available_fields,
    get_field_mappings,
    replace_filter_fields,
)

__all__ = [
    "__version__",
    # Modules
    "shared",
    "stream",
    # Client
    "DEFAULT_SERVER_URL",
    "DEFAULT_STREAM_URL",
    "LIB_VERSION",
    "DexClient",
    "DexClientOptions",
    "DexRequestContext",
    "TokenProvider",
    "resolve_token",
    # Errors
    "DexError",
    "DeserializeError",
    "HttpError",
    "JobFailedError",
    "JobTimeoutError",
    "UnexpectedStatusError",
    "StreamError",
    # Shared
    "ChannelType",
    "Dex",
    "RankingType",
    "Resolution",
    "format_scientific_notation",
    # Stream
    "CentrifugeTransport",
    "StreamApi",
    "StreamSubscription",
    "SubscriptionRegistry",
    "WebSocketConfig",
    "get_available_fields",
    "get_field_mappings",
    "replace_filter_fields",
]
