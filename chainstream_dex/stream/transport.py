"""Realtime pub/sub transport.

The subscription registry talks to the transport through the small
:class:`Transport` interface. :class:`CentrifugeTransport` implements it with
the ``centrifuge`` client library, which owns the connection: the connect
handshake carrying the access token, ping/pong, reconnect with backoff,
resubscription and fossil delta decoding. The adapter adds the server-side
filter expression to subscribe commands and runs subscription changes in the
order they were requested.
"""

import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Union

from centrifuge import (
    CentrifugeError,
    Client,
    ClientEventHandler,
    ClientState,
    ConnectedContext,
    ConnectingContext,
    DeltaType,
    DisconnectedContext,
    ErrorContext,
    PublicationContext,
    SubscribedContext,
    Subscription,
    SubscriptionErrorContext,
    SubscriptionEventHandler,
    SubscriptionState,
    UnsubscribedContext,
)
from websockets.exceptions import InvalidURI
from websockets.uri import parse_uri

from .error import (
    AlreadyConnectedError,
    ConnectionFailedError,
    DuplicateSubscriptionError,
    InvalidUrlError,
)

logger = logging.getLogger(__name__)

DELTA_FOSSIL = DeltaType.FOSSIL.value

PublicationHandler = Callable[[Any], None]
TokenGetter = Callable[[], Union[str, Awaitable[str]]]
_Operation = Callable[[], Awaitable[None]]


@dataclass
class WebSocketConfig:
    """Configuration for the realtime connection."""

    timeout_secs: float = 5.0
    max_server_ping_delay_secs: float = 10.0
    min_reconnect_delay_secs: float = 0.1
    max_reconnect_delay_secs: float = 20.0
    min_resubscribe_delay_secs: float = 0.1
    max_resubscribe_delay_secs: float = 10.0
    client_name: str = "python"
    client_version: str = ""
    headers: Optional[dict[str, str]] = None


class TransportSubscription(ABC):
    """One channel subscription owned by a transport."""

    channel: str

    @property
    @abstractmethod
    def state(self) -> SubscriptionState:
        """Current subscription state."""

    @abstractmethod
    def subscribe(self) -> None:
        """Start the subscription."""

    @abstractmethod
    def unsubscribe(self) -> None:
        """Stop the subscription."""


class Transport(ABC):
    """Pub/sub client consumed by the subscription registry."""

    @abstractmethod
    async def connect(self) -> None:
        """Open the connection."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the connection."""

    @abstractmethod
    def new_subscription(
        self,
        channel: str,
        on_publication: PublicationHandler,
        delta: Optional[str] = None,
        filter: Optional[str] = None,
    ) -> TransportSubscription:
        """Create a subscription for a channel without subscribing it."""

    @abstractmethod
    def get_subscription(self, channel: str) -> Optional[TransportSubscription]:
        """Get the subscription registered for a channel."""

    @abstractmethod
    def remove_subscription(self, subscription: TransportSubscription) -> None:
        """Unsubscribe (if needed) and forget a subscription."""

    @abstractmethod
    def start_batching(self) -> None:
        """Hold subscription changes until :meth:`stop_batching`."""

    @abstractmethod
    def stop_batching(self) -> None:
        """Release held subscription changes together."""


class FilteringClient(Client):
    """Centrifuge client that sends a filter expression with subscribe commands."""

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.filters: dict[str, str] = {}

    def _construct_subscribe_command(self, sub: Subscription, cmd_id: int) -> dict[str, Any]:
        command = super()._construct_subscribe_command(sub, cmd_id)
        expression = self.filters.get(sub.channel)
        if expression:
            command["subscribe"]["filter"] = expression
        return command

    async def _unsubscribe(self, channel: str) -> None:
        # The server drops subscriptions with the connection
        if self.state != ClientState.CONNECTED:
            return
        await super()._unsubscribe(channel)


class _ClientEvents(ClientEventHandler):
    def __init__(self, url: str):
        self._url = url

    async def on_connecting(self, ctx: ConnectingContext) -> None:
        logger.info(f"[stream] connecting to {self._url}: {ctx.reason} (code: {ctx.code})")

    async def on_connected(self, ctx: ConnectedContext) -> None:
        logger.info(f"[stream] connected to {self._url} (client: {ctx.client})")

    async def on_disconnected(self, ctx: DisconnectedContext) -> None:
        logger.warning(f"[stream] disconnected: {ctx.reason} (code: {ctx.code})")

    async def on_error(self, ctx: ErrorContext) -> None:
        logger.error(f"[stream] client error: {ctx.error} (code: {ctx.code})")


class _SubscriptionEvents(SubscriptionEventHandler):
    def __init__(self, channel: str, on_publication: PublicationHandler):
        self._channel = channel
        self._on_publication = on_publication

    async def on_publication(self, ctx: PublicationContext) -> None:
        self._on_publication(ctx.pub.data)

    async def on_subscribed(self, ctx: SubscribedContext) -> None:
        logger.info(f"[stream] subscribed {self._channel}")

    async def on_unsubscribed(self, ctx: UnsubscribedContext) -> None:
        logger.info(f"[stream] unsubscribed {self._channel}: {ctx.reason} (code: {ctx.code})")

    async def on_error(self, ctx: SubscriptionErrorContext) -> None:
        logger.error(
            f"[stream] subscription error on {self._channel}: {ctx.error} (code: {ctx.code})"
        )


class CentrifugeSubscription(TransportSubscription):
    """Channel subscription backed by a ``centrifuge.Subscription``.

    The library subscription is created when the subscription is first
    started, inside the transport's running event loop.
    """

    def __init__(
        self,
        transport: "CentrifugeTransport",
        channel: str,
        on_publication: PublicationHandler,
        delta: Optional[str] = None,
        filter: Optional[str] = None,
    ):
        self.channel = channel
        self.delta = DeltaType(delta) if delta else None
        self.filter = filter
        self.events = _SubscriptionEvents(channel, on_publication)
        self._transport = transport
        self._sub: Optional[Subscription] = None

    @property
    def state(self) -> SubscriptionState:
        if self._sub is None:
            return SubscriptionState.UNSUBSCRIBED
        return self._sub.state

    @property
    def subscription(self) -> Optional[Subscription]:
        """The library subscription, once started."""
        return self._sub

    def subscribe(self) -> None:
        self._transport._schedule(self._subscribe)

    def unsubscribe(self) -> None:
        self._transport._schedule(self._unsubscribe)

    async def _subscribe(self) -> None:
        client = self._transport.client
        if self._sub is None:
            if self.filter:
                client.filters[self.channel] = self.filter
            config = self._transport.config
            self._sub = client.new_subscription(
                self.channel,
                events=self.events,
                delta=self.delta,
                min_resubscribe_delay=config.min_resubscribe_delay_secs,
                max_resubscribe_delay=config.max_resubscribe_delay_secs,
            )
        await self._sub.subscribe()

    async def _unsubscribe(self) -> None:
        if self._sub is not None:
            await self._sub.unsubscribe()

    async def _remove(self) -> None:
        if self._sub is None:
            return
        await self._sub.unsubscribe()
        client = self._transport.client
        client.remove_subscription(self._sub)
        client.filters.pop(self.channel, None)
        self._sub = None


class CentrifugeTransport(Transport):
    """Realtime transport over a ``centrifuge.Client``.

    Subscriptions started while disconnected are sent once the connection is
    established, and the client subscribes them again after every reconnect.
    Connection events are reported through logging only.

    Subscription methods are synchronous; the changes they request run in
    order on the event loop. Use :meth:`flush` to wait for them.

    Example:
        ```python
        transport = CentrifugeTransport(
            "wss://realtime-dex.chainstream.io/connection/websocket",
            get_token=lambda: "my-token",
        )
        await transport.connect()
        ```
    """

    def __init__(
        self,
        url: str,
        get_token: Optional[TokenGetter] = None,
        config: Optional[WebSocketConfig] = None,
    ):
        """Create a new transport.

        Args:
            url: Realtime websocket endpoint
            get_token: Callable returning the access token (sync or async)
            config: Optional connection configuration
        """
        self._url = url
        self._get_token = get_token
        self._config = config or WebSocketConfig()

        self._client = FilteringClient(
            url,
            events=_ClientEvents(url),
            get_token=self._fetch_token if get_token else None,
            timeout=self._config.timeout_secs,
            max_server_ping_delay=self._config.max_server_ping_delay_secs,
            name=self._config.client_name,
            version=self._config.client_version,
            min_reconnect_delay=self._config.min_reconnect_delay_secs,
            max_reconnect_delay=self._config.max_reconnect_delay_secs,
            headers=self._config.headers,
        )

        self._subscriptions: dict[str, CentrifugeSubscription] = {}
        self._operations: list[_Operation] = []
        self._worker: Optional[asyncio.Task] = None
        self._batching = False
        self._batch: list[_Operation] = []

    @property
    def url(self) -> str:
        return self._url

    @property
    def config(self) -> WebSocketConfig:
        return self._config

    @property
    def client(self) -> FilteringClient:
        return self._client

    @property
    def is_connected(self) -> bool:
        """Check if connected to the server."""
        return self._client.state == ClientState.CONNECTED

    # =========================================================================
    # Connection lifecycle
    # =========================================================================

    async def connect(self) -> None:
        """Connect to the server.

        A failed first attempt keeps retrying in the background.

        Raises:
            AlreadyConnectedError: If already connected
            InvalidUrlError: If the URL is invalid
            ConnectionFailedError: If the server refuses the connection
        """
        if self.is_connected:
            raise AlreadyConnectedError()

        try:
            parse_uri(self._url)
        except InvalidURI as e:
            raise InvalidUrlError(self._url) from e

        await self._client.connect()

        if self._client.state == ClientState.DISCONNECTED:
            raise ConnectionFailedError("server refused the connection")
        if self._client.state == ClientState.CONNECTING:
            logger.warning(f"[stream] {self._url} unreachable, retrying in background")

    async def disconnect(self) -> None:
        """Disconnect from the server.

        Subscriptions are kept and sent again on the next :meth:`connect`.
        """
        await self.flush()
        await self._client.disconnect()
        logger.info("[stream] disconnected")

    async def _fetch_token(self) -> str:
        token = self._get_token()
        if inspect.isawaitable(token):
            token = await token
        return token

    # =========================================================================
    # Ordered subscription changes
    # =========================================================================

    def _schedule(self, operation: _Operation) -> None:
        if self._batching:
            self._batch.append(operation)
            return
        self._enqueue([operation])

    def _enqueue(self, operations: list[_Operation]) -> None:
        if not operations:
            return
        self._operations.extend(operations)
        if self._worker is None or self._worker.done():
            self._worker = asyncio.get_running_loop().create_task(self._run_operations())

    async def _run_operations(self) -> None:
        while self._operations:
            operation = self._operations.pop(0)
            try:
                await operation()
            except CentrifugeError as e:
                logger.error(f"[stream] subscription change failed: {e}")
            except Exception:
                logger.exception("[stream] unexpected error changing subscriptions")

    async def flush(self) -> None:
        """Wait until every requested subscription change has run."""
        while self._worker is not None and not self._worker.done():
            await self._worker

    def start_batching(self) -> None:
        self._batching = True

    def stop_batching(self) -> None:
        self._batching = False
        operations, self._batch = self._batch, []
        self._enqueue(operations)

    # =========================================================================
    # Subscriptions
    # =========================================================================

    def new_subscription(
        self,
        channel: str,
        on_publication: PublicationHandler,
        delta: Optional[str] = None,
        filter: Optional[str] = None,
    ) -> CentrifugeSubscription:
        """Create a subscription for a channel.

        Raises:
            DuplicateSubscriptionError: If the channel already has one
        """
        if channel in self._subscriptions:
            raise DuplicateSubscriptionError(channel)
        sub = CentrifugeSubscription(self, channel, on_publication, delta, filter)
        self._subscriptions[channel] = sub
        return sub

    def get_subscription(self, channel: str) -> Optional[CentrifugeSubscription]:
        return self._subscriptions.get(channel)

    def remove_subscription(self, subscription: TransportSubscription) -> None:
        if self._subscriptions.get(subscription.channel) is subscription:
            del self._subscriptions[subscription.channel]
        if isinstance(subscription, CentrifugeSubscription):
            self._schedule(subscription._remove)
