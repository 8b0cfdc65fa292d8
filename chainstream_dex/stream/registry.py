"""Channel multiplexing over a realtime transport.

Any number of local listeners can subscribe to the same channel. The
registry keeps exactly one transport subscription per channel and fans each
publication out to every listener registered on it. The transport
subscription is created with the first listener and released with the last.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Optional

from .fields import replace_filter_fields
from .transport import DELTA_FOSSIL, Transport, TransportSubscription

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]


@dataclass
class ChannelSubscription:
    """Registry entry for one channel."""

    channel: str
    transport_handle: Optional[TransportSubscription] = None
    # Keyed by id(): listeners are distinct by identity, not equality
    listeners: dict[int, Listener] = field(default_factory=dict)

    def add(self, listener: Listener) -> None:
        self.listeners[id(listener)] = listener

    def discard(self, listener: Listener) -> None:
        self.listeners.pop(id(listener), None)

    def dispatch(self, data: Any) -> None:
        """Deliver a publication to every listener registered right now."""
        for listener in list(self.listeners.values()):
            try:
                listener(data)
            except Exception:
                logger.exception(f"[stream] listener failed on {self.channel}")


class StreamSubscription:
    """Handle returned for every listener registration.

    Releasing the handle removes exactly the registration that produced it.
    Releasing twice, or after the channel is gone, does nothing.
    """

    def __init__(self, registry: "SubscriptionRegistry", channel: str, listener: Listener):
        self._registry = registry
        self._channel = channel
        self._listener = listener
        self._released = False

    @property
    def channel(self) -> str:
        return self._channel

    @property
    def released(self) -> bool:
        return self._released

    def unsubscribe(self) -> None:
        if self._released:
            return
        self._released = True
        self._registry.unsubscribe(self._channel, self._listener)

    release = unsubscribe

    def __repr__(self) -> str:
        return f"StreamSubscription(channel={self._channel!r}, released={self._released})"


class SubscriptionRegistry:
    """Maps channels to their transport subscription and listeners."""

    def __init__(self, transport: Transport):
        self._transport = transport
        self._channels: dict[str, ChannelSubscription] = {}

    @property
    def transport(self) -> Transport:
        return self._transport

    def subscribe(
        self,
        channel: str,
        listener: Listener,
        filter: Optional[str] = None,
        type_name: Optional[str] = None,
    ) -> StreamSubscription:
        """Register a listener on a channel.

        The first listener on a channel creates the transport subscription
        with fossil delta compression and, when given, the filter rewritten
        for ``type_name``. Later listeners join the existing subscription and
        their filter is ignored.

        Args:
            channel: Channel name, e.g. ``"dex-wallet-balance:solana_ABC"``
            listener: Callable receiving each raw publication
            filter: Optional server-side filter expression
            type_name: Field mapping used to rewrite the filter

        Returns:
            Handle that removes this registration
        """
        entry = self._channels.get(channel)
        if entry is not None:
            entry.add(listener)
            return StreamSubscription(self, channel, listener)

        entry = ChannelSubscription(channel)
        entry.add(listener)
        processed = replace_filter_fields(filter, type_name) if filter and type_name else filter

        logger.info(f"[stream] create new sub: {channel}")
        self._channels[channel] = entry
        try:
            entry.transport_handle = self._transport.new_subscription(
                channel,
                on_publication=entry.dispatch,
                delta=DELTA_FOSSIL,
                filter=processed or None,
            )
            entry.transport_handle.subscribe()
        except Exception:
            del self._channels[channel]
            self._release(entry)
            raise

        return StreamSubscription(self, channel, listener)

    def unsubscribe(self, channel: str, listener: Listener) -> None:
        """Remove a listener; the last one out releases the channel.

        Listeners are matched by identity, so pass the same object given to
        :meth:`subscribe`.
        """
        entry = self._channels.get(channel)
        if entry is None:
            return

        entry.discard(listener)
        logger.debug(f"[stream] unsubscribe, remain listeners: {len(entry.listeners)}")

        if not entry.listeners:
            logger.info(f"[stream] unsubscribe channel: {channel}")
            del self._channels[channel]
            self._release(entry)

    def _release(self, entry: ChannelSubscription) -> None:
        handle = entry.transport_handle
        entry.transport_handle = None
        if handle is not None:
            handle.unsubscribe()
            self._transport.remove_subscription(handle)

    @contextmanager
    def batching(self) -> Iterator["SubscriptionRegistry"]:
        """Hold the subscription changes made inside the block and release them together.

        Example:
            ```python
            with registry.batching():
                registry.subscribe("dex-trade:solana_A", on_trade)
                registry.subscribe("dex-trade:solana_B", on_trade)
            ```
        """
        self._transport.start_batching()
        try:
            yield self
        finally:
            self._transport.stop_batching()

    def channels(self) -> list[str]:
        """Channels with at least one listener."""
        return list(self._channels)

    def listener_count(self, channel: str) -> int:
        entry = self._channels.get(channel)
        return len(entry.listeners) if entry else 0

    def clear(self) -> None:
        """Drop every listener and release every transport subscription."""
        entries = list(self._channels.values())
        self._channels.clear()
        for entry in entries:
            entry.listeners.clear()
            self._release(entry)

    def __contains__(self, channel: object) -> bool:
        return channel in self._channels

    def __len__(self) -> int:
        return len(self._channels)
