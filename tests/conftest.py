"""Pytest configuration and shared fixtures."""

from typing import Optional

import pytest

from chainstream_dex.stream import StreamApi, SubscriptionRegistry
from chainstream_dex.stream.transport import (
    SubscriptionState,
    Transport,
    TransportSubscription,
)


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (run offline)")


class FakeSubscription(TransportSubscription):
    """Transport subscription that records calls instead of sending them."""

    def __init__(self, transport, channel, on_publication, delta, filter):
        self.channel = channel
        self.delta = delta
        self.filter = filter
        self.on_publication = on_publication
        self.subscribe_calls = 0
        self.unsubscribe_calls = 0
        self._transport = transport
        self._state = SubscriptionState.UNSUBSCRIBED

    @property
    def state(self) -> SubscriptionState:
        return self._state

    def subscribe(self) -> None:
        self.subscribe_calls += 1
        self._state = SubscriptionState.SUBSCRIBED
        self._transport.commands.append(("subscribe", self.channel))

    def unsubscribe(self) -> None:
        self.unsubscribe_calls += 1
        self._state = SubscriptionState.UNSUBSCRIBED
        self._transport.commands.append(("unsubscribe", self.channel))

    def publish(self, data) -> None:
        """Simulate a publication from the server."""
        self.on_publication(data)


class FakeTransport(Transport):
    """In-memory transport recording subscriptions and batching."""

    def __init__(self):
        self.subscriptions: dict[str, FakeSubscription] = {}
        self.created: list[FakeSubscription] = []
        self.removed: list[FakeSubscription] = []
        self.commands: list[tuple[str, str]] = []
        self.batch_events: list[str] = []
        self.connected = False

    async def connect(self) -> None:
        self.connected = True

    async def disconnect(self) -> None:
        self.connected = False

    def new_subscription(self, channel, on_publication, delta=None, filter=None):
        assert channel not in self.subscriptions
        sub = FakeSubscription(self, channel, on_publication, delta, filter)
        self.subscriptions[channel] = sub
        self.created.append(sub)
        return sub

    def get_subscription(self, channel) -> Optional[FakeSubscription]:
        return self.subscriptions.get(channel)

    def remove_subscription(self, subscription) -> None:
        self.removed.append(subscription)
        self.subscriptions.pop(subscription.channel, None)

    def start_batching(self) -> None:
        self.batch_events.append("start")

    def stop_batching(self) -> None:
        self.batch_events.append("stop")

    def publish(self, channel, data) -> None:
        self.subscriptions[channel].publish(data)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def registry(transport):
    return SubscriptionRegistry(transport)


@pytest.fixture
def stream(transport):
    return StreamApi(transport)
