"""Stream-specific error types for the ChainStream SDK."""


class StreamError(Exception):
    """Base exception for realtime stream errors."""

    pass


class ConnectionFailedError(StreamError):
    """Initial connection failure."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"Connection failed: {message}")


class AlreadyConnectedError(StreamError):
    """Already connected to the realtime server."""

    def __init__(self):
        super().__init__("Already connected to realtime server")


class InvalidUrlError(StreamError):
    """Invalid realtime URL."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Invalid realtime URL: {url}")


class DuplicateSubscriptionError(StreamError):
    """The transport already holds a subscription for the channel."""

    def __init__(self, channel: str):
        self.channel = channel
        super().__init__(f"Subscription already exists for channel: {channel}")
