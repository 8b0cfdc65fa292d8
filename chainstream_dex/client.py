"""ChainStream DEX client."""

import asyncio
import inspect
import json
import logging
from dataclasses import dataclass
from typing import AsyncIterator, Awaitable, Optional, Union
from urllib.parse import quote

import aiohttp

from .error import (
    DeserializeError,
    ErrorResponse,
    HttpError,
    JobFailedError,
    JobTimeoutError,
    UnexpectedStatusError,
)
from .stream.api import StreamApi
from .stream.transport import CentrifugeTransport, WebSocketConfig

logger = logging.getLogger(__name__)

LIB_VERSION = "0.1.0"

DEFAULT_SERVER_URL = "https://api-dex.chainstream.io"
DEFAULT_STREAM_URL = "wss://realtime-dex.chainstream.io/connection/websocket"
DEFAULT_TIMEOUT_SECS = 30
DEFAULT_JOB_TIMEOUT_SECS = 60.0
# Job streams idle longer than this are reopened
DEFAULT_JOB_INACTIVITY_SECS = 45.0
JOB_RECONNECT_DELAY_SECS = 1.0


class TokenProvider:
    """Supplies access tokens on demand.

    ``get_token`` may return the token directly or an awaitable resolving to
    it, so providers can refresh tokens asynchronously.
    """

    def get_token(self) -> Union[str, Awaitable[str]]:
        raise NotImplementedError


async def resolve_token(access_token: Union[str, TokenProvider]) -> str:
    """Resolve a static token or ask a provider for the current one."""
    if isinstance(access_token, str):
        return access_token
    token = access_token.get_token()
    if inspect.isawaitable(token):
        token = await token
    return token


@dataclass
class DexClientOptions:
    """Options for :class:`DexClient`."""

    server_url: str = DEFAULT_SERVER_URL
    stream_url: str = DEFAULT_STREAM_URL
    debug: bool = False
    stream_config: Optional[WebSocketConfig] = None
    timeout: int = DEFAULT_TIMEOUT_SECS
    job_timeout_secs: float = DEFAULT_JOB_TIMEOUT_SECS
    job_inactivity_secs: float = DEFAULT_JOB_INACTIVITY_SECS


@dataclass
class DexRequestContext:
    """Endpoints and credentials shared by the REST and stream layers."""

    base_url: str
    stream_url: str
    access_token: Union[str, TokenProvider]

    async def get_token(self) -> str:
        return await resolve_token(self.access_token)


class DexClient:
    """ChainStream DEX client.

    Holds the request context and the realtime :class:`StreamApi`, and waits
    for server-side jobs to finish.

    Example:
        ```python
        async with DexClient("my-access-token") as client:
            client.stream.subscribe_token_stats(
                chain="solana",
                token_address=mint,
                callback=lambda stat: print(stat.price),
            )
            result = await client.wait_for_job(job_id)
        ```
    """

    def __init__(
        self,
        access_token: Union[str, TokenProvider],
        options: Optional[DexClientOptions] = None,
    ):
        """Create a new client.

        Args:
            access_token: Access token, or a provider returning one
            options: Optional endpoints and tuning
        """
        self._options = options or DexClientOptions()
        if self._options.debug:
            logging.getLogger("chainstream_dex").setLevel(logging.DEBUG)

        self.request_ctx = DexRequestContext(
            base_url=self._options.server_url.rstrip("/"),
            stream_url=self._options.stream_url,
            access_token=access_token,
        )

        stream_config = self._options.stream_config or WebSocketConfig(
            client_version=LIB_VERSION
        )
        self.stream = StreamApi(
            CentrifugeTransport(
                self.request_ctx.stream_url,
                get_token=self.request_ctx.get_token,
                config=stream_config,
            )
        )
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def user_agent(self) -> str:
        return f"dex/{LIB_VERSION}/python"

    @property
    def options(self) -> DexClientOptions:
        return self._options

    async def __aenter__(self) -> "DexClient":
        """Enter async context manager, connecting the stream."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context manager."""
        await self.close()

    async def connect(self) -> None:
        """Connect the realtime stream."""
        await self.stream.connect()

    async def close(self) -> None:
        """Close the stream and the HTTP session."""
        await self.stream.close()
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure we have an active session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._options.timeout),
                headers={"User-Agent": self.user_agent},
            )
        return self._session

    # =========================================================================
    # Jobs
    # =========================================================================

    async def wait_for_job(self, job_id: str, timeout: Optional[float] = None) -> dict:
        """Wait for a job to finish by following its event stream.

        Args:
            job_id: Job identifier returned by an API call
            timeout: Seconds to wait; defaults to ``options.job_timeout_secs``

        Returns:
            The final job event, whose ``status`` is ``"completed"``

        Raises:
            JobFailedError: If the job reports an error
            JobTimeoutError: If the job does not finish in time
            DeserializeError: If an event is not valid JSON
            UnexpectedStatusError: If the server rejects the request
            HttpError: On network errors
        """
        if timeout is None:
            timeout = self._options.job_timeout_secs

        token = await self.request_ctx.get_token()
        url = f"{self.request_ctx.base_url}/jobs/{quote(job_id, safe='')}/streaming"
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "text/event-stream",
        }

        try:
            return await asyncio.wait_for(
                self._follow_job(job_id, url, headers), timeout=timeout
            )
        except asyncio.TimeoutError:
            raise JobTimeoutError(job_id, timeout) from None

    async def _follow_job(self, job_id: str, url: str, headers: dict[str, str]) -> dict:
        session = await self._ensure_session()
        read_timeout = aiohttp.ClientTimeout(
            total=None, sock_read=self._options.job_inactivity_secs
        )

        while True:
            try:
                async with session.get(url, headers=headers, timeout=read_timeout) as response:
                    if response.status != 200:
                        raise UnexpectedStatusError(
                            response.status, await _error_message(response)
                        )

                    logger.info(f"Job {job_id} event stream opened")
                    async for data in _iter_sse_data(response.content):
                        event = _parse_job_event(data)
                        status = event.get("status")
                        if status == "error":
                            raise JobFailedError(job_id, event.get("message", ""))
                        if status == "completed":
                            return event

                logger.info(f"Job {job_id} event stream closed, reconnecting")
            except aiohttp.ServerTimeoutError:
                logger.info(f"Job {job_id} event stream idle, reconnecting")
            except aiohttp.ClientError as e:
                raise HttpError(str(e)) from e

            await asyncio.sleep(JOB_RECONNECT_DELAY_SECS)


def _parse_job_event(data: str) -> dict:
    logger.debug(f"event.data: {data}")
    try:
        event = json.loads(data)
    except json.JSONDecodeError as e:
        raise DeserializeError(f"Error parsing event data: {e}") from e
    if not isinstance(event, dict):
        raise DeserializeError(f"Unexpected event data: {data}")
    return event


async def _error_message(response: aiohttp.ClientResponse) -> str:
    error_text = await response.text()
    try:
        return ErrorResponse.from_dict(json.loads(error_text)).get_message()
    except (ValueError, AttributeError):
        return error_text or "Unknown error"


async def _iter_sse_data(content: aiohttp.StreamReader) -> AsyncIterator[str]:
    """Yield the ``data`` of each server-sent event."""
    data_lines: list[str] = []
    async for raw in content:
        line = raw.decode("utf-8").rstrip("\r\n")
        if not line:
            if data_lines:
                yield "\n".join(data_lines)
                data_lines = []
            continue
        if line.startswith(":"):
            continue
        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if name == "data":
            data_lines.append(value)
    if data_lines:
        yield "\n".join(data_lines)
