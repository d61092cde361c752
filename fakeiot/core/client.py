"""
Ingestion client for the fake IoT simulator.
Sends metrics to the IoT metric server over HTTPS with bearer authentication
and classifies the responses.
"""

import json
import ssl
import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Any, Optional
from urllib.parse import urlsplit

import aiohttp

from fakeiot.core.errors import (
    InvalidConfiguration,
    ProtocolViolation,
    ServerRejected,
    TransportFailure,
)
from fakeiot.models.metric import Metric
from fakeiot.utils.helpers import parse_certificate_pem

CONTENT_TYPE_HEADER = "Content-Type"
CONTENT_TYPE_JSON = "application/json"
METRICS_ENDPOINT = "metrics"


@dataclass(frozen=True)
class ClientConfig:
    """Client configuration."""
    url: Optional[str]                 # URL to send the data to
    bearer_token: str = ""             # token used to authenticate requests
    ca_cert: Optional[str] = None      # PEM-encoded certificate authority certificate
    timeout: float = 30.0
    connection_limit: int = 10

    def check(self) -> None:
        if not self.url:
            raise InvalidConfiguration("missing parameter URL")
        parts = urlsplit(self.url)
        if parts.scheme != "https":
            raise InvalidConfiguration("only HTTPS scheme is supported")
        if not parts.netloc:
            raise InvalidConfiguration(f"URL {self.url!r} has no host")
        if self.timeout <= 0:
            raise InvalidConfiguration(f"timeout must be positive, got {self.timeout}")
        # The bearer token is not checked so that bogus requests can be tested.


def build_ssl_context(ca_cert: Optional[str]) -> Optional[ssl.SSLContext]:
    """Create an SSL context trusting only the given root certificate."""
    if not ca_cert:
        return None
    pem = parse_certificate_pem(ca_cert)
    try:
        return ssl.create_default_context(cadata=pem)
    except ssl.SSLError as e:
        raise InvalidConfiguration(f"failed to load CA certificate: {e}") from e


class IngestionClient:
    """HTTP client sending the data to the IoT metric server."""

    def __init__(self, config: ClientConfig, session: Optional[aiohttp.ClientSession] = None):
        config.check()
        self.config = config
        self.logger = logging.getLogger(__name__)
        self._ssl_context = build_ssl_context(config.ca_cert)
        self.endpoint = f"{config.url.rstrip('/')}/{METRICS_ENDPOINT}"
        # An injected session belongs to the caller and is never closed here
        self._external_session = session
        self._session: Optional[aiohttp.ClientSession] = session

    def with_bearer_token(self, bearer_token: str) -> "IngestionClient":
        """Return an independent client with the same endpoint and trust root but another token."""
        return IngestionClient(
            replace(self.config, bearer_token=bearer_token),
            session=self._external_session,
        )

    async def open(self) -> None:
        if self._session is not None and not self._session.closed:
            return
        connector = aiohttp.TCPConnector(
            ssl=self._ssl_context or True,
            limit=self.config.connection_limit,
        )
        timeout = aiohttp.ClientTimeout(total=self.config.timeout)
        self._session = aiohttp.ClientSession(connector=connector, timeout=timeout)
        self.logger.debug(f"Opened HTTP session to {self.endpoint}")

    async def close(self) -> None:
        if self._session is not None and self._session is not self._external_session:
            await self._session.close()
            self.logger.debug(f"Closed HTTP session to {self.endpoint}")
        self._session = self._external_session

    async def __aenter__(self) -> "IngestionClient":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.config.bearer_token}"}

    async def send(self, metric: Metric) -> None:
        """Send the metric to the IoT server as JSON."""
        await self._post(json=metric.to_dict())

    async def send_corrupted(self) -> None:
        """Send corrupted non-JSON form data to the server."""
        await self._post(data={"bad": "format"})

    async def _post(self, **body: Any) -> None:
        if self._session is None or self._session.closed:
            # Single request outside of a context manager
            async with self:
                return await self._post(**body)

        try:
            async with self._session.post(
                self.endpoint,
                headers=self._headers(),
                allow_redirects=False,
                **body,
            ) as response:
                await check_response(response)
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            raise TransportFailure(f"request to {self.endpoint} failed: {e.__class__.__name__} - {e}") from e


async def check_response(response) -> None:
    """Classify a response, raising on anything but a 2xx JSON answer."""
    content_type = response.headers.get(CONTENT_TYPE_HEADER)
    if not content_type:
        raise ProtocolViolation(f"server did not respond with {CONTENT_TYPE_HEADER} header")
    mimetype = content_type.split(";", 1)[0].strip().lower()
    if mimetype != CONTENT_TYPE_JSON:
        raise ProtocolViolation(
            f"received unexpected {CONTENT_TYPE_HEADER}: {content_type!r}, expected {CONTENT_TYPE_JSON!r}"
        )
    if 200 <= response.status < 300:
        return
    raise ServerRejected.from_status(response.status, await read_error_message(response))


async def read_error_message(response) -> str:
    """Extract a human readable error description from a response body."""
    raw = await response.read()
    text = raw.decode("utf-8", errors="replace").strip()
    try:
        data = json.loads(text)
    except ValueError:
        return text
    if isinstance(data, dict):
        message = data.get("message") or data.get("error")
        if isinstance(message, dict):
            message = message.get("message")
        if message:
            return str(message)
    return text
