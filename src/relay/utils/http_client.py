"""
HTTP client utilities for the chat relay.
Provides an async HTTP client with proxy support and connection pooling.
"""

import ssl
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import httpx
from httpx import AsyncClient, Timeout, Limits
import structlog

from ..errors import UpstreamFailure

logger = structlog.get_logger(__name__)


class HTTPClient:
    """Async HTTP client shared by all per-request providers.

    Holds no credentials: callers pass their own headers on every request.
    """

    def __init__(
        self,
        config: Any,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize HTTP client.

        Args:
            config: Application configuration
            timeout: Upstream read/write timeout in seconds
            transport: Optional transport override (used by tests)
        """
        self.config = config
        self.timeout = timeout

        self.proxy_url = self._configure_proxy()
        self.ssl_context = self._create_ssl_context()
        self.client = self._create_client(transport)

    def _configure_proxy(self) -> Optional[str]:
        """Configure proxy from config."""
        proxy_url = getattr(self.config, "proxy_url", None)
        if not proxy_url:
            return None

        parsed = urlparse(proxy_url)
        if not parsed.scheme or not parsed.hostname:
            logger.warning("Ignoring invalid proxy URL", proxy_url=proxy_url)
            return None

        logger.info("Proxy configured", scheme=parsed.scheme, host=parsed.hostname, port=parsed.port)
        return proxy_url

    def _create_ssl_context(self) -> Optional[ssl.SSLContext]:
        """Create SSL context with appropriate settings."""
        try:
            return ssl.create_default_context()
        except ssl.SSLError as e:
            logger.warning("Failed to create SSL context", error=str(e))
            return None

    def _create_client(self, transport: Optional[httpx.AsyncBaseTransport]) -> AsyncClient:
        """Create HTTP client with configured settings."""
        client_kwargs: Dict[str, Any] = {}
        if transport is not None:
            client_kwargs["transport"] = transport
        elif self.proxy_url:
            client_kwargs["proxy"] = self.proxy_url

        client = AsyncClient(
            **client_kwargs,
            timeout=Timeout(
                connect=5.0,
                read=self.timeout,
                write=self.timeout,
                pool=5.0,
            ),
            limits=Limits(
                max_connections=100,
                max_keepalive_connections=20,
                keepalive_expiry=30.0,
            ),
            follow_redirects=True,
            verify=self.ssl_context if self.ssl_context is not None else True,
        )

        client.headers.update({
            "User-Agent": "ChatRelay-Python/1.0.0",
            "Accept": "application/json",
        })

        return client

    async def request(
        self,
        method: str,
        url: str,
        provider: Optional[str] = None,
        **kwargs
    ) -> httpx.Response:
        """
        Make a single HTTP request.

        Args:
            method: HTTP method
            url: URL to request
            provider: Provider name for error reporting
            **kwargs: Additional arguments for httpx

        Returns:
            HTTP response

        Raises:
            UpstreamFailure: On timeout or transport error
        """
        logger.debug("HTTP request", method=method, url=url, provider=provider)
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            logger.error("Upstream timeout", method=method, url=url, provider=provider)
            raise UpstreamFailure(f"Upstream request timed out: {e}", provider) from e
        except httpx.HTTPError as e:
            logger.error("Upstream transport error", method=method, url=url, provider=provider, error=str(e))
            raise UpstreamFailure(f"Upstream request failed: {e}", provider) from e

        logger.debug("HTTP request completed", method=method, url=url, status_code=response.status_code)
        return response

    async def open_stream(
        self,
        method: str,
        url: str,
        provider: Optional[str] = None,
        **kwargs
    ) -> httpx.Response:
        """
        Send a request and return the response with its body unread.

        The caller owns the response and must ``aclose()`` it.

        Raises:
            UpstreamFailure: On timeout or transport error
        """
        request = self.client.build_request(method, url, **kwargs)
        logger.debug("HTTP stream request", method=method, url=url, provider=provider)
        try:
            return await self.client.send(request, stream=True)
        except httpx.TimeoutException as e:
            logger.error("Upstream timeout", method=method, url=url, provider=provider)
            raise UpstreamFailure(f"Upstream request timed out: {e}", provider) from e
        except httpx.HTTPError as e:
            logger.error("Upstream transport error", method=method, url=url, provider=provider, error=str(e))
            raise UpstreamFailure(f"Upstream request failed: {e}", provider) from e

    async def post(self, url: str, **kwargs) -> httpx.Response:
        """Make POST request."""
        return await self.request("POST", url, **kwargs)

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if self.client:
            await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()

