"""
Cohere chat provider implementation.
"""

import json
from typing import Any, AsyncGenerator, AsyncIterator, Dict, Optional

import httpx
import structlog

from .base import BaseProvider
from ..errors import UpstreamFailure

logger = structlog.get_logger(__name__)

# stream-end finish reasons that mean the generation did not complete
FAILED_FINISH_REASONS = {"ERROR", "ERROR_TOXIC", "ERROR_LIMIT", "USER_CANCEL"}


class UpstreamStream:
    """
    Lazy sequence of decoded Cohere stream events.

    Wraps an open httpx response whose body is newline-delimited JSON.
    Events are read one line at a time; nothing is buffered ahead of the
    consumer. The owner must call ``aclose()``.
    """

    def __init__(self, response: httpx.Response, provider: str):
        self.response = response
        self.provider = provider
        self.closed = False
        self._iterator: Optional[AsyncGenerator[Dict[str, Any], None]] = None

    def __aiter__(self) -> AsyncIterator[Dict[str, Any]]:
        if self._iterator is None:
            self._iterator = self._events()
        return self._iterator

    async def _events(self) -> AsyncGenerator[Dict[str, Any], None]:
        try:
            async for line in self.response.aiter_lines():
                line = line.strip()
                if not line:
                    continue
                try:
                    event = json.loads(line)
                except json.JSONDecodeError as e:
                    raise UpstreamFailure(
                        f"Undecodable stream event from {self.provider}: {e}",
                        provider=self.provider,
                    ) from e
                if not isinstance(event, dict):
                    raise UpstreamFailure(
                        f"Unexpected stream event from {self.provider}: {line[:100]}",
                        provider=self.provider,
                    )

                if event.get("event_type") == "stream-end":
                    finish_reason = event.get("finish_reason")
                    if finish_reason in FAILED_FINISH_REASONS:
                        raise UpstreamFailure(
                            f"{self.provider} stream ended with {finish_reason}",
                            provider=self.provider,
                        )

                yield event
        except httpx.HTTPError as e:
            raise UpstreamFailure(
                f"{self.provider} stream interrupted: {e}",
                provider=self.provider,
            ) from e

    async def aclose(self) -> None:
        """Release the upstream response."""
        if not self.closed:
            self.closed = True
            if self._iterator is not None:
                await self._iterator.aclose()
            await self.response.aclose()
            logger.debug("Upstream stream released", provider=self.provider)


class CohereProvider(BaseProvider):
    """Cohere chat provider."""

    CHAT_PATH = "/v1/chat"

    async def chat(self, request_body: Dict[str, Any]) -> str:
        """
        Create a chat completion.

        Args:
            request_body: Cohere chat request

        Returns:
            Generated text
        """
        body = dict(request_body, stream=False)
        response = await self.http_client.post(
            f"{self.base_url}{self.CHAT_PATH}",
            provider=self.name,
            json=body,
            headers=self._headers(),
        )
        self._raise_for_status(response, response.text)

        result = self._parse_json(response)
        text = result.get("text")
        if not isinstance(text, str):
            raise UpstreamFailure(f"Invalid response format from {self.name}", provider=self.name)

        logger.info(
            "Cohere chat completed",
            model=body.get("model"),
            finish_reason=result.get("finish_reason"),
        )
        return text

    async def chat_stream(self, request_body: Dict[str, Any]) -> UpstreamStream:
        """
        Open a streaming chat completion.

        The upstream status is checked before returning, so a refused
        request raises here rather than mid-stream.

        Args:
            request_body: Cohere chat request

        Returns:
            Open UpstreamStream the caller must close
        """
        body = dict(request_body, stream=True)
        response = await self.http_client.open_stream(
            "POST",
            f"{self.base_url}{self.CHAT_PATH}",
            provider=self.name,
            json=body,
            headers=self._headers(),
        )

        if not response.is_success:
            try:
                await response.aread()
                error_text = response.text
            finally:
                await response.aclose()
            self._raise_for_status(response, error_text)

        logger.info("Cohere stream opened", model=body.get("model"))
        return UpstreamStream(response, self.name)
