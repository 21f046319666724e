"""
Bing chat provider implementation.

Talks to a Bing chat bridge that accepts one free-text prompt per call and
authenticates with the caller's Bing session cookie.
"""

from typing import Any, Dict

import structlog

from .base import BaseProvider
from ..errors import UpstreamFailure

logger = structlog.get_logger(__name__)


class BingProvider(BaseProvider):
    """Bing chat provider."""

    CONVERSATION_PATH = "/conversation"

    async def send_message(self, prompt: str, tone_style: str = "precise") -> str:
        """
        Send one prompt and return the reply text.

        Args:
            prompt: Free-text prompt
            tone_style: Conversation style (creative, balanced, precise, fast)

        Returns:
            Reply text
        """
        payload: Dict[str, Any] = {
            "message": prompt,
            "toneStyle": tone_style,
        }
        response = await self.http_client.post(
            f"{self.base_url}{self.CONVERSATION_PATH}",
            provider=self.name,
            json=payload,
            headers=self._headers(),
        )
        self._raise_for_status(response, response.text)

        result = self._parse_json(response)
        text = result.get("response")
        if not isinstance(text, str):
            raise UpstreamFailure(f"Invalid response format from {self.name}", provider=self.name)

        logger.info("Bing message completed", tone_style=tone_style)
        return text
