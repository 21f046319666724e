"""
OpenAI to Bing translator.
Bing takes a single free-text prompt, so only the latest user turn is sent.
"""

from .base import BaseTranslator, get_message_content
from .openai_format import CompletionContext, format_stream_chunk
from ..models import ChatCompletionRequest


class OpenAIToBingTranslator(BaseTranslator):
    """Translator from OpenAI to Bing format."""

    def __init__(self):
        """Initialize OpenAI to Bing translator."""
        super().__init__("openai", "bing")

    def translate_request(self, request: ChatCompletionRequest, **kwargs) -> str:
        """
        Translate OpenAI request to a Bing prompt.

        Args:
            request: OpenAI request

        Returns:
            Text of the latest user message
        """
        return get_message_content(self._require_latest_user_message(request))

    def translate_reply_chunk(self, text: str, context: CompletionContext) -> dict:
        """Wrap a complete Bing reply as a single stream chunk."""
        return format_stream_chunk(text, context)
