"""
Base translator interface for converting OpenAI requests to provider formats.
"""

import abc
from typing import Any, List, Optional

from ..errors import MissingContent
from ..models import ChatCompletionRequest, ChatMessage
from .openai_format import CompletionContext, format_chat_completion


def get_message_content(message: ChatMessage) -> str:
    """
    Extract the text of a message.

    String content is returned as is. For segmented content the last
    segment of type ``text`` wins; every other segment is discarded.

    Args:
        message: Inbound chat message

    Returns:
        Message text

    Raises:
        MissingContent: Content absent, empty, or without a text segment
    """
    if not message.content:
        raise MissingContent("Message content is required.")

    if isinstance(message.content, str):
        return message.content

    message_content = ""
    for part in message.content:
        if part.type == "text":
            message_content = part.text or ""

    if not message_content:
        raise MissingContent("Message content is required.")

    return message_content


def raw_content(message: ChatMessage) -> Any:
    """Return message content unchanged, with segments as plain dicts."""
    if isinstance(message.content, list):
        return [part.model_dump(exclude_none=True) for part in message.content]
    return message.content


def latest_user_message(messages: List[ChatMessage]) -> Optional[ChatMessage]:
    """Return the final message if it is a user turn, else None."""
    last = messages[-1] if messages else None
    if last is not None and last.role == "user":
        return last
    return None


class BaseTranslator(abc.ABC):
    """Base class for all translators."""

    def __init__(self, source_format: str, target_format: str):
        """
        Initialize translator.

        Args:
            source_format: Source API format (e.g., "openai")
            target_format: Target API format (e.g., "cohere")
        """
        self.source_format = source_format
        self.target_format = target_format

    @abc.abstractmethod
    def translate_request(self, request: ChatCompletionRequest, **kwargs) -> Any:
        """
        Translate an inbound request into the provider's request shape.

        Args:
            request: Parsed inbound request
            **kwargs: Routing details the provider needs

        Returns:
            Provider request
        """

    def translate_response(self, text: str, context: CompletionContext) -> dict:
        """
        Wrap a provider's full text reply as an OpenAI chat completion.

        Args:
            text: Provider reply
            context: Identifiers for this response

        Returns:
            OpenAI-compatible chat completion dict
        """
        return format_chat_completion(text, context)

    def _require_latest_user_message(self, request: ChatCompletionRequest) -> ChatMessage:
        """The active turn is the final message, which must be a user turn."""
        message = latest_user_message(request.messages)
        if message is None:
            raise MissingContent("The last message must be a user message.")
        return message
