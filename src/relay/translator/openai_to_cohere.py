"""
OpenAI to Cohere translator.
Converts OpenAI chat requests to Cohere chat requests and Cohere replies back.
"""

from typing import Any, Dict, List, Optional

from .base import BaseTranslator, get_message_content, raw_content
from .openai_format import CompletionContext, format_stream_chunk
from ..models import ChatCompletionRequest

TEXT_GENERATION_EVENT = "text-generation"

ROLE_MAP = {
    "system": "SYSTEM",
    "user": "USER",
    "assistant": "CHATBOT",
}


class OpenAIToCohereTranslator(BaseTranslator):
    """Translator from OpenAI to Cohere format."""

    def __init__(self, web_connector_id: str = "web-search"):
        """
        Initialize OpenAI to Cohere translator.

        Args:
            web_connector_id: Connector enabled for internet models
        """
        super().__init__("openai", "cohere")
        self.web_connector_id = web_connector_id

    def translate_request(
        self,
        request: ChatCompletionRequest,
        base_model: Optional[str] = None,
        use_internet: bool = False,
        **kwargs
    ) -> Dict[str, Any]:
        """
        Translate OpenAI request to Cohere format.

        The final message, when it is a user turn, becomes ``message`` and
        is left out of ``chat_history``. Every other message is appended to
        the history in order.

        Args:
            request: OpenAI request
            base_model: Model name with the internet suffix removed
            use_internet: Enable the web search connector

        Returns:
            Cohere chat request
        """
        self._require_latest_user_message(request)
        last_index = len(request.messages) - 1

        chat_history: List[Dict[str, Any]] = []
        current_message = ""

        for index, message in enumerate(request.messages):
            if message.role == "system":
                content = raw_content(message)
            else:
                content = get_message_content(message)

            if message.role == "user" and index == last_index:
                current_message = content
                continue

            chat_history.append({
                "role": ROLE_MAP[message.role],
                "message": content,
            })

        cohere_request: Dict[str, Any] = {
            "message": current_message,
            "model": base_model or request.model,
            "chat_history": chat_history,
            "frequency_penalty": request.frequency_penalty if request.frequency_penalty is not None else 0.0,
            "presence_penalty": request.presence_penalty if request.presence_penalty is not None else 0.0,
            "stream": bool(request.stream),
        }

        # Zero is treated as unset for these two
        if request.max_tokens:
            cohere_request["max_tokens"] = request.max_tokens
        if request.temperature:
            cohere_request["temperature"] = request.temperature

        cohere_request["connectors"] = [{"id": self.web_connector_id}] if use_internet else []

        return cohere_request

    def translate_stream_event(
        self,
        event: Dict[str, Any],
        context: CompletionContext,
    ) -> Optional[Dict[str, Any]]:
        """
        Translate one Cohere stream event into an OpenAI chunk.

        Args:
            event: Decoded Cohere stream event
            context: Identifiers shared by the stream

        Returns:
            Chunk dict for text-generation events, None for any other event
        """
        if event.get("event_type") != TEXT_GENERATION_EVENT:
            return None
        return format_stream_chunk(event.get("text") or "", context)
