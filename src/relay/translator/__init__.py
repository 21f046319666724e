"""
Translator module for the chat relay.
Converts OpenAI chat requests to provider formats and replies back.
"""

from .base import BaseTranslator, get_message_content
from .openai_format import CompletionContext
from .openai_to_bing import OpenAIToBingTranslator
from .openai_to_cohere import OpenAIToCohereTranslator
from .registry import TranslatorRegistry

__all__ = [
    "BaseTranslator",
    "CompletionContext",
    "get_message_content",
    "OpenAIToBingTranslator",
    "OpenAIToCohereTranslator",
    "TranslatorRegistry",
]
