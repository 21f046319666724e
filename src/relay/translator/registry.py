"""
Translator registry for managing format conversions.
"""

from typing import Dict, Optional

from .base import BaseTranslator
from .openai_to_bing import OpenAIToBingTranslator
from .openai_to_cohere import OpenAIToCohereTranslator


class TranslatorRegistry:
    """Registry for managing translators between different formats."""

    def __init__(self, web_connector_id: str = "web-search"):
        """
        Initialize translator registry.

        Args:
            web_connector_id: Cohere connector used for internet models
        """
        self.translators: Dict[str, BaseTranslator] = {}
        self.register_translator(OpenAIToCohereTranslator(web_connector_id))
        self.register_translator(OpenAIToBingTranslator())

    def register_translator(self, translator: BaseTranslator):
        """
        Register a translator.

        Args:
            translator: Translator instance
        """
        key = f"{translator.source_format}:{translator.target_format}"
        self.translators[key] = translator

    def get_translator(self, source_format: str, target_format: str) -> Optional[BaseTranslator]:
        """
        Get translator for source to target format.

        Args:
            source_format: Source API format
            target_format: Target API format

        Returns:
            Translator instance, or None if not found
        """
        key = f"{source_format}:{target_format}"
        return self.translators.get(key)

    @property
    def cohere(self) -> OpenAIToCohereTranslator:
        return self.translators["openai:cohere"]

    @property
    def bing(self) -> OpenAIToBingTranslator:
        return self.translators["openai:bing"]

    def list_translators(self) -> Dict[str, str]:
        """
        List all registered translators.

        Returns:
            Dictionary of translator keys to descriptions
        """
        return {
            key: f"{translator.source_format} -> {translator.target_format}"
            for key, translator in self.translators.items()
        }
