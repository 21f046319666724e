"""
Provider module for the chat relay.
Upstream chat providers and model routing.
"""

from .base import BaseProvider, ProviderConfig, ProviderType
from .bing_provider import BingProvider
from .cohere_provider import CohereProvider, UpstreamStream
from .registry import BingRoute, CohereRoute, ProviderRegistry, Route

__all__ = [
    "BaseProvider",
    "ProviderConfig",
    "ProviderType",
    "BingProvider",
    "CohereProvider",
    "UpstreamStream",
    "BingRoute",
    "CohereRoute",
    "ProviderRegistry",
    "Route",
]
