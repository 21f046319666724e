"""
Provider registry: model routing and per-request provider construction.
"""

from dataclasses import dataclass
from typing import List, Union

import structlog

from .base import ProviderConfig, ProviderType
from .bing_provider import BingProvider
from .cohere_provider import CohereProvider
from ..auth.base import AuthType, Credential
from ..config import AppConfig
from ..errors import UnsupportedModel
from ..utils.http_client import HTTPClient

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CohereRoute:
    """Request routed to Cohere."""
    base_model: str
    use_internet: bool = False


@dataclass(frozen=True)
class BingRoute:
    """Request routed to the Bing chat bridge."""
    base_model: str


Route = Union[CohereRoute, BingRoute]


class ProviderRegistry:
    """Registry mapping model names to providers."""

    def __init__(self, config: AppConfig, http_client: HTTPClient):
        """
        Initialize provider registry.

        Args:
            config: Application configuration
            http_client: Shared HTTP client
        """
        self.config = config
        self.http_client = http_client
        self.cohere_config = ProviderConfig(
            name="cohere",
            provider_type=ProviderType.COHERE,
            base_url=config.cohere.base_url,
            auth_type=AuthType.API_KEY,
        )
        self.bing_config = ProviderConfig(
            name="bing",
            provider_type=ProviderType.BING,
            base_url=config.bing.base_url,
            auth_type=AuthType.COOKIE,
            cookie_name=config.bing.cookie_name,
        )

    def resolve(self, model: str) -> Route:
        """
        Select the provider for a requested model name.

        A trailing internet suffix is stripped and recorded as a flag. The
        remaining name is matched against the Cohere models first, then the
        Bing model.

        Args:
            model: Requested model name

        Returns:
            CohereRoute or BingRoute

        Raises:
            UnsupportedModel: No provider serves the model
        """
        suffix = self.config.internet_suffix
        use_internet = model.endswith(suffix)
        base_model = model[: -len(suffix)] if use_internet else model

        if base_model in self.config.cohere.models:
            route: Route = CohereRoute(base_model=base_model, use_internet=use_internet)
        elif base_model == self.config.bing.model:
            route = BingRoute(base_model=base_model)
        else:
            logger.warning("Unsupported model requested", model=model)
            raise UnsupportedModel(f"Model '{model}' is not supported.", model=model)

        logger.debug("Model routed", model=model, route=type(route).__name__, use_internet=use_internet)
        return route

    def cohere(self, credential: Credential) -> CohereProvider:
        """Build a Cohere provider for one request."""
        return CohereProvider(self.cohere_config, credential, self.http_client)

    def bing(self, credential: Credential) -> BingProvider:
        """Build a Bing provider for one request."""
        return BingProvider(self.bing_config, credential, self.http_client)

    def list_models(self) -> List[str]:
        """List every routable model name."""
        return self.config.routable_models()

    def list_providers(self) -> List[dict]:
        """List configured providers."""
        return [self.cohere_config.to_dict(), self.bing_config.to_dict()]
