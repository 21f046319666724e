"""
Base provider interface for upstream chat providers.
"""

import abc
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict

import httpx
import structlog

from ..auth.base import AuthType, Credential
from ..errors import UpstreamFailure
from ..utils.http_client import HTTPClient

logger = structlog.get_logger(__name__)


class ProviderType(Enum):
    """Provider type enumeration."""
    COHERE = "cohere"
    BING = "bing"


@dataclass
class ProviderConfig:
    """Provider configuration."""
    name: str
    provider_type: ProviderType
    base_url: str
    auth_type: AuthType = AuthType.API_KEY
    cookie_name: str = "_U"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "provider_type": self.provider_type.value,
            "base_url": self.base_url,
            "auth_type": self.auth_type.value,
        }


class BaseProvider(abc.ABC):
    """Base class for upstream providers.

    A provider instance is built for one request and carries that
    request's credential.
    """

    def __init__(self, config: ProviderConfig, credential: Credential, http_client: HTTPClient):
        """
        Initialize provider.

        Args:
            config: Provider configuration
            credential: Caller's upstream credential
            http_client: Shared HTTP client
        """
        self.config = config
        self.credential = credential
        self.http_client = http_client
        self.base_url = config.base_url.rstrip("/")

    @property
    def name(self) -> str:
        return self.config.name

    def _headers(self) -> Dict[str, str]:
        """Request headers carrying the credential."""
        headers = {"Content-Type": "application/json"}
        headers.update(self.credential.headers(self.config.auth_type, self.config.cookie_name))
        return headers

    def _raise_for_status(self, response: httpx.Response, body: str) -> None:
        """
        Raise UpstreamFailure on a non-2xx upstream status.

        Args:
            response: Upstream response
            body: Response text, already read
        """
        if response.is_success:
            return
        logger.error(
            "Upstream returned error status",
            provider=self.name,
            status_code=response.status_code,
        )
        raise UpstreamFailure(
            f"{self.name} API error: {response.status_code} - {body[:500]}",
            provider=self.name,
            upstream_status=response.status_code,
        )

    def _parse_json(self, response: httpx.Response) -> Dict[str, Any]:
        """Decode a JSON object body or raise UpstreamFailure."""
        try:
            result = response.json()
        except ValueError as e:
            raise UpstreamFailure(f"Invalid JSON from {self.name}: {e}", provider=self.name) from e
        if not isinstance(result, dict):
            raise UpstreamFailure(f"Unexpected response shape from {self.name}", provider=self.name)
        return result
