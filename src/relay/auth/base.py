"""
Credential types for upstream authentication.
The relay never stores credentials: each one lives for a single request.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict


class AuthType(Enum):
    """How a credential is presented to the upstream provider."""
    API_KEY = "api_key"
    COOKIE = "cookie"


@dataclass(frozen=True)
class Credential:
    """A caller-supplied upstream credential."""
    token: str

    def headers(self, auth_type: AuthType, cookie_name: str = "_U") -> Dict[str, str]:
        """
        Build the request headers that present this credential.

        Args:
            auth_type: Presentation style expected by the provider
            cookie_name: Session cookie name for cookie auth

        Returns:
            Header dictionary
        """
        if auth_type is AuthType.COOKIE:
            return {"Cookie": f"{cookie_name}={self.token}"}
        return {"Authorization": f"Bearer {self.token}"}

    def __repr__(self) -> str:
        return "Credential(token='***')"
