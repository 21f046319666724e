"""
Bearer credential extraction from the inbound Authorization header.
"""

from typing import Optional

from ..errors import MalformedCredential, MissingCredential
from .base import Credential


BEARER_SCHEME = "Bearer"


def extract_bearer_credential(authorization: Optional[str]) -> Credential:
    """
    Extract the upstream credential from an Authorization header value.

    The header must be exactly two space-separated tokens and the first
    must be the literal ``Bearer``.

    Args:
        authorization: Raw header value, or None when absent

    Returns:
        Credential carrying the second token

    Raises:
        MissingCredential: Header absent
        MalformedCredential: Wrong token count or scheme
    """
    if not authorization:
        raise MissingCredential("Authorization header is required.")

    token_parts = authorization.split(" ")

    if len(token_parts) != 2:
        raise MalformedCredential("Invalid Authorization header.")

    scheme, token = token_parts
    if scheme != BEARER_SCHEME or not token:
        raise MalformedCredential("Invalid Authorization header.")

    return Credential(token=token)
