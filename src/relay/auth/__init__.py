"""
Authentication module for the chat relay.
Extracts the caller's bearer credential and presents it upstream.
"""

from .base import AuthType, Credential
from .bearer import extract_bearer_credential

__all__ = [
    "AuthType",
    "Credential",
    "extract_bearer_credential",
]
