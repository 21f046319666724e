"""Tests for bearer credential extraction."""

import pytest

from relay.auth import AuthType, Credential, extract_bearer_credential
from relay.errors import MalformedCredential, MissingCredential


class TestExtractBearerCredential:
    """Tests for extract_bearer_credential."""

    def test_valid_header(self):
        credential = extract_bearer_credential("Bearer sk-123")
        assert credential.token == "sk-123"

    @pytest.mark.parametrize("header", [None, ""])
    def test_missing_header(self, header):
        with pytest.raises(MissingCredential, match="required"):
            extract_bearer_credential(header)

    @pytest.mark.parametrize(
        "header",
        [
            "sk-123",
            "Bearer",
            "Bearer sk 123",
            "Basic sk-123",
            "bearer sk-123",
            "Bearer ",
        ],
    )
    def test_malformed_header(self, header):
        with pytest.raises(MalformedCredential):
            extract_bearer_credential(header)

    def test_malformed_is_a_missing_credential(self):
        """Callers catching MissingCredential also see malformed headers."""
        with pytest.raises(MissingCredential):
            extract_bearer_credential("Token abc")


class TestCredential:
    """Tests for credential presentation."""

    def test_api_key_headers(self):
        headers = Credential("abc").headers(AuthType.API_KEY)
        assert headers == {"Authorization": "Bearer abc"}

    def test_cookie_headers(self):
        headers = Credential("abc").headers(AuthType.COOKIE, cookie_name="_U")
        assert headers == {"Cookie": "_U=abc"}

    def test_repr_hides_token(self):
        assert "abc" not in repr(Credential("abc"))
