"""Unit tests for template_client.auth module."""

from unittest.mock import patch

import pytest

from transloadify.template_client.auth import DEFAULT_ENDPOINT, Authenticator
from transloadify.template_client.errors import InvalidCredentialsError


@pytest.fixture(autouse=True)
def no_dotenv():
    """Keep a developer's .env file out of these tests."""
    with patch('transloadify.template_client.auth.load_dotenv'):
        yield


class TestAuthenticator:
    """Test cases for Authenticator.get_credentials."""

    def test_loads_credentials_from_environment(self, monkeypatch):
        monkeypatch.setenv('TRANSLOADIT_KEY', 'key123')
        monkeypatch.setenv('TRANSLOADIT_SECRET', 'secret456')
        monkeypatch.delenv('TRANSLOADIT_ENDPOINT', raising=False)

        creds = Authenticator().get_credentials()

        assert creds.key == 'key123'
        assert creds.secret == 'secret456'
        assert creds.endpoint == DEFAULT_ENDPOINT

    def test_custom_endpoint_trailing_slash_stripped(self, monkeypatch):
        monkeypatch.setenv('TRANSLOADIT_KEY', 'key123')
        monkeypatch.setenv('TRANSLOADIT_SECRET', 'secret456')
        monkeypatch.setenv('TRANSLOADIT_ENDPOINT', 'https://api.example.test/')

        creds = Authenticator().get_credentials()

        assert creds.endpoint == 'https://api.example.test'

    def test_missing_secret_raises(self, monkeypatch):
        monkeypatch.setenv('TRANSLOADIT_KEY', 'key123')
        monkeypatch.delenv('TRANSLOADIT_SECRET', raising=False)

        with pytest.raises(InvalidCredentialsError) as exc_info:
            Authenticator().get_credentials()

        assert exc_info.value.key == 'key123'

    def test_missing_key_reported_as_unknown(self, monkeypatch):
        monkeypatch.delenv('TRANSLOADIT_KEY', raising=False)
        monkeypatch.setenv('TRANSLOADIT_SECRET', 'secret456')

        with pytest.raises(InvalidCredentialsError) as exc_info:
            Authenticator().get_credentials()

        assert exc_info.value.key == 'unknown'
