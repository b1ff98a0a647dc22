"""Authentication module for loading Transloadit credentials.

This module handles loading Transloadit credentials from environment variables
using python-dotenv. It validates that all required credentials are present and
raises appropriate errors if any are missing.
"""

import os
from typing import NamedTuple

from dotenv import load_dotenv

from .errors import InvalidCredentialsError

DEFAULT_ENDPOINT = "https://api2.transloadit.com"


class Credentials(NamedTuple):
    """Transloadit API credentials."""
    key: str
    secret: str
    endpoint: str


class Authenticator:
    """Loads and validates Transloadit credentials from environment variables.

    Credentials are loaded from a .env file using python-dotenv and are never
    cached or logged.

    Required environment variables:
        TRANSLOADIT_KEY: Account auth key
        TRANSLOADIT_SECRET: Account auth secret

    Optional environment variables:
        TRANSLOADIT_ENDPOINT: API base URL (defaults to https://api2.transloadit.com)

    Raises:
        InvalidCredentialsError: If any required credential is missing

    Example:
        >>> auth = Authenticator()
        >>> creds = auth.get_credentials()
        >>> print(f"Connecting to {creds.endpoint}")
    """

    def __init__(self):
        """Initialize the authenticator by loading environment variables from .env file."""
        load_dotenv()

    def get_credentials(self) -> Credentials:
        """Get Transloadit credentials from environment variables.

        Returns:
            Credentials: A named tuple containing key, secret and endpoint

        Raises:
            InvalidCredentialsError: If any required credential is missing
        """
        key = os.getenv('TRANSLOADIT_KEY')
        secret = os.getenv('TRANSLOADIT_SECRET')
        endpoint = os.getenv('TRANSLOADIT_ENDPOINT') or DEFAULT_ENDPOINT

        if not key or not secret:
            raise InvalidCredentialsError(
                key=key if key else "unknown",
                endpoint=endpoint
            )

        return Credentials(key=key, secret=secret, endpoint=endpoint.rstrip('/'))
