"""HTTP client for the Transloadit template API.

This module talks to the Transloadit REST API with requests and provides
error translation from HTTP failures and service error codes to our typed
exception hierarchy. It integrates with the retry logic for rate limits.
"""

import hashlib
import hmac
import json
import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import requests
from requests.exceptions import Timeout, ConnectionError

from .auth import Authenticator
from .errors import (
    APIAccessError,
    InvalidCredentialsError,
    InvalidTemplateIdError,
    NotFoundError,
    RemoteRejectedError,
    RemoteUnavailableError,
)
from .models import RemoteTemplate, TemplatePage
from .retry_logic import RateLimitedError, RATE_LIMIT_STATUS_CODES, retry_on_rate_limit

logger = logging.getLogger(__name__)

# Seconds before a request hangs up
REQUEST_TIMEOUT = 30

# Lifetime of a request signature
SIGNATURE_TTL = timedelta(hours=1)

TEMPLATE_ID_PATTERN = re.compile(r'^[A-Za-z0-9_-]+$')

NOT_FOUND_CODES = {'TEMPLATE_NOT_FOUND', 'NOT_FOUND'}

AUTH_ERROR_CODES = {
    'INVALID_SIGNATURE',
    'SIGNATURE_EXPIRED',
    'NO_AUTH_KEY',
    'GET_ACCOUNT_UNKNOWN_AUTH_KEY',
    'AUTH_EXPIRED',
    'INVALID_AUTH_EXPIRES_PARAMETER',
}


class TransloaditClient:
    """RemoteTemplateClient implementation backed by the Transloadit API.

    This class provides a thin layer over the REST endpoints that:
    1. Handles authentication and request signing using the Authenticator
    2. Translates HTTP errors and service error codes to typed exceptions
    3. Integrates retry logic for rate limits
    4. Decodes template content into plain Python structures

    Example:
        >>> client = TransloaditClient(Authenticator())
        >>> template = client.get_template("b8a7c3...")
        >>> template.name
        'resize-thumbs'
    """

    def __init__(self, authenticator: Authenticator, session: Optional[requests.Session] = None):
        """Initialize the client with authentication credentials.

        Args:
            authenticator: Authenticator instance for loading credentials
            session: Optional requests session (a new one is created lazily)
        """
        self._authenticator = authenticator
        self._session = session

    def _get_session(self) -> requests.Session:
        """Get or create the HTTP session."""
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def _validate_template_id(self, template_id: str) -> None:
        """Validate that a template ID is safe to place in a URL path.

        Args:
            template_id: The template ID to validate

        Raises:
            InvalidTemplateIdError: If template_id is empty or contains unsafe characters
        """
        if not template_id or not str(template_id).strip():
            raise InvalidTemplateIdError(str(template_id), "template id cannot be empty")

        if not TEMPLATE_ID_PATTERN.match(str(template_id).strip()):
            raise InvalidTemplateIdError(
                str(template_id),
                "template ids may contain only letters, digits, '-' and '_'"
            )

    def _sign(self, fields: Dict[str, Any]) -> Dict[str, str]:
        """Build the signed ``params``/``signature`` pair for a request.

        Args:
            fields: Request-specific fields merged next to the auth block

        Returns:
            Dict with ``params`` (JSON string) and ``signature``
        """
        creds = self._authenticator.get_credentials()
        expires = (datetime.now(timezone.utc) + SIGNATURE_TTL).strftime("%Y/%m/%d %H:%M:%S+00:00")
        params = {"auth": {"key": creds.key, "expires": expires}}
        params.update(fields)
        params_json = json.dumps(params)
        digest = hmac.new(
            creds.secret.encode("utf-8"),
            params_json.encode("utf-8"),
            hashlib.sha384,
        ).hexdigest()
        return {"params": params_json, "signature": f"sha384:{digest}"}

    def _sanitize_credentials(self, text: str) -> str:
        """Mask signatures and secrets in error messages before logging.

        Args:
            text: The error message or log text to sanitize

        Returns:
            str: Sanitized text

        Example:
            >>> client._sanitize_credentials("signature=sha384:abcdef0123")
            'signature=***REDACTED***'
        """
        if not text:
            return text

        sanitized = re.sub(
            r'sha(1|256|384|512):[0-9a-f]+',
            '***REDACTED***',
            text,
            flags=re.IGNORECASE
        )
        sanitized = re.sub(
            r'(secret|signature)["\']?\s*[:=]\s*["\']?([^"\'\s&]+)',
            r'\1=***REDACTED***',
            sanitized,
            flags=re.IGNORECASE
        )
        sanitized = re.sub(
            r'"key"\s*:\s*"[^"]+"',
            '"key": "***REDACTED***"',
            sanitized
        )
        return sanitized

    def _translate_error(
        self,
        status_code: int,
        body: Dict[str, Any],
        operation: str,
        template_id: Optional[str] = None,
    ) -> Exception:
        """Translate a failed response into a typed exception.

        Args:
            status_code: HTTP status of the response
            body: Decoded response body (may be empty)
            operation: Description of the operation that failed (for logging)
            template_id: Template the request targeted, if any

        Returns:
            Exception: Translated exception (one of our typed exceptions)
        """
        creds = self._authenticator.get_credentials()
        error_code = str(body.get('error') or '')
        message = body.get('message') or body.get('reason')

        if error_code in NOT_FOUND_CODES or (not error_code and status_code == 404):
            return NotFoundError(template_id or "unknown")

        if error_code in AUTH_ERROR_CODES or status_code == 401:
            return InvalidCredentialsError(key=creds.key, endpoint=creds.endpoint)

        if error_code:
            return RemoteRejectedError(error_code, message)

        safe_error_msg = self._sanitize_credentials(json.dumps(body))
        logger.error(f"API operation failed: {operation} - HTTP {status_code} {safe_error_msg}")
        return APIAccessError(f"Template API failure during {operation} (HTTP {status_code})")

    def _request(
        self,
        method: str,
        path: str,
        operation: str,
        fields: Optional[Dict[str, Any]] = None,
        template_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Issue one signed request, retrying on rate limits.

        Args:
            method: HTTP method
            path: Path below the API endpoint (e.g. ``/templates``)
            operation: Description of the operation (for logs and errors)
            fields: Request-specific signed fields
            template_id: Template the request targets, for error messages

        Returns:
            Decoded JSON response body

        Raises:
            NotFoundError, RemoteRejectedError, InvalidCredentialsError,
            RemoteUnavailableError, APIAccessError
        """
        creds = self._authenticator.get_credentials()
        url = f"{creds.endpoint}{path}"

        def _send() -> Dict[str, Any]:
            signed = self._sign(fields or {})
            try:
                if method == "GET":
                    response = self._get_session().request(
                        method, url, params=signed, timeout=REQUEST_TIMEOUT
                    )
                else:
                    response = self._get_session().request(
                        method, url, data=signed, timeout=REQUEST_TIMEOUT
                    )
            except (Timeout, ConnectionError) as e:
                raise RemoteUnavailableError(
                    creds.endpoint, self._sanitize_credentials(str(e))
                ) from e

            try:
                body = response.json()
            except ValueError:
                body = {}
            if not isinstance(body, dict):
                body = {}

            if response.status_code in RATE_LIMIT_STATUS_CODES or body.get('error') == 'RATE_LIMIT_REACHED':
                info = body.get('info') or {}
                raise RateLimitedError(response.status_code, retry_in=info.get('retryIn', 0))

            if response.status_code >= 400 or body.get('error'):
                raise self._translate_error(response.status_code, body, operation, template_id)

            logger.debug(f"{operation} -> HTTP {response.status_code}")
            return body

        return retry_on_rate_limit(_send)

    @staticmethod
    def _decode_content(raw: Any) -> Any:
        """Decode template content that the service may return as a JSON string."""
        if isinstance(raw, str):
            try:
                return json.loads(raw)
            except ValueError:
                return raw
        return raw

    @classmethod
    def _to_remote_template(cls, item: Dict[str, Any]) -> RemoteTemplate:
        """Build a RemoteTemplate from a response object."""
        content = item.get('content')
        if content is None:
            content = item.get('template_content', item.get('json'))
        return RemoteTemplate(
            template_id=str(item.get('id')),
            name=item.get('name') or "",
            content=cls._decode_content(content),
        )

    def create_template(self, name: str, content: Any) -> Dict[str, Any]:
        """Create a new template.

        Args:
            name: Template name
            content: Template content (any JSON-serializable structure)

        Returns:
            Dict containing the server response, including the new ``id``

        Raises:
            RemoteRejectedError: If the service rejects the template (e.g. duplicate name)
            InvalidCredentialsError: If credentials are invalid
            RemoteUnavailableError: If API is unreachable
            APIAccessError: If API access fails after retries
        """
        body = self._request(
            "POST",
            "/templates",
            f"create_template({name})",
            fields={"name": name, "template": json.dumps(content)},
        )
        if not body.get('id'):
            raise APIAccessError(f"Template API returned no id for create_template({name})")
        return body

    def get_template(self, template_id: str) -> RemoteTemplate:
        """Fetch a template by its ID.

        Args:
            template_id: The template ID

        Returns:
            RemoteTemplate with decoded content

        Raises:
            NotFoundError: If template doesn't exist
            InvalidTemplateIdError: If template_id is unsafe
            InvalidCredentialsError: If credentials are invalid
            RemoteUnavailableError: If API is unreachable
            APIAccessError: If API access fails after retries
        """
        self._validate_template_id(template_id)
        body = self._request(
            "GET",
            f"/templates/{template_id}",
            f"get_template({template_id})",
            template_id=template_id,
        )
        if not body.get('id'):
            body = dict(body, id=template_id)
        return self._to_remote_template(body)

    def modify_template(
        self,
        template_id: str,
        name: Optional[str] = None,
        content: Any = None,
    ) -> None:
        """Update a template's name and/or content.

        Only the fields that are not None are sent, so a content update never
        renames the template and a rename never touches its content.

        Args:
            template_id: The template ID
            name: New name, or None to keep the current one
            content: New content, or None to keep the current one

        Raises:
            NotFoundError: If template doesn't exist
            InvalidTemplateIdError: If template_id is unsafe
            RemoteRejectedError: If the service rejects the change
            InvalidCredentialsError: If credentials are invalid
            RemoteUnavailableError: If API is unreachable
            APIAccessError: If API access fails after retries
        """
        self._validate_template_id(template_id)

        fields: Dict[str, Any] = {}
        if name is not None:
            fields["name"] = name
        if content is not None:
            fields["template"] = json.dumps(content)
        if not fields:
            logger.debug(f"modify_template({template_id}): nothing to change")
            return

        self._request(
            "PUT",
            f"/templates/{template_id}",
            f"modify_template({template_id})",
            fields=fields,
            template_id=template_id,
        )

    def delete_template(self, template_id: str) -> None:
        """Delete a template by its ID.

        Args:
            template_id: The template ID to delete

        Raises:
            NotFoundError: If template doesn't exist
            InvalidTemplateIdError: If template_id is unsafe
            InvalidCredentialsError: If credentials are invalid
            RemoteUnavailableError: If API is unreachable
            APIAccessError: If API access fails after retries
        """
        self._validate_template_id(template_id)
        self._request(
            "DELETE",
            f"/templates/{template_id}",
            f"delete_template({template_id})",
            template_id=template_id,
        )

    def list_templates(self, page: int = 1, page_size: int = 50) -> TemplatePage:
        """Fetch one page of the template listing.

        Args:
            page: 1-based page number
            page_size: Number of templates per page

        Returns:
            TemplatePage with the items and whether more pages follow

        Raises:
            InvalidCredentialsError: If credentials are invalid
            RemoteUnavailableError: If API is unreachable
            APIAccessError: If API access fails after retries
        """
        body = self._request(
            "GET",
            "/templates",
            f"list_templates(page={page})",
            fields={"page": page, "pagesize": page_size},
        )
        items = [self._to_remote_template(item) for item in body.get('items') or []]
        count = body.get('count')
        if isinstance(count, int):
            has_more = page * page_size < count
        else:
            has_more = len(items) == page_size
        return TemplatePage(items=items, has_more=has_more and bool(items))
