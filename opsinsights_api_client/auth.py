"""
Token handling for the OpsInsights API.

:class:`Authenticator` exchanges an API key/secret pair for a bearer
token by POSTing to ``/api/v1/oauth2/token``.  The token is cached
together with the ``expires_at`` timestamp returned by the service and
is renewed lazily: :meth:`Authenticator.get_token` re-authenticates
whenever the stored token is missing or its expiry has passed.

Usage
-----

.. code-block:: python

    from opsinsights_api_client import ApiClient, Authenticator

    auth = Authenticator("https://app.opsinsights.com", "my-key", "my-secret")
    auth.authenticate()
    client = ApiClient(auth)
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional

import requests

from .exceptions import AuthenticationError, DecodeError
from .models import Credentials, Envelope, Token

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "OpsInsights-API-Client"
API_PREFIX = "/api/v1"


class Authenticator:
    """Owns the API credentials and the current bearer token.

    Parameters
    ----------
    api_url : str
        Base address of the OpsInsights service, for example
        ``"https://app.opsinsights.com"``.
    key : str
        Your OpsInsights API key.
    secret : str
        The secret paired with ``key``.
    timeout : float, optional
        Timeout in seconds for the token request.
    user_agent : str, optional
        Value of the ``User-Agent`` header.
    clock : callable, optional
        Returns the current Unix time.  Defaults to :func:`time.time`.

    Notes
    -----
    The token is considered expired as soon as the current time reaches
    ``expires_at``.  A failed :meth:`authenticate` leaves any previous
    token in place for inspection, but since its expiry is unchanged it
    will not be handed out again.
    """

    def __init__(
        self,
        api_url: str,
        key: str,
        secret: str,
        *,
        timeout: Optional[float] = None,
        user_agent: str = DEFAULT_USER_AGENT,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not api_url:
            raise ValueError("api_url must be provided")
        if not key:
            raise ValueError("key must be provided")
        if not secret:
            raise ValueError("secret must be provided")

        self._api_url = api_url.rstrip("/")
        self._credentials = Credentials(key=key, secret=secret)
        self.timeout = timeout
        self.user_agent = user_agent
        self._clock = clock

        self._token: Optional[Token] = None
        self._lock = threading.RLock()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(api_url={self._api_url!r}, key={self._credentials.key!r})"

    # ------------------------------------------------------------------
    # Token lifecycle
    # ------------------------------------------------------------------
    @property
    def token_url(self) -> str:
        return f"{self._api_url}{API_PREFIX}/oauth2/token"

    def authenticate(self) -> None:
        """Exchange the key/secret pair for a new bearer token.

        Raises
        ------
        AuthenticationError
            If the service cannot be reached, the response is not a
            valid envelope, or the envelope does not report success.
            The existing token, if any, is left untouched.
        """
        payload = {
            "key": self._credentials.key,
            "secret": self._credentials.secret,
            "auth_type": "api_key_secret",
        }
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Accept-Encoding": "gzip, deflate",
            "Connection": "keep-alive",
            "User-Agent": self.user_agent,
        }
        with self._lock:
            logger.debug("Requesting access token from %s", self.token_url)
            try:
                response = requests.post(
                    self.token_url, json=payload, headers=headers, timeout=self.timeout
                )
            except requests.RequestException as exc:
                logger.warning("Could not reach token endpoint: %s", exc)
                raise AuthenticationError(f"Authentication failed: {exc}") from exc

            try:
                body = response.json()
            except ValueError as exc:
                raise AuthenticationError(
                    f"Authentication failed with status {response.status_code}: "
                    f"response was not JSON: {response.text}"
                ) from exc

            try:
                envelope = Envelope.from_json(body)
            except DecodeError as exc:
                raise AuthenticationError(f"Authentication failed: {exc}") from exc

            if not envelope.ok:
                error = envelope.error_record()
                detail = error.message if error and error.message else "Invalid response from API."
                logger.warning(
                    "Authentication rejected (status %s): %s", envelope.status_code, detail
                )
                raise AuthenticationError(f"Authentication failed: {detail}")

            self._token = self._token_from(envelope)
            logger.debug("Access token obtained, expires at %s", self._token.expires_at)

    def _token_from(self, envelope: Envelope) -> Token:
        item: Dict[str, Any] = envelope.data[0] if envelope.data else {}
        if not isinstance(item, dict):
            raise AuthenticationError("Authentication response did not contain a token record")
        value = item.get("token")
        expires_at = item.get("expires_at")
        if not value:
            raise AuthenticationError("Authentication response did not contain a token")
        if isinstance(expires_at, bool) or not isinstance(expires_at, int):
            raise AuthenticationError(
                "Authentication response did not contain an integer expires_at"
            )
        token = Token(value=value, expires_at=expires_at)
        if token.is_expired(self._clock()):
            logger.warning("Token endpoint returned a token that expired at %s", expires_at)
            raise AuthenticationError(
                f"Authentication response contained an already expired token (expires_at={expires_at})"
            )
        return token

    def is_token_expired(self) -> bool:
        token = self._token
        return token is None or token.is_expired(self._clock())

    def get_token(self) -> str:
        """Return a valid token value, authenticating first if needed."""
        with self._lock:
            if self.is_token_expired():
                self.authenticate()
            assert self._token is not None
            return self._token.value

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def token(self) -> Optional[str]:
        """The last token obtained, which may already be expired."""
        return self._token.value if self._token else None

    @property
    def expires_at(self) -> Optional[int]:
        return self._token.expires_at if self._token else None

    def get_api_url(self) -> str:
        return self._api_url
